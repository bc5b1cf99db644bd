# expo_log/state.py
from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Set

from .catalog import Pavilion
from .codec import VisitedState, decode_visited, encode_visited
from .errors import ExpoLogError
from .geo import MapSize, Point, find_hit
from .store import KeyValueStore

logger = logging.getLogger(__name__)


class Mode(str, Enum):
    EDIT = "edit"
    READONLY = "readonly"


def parse_mode(value: Optional[str]) -> Mode:
    """Only an explicit "readonly" is read-only; missing or unknown -> edit."""
    return Mode.READONLY if value == Mode.READONLY.value else Mode.EDIT


def _is_valid_saved_state(value: object) -> bool:
    if not isinstance(value, dict):
        return False
    return all(isinstance(k, str) and isinstance(v, bool) for k, v in value.items())


@dataclass
class VisitedSession:
    """
    Runtime state of the visitor map: mode, visited flags, local persistence.

    Every mutation is written to `store` under `storage_key`. Store failures
    are logged and never raised to the caller.
    """

    pavilions: List[Pavilion]
    store: KeyValueStore
    storage_key: str = "expo-visited"
    default_radius: float = 0.01
    mode: Mode = Mode.EDIT
    visited: VisitedState = field(default_factory=dict)
    _ids: Set[str] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._ids = {p.id for p in self.pavilions}

    # ---------------------------
    # Construction
    # ---------------------------
    @classmethod
    def start(
        cls,
        pavilions: List[Pavilion],
        store: KeyValueStore,
        mode: Mode = Mode.EDIT,
        token: str = "",
        storage_key: str = "expo-visited",
        default_radius: float = 0.01,
    ) -> "VisitedSession":
        """
        Read-only sessions restore from the shared token; edit sessions
        restore from the local store.
        """
        session = cls(
            pavilions=list(pavilions),
            store=store,
            storage_key=storage_key,
            default_radius=default_radius,
            mode=mode,
        )
        if mode is Mode.READONLY:
            session.visited = session._restore_from_token(token)
        else:
            session.visited = session._load()
        return session

    def _restore_from_token(self, token: str) -> VisitedState:
        if not token:
            return {}
        try:
            return decode_visited(token, self.pavilions)
        except ExpoLogError as exc:
            logger.warning("ignoring undecodable shared token %r: %s", token, exc)
            return {}

    # ---------------------------
    # Persistence
    # ---------------------------
    def _load(self) -> VisitedState:
        try:
            saved = self.store.get(self.storage_key)
            if not saved:
                return {}
            parsed = json.loads(saved)
        except Exception as exc:
            logger.warning("failed to load visited state from local store: %s", exc)
            return {}

        if _is_valid_saved_state(parsed):
            return dict(parsed)
        logger.warning("invalid visited state format in local store; starting empty")
        return {}

    def _save(self) -> None:
        try:
            self.store.set(self.storage_key, json.dumps(self.visited, sort_keys=True))
        except Exception as exc:
            logger.warning("failed to save visited state to local store: %s", exc)

    # ---------------------------
    # Mutations
    # ---------------------------
    @property
    def is_edit_mode(self) -> bool:
        return self.mode is Mode.EDIT

    def toggle(self, pavilion_id: str) -> bool:
        """
        Flip one flag and persist. Returns True when the state changed;
        read-only mode and unknown ids are no-ops.
        """
        if not self.is_edit_mode:
            return False
        if pavilion_id not in self._ids:
            logger.debug("toggle ignored for unknown pavilion id %r", pavilion_id)
            return False

        self.visited = {**self.visited, pavilion_id: not self.visited.get(pavilion_id, False)}
        self._save()
        return True

    def toggle_at(self, point: Point, map_size: MapSize) -> Optional[Pavilion]:
        """Hit-test a map click and toggle whatever pavilion it lands on."""
        hit = find_hit(point, self.pavilions, map_size, self.default_radius)
        logger.debug("click at (%.1f, %.1f) hit %s", point.x, point.y, hit.id if hit else None)
        if hit is not None:
            self.toggle(hit.id)
        return hit

    def switch_to_edit(self) -> None:
        if self.mode is Mode.READONLY:
            self._save()
            self.mode = Mode.EDIT

    def reset(self) -> None:
        if not self.is_edit_mode:
            return
        self.visited = {}
        self._save()

    # ---------------------------
    # Queries
    # ---------------------------
    def is_visited(self, pavilion_id: str) -> bool:
        return bool(self.visited.get(pavilion_id, False))

    def visited_count(self) -> int:
        return sum(1 for p in self.pavilions if self.is_visited(p.id))

    def token(self) -> str:
        return encode_visited(self.visited, self.pavilions)

    def query_params(self, mode_param: str = "mode", visited_param: str = "visited") -> Dict[str, str]:
        params = {mode_param: self.mode.value}
        token = self.token()
        if token:
            params[visited_param] = token
        return params

    def share_params(self, mode_param: str = "mode", visited_param: str = "visited") -> Dict[str, str]:
        params = {mode_param: Mode.READONLY.value}
        token = self.token()
        if token:
            params[visited_param] = token
        return params
