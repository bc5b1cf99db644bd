# expo_log/authoring.py
from __future__ import annotations

import json
import logging
import math
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence, Union

from .catalog import DraftPavilion, Pavilion
from .errors import CatalogError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class InputPavilion:
    id: str
    name: str


@dataclass(frozen=True)
class SaveResult:
    success: bool
    error: Optional[str] = None


# ---------------------------
# Input -> drafts
# ---------------------------
def load_input_pavilions(data: Any) -> List[InputPavilion]:
    """Validate a raw `[{id, name}, ...]` list."""
    if not isinstance(data, list):
        raise CatalogError("input data must be a JSON array")

    out: List[InputPavilion] = []
    for item in data:
        if not isinstance(item, dict):
            raise CatalogError("each input item must be a JSON object")
        pid, name = item.get("id"), item.get("name")
        if not isinstance(pid, str) or not pid.strip():
            raise CatalogError("each input item needs a string id")
        if not isinstance(name, str) or not name.strip():
            raise CatalogError("each input item needs a string name")
        out.append(InputPavilion(id=pid, name=name))
    return out


def to_drafts(items: Sequence[InputPavilion]) -> List[DraftPavilion]:
    seen = set()
    for item in items:
        if item.id in seen:
            raise CatalogError(f"duplicate id: {item.id}")
        seen.add(item.id)
    return [DraftPavilion(id=i.id, name=i.name) for i in items]


def merge_drafts(drafts: Sequence[DraftPavilion], published: Iterable[Pavilion]) -> List[DraftPavilion]:
    """Carry over coordinates already present in the published catalog."""
    by_id = {p.id: p for p in published}
    out: List[DraftPavilion] = []
    for d in drafts:
        p = by_id.get(d.id)
        if p is None or d.coordinate is not None:
            out.append(d)
        else:
            out.append(DraftPavilion(id=d.id, name=d.name, coordinate=p.coordinate, hitbox_radius=p.hitbox_radius))
    return out


# ---------------------------
# Drafts -> output
# ---------------------------
def _unit(value: float) -> bool:
    return math.isfinite(value) and 0.0 <= value <= 1.0


def validate_draft(draft: DraftPavilion) -> bool:
    if not draft.id.strip() or not draft.name.strip():
        return False
    if draft.coordinate is not None:
        if not (_unit(draft.coordinate.x) and _unit(draft.coordinate.y)):
            return False
    return draft.hitbox_radius is None or _unit(draft.hitbox_radius)


def prepare_output(draft: DraftPavilion) -> Pavilion:
    if not validate_draft(draft):
        raise CatalogError(f"invalid pavilion data: {draft.id}")
    if draft.coordinate is None:
        raise CatalogError(f"coordinate not set: {draft.id}")
    return Pavilion(
        id=draft.id,
        name=draft.name,
        coordinate=draft.coordinate,
        hitbox_radius=draft.hitbox_radius,
    )


# ---------------------------
# Persistence endpoint
# ---------------------------
class PavilionFileWriter:
    """
    Merges pavilion records into the catalog JSON by id.

    The first write to an existing catalog copies it to `<stem>.bak.json`.
    save() never raises; failures come back as SaveResult(success=False).
    """

    def __init__(self, path: Path):
        self.path = Path(path)
        self.backup_path = self.path.with_name(f"{self.path.stem}.bak.json")

    def _existing(self) -> List[Dict[str, Any]]:
        if not self.path.exists():
            return []
        raw = json.loads(self.path.read_text(encoding="utf-8"))
        if not isinstance(raw, list):
            return []
        return [r for r in raw if isinstance(r, dict) and isinstance(r.get("id"), str)]

    def save(self, update: Union[Pavilion, Sequence[Pavilion]]) -> SaveResult:
        updates = [update] if isinstance(update, Pavilion) else list(update)
        try:
            merged: Dict[str, Dict[str, Any]] = {r["id"]: r for r in self._existing()}

            if self.path.exists() and not self.backup_path.exists():
                shutil.copyfile(self.path, self.backup_path)

            for p in updates:
                if not p.id:
                    raise CatalogError("id is required")
                merged[p.id] = {**merged.get(p.id, {}), **p.to_json()}

            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(
                json.dumps(list(merged.values()), indent=2, ensure_ascii=False),
                encoding="utf-8",
            )
        except (OSError, ValueError) as exc:
            logger.warning("failed to save pavilions to %s: %s", self.path, exc)
            return SaveResult(success=False, error=f"save error: {exc}")

        logger.info("saved %d pavilion(s) to %s", len(updates), self.path)
        return SaveResult(success=True)
