# expo_log/capture.py
from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import List, Optional, Sequence

from .catalog import DraftPavilion
from .errors import NoSelectionError, UnknownIdError
from .geo import MapSize, Point, normalized_distance, pixel_to_normalized

logger = logging.getLogger(__name__)


class CaptureState(str, Enum):
    IDLE = "idle"
    SELECTED = "selected"
    CENTER_PENDING = "center-pending"


@dataclass(frozen=True)
class CaptureResult:
    id: str
    coordinate: Point
    hitbox_radius: Optional[float]
    completed: bool


@dataclass(frozen=True)
class SelectResult:
    cancelled_pending: bool


@dataclass(frozen=True)
class _Session:
    """One value per state; a pending center only exists in CENTER_PENDING."""

    state: CaptureState = CaptureState.IDLE
    selected_id: Optional[str] = None
    center: Optional[Point] = None


class CoordinateCapture:
    """
    Two-click capture of a pavilion's center and hit radius.

    select(id) -> click(center) -> click(edge). The first click stores the
    normalized center, the second derives the radius from the pixel distance
    to the center (normalized by map width) and returns to IDLE.
    """

    def __init__(self, pavilions: Sequence[DraftPavilion], map_size: MapSize):
        self._pavilions: List[DraftPavilion] = list(pavilions)
        self._map_size = map_size
        self._session = _Session()

    @property
    def state(self) -> CaptureState:
        return self._session.state

    @property
    def selected_id(self) -> Optional[str]:
        return self._session.selected_id

    @property
    def center(self) -> Optional[Point]:
        return self._session.center

    @property
    def selected(self) -> Optional[DraftPavilion]:
        if self._session.selected_id is None:
            return None
        return self._find(self._session.selected_id)

    @property
    def pavilions(self) -> List[DraftPavilion]:
        return list(self._pavilions)

    def _find(self, pavilion_id: str) -> Optional[DraftPavilion]:
        for p in self._pavilions:
            if p.id == pavilion_id:
                return p
        return None

    def select(self, pavilion_id: str) -> SelectResult:
        if self._find(pavilion_id) is None:
            raise UnknownIdError(pavilion_id)

        prev = self._session
        cancelled = prev.state is CaptureState.CENTER_PENDING and prev.selected_id != pavilion_id
        if cancelled:
            logger.debug("discarding pending center for %s", prev.selected_id)

        self._session = _Session(state=CaptureState.SELECTED, selected_id=pavilion_id)
        return SelectResult(cancelled_pending=cancelled)

    def click(self, point: Point) -> CaptureResult:
        pid, center = self._session.selected_id, self._session.center
        if pid is not None and self._session.state is CaptureState.SELECTED:
            return self._place_center(pid, point)
        if pid is not None and center is not None and self._session.state is CaptureState.CENTER_PENDING:
            return self._place_radius(pid, center, point)
        raise NoSelectionError("select a pavilion before clicking the map")

    def _place_center(self, pid: str, point: Point) -> CaptureResult:
        coordinate = pixel_to_normalized(point, self._map_size)
        self._replace(pid, coordinate, None)
        self._session = _Session(state=CaptureState.CENTER_PENDING, selected_id=pid, center=point)
        logger.debug("center of %s set to (%.4f, %.4f)", pid, coordinate.x, coordinate.y)
        return CaptureResult(id=pid, coordinate=coordinate, hitbox_radius=None, completed=False)

    def _place_radius(self, pid: str, center: Point, point: Point) -> CaptureResult:
        coordinate = pixel_to_normalized(center, self._map_size)
        radius = normalized_distance(center, point, self._map_size)
        self._replace(pid, coordinate, radius)
        self._session = _Session()
        logger.debug("radius of %s set to %.4f", pid, radius)
        return CaptureResult(id=pid, coordinate=coordinate, hitbox_radius=radius, completed=True)

    def _replace(self, pavilion_id: str, coordinate: Point, radius: Optional[float]) -> None:
        self._pavilions = [
            replace(p, coordinate=coordinate, hitbox_radius=radius) if p.id == pavilion_id else p
            for p in self._pavilions
        ]
