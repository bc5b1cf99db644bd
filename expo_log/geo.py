# expo_log/geo.py
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, Optional, Protocol, Sequence, TypeVar


@dataclass(frozen=True)
class Point:
    x: float
    y: float


@dataclass(frozen=True)
class MapSize:
    width: float
    height: float


class HasHitbox(Protocol):
    @property
    def coordinate(self) -> Point: ...

    @property
    def hitbox_radius(self) -> Optional[float]: ...


C = TypeVar("C", bound=HasHitbox)


def scale(normalized: Point, map_size: MapSize) -> Point:
    """
    Normalized (0~1) coordinate -> pixel coordinate.
    No clamping: out-of-range input gives out-of-range pixels.
    """
    return Point(normalized.x * map_size.width, normalized.y * map_size.height)


def pixel_to_normalized(pixel: Point, map_size: MapSize) -> Point:
    """Inverse of scale(). Values outside [0, 1] are allowed."""
    return Point(pixel.x / map_size.width, pixel.y / map_size.height)


def effective_radius_px(
    pavilion_radius: Optional[float],
    default_radius: float,
    map_width: float,
) -> float:
    # radius is relative to map width only, even when height scales differently
    radius = default_radius if pavilion_radius is None else pavilion_radius
    return radius * map_width


def squared_distance(a: Point, b: Point) -> float:
    dx = a.x - b.x
    dy = a.y - b.y
    return dx * dx + dy * dy


def normalized_distance(a: Point, b: Point, map_size: MapSize) -> float:
    """
    Pixel distance between two points, normalized by map width.
    The y component counts toward the distance; only width normalizes it.
    """
    return math.sqrt(squared_distance(a, b)) / map_size.width


def in_hitbox(point: Point, center: Point, radius_px: float) -> bool:
    """Inclusive circle test: points on the boundary are hits."""
    return squared_distance(point, center) <= radius_px * radius_px


def in_bounds(point: Point, map_size: MapSize) -> bool:
    return 0 <= point.x <= map_size.width and 0 <= point.y <= map_size.height


def find_hit(
    point: Point,
    candidates: Iterable[C],
    map_size: MapSize,
    default_radius: float,
) -> Optional[C]:
    """
    Return the candidate whose hitbox contains `point` and whose center is
    closest to it. Ties keep the first candidate in iteration order.
    Points outside the map never hit anything.
    """
    if not in_bounds(point, map_size):
        return None

    best: Optional[C] = None
    best_d2 = math.inf
    for cand in candidates:
        center = scale(cand.coordinate, map_size)
        r_px = effective_radius_px(cand.hitbox_radius, default_radius, map_size.width)
        d2 = squared_distance(point, center)
        if d2 <= r_px * r_px and d2 < best_d2:
            best, best_d2 = cand, d2
    return best


def hit_circles(
    candidates: Sequence[C],
    map_size: MapSize,
    default_radius: float,
) -> list[tuple[C, Point, float]]:
    """
    (candidate, pixel center, pixel radius) for each candidate, in order.
    Used by the map renderer to draw the same circles find_hit() tests.
    """
    out: list[tuple[C, Point, float]] = []
    for cand in candidates:
        out.append(
            (
                cand,
                scale(cand.coordinate, map_size),
                effective_radius_px(cand.hitbox_radius, default_radius, map_size.width),
            )
        )
    return out

