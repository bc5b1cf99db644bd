# expo_log/catalog.py
from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union

import pandas as pd

from .errors import CatalogError
from .geo import Point

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Pavilion:
    id: str
    name: str
    coordinate: Point
    hitbox_radius: Optional[float] = None  # None -> caller's default radius

    def to_json(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "coordinate": {"x": self.coordinate.x, "y": self.coordinate.y},
            "hitboxRadius": self.hitbox_radius,
        }


@dataclass(frozen=True)
class DraftPavilion:
    """Authoring-tool pavilion: coordinate and radius are None until captured."""

    id: str
    name: str
    coordinate: Optional[Point] = None
    hitbox_radius: Optional[float] = None


# ---------------------------
# Loading helpers
# ---------------------------
def pavilions_frame(records: Sequence[Dict[str, Any]]) -> pd.DataFrame:
    """
    Flatten raw JSON records into a frame with columns
    id, name, x, y, hitbox_radius. Types are hardened, bad rows dropped.
    """
    rows = []
    for rec in records:
        if not isinstance(rec, dict):
            raise CatalogError("each pavilion must be a JSON object")
        coord = rec.get("coordinate") or {}
        if not isinstance(coord, dict):
            coord = {}
        rows.append(
            {
                "id": rec.get("id"),
                "name": rec.get("name"),
                "x": coord.get("x"),
                "y": coord.get("y"),
                "hitbox_radius": rec.get("hitboxRadius"),
            }
        )
    df = pd.DataFrame(rows, columns=["id", "name", "x", "y", "hitbox_radius"])

    # normalize text columns
    df["id"] = df["id"].fillna("").astype(str).str.strip()
    df["name"] = df["name"].fillna("").astype(str).str.strip()

    # harden numeric columns
    for col in ["x", "y", "hitbox_radius"]:
        df[col] = pd.to_numeric(df[col], errors="coerce")

    bad = (df["id"] == "") | (df["name"] == "") | df["x"].isna() | df["y"].isna()
    if bad.any():
        logger.warning("dropping %d pavilion(s) without id, name or coordinate", int(bad.sum()))
    df = df[~bad].copy()

    dupes = df["id"][df["id"].duplicated()].unique().tolist()
    if dupes:
        raise CatalogError(f"duplicate pavilion id(s): {', '.join(dupes)}")

    return df.reset_index(drop=True)


def frame_to_pavilions(df: pd.DataFrame) -> List[Pavilion]:
    out: List[Pavilion] = []
    for _, r in df.iterrows():
        radius = r["hitbox_radius"]
        out.append(
            Pavilion(
                id=str(r["id"]),
                name=str(r["name"]),
                coordinate=Point(float(r["x"]), float(r["y"])),
                hitbox_radius=None if pd.isna(radius) else float(radius),
            )
        )
    return out


def parse_pavilions(data: Any) -> List[Pavilion]:
    if not isinstance(data, list):
        raise CatalogError("pavilion catalog must be a JSON array")
    return frame_to_pavilions(pavilions_frame(data))


def load_pavilions(path: Union[str, Path]) -> List[Pavilion]:
    raw = json.loads(Path(path).read_text(encoding="utf-8"))
    pavilions = parse_pavilions(raw)
    logger.info("loaded %d pavilions from %s", len(pavilions), path)
    return pavilions


# ---------------------------
# Queries
# ---------------------------
def _normalize(value: str) -> str:
    return value.strip().lower()


def search_pavilions(pavilions: Sequence[Pavilion], query: str) -> List[Pavilion]:
    """Case-insensitive substring match on name or id; blank query -> all."""
    q = _normalize(query)
    if not q:
        return list(pavilions)
    return [p for p in pavilions if q in _normalize(p.name) or q in _normalize(p.id)]

