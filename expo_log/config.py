# expo_log/config.py
from __future__ import annotations

import os
from dataclasses import dataclass, field, replace
from pathlib import Path

from .geo import MapSize

BASE_DIR = Path(__file__).resolve().parents[1]

DATA_DIR = BASE_DIR / "data"
CATALOG_FILE = DATA_DIR / "pavilions.json"
INPUT_FILE = DATA_DIR / "pavilions.input.json"
MAP_IMAGE_FILE = DATA_DIR / "map.png"


def default_store_path() -> Path:
    # one file per server, shared by every visitor (not per browser)
    return Path.home() / ".expo_log" / "store.json"


@dataclass(frozen=True)
class AppConfig:
    data_path: Path = CATALOG_FILE
    input_path: Path = INPUT_FILE
    map_image_path: Path = MAP_IMAGE_FILE
    map_width: int = 800
    map_height: int = 600
    default_radius: float = 0.01  # fraction of map width
    storage_key: str = "expo-visited"
    store_path: Path = field(default_factory=default_store_path)
    mode_param: str = "mode"
    visited_param: str = "visited"

    def validate(self) -> None:
        if self.map_width <= 0 or self.map_height <= 0:
            raise ValueError("map_width and map_height must be positive")
        if not (0.0 <= float(self.default_radius) <= 1.0):
            raise ValueError("default_radius must be between 0 and 1")
        if not self.storage_key:
            raise ValueError("storage_key must not be empty")
        if self.mode_param == self.visited_param:
            raise ValueError("mode_param and visited_param must differ")

    @property
    def map_size(self) -> MapSize:
        return MapSize(width=float(self.map_width), height=float(self.map_height))


def load_config(environ: dict[str, str] | None = None) -> AppConfig:
    """
    Build the app config, applying EXPO_LOG_* overrides from the environment.
    Relative paths are resolved against BASE_DIR.
    """
    env = os.environ if environ is None else environ
    cfg = AppConfig()

    overrides: dict[str, object] = {}
    if env.get("EXPO_LOG_DATA_PATH"):
        overrides["data_path"] = _resolve(env["EXPO_LOG_DATA_PATH"])
    if env.get("EXPO_LOG_INPUT_PATH"):
        overrides["input_path"] = _resolve(env["EXPO_LOG_INPUT_PATH"])
    if env.get("EXPO_LOG_MAP_IMAGE"):
        overrides["map_image_path"] = _resolve(env["EXPO_LOG_MAP_IMAGE"])
    if env.get("EXPO_LOG_STORE_PATH"):
        overrides["store_path"] = _resolve(env["EXPO_LOG_STORE_PATH"])
    if env.get("EXPO_LOG_MAP_WIDTH"):
        overrides["map_width"] = int(env["EXPO_LOG_MAP_WIDTH"])
    if env.get("EXPO_LOG_MAP_HEIGHT"):
        overrides["map_height"] = int(env["EXPO_LOG_MAP_HEIGHT"])
    if env.get("EXPO_LOG_DEFAULT_RADIUS"):
        overrides["default_radius"] = float(env["EXPO_LOG_DEFAULT_RADIUS"])
    if env.get("EXPO_LOG_STORAGE_KEY"):
        overrides["storage_key"] = env["EXPO_LOG_STORAGE_KEY"]

    if overrides:
        cfg = replace(cfg, **overrides)
    cfg.validate()
    return cfg


def _resolve(raw: str) -> Path:
    p = Path(raw).expanduser()
    return p if p.is_absolute() else BASE_DIR / p
