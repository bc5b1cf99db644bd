# expo_log/errors.py
from __future__ import annotations


class ExpoLogError(Exception):
    """Base class for every recoverable error raised by expo_log."""


class UnknownIdError(ExpoLogError, KeyError):
    def __init__(self, pavilion_id: str):
        super().__init__(pavilion_id)
        self.pavilion_id = pavilion_id

    def __str__(self) -> str:
        return f"unknown pavilion id: {self.pavilion_id}"


class NoSelectionError(ExpoLogError):
    pass


class LengthMismatchError(ExpoLogError, ValueError):
    pass


class InvalidEncodingError(ExpoLogError, ValueError):
    pass


class CatalogError(ExpoLogError, ValueError):
    """Malformed catalog or authoring input (bad shape, empty or duplicate ids)."""
