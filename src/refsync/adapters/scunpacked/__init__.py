"""Public interface for the game-data corpus adapter."""

from __future__ import annotations

from .client import GitCorpusClient
from .fetcher import ScunpackedAdapter, is_paint_file
from .translator import slug_from_class_name, translate_paint, vehicle_tag

__all__ = [
    "GitCorpusClient",
    "ScunpackedAdapter",
    "is_paint_file",
    "slug_from_class_name",
    "translate_paint",
    "vehicle_tag",
]
