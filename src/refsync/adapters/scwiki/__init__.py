"""Public interface for the SC Wiki adapter."""

from __future__ import annotations

from .client import ScWikiClient
from .fetcher import ScWikiAdapter
from .translator import (
    slugify,
    translate_game_version,
    translate_item,
    translate_manufacturer,
    translate_vehicle,
)

__all__ = [
    "ScWikiAdapter",
    "ScWikiClient",
    "slugify",
    "translate_game_version",
    "translate_item",
    "translate_manufacturer",
    "translate_vehicle",
]
