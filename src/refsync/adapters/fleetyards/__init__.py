"""Public interface for the FleetYards image adapter."""

from __future__ import annotations

from .client import FleetYardsClient
from .fetcher import FleetYardsAdapter
from .translator import store_images, translate_model, translate_paint

__all__ = [
    "FleetYardsAdapter",
    "FleetYardsClient",
    "store_images",
    "translate_model",
    "translate_paint",
]
