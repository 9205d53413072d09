"""Public interface for the RSI storefront adapter."""

from __future__ import annotations

from .client import GraphQLError, RsiClient
from .fetcher import RsiAdapter
from .translator import build_image_set, translate_resource

__all__ = [
    "GraphQLError",
    "RsiAdapter",
    "RsiClient",
    "build_image_set",
    "translate_resource",
]
