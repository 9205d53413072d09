"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import StrEnum


class Source(StrEnum):
    SCWIKI = "scwiki"
    FLEETYARDS = "fleetyards"
    SCUNPACKED = "scunpacked"
    RSI = "rsi"


class SyncCategory(StrEnum):
    """Unit of work for the orchestrator; also the ``endpoint`` of an audit row."""

    MANUFACTURERS = "manufacturers"
    GAME_VERSIONS = "game_versions"
    VEHICLES = "vehicles"
    ITEMS = "items"
    PAINTS = "paints"
    VEHICLE_IMAGES = "vehicle_images"
    PAINT_IMAGES = "paint_images"
    STORE_VEHICLE_IMAGES = "store_vehicle_images"
    STORE_PAINT_IMAGES = "store_paint_images"


class SyncStatus(StrEnum):
    PENDING = "pending"
    RUNNING = "running"
    SUCCESS = "success"
    ERROR = "error"
    SKIPPED = "skipped"


class ItemKind(StrEnum):
    """Reference table an upstream item lands in."""

    COMPONENT = "component"
    FPS_WEAPON = "fps_weapon"
    FPS_ARMOUR = "fps_armour"
    FPS_ATTACHMENT = "fps_attachment"
    FPS_UTILITY = "fps_utility"
