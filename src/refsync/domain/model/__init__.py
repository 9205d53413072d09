"""Public domain model surface."""

from __future__ import annotations

from refsync.domain.model.audit import SyncStatusReport
from refsync.domain.model.enums import ItemKind, Source, SyncCategory, SyncStatus
from refsync.domain.model.records import (
    EntityRef,
    GameVersionRecord,
    ImageSet,
    ItemRecord,
    ItemRow,
    ManufacturerRecord,
    PaintCandidate,
    PaintImageRecord,
    PaintImageUpdate,
    PaintRecord,
    PortRecord,
    ReferenceLookups,
    StoreListing,
    VehicleCandidate,
    VehicleImageRecord,
    VehicleRecord,
    VehicleRow,
)

__all__ = [
    "EntityRef",
    "GameVersionRecord",
    "ImageSet",
    "ItemKind",
    "ItemRecord",
    "ItemRow",
    "ManufacturerRecord",
    "PaintCandidate",
    "PaintImageRecord",
    "PaintImageUpdate",
    "PaintRecord",
    "PortRecord",
    "ReferenceLookups",
    "Source",
    "StoreListing",
    "SyncCategory",
    "SyncStatus",
    "SyncStatusReport",
    "VehicleCandidate",
    "VehicleImageRecord",
    "VehicleRecord",
    "VehicleRow",
]
