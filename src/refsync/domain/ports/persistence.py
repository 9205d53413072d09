"""Repository ports for the reference store and the sync audit trail."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from refsync.domain.model import (
        GameVersionRecord,
        ItemRow,
        ManufacturerRecord,
        PaintCandidate,
        PaintImageUpdate,
        PaintRecord,
        ReferenceLookups,
        Source,
        SyncCategory,
        SyncStatus,
        SyncStatusReport,
        VehicleCandidate,
        VehicleImageRecord,
        VehicleRow,
    )


@dataclass(slots=True, frozen=True)
class VehicleWriteSummary:
    vehicles: int
    ports: int = 0
    loaner_links: int = 0
    unresolved_loaners: int = 0


class ReferenceWriter(Protocol):
    """Typed upsert and lookup operations against the reference store.

    Implementations never commit; the surrounding unit of work does, once per
    category, so every write of a category (scoped replaces included) lands or
    rolls back together.
    """

    def load_lookups(self) -> ReferenceLookups: ...

    def upsert_manufacturers(self, records: Sequence[ManufacturerRecord]) -> int: ...

    def upsert_game_versions(self, records: Sequence[GameVersionRecord]) -> int: ...

    def upsert_vehicles(self, rows: Sequence[VehicleRow]) -> VehicleWriteSummary: ...

    def upsert_items(self, rows: Sequence[ItemRow]) -> int: ...

    def upsert_paints(self, records: Sequence[PaintRecord]) -> dict[str, int]: ...

    def replace_paint_vehicles(self, links: Mapping[int, Sequence[int]]) -> int: ...

    def vehicle_candidates(self) -> list[VehicleCandidate]: ...

    def paint_candidates(self) -> list[PaintCandidate]: ...

    def update_vehicle_images(self, updates: Sequence[VehicleImageRecord]) -> int: ...

    def update_paint_images(self, updates: Sequence[PaintImageUpdate]) -> int: ...


class SyncHistoryRepository(Protocol):
    """Append-only audit rows, one per (source, category) per run."""

    def start(self, source: Source, category: SyncCategory) -> int: ...

    def finish(
        self,
        entry_id: int,
        *,
        status: SyncStatus,
        record_count: int = 0,
        error_message: str | None = None,
        malformed_count: int = 0,
        unmatched_count: int = 0,
    ) -> None: ...

    def latest_per_category(self) -> list[SyncStatusReport]: ...
