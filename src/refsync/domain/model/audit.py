"""Audit records for sync runs."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from datetime import datetime

    from .enums import Source, SyncCategory, SyncStatus


@dataclass(slots=True, frozen=True)
class SyncStatusReport:
    """Latest audit row for one category, as surfaced by the status query."""

    endpoint: SyncCategory
    source: Source
    status: SyncStatus
    last_sync_at: datetime | None
    total_records: int
    error_message: str | None = None
    malformed_count: int = 0
    unmatched_count: int = 0
