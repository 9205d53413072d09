"""Audit trail repository backed by SQLAlchemy sessions."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING

from sqlalchemy import func, insert, select, update

from refsync.domain.model import SyncStatus, SyncStatusReport

from .mappings import sync_history_table

if TYPE_CHECKING:
    from collections.abc import Callable

    from sqlalchemy.orm import Session

    from refsync.domain.model import Source, SyncCategory


def _utcnow() -> datetime:
    return datetime.now(UTC)


class SqlAlchemySyncHistoryRepository:
    def __init__(self, session: Session, *, clock: Callable[[], datetime] = _utcnow) -> None:
        self.session = session
        self._clock = clock

    def start(self, source: Source, category: SyncCategory) -> int:
        result = self.session.execute(
            insert(sync_history_table).values(
                source=source,
                endpoint=category,
                status=SyncStatus.RUNNING,
                record_count=0,
                malformed_count=0,
                unmatched_count=0,
                started_at=self._clock(),
            )
        )
        primary_key = result.inserted_primary_key
        if primary_key is None:
            raise RuntimeError("sync_history insert returned no primary key")
        return int(primary_key[0])

    def finish(
        self,
        entry_id: int,
        *,
        status: SyncStatus,
        record_count: int = 0,
        error_message: str | None = None,
        malformed_count: int = 0,
        unmatched_count: int = 0,
    ) -> None:
        self.session.execute(
            update(sync_history_table)
            .where(sync_history_table.c.id == entry_id)
            .where(sync_history_table.c.completed_at.is_(None))
            .values(
                status=status,
                record_count=record_count,
                error_message=error_message,
                malformed_count=malformed_count,
                unmatched_count=unmatched_count,
                completed_at=self._clock(),
            )
        )

    def latest_per_category(self) -> list[SyncStatusReport]:
        latest = select(func.max(sync_history_table.c.id)).group_by(sync_history_table.c.endpoint)
        stmt = (
            select(sync_history_table)
            .where(sync_history_table.c.id.in_(latest))
            .order_by(sync_history_table.c.endpoint)
        )
        return [
            SyncStatusReport(
                endpoint=row.endpoint,
                source=row.source,
                status=row.status,
                last_sync_at=row.completed_at or row.started_at,
                total_records=row.record_count,
                error_message=row.error_message,
                malformed_count=row.malformed_count,
                unmatched_count=row.unmatched_count,
            )
            for row in self.session.execute(stmt)
        ]
