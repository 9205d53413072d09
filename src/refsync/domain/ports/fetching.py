"""Ports for fetching reference data from upstream sources."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from refsync.domain.model import Source, SyncCategory


class UnsupportedCategoryError(RuntimeError):
    """Raised when an adapter is asked for a category it does not serve."""

    def __init__(self, source: Source, category: SyncCategory) -> None:
        super().__init__(f"Source {source} does not provide category {category}")
        self.source = source
        self.category = category


@dataclass(slots=True, frozen=True)
class FetchContext:
    """Store-derived inputs some categories need before they can fetch."""

    paint_vehicle_slugs: tuple[str, ...] = ()


@dataclass(slots=True)
class FetchResult[TRecord]:
    """Intermediate records for one category plus the count of skipped payloads."""

    records: list[TRecord] = field(default_factory=list[TRecord])
    malformed: int = 0


@runtime_checkable
class SourceAdapter(Protocol):
    """One upstream: answers ``fetch_category`` for the categories it serves."""

    @property
    def source(self) -> Source: ...

    @property
    def categories(self) -> frozenset[SyncCategory]: ...

    async def fetch_category(
        self,
        category: SyncCategory,
        context: FetchContext,
    ) -> FetchResult[object]: ...


__all__ = ["FetchContext", "FetchResult", "SourceAdapter", "UnsupportedCategoryError"]
