"""Transaction boundary a sync category writes through."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from types import TracebackType

    from refsync.domain.ports.persistence import ReferenceWriter, SyncHistoryRepository


@dataclass(slots=True)
class SyncRepositories:
    reference: ReferenceWriter
    history: SyncHistoryRepository


class SyncUnitOfWork(Protocol):
    """Leaving the block without ``commit`` discards every write made through it."""

    @property
    def repositories(self) -> SyncRepositories: ...

    def __enter__(self) -> SyncUnitOfWork: ...

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> bool: ...

    def commit(self) -> None: ...

    def rollback(self) -> None: ...
