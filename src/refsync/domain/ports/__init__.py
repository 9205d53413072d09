"""Domain port definitions for adapters."""

from __future__ import annotations

from .fetching import FetchContext, FetchResult, SourceAdapter, UnsupportedCategoryError
from .persistence import ReferenceWriter, SyncHistoryRepository, VehicleWriteSummary
from .unit_of_work import SyncRepositories, SyncUnitOfWork

__all__ = [
    "FetchContext",
    "FetchResult",
    "ReferenceWriter",
    "SourceAdapter",
    "SyncHistoryRepository",
    "SyncRepositories",
    "SyncUnitOfWork",
    "UnsupportedCategoryError",
    "VehicleWriteSummary",
]
