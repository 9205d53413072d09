"""SQLAlchemy adapter package for the reference store."""

from __future__ import annotations

from .dialects import (
    POSTGRES_BUILDER,
    SQLITE_BUILDER,
    StatementBuilder,
    UnsupportedDialectError,
    statement_builder_for,
)
from .mappings import ITEM_TABLES, create_all_tables, metadata
from .repositories import SqlAlchemySyncHistoryRepository
from .unit_of_work import (
    SqlAlchemySyncUnitOfWork,
    StartupError,
    is_started,
    shutdown,
    startup,
)
from .writer import SqlAlchemyReferenceWriter

__all__ = [
    "ITEM_TABLES",
    "POSTGRES_BUILDER",
    "SQLITE_BUILDER",
    "SqlAlchemyReferenceWriter",
    "SqlAlchemySyncHistoryRepository",
    "SqlAlchemySyncUnitOfWork",
    "StartupError",
    "StatementBuilder",
    "UnsupportedDialectError",
    "create_all_tables",
    "is_started",
    "metadata",
    "shutdown",
    "startup",
    "statement_builder_for",
]
