"""Per-dialect statement builders for the reference store.

SQLite and PostgreSQL share the ``INSERT ... ON CONFLICT`` model but expose it
through different insert constructs and have different bound-parameter limits.
One builder is picked from ``engine.dialect.name`` at startup; call sites only
talk to the :class:`StatementBuilder` interface.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from itertools import batched
from typing import TYPE_CHECKING, Final, Protocol

from sqlalchemy import func
from sqlalchemy.dialects import postgresql, sqlite

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator, Sequence

    from sqlalchemy import Table
    from sqlalchemy.sql.dml import Insert


class UnsupportedDialectError(RuntimeError):
    """Raised when the engine's dialect has no statement builder."""


class StatementBuilder(Protocol):
    @property
    def name(self) -> str: ...

    @property
    def max_parameters(self) -> int: ...

    def upsert(
        self,
        table: Table,
        *,
        conflict_columns: Sequence[str],
        columns: Sequence[str],
        overwrite: Sequence[str] = (),
    ) -> Insert: ...

    def batch_size(self, *, column_count: int, requested: int) -> int: ...


type _InsertFactory = Callable[[Table], sqlite.Insert | postgresql.Insert]


@dataclass(slots=True, frozen=True)
class OnConflictStatementBuilder:
    name: str
    max_parameters: int
    insert: _InsertFactory

    def upsert(
        self,
        table: Table,
        *,
        conflict_columns: Sequence[str],
        columns: Sequence[str],
        overwrite: Sequence[str] = (),
    ) -> Insert:
        """Insert rows, or update the row owning ``conflict_columns``.

        Columns in ``overwrite`` always take the incoming value; every other column
        keeps the stored value when the incoming one is NULL.
        """

        stmt = self.insert(table)
        excluded = stmt.excluded
        updates = {
            column: (
                excluded[column]
                if column in overwrite
                else func.coalesce(excluded[column], table.c[column])
            )
            for column in columns
            if column not in conflict_columns
        }
        if not updates:
            return stmt.on_conflict_do_nothing(index_elements=list(conflict_columns))
        return stmt.on_conflict_do_update(index_elements=list(conflict_columns), set_=updates)

    def batch_size(self, *, column_count: int, requested: int) -> int:
        return max(1, min(requested, self.max_parameters // max(column_count, 1)))


SQLITE_BUILDER: Final = OnConflictStatementBuilder(
    name="sqlite",
    # Conservative: SQLite builds before 3.32 cap host parameters at 999.
    max_parameters=999,
    insert=sqlite.insert,
)
POSTGRES_BUILDER: Final = OnConflictStatementBuilder(
    name="postgresql",
    max_parameters=32767,
    insert=postgresql.insert,
)

_BUILDERS: Final = {builder.name: builder for builder in (SQLITE_BUILDER, POSTGRES_BUILDER)}


def statement_builder_for(dialect_name: str) -> StatementBuilder:
    try:
        return _BUILDERS[dialect_name]
    except KeyError:
        message = f"No statement builder for dialect {dialect_name!r}"
        raise UnsupportedDialectError(message) from None


def chunks[T](items: Iterable[T], size: int) -> Iterator[list[T]]:
    for chunk in batched(items, size):
        yield list(chunk)
