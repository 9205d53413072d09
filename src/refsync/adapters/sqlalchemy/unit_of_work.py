"""Reference store lifecycle and the per-category unit of work."""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING, Literal

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from refsync.config.storage import get_database_config
from refsync.config.sync import DEFAULT_WRITE_BATCH_SIZE
from refsync.domain.ports.unit_of_work import SyncRepositories

from .dialects import StatementBuilder, statement_builder_for
from .mappings import create_all_tables
from .repositories import SqlAlchemySyncHistoryRepository
from .writer import SqlAlchemyReferenceWriter

if TYPE_CHECKING:
    from types import TracebackType

    from sqlalchemy.engine import Engine

log = getLogger(__name__)


class StartupError(RuntimeError):
    """Raised when the reference store is used before ``startup()`` (or started twice)."""


@dataclass(frozen=True, slots=True)
class _Store:
    engine: Engine
    sessions: sessionmaker[Session]
    builder: StatementBuilder
    write_batch_size: int


_store: _Store | None = None


def startup(
    *,
    engine: Engine | None = None,
    database_uri: str | None = None,
    write_batch_size: int | None = None,
    force: bool = False,
) -> None:
    """Bind the store to ``engine`` (or a new one for ``database_uri``) and create missing tables.

    The statement builder is chosen here, once, from the engine's dialect.
    """

    global _store
    if _store is not None and not force:
        raise StartupError("Reference store already started; pass force=True to rebind it")

    bound = engine or create_engine(database_uri or get_database_config().uri)
    builder = statement_builder_for(bound.dialect.name)
    create_all_tables(bound)
    _store = _Store(
        engine=bound,
        sessions=sessionmaker(bind=bound, expire_on_commit=False),
        builder=builder,
        write_batch_size=write_batch_size or DEFAULT_WRITE_BATCH_SIZE,
    )
    log.info(f"Reference store ready ({bound.dialect.name})")


def is_started() -> bool:
    return _store is not None


def shutdown() -> None:
    global _store
    if _store is not None:
        _store.engine.dispose()
    _store = None


def _current_store() -> _Store:
    if _store is None:
        raise StartupError(
            "Reference store not started; call refsync.adapters.sqlalchemy.startup() first"
        )
    return _store


class SqlAlchemySyncUnitOfWork:
    """One session per block: the category's reference writes and its audit rows.

    Nothing is persisted unless ``commit`` is called; an exception inside the block
    rolls the session back before it is closed.
    """

    def __init__(self) -> None:
        self._store = _current_store()
        self._session: Session | None = None
        self._repositories: SyncRepositories | None = None

    def __enter__(self) -> SqlAlchemySyncUnitOfWork:
        if self._session is not None:
            raise StartupError("Unit of work is already open")
        store = self._store
        session = store.sessions()
        self._session = session
        self._repositories = SyncRepositories(
            reference=SqlAlchemyReferenceWriter(
                session,
                builder=store.builder,
                batch_size=store.write_batch_size,
            ),
            history=SqlAlchemySyncHistoryRepository(session),
        )
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> Literal[False]:
        session = self.session
        try:
            if exc_type is not None:
                session.rollback()
        finally:
            session.close()
            self._session = None
            self._repositories = None
        return False

    @property
    def session(self) -> Session:
        if self._session is None:
            raise StartupError("Unit of work is not open")
        return self._session

    @property
    def repositories(self) -> SyncRepositories:
        if self._repositories is None:
            raise StartupError("Unit of work is not open")
        return self._repositories

    def commit(self) -> None:
        self.session.commit()

    def rollback(self) -> None:
        self.session.rollback()


if TYPE_CHECKING:
    from refsync.domain.ports.unit_of_work import SyncUnitOfWork

    _uow_check: SyncUnitOfWork = SqlAlchemySyncUnitOfWork()
