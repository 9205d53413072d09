"""Application orchestration entry points."""

from __future__ import annotations

import asyncio
import threading
from dataclasses import dataclass
from enum import StrEnum
from logging import getLogger
from typing import TYPE_CHECKING

from refsync.adapters.fleetyards import FleetYardsAdapter
from refsync.adapters.http_resilience import ResilientClient
from refsync.adapters.rsi import RsiAdapter
from refsync.adapters.scunpacked import ScunpackedAdapter
from refsync.adapters.scwiki import ScWikiAdapter
from refsync.adapters.sqlalchemy.unit_of_work import SqlAlchemySyncUnitOfWork, is_started, startup
from refsync.config.sources import get_sources_config
from refsync.config.sync import get_sync_config
from refsync.domain.sync_pipeline import SyncAlreadyRunningError, SyncOrchestrator
from refsync.scheduler import SyncScheduler

if TYPE_CHECKING:
    from collections.abc import Iterable

    from refsync.adapters.http_resilience import ClientFactory
    from refsync.config.sources import SourcesConfig
    from refsync.config.sync import SyncConfig
    from refsync.domain.model import SyncCategory, SyncStatusReport
    from refsync.domain.ports.fetching import SourceAdapter
    from refsync.domain.sync_pipeline import SyncRunResult, UnitOfWorkFactory


log = getLogger(__name__)


def build_adapters(
    sources: SourcesConfig | None = None,
    *,
    client_factory: ClientFactory = ResilientClient,
) -> list[SourceAdapter]:
    """Instantiate one adapter per enabled upstream."""

    sources = sources or get_sources_config()
    adapters: list[SourceAdapter] = []
    if sources.scwiki.enabled:
        adapters.append(ScWikiAdapter(sources.scwiki, client_factory=client_factory))
    if sources.scunpacked.enabled:
        adapters.append(ScunpackedAdapter(sources.scunpacked, client_factory=client_factory))
    if sources.fleetyards.enabled:
        adapters.append(FleetYardsAdapter(sources.fleetyards, client_factory=client_factory))
    if sources.rsi.enabled:
        adapters.append(RsiAdapter(sources.rsi, client_factory=client_factory))
    log.debug(f"Enabled sources: {', '.join(adapter.source for adapter in adapters)}")
    return adapters


def build_orchestrator(
    *,
    adapters: Iterable[SourceAdapter] | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    sync_config: SyncConfig | None = None,
) -> SyncOrchestrator:
    """Wire an orchestrator against the configured store and upstreams."""

    sync_config = sync_config or get_sync_config()
    if not is_started():
        startup(write_batch_size=sync_config.write_batch_size)
    return SyncOrchestrator(
        build_adapters() if adapters is None else adapters,
        unit_of_work_factory or SqlAlchemySyncUnitOfWork,
        category_timeout_seconds=sync_config.category_timeout_seconds,
    )


def run_sync(
    categories: Iterable[SyncCategory] | None = None,
    *,
    adapters: Iterable[SourceAdapter] | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    sync_config: SyncConfig | None = None,
) -> SyncRunResult:
    """Synchronise ``categories`` (all of them for ``None``) and wait for the outcome."""

    orchestrator = build_orchestrator(
        adapters=adapters,
        unit_of_work_factory=unit_of_work_factory,
        sync_config=sync_config,
    )
    selected = None if categories is None else list(categories)
    log.info(f"Starting sync: categories={'all' if selected is None else ', '.join(selected)}")

    result = asyncio.run(orchestrator.run(selected))

    for outcome in result.results:
        log.info(
            f"{outcome.category}: {outcome.status} records={outcome.record_count} "
            f"malformed={outcome.malformed_count} unmatched={outcome.unmatched_count}"
            + (f" error={outcome.error_message}" if outcome.error_message else "")
        )
    log.info(f"Finished sync: {'ok' if result.succeeded else 'with errors'}")
    return result


class TriggerStatus(StrEnum):
    ACCEPTED = "accepted"
    REJECTED = "rejected"


@dataclass(slots=True, frozen=True)
class TriggerResult:
    status: TriggerStatus
    message: str

    @property
    def accepted(self) -> bool:
        return self.status is TriggerStatus.ACCEPTED


class SyncService:
    """Trigger/status surface for callers that must not block on a run.

    ``trigger`` returns as soon as the run has been handed to a background thread.
    Only one run may be active at a time; overlapping triggers are rejected rather
    than queued.
    """

    def __init__(
        self,
        orchestrator: SyncOrchestrator,
        unit_of_work_factory: UnitOfWorkFactory,
    ) -> None:
        self._orchestrator = orchestrator
        self._unit_of_work_factory = unit_of_work_factory
        self._lock = threading.Lock()
        self._thread: threading.Thread | None = None
        self.last_result: SyncRunResult | None = None

    @property
    def is_running(self) -> bool:
        return self._lock.locked()

    def trigger(self, categories: Iterable[SyncCategory] | None = None) -> TriggerResult:
        if not self._lock.acquire(blocking=False):
            log.warning("Sync trigger rejected: a run is already in progress")
            return TriggerResult(TriggerStatus.REJECTED, "sync already running")

        selected = None if categories is None else list(categories)
        try:
            self._thread = threading.Thread(
                target=self._run,
                args=(selected,),
                name="refsync-sync",
                daemon=True,
            )
            self._thread.start()
        except RuntimeError:
            self._lock.release()
            raise
        scope = "all" if selected is None else ", ".join(selected)
        return TriggerResult(TriggerStatus.ACCEPTED, f"sync started: {scope}")

    def wait(self, timeout: float | None = None) -> bool:
        """Join the background run; returns ``False`` if it is still running."""

        thread = self._thread
        if thread is None:
            return True
        thread.join(timeout)
        return not thread.is_alive()

    def has_reference_data(self) -> bool:
        with self._unit_of_work_factory() as uow:
            return bool(uow.repositories.reference.load_lookups().manufacturer_by_name)

    def status(self) -> list[SyncStatusReport]:
        with self._unit_of_work_factory() as uow:
            return uow.repositories.history.latest_per_category()

    def _run(self, categories: list[SyncCategory] | None) -> None:
        try:
            self.last_result = asyncio.run(self._orchestrator.run(categories))
        except SyncAlreadyRunningError:
            log.warning("Sync run rejected by the orchestrator: a run is already in progress")
        except Exception:
            log.exception("Background sync failed")
        finally:
            self._lock.release()


def build_sync_service(
    *,
    adapters: Iterable[SourceAdapter] | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    sync_config: SyncConfig | None = None,
) -> SyncService:
    uow_factory = unit_of_work_factory or SqlAlchemySyncUnitOfWork
    orchestrator = build_orchestrator(
        adapters=adapters,
        unit_of_work_factory=uow_factory,
        sync_config=sync_config,
    )
    return SyncService(orchestrator, uow_factory)


def build_sync_scheduler(
    *,
    service: SyncService | None = None,
    sync_config: SyncConfig | None = None,
) -> SyncScheduler:
    """Wire the cron and startup syncs from ``SYNC_SCHEDULE`` and ``SYNC_ON_STARTUP``."""

    sync_config = sync_config or get_sync_config()
    return SyncScheduler(
        service or build_sync_service(sync_config=sync_config),
        schedule=sync_config.schedule,
        sync_on_startup=sync_config.sync_on_startup,
    )


def sync_status(*, unit_of_work_factory: UnitOfWorkFactory | None = None) -> list[SyncStatusReport]:
    """Return the latest audit row per category."""

    if not is_started():
        startup(write_batch_size=get_sync_config().write_batch_size)
    with (unit_of_work_factory or SqlAlchemySyncUnitOfWork)() as uow:
        return uow.repositories.history.latest_per_category()
