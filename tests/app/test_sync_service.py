from __future__ import annotations

import asyncio
import threading
from typing import TYPE_CHECKING

from refsync.app import (
    SyncService,
    TriggerStatus,
    build_adapters,
    build_sync_service,
    run_sync,
    sync_status,
)
from refsync.config.sync import SyncConfig
from refsync.domain.model import ManufacturerRecord, Source, SyncCategory, SyncStatus
from refsync.domain.ports.fetching import FetchResult
from refsync.domain.sync_pipeline import SyncOrchestrator
from tests.helpers.http import make_client_factory, sources_config
from tests.helpers.upstream import FakeUpstream

if TYPE_CHECKING:
    from collections.abc import Callable

    from refsync.adapters.sqlalchemy import SqlAlchemySyncUnitOfWork
    from refsync.domain.ports.fetching import FetchContext

    type UowFactory = Callable[[], SqlAlchemySyncUnitOfWork]

WAIT_SECONDS = 5.0


class _GatedAdapter:
    """Blocks its fetch until the test thread sets ``release``."""

    def __init__(self) -> None:
        self.started = threading.Event()
        self.release = threading.Event()

    @property
    def source(self) -> Source:
        return Source.SCWIKI

    @property
    def categories(self) -> frozenset[SyncCategory]:
        return frozenset({SyncCategory.MANUFACTURERS})

    async def fetch_category(
        self,
        category: SyncCategory,
        context: FetchContext,
    ) -> FetchResult[object]:
        self.started.set()
        await asyncio.to_thread(self.release.wait, WAIT_SECONDS)
        return FetchResult(records=[ManufacturerRecord(slug="anvil", name="Anvil Aerospace")])


def test_build_adapters_follows_enabled_flags() -> None:
    factory = make_client_factory(FakeUpstream())

    default = build_adapters(sources_config(), client_factory=factory)
    with_store = build_adapters(sources_config(rsi_enabled=True), client_factory=factory)

    assert [adapter.source for adapter in default] == [
        Source.SCWIKI,
        Source.SCUNPACKED,
        Source.FLEETYARDS,
    ]
    assert with_store[-1].source is Source.RSI


def test_trigger_returns_immediately_and_rejects_overlaps(
    sqlite_unit_of_work: UowFactory,
) -> None:
    adapter = _GatedAdapter()
    service = SyncService(SyncOrchestrator([adapter], sqlite_unit_of_work), sqlite_unit_of_work)

    first = service.trigger()
    assert first.accepted
    assert adapter.started.wait(WAIT_SECONDS)
    assert service.is_running

    second = service.trigger([SyncCategory.MANUFACTURERS])
    assert second.status is TriggerStatus.REJECTED
    assert second.message == "sync already running"

    adapter.release.set()
    assert service.wait(WAIT_SECONDS)
    assert not service.is_running
    assert service.last_result is not None
    assert service.last_result.succeeded
    (report,) = service.status()
    assert report.endpoint is SyncCategory.MANUFACTURERS
    assert report.status is SyncStatus.SUCCESS


def test_service_can_run_again_after_a_run_finishes(sqlite_unit_of_work: UowFactory) -> None:
    adapters = build_adapters(sources_config(), client_factory=make_client_factory(FakeUpstream()))
    service = build_sync_service(
        adapters=adapters,
        unit_of_work_factory=sqlite_unit_of_work,
        sync_config=SyncConfig(category_timeout_seconds=None),
    )

    assert service.trigger([SyncCategory.MANUFACTURERS]).accepted
    assert service.wait(WAIT_SECONDS)
    assert service.trigger([SyncCategory.GAME_VERSIONS]).accepted
    assert service.wait(WAIT_SECONDS)

    assert [report.endpoint for report in service.status()] == [
        SyncCategory.GAME_VERSIONS,
        SyncCategory.MANUFACTURERS,
    ]


def test_run_sync_and_status_report_the_outcome(sqlite_unit_of_work: UowFactory) -> None:
    upstream = FakeUpstream(failures={"/api/game-versions": 500})
    adapters = build_adapters(sources_config(), client_factory=make_client_factory(upstream))

    result = run_sync(
        [SyncCategory.MANUFACTURERS, SyncCategory.GAME_VERSIONS],
        adapters=adapters,
        unit_of_work_factory=sqlite_unit_of_work,
        sync_config=SyncConfig(),
    )

    assert not result.succeeded
    assert result.status_of(SyncCategory.MANUFACTURERS) is SyncStatus.SUCCESS
    assert result.status_of(SyncCategory.GAME_VERSIONS) is SyncStatus.ERROR
    assert result.status_of(SyncCategory.VEHICLES) is None
    statuses = {
        report.endpoint: report.status
        for report in sync_status(unit_of_work_factory=sqlite_unit_of_work)
    }
    assert statuses == {
        SyncCategory.GAME_VERSIONS: SyncStatus.ERROR,
        SyncCategory.MANUFACTURERS: SyncStatus.SUCCESS,
    }
