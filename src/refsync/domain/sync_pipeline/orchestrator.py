"""Run sync categories in dependency order with per-category failure isolation."""

from __future__ import annotations

import asyncio
import threading
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

from refsync.domain.model import SyncStatus

from .categories import CATEGORY_PLAN, select_plan
from .steps import WRITE_STEPS, fetch_context

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Mapping, Sequence

    from refsync.domain.model import Source, SyncCategory
    from refsync.domain.ports.fetching import FetchContext, FetchResult, SourceAdapter
    from refsync.domain.ports.unit_of_work import SyncUnitOfWork

    from .categories import CategorySpec
    from .steps import StepOutcome, WriteStep

log = getLogger(__name__)

type UnitOfWorkFactory = Callable[[], SyncUnitOfWork]


class SyncAlreadyRunningError(RuntimeError):
    """Raised when a run is requested while another run is still in progress."""


@dataclass(slots=True, frozen=True)
class CategoryResult:
    category: SyncCategory
    source: Source
    status: SyncStatus
    record_count: int = 0
    malformed_count: int = 0
    unmatched_count: int = 0
    error_message: str | None = None


@dataclass(slots=True)
class SyncRunResult:
    results: list[CategoryResult] = field(default_factory=list[CategoryResult])

    @property
    def succeeded(self) -> bool:
        return all(result.status is not SyncStatus.ERROR for result in self.results)

    def status_of(self, category: SyncCategory) -> SyncStatus | None:
        for result in self.results:
            if result.category is category:
                return result.status
        return None


def _error_text(exc: BaseException) -> str:
    return str(exc) or type(exc).__name__


class SyncOrchestrator:
    """Sequence categories, isolate failures and keep the audit trail.

    Every category gets an audit row committed before its fetch starts. Its writes
    and the closing ``success`` update share one transaction; a failure rolls the
    writes back and closes the row as ``error`` in a separate transaction. A
    category whose dependency was attempted in this run without succeeding is
    recorded as ``skipped``. Categories of sources without an adapter are not
    attempted at all.
    """

    def __init__(
        self,
        adapters: Iterable[SourceAdapter],
        unit_of_work_factory: UnitOfWorkFactory,
        *,
        plan: Sequence[CategorySpec] = CATEGORY_PLAN,
        write_steps: Mapping[SyncCategory, WriteStep] = WRITE_STEPS,
        category_timeout_seconds: float | None = None,
    ) -> None:
        self._adapters = {adapter.source: adapter for adapter in adapters}
        self._unit_of_work_factory = unit_of_work_factory
        self._plan = tuple(plan)
        self._write_steps = write_steps
        self._timeout = category_timeout_seconds
        self._guard = threading.Lock()

    @property
    def is_running(self) -> bool:
        return self._guard.locked()

    async def run(self, categories: Iterable[SyncCategory] | None = None) -> SyncRunResult:
        if not self._guard.acquire(blocking=False):
            raise SyncAlreadyRunningError("A sync run is already in progress")
        try:
            return await self._run(select_plan(categories, self._plan))
        finally:
            self._guard.release()

    async def _run(self, specs: Sequence[CategorySpec]) -> SyncRunResult:
        run = SyncRunResult()
        outcomes: dict[SyncCategory, SyncStatus] = {}
        for spec in specs:
            adapter = self._adapters.get(spec.source)
            if adapter is None or spec.category not in adapter.categories:
                log.info(f"Not syncing {spec.category}: source {spec.source} is not enabled")
                continue

            failed = [
                dep
                for dep in spec.requires
                if outcomes.get(dep, SyncStatus.SUCCESS) is not SyncStatus.SUCCESS
            ]
            if failed:
                result = self._skip(spec, failed)
            else:
                result = await self._run_category(spec, adapter)
            outcomes[spec.category] = result.status
            run.results.append(result)
        return run

    def _skip(self, spec: CategorySpec, failed: Sequence[SyncCategory]) -> CategoryResult:
        message = f"dependency did not succeed: {', '.join(failed)}"
        log.warning(f"Skipping {spec.category}: {message}")
        with self._unit_of_work_factory() as uow:
            history = uow.repositories.history
            entry_id = history.start(spec.source, spec.category)
            history.finish(entry_id, status=SyncStatus.SKIPPED, error_message=message)
            uow.commit()
        return CategoryResult(spec.category, spec.source, SyncStatus.SKIPPED, error_message=message)

    async def _run_category(self, spec: CategorySpec, adapter: SourceAdapter) -> CategoryResult:
        log.info(f"Syncing {spec.category} from {spec.source}")
        entry_id = self._start(spec)
        try:
            async with asyncio.timeout(self._timeout):
                fetched = await adapter.fetch_category(spec.category, self._context(spec))
            result = self._write(spec, entry_id, fetched)
        except asyncio.CancelledError:
            self._fail(entry_id, "cancelled")
            raise
        except TimeoutError:
            message = f"timed out after {self._timeout}s"
            log.error(f"Category {spec.category} {message}")
            self._fail(entry_id, message)
            return CategoryResult(
                spec.category, spec.source, SyncStatus.ERROR, error_message=message
            )
        except Exception as exc:  # noqa: BLE001
            log.exception(f"Category {spec.category} failed")
            self._fail(entry_id, _error_text(exc))
            return CategoryResult(
                spec.category, spec.source, SyncStatus.ERROR, error_message=_error_text(exc)
            )

        log.info(
            f"Synced {spec.category}: {result.record_count} records, "
            f"{result.malformed_count} malformed, {result.unmatched_count} unmatched"
        )
        return result

    def _start(self, spec: CategorySpec) -> int:
        with self._unit_of_work_factory() as uow:
            entry_id = uow.repositories.history.start(spec.source, spec.category)
            uow.commit()
        return entry_id

    def _context(self, spec: CategorySpec) -> FetchContext:
        with self._unit_of_work_factory() as uow:
            return fetch_context(spec.category, uow.repositories.reference)

    def _write(
        self,
        spec: CategorySpec,
        entry_id: int,
        fetched: FetchResult[object],
    ) -> CategoryResult:
        step = self._write_steps[spec.category]
        with self._unit_of_work_factory() as uow:
            outcome: StepOutcome = step(uow.repositories.reference, fetched.records)
            uow.repositories.history.finish(
                entry_id,
                status=SyncStatus.SUCCESS,
                record_count=outcome.records,
                malformed_count=fetched.malformed,
                unmatched_count=outcome.unmatched,
            )
            uow.commit()
        return CategoryResult(
            spec.category,
            spec.source,
            SyncStatus.SUCCESS,
            record_count=outcome.records,
            malformed_count=fetched.malformed,
            unmatched_count=outcome.unmatched,
        )

    def _fail(self, entry_id: int, message: str) -> None:
        with self._unit_of_work_factory() as uow:
            uow.repositories.history.finish(
                entry_id, status=SyncStatus.ERROR, error_message=message
            )
            uow.commit()
