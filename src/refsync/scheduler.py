"""Cron-driven and startup syncs.

Both paths go through :meth:`SyncService.trigger`, so a scheduled run that fires
while another run is active is skipped, never queued behind it.
"""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING, Final

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger

from refsync.config.errors import ConfigurationError
from refsync.domain.model import Source
from refsync.domain.sync_pipeline import CATEGORY_PLAN

if TYPE_CHECKING:
    from datetime import datetime

    from apscheduler.schedulers.base import BaseScheduler

    from refsync.app import SyncService, TriggerResult
    from refsync.domain.model import SyncCategory

log = getLogger(__name__)

SCHEDULED_JOB_ID: Final = "scheduled-sync"
MISFIRE_GRACE_SECONDS: Final = 3600

# Categories that enrich rows the core source has already written.
ENRICHMENT_CATEGORIES: Final[tuple[SyncCategory, ...]] = tuple(
    spec.category for spec in CATEGORY_PLAN if spec.source is not Source.SCWIKI
)


def parse_schedule(expression: str) -> CronTrigger:
    """Five-field crontab expression, e.g. ``"0 3 * * *"``."""

    try:
        return CronTrigger.from_crontab(expression)
    except ValueError as exc:
        raise ConfigurationError(f"Invalid SYNC_SCHEDULE {expression!r}: {exc}") from exc


def startup_categories(*, has_reference_data: bool) -> list[SyncCategory] | None:
    """Everything on an empty store; only the enrichment categories otherwise."""

    return list(ENRICHMENT_CATEGORIES) if has_reference_data else None


class SyncScheduler:
    def __init__(
        self,
        service: SyncService,
        *,
        schedule: str,
        sync_on_startup: bool = True,
        scheduler: BaseScheduler | None = None,
    ) -> None:
        self.schedule = schedule
        self.sync_on_startup = sync_on_startup
        self._service = service
        self._trigger = parse_schedule(schedule)
        self._scheduler = scheduler or BackgroundScheduler()

    @property
    def running(self) -> bool:
        return self._scheduler.running

    def start(self) -> TriggerResult | None:
        """Register the cron job, start the scheduler, then run the startup sync if enabled."""

        if self._scheduler.running:
            log.warning("Sync scheduler already running")
            return None

        self._scheduler.add_job(
            self.run_scheduled,
            trigger=self._trigger,
            id=SCHEDULED_JOB_ID,
            name="Scheduled reference sync",
            coalesce=True,
            max_instances=1,
            misfire_grace_time=MISFIRE_GRACE_SECONDS,
            replace_existing=True,
        )
        self._scheduler.start()
        log.info(f"Sync scheduler started ({self.schedule}), next run at {self.next_run_time()}")

        if not self.sync_on_startup:
            return None
        return self.run_startup()

    def stop(self, *, wait: bool = True) -> None:
        if not self._scheduler.running:
            return
        self._scheduler.shutdown(wait=wait)
        log.info("Sync scheduler stopped")

    def next_run_time(self) -> datetime | None:
        job = self._scheduler.get_job(SCHEDULED_JOB_ID)
        return None if job is None else job.next_run_time

    def run_scheduled(self) -> TriggerResult:
        log.info("Scheduled sync starting")
        result = self._service.trigger()
        if not result.accepted:
            log.warning(f"Scheduled sync skipped: {result.message}")
        return result

    def run_startup(self) -> TriggerResult:
        has_data = self._service.has_reference_data()
        if has_data:
            log.info("Reference data present, startup sync limited to image and paint categories")
        else:
            log.info("Reference store is empty, running a full startup sync")
        result = self._service.trigger(startup_categories(has_reference_data=has_data))
        if not result.accepted:
            log.warning(f"Startup sync skipped: {result.message}")
        return result
