"""Synchronization defaults for the orchestrator, writer and scheduler."""

from __future__ import annotations

from dataclasses import dataclass

from .env import env_bool, env_float, env_int, optional_env

DEFAULT_WRITE_BATCH_SIZE = 100
DEFAULT_CATEGORY_TIMEOUT_SECONDS = 600.0
# Five-field crontab, evaluated in the host's local time zone.
DEFAULT_SYNC_SCHEDULE = "0 3 * * *"


@dataclass(frozen=True, slots=True)
class SyncConfig:
    write_batch_size: int = DEFAULT_WRITE_BATCH_SIZE
    category_timeout_seconds: float | None = DEFAULT_CATEGORY_TIMEOUT_SECONDS
    schedule: str = DEFAULT_SYNC_SCHEDULE
    sync_on_startup: bool = True


def get_sync_config() -> SyncConfig:
    return SyncConfig(
        write_batch_size=env_int("SYNC_BATCH_SIZE", default=DEFAULT_WRITE_BATCH_SIZE),
        category_timeout_seconds=env_float(
            "SYNC_CATEGORY_TIMEOUT", default=DEFAULT_CATEGORY_TIMEOUT_SECONDS
        ),
        schedule=optional_env("SYNC_SCHEDULE") or DEFAULT_SYNC_SCHEDULE,
        sync_on_startup=env_bool("SYNC_ON_STARTUP", default=True),
    )
