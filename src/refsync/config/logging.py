"""Logging setup for the refsync entry points."""

from __future__ import annotations

import logging
import os

from .errors import ConfigurationError

# httpx logs every request at INFO; a full sync issues thousands of them.
_NOISY_LOGGERS = ("httpx", "httpcore")


def log_level_from_environment(default: int = logging.INFO) -> int:
    """Return the level named by ``REFSYNC_LOG_LEVEL`` (e.g. ``DEBUG``), or ``default``."""

    raw = os.getenv("REFSYNC_LOG_LEVEL")
    if raw is None or not raw.strip():
        return default
    level = logging.getLevelNamesMapping().get(raw.strip().upper())
    if level is None:
        raise ConfigurationError(f"Unknown log level: {raw}")
    return level


def configure_logging(*, level: int | None = None, force: bool = False) -> None:
    """Initialise the root logger with the terse CLI format.

    ``level`` defaults to ``REFSYNC_LOG_LEVEL`` or INFO. Pass ``force=True`` to
    reconfigure during tests or specialised entry points.
    """

    effective_level = log_level_from_environment() if level is None else level
    logging.basicConfig(
        level=effective_level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        datefmt="%H:%M:%S",
        force=force,
    )
    if effective_level > logging.DEBUG:
        for name in _NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)
