from __future__ import annotations

import argparse
import logging
import sys
import threading
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from refsync.app import build_sync_scheduler, run_sync, sync_status
from refsync.config import ConfigurationError, configure_logging
from refsync.domain.model import SyncCategory

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

log = logging.getLogger(__name__)

ALL_CATEGORIES = "all"


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Synchronise Star Citizen reference data")
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log at DEBUG level (includes unmatched tags and skipped records)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    sync = subparsers.add_parser("sync", help="Run a sync for some or all categories")
    sync.add_argument(
        "categories",
        nargs="*",
        metavar="CATEGORY",
        help=(
            f"'{ALL_CATEGORIES}' (default) or any of: "
            + ", ".join(category.value for category in SyncCategory)
        ),
    )

    subparsers.add_parser("status", help="Show the latest sync outcome per category")
    subparsers.add_parser(
        "serve",
        help="Run syncs on SYNC_SCHEDULE (and once at startup) until interrupted",
    )

    return parser.parse_args(list(argv))


def _parse_categories(values: Sequence[str]) -> list[SyncCategory] | None:
    if not values or ALL_CATEGORIES in values:
        return None
    categories: list[SyncCategory] = []
    for value in values:
        try:
            category = SyncCategory(value.strip().lower())
        except ValueError as exc:
            raise ValueError(f"Unknown category: {value}") from exc
        if category not in categories:
            categories.append(category)
    return categories


def _log_status() -> None:
    reports = sync_status()
    if not reports:
        log.info("No sync has run yet")
        return
    for report in reports:
        log.info(
            f"{report.endpoint}: {report.status} at {report.last_sync_at} "
            f"records={report.total_records}"
            + (f" error={report.error_message}" if report.error_message else "")
        )


def _wait_for_shutdown() -> None:
    threading.Event().wait()


def _serve() -> None:
    scheduler = build_sync_scheduler()
    scheduler.start()
    try:
        _wait_for_shutdown()
    finally:
        scheduler.stop(wait=False)


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    parsed_args: argparse.Namespace
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    categories: list[SyncCategory] | None = None
    try:
        parsed_args = _parse_args(args_list)
        configure_logging(level=logging.DEBUG if parsed_args.verbose else None)
        if parsed_args.command == "sync":
            categories = _parse_categories(parsed_args.categories)
    except (ValueError, ConfigurationError):
        log.exception("CLI validation error")
        sys.exit(2)

    try:
        if parsed_args.command == "sync":
            result = run_sync(categories)
            if not result.succeeded:
                sys.exit(1)
        elif parsed_args.command == "status":
            _log_status()
        elif parsed_args.command == "serve":
            _serve()
        else:
            raise ValueError(f"Unsupported command: {parsed_args.command}")  # noqa: TRY301

    except ConfigurationError:
        log.exception("Invalid configuration")
        sys.exit(2)
    except Exception:
        log.exception("Fatal error during sync")
        sys.exit(1)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
