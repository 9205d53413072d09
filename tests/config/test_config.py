from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import pytest

from refsync.config import (
    ConfigurationError,
    env_bool,
    env_float,
    env_int,
    get_database_config,
    get_sources_config,
    get_sync_config,
)
from refsync.config.logging import log_level_from_environment

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path


@pytest.mark.parametrize(("raw", "expected"), [("yes", True), ("0", False), (" ", True)])
def test_env_bool(monkeypatch: pytest.MonkeyPatch, raw: str, expected: bool) -> None:
    monkeypatch.setenv("FLAG", raw)

    assert env_bool("FLAG", default=True) is expected


@pytest.mark.parametrize(
    ("loader", "raw"),
    [
        (lambda: env_bool("VALUE", default=False), "maybe"),
        (lambda: env_int("VALUE", default=1), "ten"),
        (lambda: env_int("VALUE", default=1), "0"),
        (lambda: env_float("VALUE", default=1.0), "-2.5"),
        (lambda: env_float("VALUE", default=1.0), "fast"),
    ],
)
def test_invalid_values_are_rejected(
    monkeypatch: pytest.MonkeyPatch,
    loader: Callable[[], object],
    raw: str,
) -> None:
    monkeypatch.setenv("VALUE", raw)

    with pytest.raises(ConfigurationError, match="VALUE"):
        loader()


def test_sources_default_to_public_apis_without_the_storefront(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    for name in ("RSI_API_ENABLED", "GITHUB_TOKEN", "SC_WIKI_RATE_LIMIT", "SC_WIKI_BURST"):
        monkeypatch.delenv(name, raising=False)

    sources = get_sources_config()

    assert sources.scwiki.enabled
    assert sources.scunpacked.enabled
    assert sources.fleetyards.enabled
    assert not sources.rsi.enabled
    assert sources.scwiki.resilience.ratelimit is not None
    assert sources.scwiki.resilience.ratelimit.requests_per_second == 1.0
    assert sources.scwiki.resilience.ratelimit.burst == 5
    assert "Authorization" not in (sources.scunpacked.api.default_headers or {})


def test_sources_follow_environment_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("RSI_API_ENABLED", "true")
    monkeypatch.setenv("SC_WIKI_ENABLED", "off")
    monkeypatch.setenv("SC_WIKI_RATE_LIMIT", "0.5")
    monkeypatch.setenv("SCUNPACKED_CONCURRENCY", "4")
    monkeypatch.setenv("GITHUB_TOKEN", "ghp_secret")

    sources = get_sources_config()

    assert sources.rsi.enabled
    assert not sources.scwiki.enabled
    assert sources.scwiki.resilience.ratelimit is not None
    assert sources.scwiki.resilience.ratelimit.requests_per_second == 0.5
    assert sources.scunpacked.concurrency == 4
    assert sources.scunpacked.token == "ghp_secret"
    for client in (sources.scunpacked.api, sources.scunpacked.raw):
        assert (client.default_headers or {}).get("Authorization") == "Bearer ghp_secret"


def test_sync_config_from_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SYNC_BATCH_SIZE", "250")
    monkeypatch.setenv("SYNC_CATEGORY_TIMEOUT", "30")

    config = get_sync_config()

    assert config.write_batch_size == 250
    assert config.category_timeout_seconds == 30.0


def test_sync_schedule_defaults_and_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("SYNC_SCHEDULE", raising=False)
    monkeypatch.delenv("SYNC_ON_STARTUP", raising=False)

    default = get_sync_config()
    assert (default.schedule, default.sync_on_startup) == ("0 3 * * *", True)

    monkeypatch.setenv("SYNC_SCHEDULE", "15 */6 * * *")
    monkeypatch.setenv("SYNC_ON_STARTUP", "false")

    config = get_sync_config()
    assert (config.schedule, config.sync_on_startup) == ("15 */6 * * *", False)


def test_database_uri_takes_precedence(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DATABASE_URI", "postgresql+psycopg://sync@db/reference")

    assert get_database_config().uri == "postgresql+psycopg://sync@db/reference"


def test_database_defaults_to_sqlite_in_data_dir(
    monkeypatch: pytest.MonkeyPatch,
    tmp_path: Path,
) -> None:
    monkeypatch.delenv("DATABASE_URI", raising=False)
    monkeypatch.setenv("REFSYNC_DATA_DIR", str(tmp_path / "data"))

    uri = get_database_config().uri

    assert uri == f"sqlite+pysqlite:///{(tmp_path / 'data' / 'reference.db').resolve()}"
    assert (tmp_path / "data").is_dir()


def test_log_level_from_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("REFSYNC_LOG_LEVEL", "debug")
    assert log_level_from_environment() == logging.DEBUG

    monkeypatch.setenv("REFSYNC_LOG_LEVEL", "chatty")
    with pytest.raises(ConfigurationError, match="chatty"):
        log_level_from_environment()
