"""Per-upstream configuration values."""

from __future__ import annotations

from dataclasses import dataclass

from .env import env_bool, env_float, env_int, optional_env
from .http_resilience import DEFAULT_USER_AGENT, RateLimit, ResilienceConfig

SC_WIKI_BASE_URL = "https://api.star-citizen.wiki"
RSI_BASE_URL = "https://robertsspaceindustries.com"
GITHUB_API_BASE_URL = "https://api.github.com"
GITHUB_RAW_BASE_URL = "https://raw.githubusercontent.com"
FLEETYARDS_BASE_URL = "https://api.fleetyards.net"

DEFAULT_SCUNPACKED_REPOSITORY = "StarCitizenWiki/scunpacked-data"
DEFAULT_SCUNPACKED_BRANCH = "main"

_JSON_HEADERS = {"User-Agent": DEFAULT_USER_AGENT, "Accept": "application/json"}


@dataclass(frozen=True, slots=True)
class ScWikiConfig:
    resilience: ResilienceConfig
    page_size: int = 100
    enabled: bool = True


@dataclass(frozen=True, slots=True)
class RsiConfig:
    resilience: ResilienceConfig
    page_size: int = 100
    enabled: bool = False


@dataclass(frozen=True, slots=True)
class ScunpackedConfig:
    """Git corpus settings; both hosts share one limiter built from ``ratelimit``."""

    api: ResilienceConfig
    raw: ResilienceConfig
    ratelimit: RateLimit
    repository: str = DEFAULT_SCUNPACKED_REPOSITORY
    branch: str = DEFAULT_SCUNPACKED_BRANCH
    token: str | None = None
    concurrency: int = 10
    enabled: bool = True


@dataclass(frozen=True, slots=True)
class FleetYardsConfig:
    resilience: ResilienceConfig
    page_size: int = 50
    enabled: bool = True


@dataclass(frozen=True, slots=True)
class SourcesConfig:
    scwiki: ScWikiConfig
    rsi: RsiConfig
    scunpacked: ScunpackedConfig
    fleetyards: FleetYardsConfig


def get_scwiki_config() -> ScWikiConfig:
    return ScWikiConfig(
        resilience=ResilienceConfig(
            name="scwiki",
            base_url=SC_WIKI_BASE_URL,
            timeout_seconds=30.0,
            ratelimit=RateLimit(
                requests_per_second=env_float("SC_WIKI_RATE_LIMIT", default=1.0),
                burst=env_int("SC_WIKI_BURST", default=5),
            ),
            default_headers=_JSON_HEADERS,
        ),
        enabled=env_bool("SC_WIKI_ENABLED", default=True),
    )


def get_rsi_config() -> RsiConfig:
    return RsiConfig(
        resilience=ResilienceConfig(
            name="rsi",
            base_url=RSI_BASE_URL,
            timeout_seconds=30.0,
            ratelimit=RateLimit(
                requests_per_second=env_float("RSI_RATE_LIMIT", default=1.0),
                burst=env_int("RSI_BURST", default=1),
            ),
            default_headers={**_JSON_HEADERS, "Content-Type": "application/json"},
        ),
        enabled=env_bool("RSI_API_ENABLED", default=False),
    )


def get_scunpacked_config() -> ScunpackedConfig:
    token = optional_env("GITHUB_TOKEN")
    api_headers = {**_JSON_HEADERS, "Accept": "application/vnd.github+json"}
    raw_headers = {"User-Agent": DEFAULT_USER_AGENT}
    if token is not None:
        api_headers["Authorization"] = f"Bearer {token}"
        raw_headers["Authorization"] = f"Bearer {token}"
    return ScunpackedConfig(
        api=ResilienceConfig(
            name="github-api",
            base_url=GITHUB_API_BASE_URL,
            timeout_seconds=60.0,
            default_headers=api_headers,
        ),
        raw=ResilienceConfig(
            name="github-raw",
            base_url=GITHUB_RAW_BASE_URL,
            timeout_seconds=30.0,
            default_headers=raw_headers,
        ),
        ratelimit=RateLimit(
            requests_per_second=env_float("SCUNPACKED_RATE_LIMIT", default=20.0),
            burst=env_int("SCUNPACKED_BURST", default=10),
        ),
        repository=optional_env("SCUNPACKED_REPOSITORY") or DEFAULT_SCUNPACKED_REPOSITORY,
        branch=optional_env("SCUNPACKED_BRANCH") or DEFAULT_SCUNPACKED_BRANCH,
        token=token,
        concurrency=env_int("SCUNPACKED_CONCURRENCY", default=10),
        enabled=env_bool("SCUNPACKED_ENABLED", default=True),
    )


def get_fleetyards_config() -> FleetYardsConfig:
    return FleetYardsConfig(
        resilience=ResilienceConfig(
            name="fleetyards",
            base_url=FLEETYARDS_BASE_URL,
            timeout_seconds=30.0,
            ratelimit=RateLimit(
                requests_per_second=env_float("FLEETYARDS_RATE_LIMIT", default=2.0),
                burst=env_int("FLEETYARDS_BURST", default=1),
            ),
            default_headers=_JSON_HEADERS,
        ),
        enabled=env_bool("FLEETYARDS_ENABLED", default=True),
    )


def get_sources_config() -> SourcesConfig:
    return SourcesConfig(
        scwiki=get_scwiki_config(),
        rsi=get_rsi_config(),
        scunpacked=get_scunpacked_config(),
        fleetyards=get_fleetyards_config(),
    )
