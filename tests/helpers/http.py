"""Mock-transport plumbing for adapter tests."""

from __future__ import annotations

from typing import TYPE_CHECKING

import httpx

from refsync.adapters.http_resilience import ResilientClient
from refsync.config.http_resilience import RateLimit, ResilienceConfig, RetryPolicy
from refsync.config.sources import (
    FLEETYARDS_BASE_URL,
    GITHUB_API_BASE_URL,
    GITHUB_RAW_BASE_URL,
    RSI_BASE_URL,
    SC_WIKI_BASE_URL,
    FleetYardsConfig,
    RsiConfig,
    ScunpackedConfig,
    ScWikiConfig,
    SourcesConfig,
)

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from refsync.adapters.http_resilience import ClientFactory, RequestLimiter

    type Handler = Callable[[httpx.Request], httpx.Response | Awaitable[httpx.Response]]


async def no_sleep(_seconds: float) -> None:
    return None


def make_client_factory(
    handler: Handler,
    *,
    sleep: Callable[[float], Awaitable[None]] = no_sleep,
) -> ClientFactory:
    """Client factory whose clients answer every request through ``handler``."""

    transport = httpx.MockTransport(handler)

    def factory(
        config: ResilienceConfig,
        /,
        *,
        limiter: RequestLimiter | None = None,
    ) -> ResilientClient:
        return ResilientClient(config, limiter=limiter, transport=transport, sleep=sleep)

    return factory


def resilience(name: str, base_url: str) -> ResilienceConfig:
    """Unlimited resilience settings (no token bucket) for tests."""

    return ResilienceConfig(name=name, base_url=base_url, retry=RetryPolicy(max_attempts=3))


def scwiki_config(*, page_size: int = 100) -> ScWikiConfig:
    return ScWikiConfig(resilience=resilience("scwiki", SC_WIKI_BASE_URL), page_size=page_size)


def rsi_config(*, page_size: int = 100, enabled: bool = True) -> RsiConfig:
    return RsiConfig(
        resilience=resilience("rsi", RSI_BASE_URL),
        page_size=page_size,
        enabled=enabled,
    )


def scunpacked_config(*, concurrency: int = 10) -> ScunpackedConfig:
    return ScunpackedConfig(
        api=resilience("github-api", GITHUB_API_BASE_URL),
        raw=resilience("github-raw", GITHUB_RAW_BASE_URL),
        ratelimit=RateLimit(requests_per_second=1000.0, burst=1000),
        concurrency=concurrency,
    )


def fleetyards_config(*, page_size: int = 50) -> FleetYardsConfig:
    return FleetYardsConfig(
        resilience=resilience("fleetyards", FLEETYARDS_BASE_URL),
        page_size=page_size,
    )


def sources_config(*, rsi_enabled: bool = False) -> SourcesConfig:
    return SourcesConfig(
        scwiki=scwiki_config(),
        rsi=rsi_config(enabled=rsi_enabled),
        scunpacked=scunpacked_config(),
        fleetyards=fleetyards_config(),
    )


def json_api_page(
    records: list[dict[str, object]],
    *,
    page: int = 1,
    last_page: int = 1,
) -> httpx.Response:
    return httpx.Response(
        200,
        json={
            "data": records,
            "meta": {
                "current_page": page,
                "last_page": last_page,
                "per_page": 100,
                "total": len(records),
            },
        },
    )


def page_number(request: httpx.Request) -> int:
    return int(request.url.params.get("page[number]", "1"))
