"""Rate-limited HTTP client shared by every upstream adapter."""

from __future__ import annotations

import asyncio
import json
import weakref
from collections.abc import Awaitable, Callable
from contextlib import nullcontext
from logging import getLogger
from typing import (
    TYPE_CHECKING,
    Protocol,
    TypedDict,
    Unpack,
)

import httpx

from refsync.config.http_resilience import RateLimit, ResilienceConfig, RetryPolicy

from .pagination import JsonApiPagination, PageStrategy

if TYPE_CHECKING:
    from types import TracebackType

    from httpx._client import UseClientDefault
    from httpx._types import (
        HeaderTypes,
        QueryParamTypes,
        RequestContent,
        TimeoutTypes,
        URLTypes,
    )

__all__ = [
    "ClientFactory",
    "LoopLimiters",
    "RateLimit",
    "RateLimitExceededError",
    "RequestLimiter",
    "ResilienceConfig",
    "ResilientClient",
    "RetryPolicy",
    "UpstreamError",
    "UpstreamHTTPError",
]

log = getLogger(__name__)

ERROR_BODY_LIMIT = 200

Sleep = Callable[[float], Awaitable[None]]


class UpstreamError(RuntimeError):
    """Base class for failures talking to an upstream source."""


class UpstreamHTTPError(UpstreamError):
    """Raised for any non-2xx response other than a retried 429."""

    def __init__(self, status_code: int, body: str, *, url: str) -> None:
        self.status_code = status_code
        self.body = _truncate(body)
        self.url = url
        super().__init__(f"HTTP {status_code} from {url}: {self.body}")


class RateLimitExceededError(UpstreamError):
    """Raised when an upstream keeps answering 429 after the bounded retries."""

    def __init__(self, url: str, *, attempts: int) -> None:
        self.url = url
        self.attempts = attempts
        super().__init__(f"Rate limited by {url} after {attempts} retries")


class RequestLimiter(Protocol):
    """Async context manager granting one request permit (``aiolimiter.AsyncLimiter``)."""

    async def __aenter__(self) -> object: ...

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> object: ...


class LoopLimiters:
    """One limiter per event loop, built from ``ratelimit`` (none without one).

    An ``AsyncLimiter`` binds to the loop it first waits on, so every call made on a
    loop shares one bucket and a later ``asyncio.run`` starts a new one.
    """

    def __init__(self, ratelimit: RateLimit | None) -> None:
        self.ratelimit = ratelimit
        self._by_loop: weakref.WeakKeyDictionary[asyncio.AbstractEventLoop, RequestLimiter] = (
            weakref.WeakKeyDictionary()
        )

    def current(self) -> RequestLimiter | None:
        if self.ratelimit is None:
            return None
        loop = asyncio.get_running_loop()
        limiter = self._by_loop.get(loop)
        if limiter is None:
            limiter = self._by_loop[loop] = self.ratelimit.build()
        return limiter


class ClientFactory(Protocol):
    """Builds a client for one upstream; adapters pass a shared ``limiter`` where needed."""

    def __call__(
        self,
        config: ResilienceConfig,
        /,
        *,
        limiter: RequestLimiter | None = None,
    ) -> ResilientClient: ...


class RequestOptions(TypedDict, total=False):
    content: RequestContent | None
    json: object
    params: QueryParamTypes | None
    headers: HeaderTypes | None
    timeout: TimeoutTypes | UseClientDefault


class AsyncClientOptions(TypedDict, total=False):
    base_url: str
    timeout: TimeoutTypes
    headers: HeaderTypes
    transport: httpx.AsyncBaseTransport


def _truncate(text: str, limit: int = ERROR_BODY_LIMIT) -> str:
    if len(text) <= limit:
        return text
    return text[:limit] + "..."


class ResilientClient:
    """httpx client that takes a limiter permit before every attempt and retries 429s.

    The limiter is owned by the client. Pass ``limiter`` to share one bucket between
    clients (or to substitute an unlimited one in tests); otherwise it is built from
    ``config.ratelimit``.
    """

    def __init__(
        self,
        config: ResilienceConfig,
        *,
        limiter: RequestLimiter | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self.config = config
        if limiter is not None:
            self.limiter: RequestLimiter = limiter
        elif config.ratelimit is not None:
            self.limiter = config.ratelimit.build()
        else:
            self.limiter = nullcontext()
        self._sleep = sleep

        client_kwargs: AsyncClientOptions = {"timeout": config.timeout_seconds}
        if config.base_url is not None:
            client_kwargs["base_url"] = config.base_url
        if config.default_headers:
            client_kwargs["headers"] = dict(config.default_headers)
        if transport is not None:
            client_kwargs["transport"] = transport
        self._client = httpx.AsyncClient(**client_kwargs)

    async def __aenter__(self) -> ResilientClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def request(
        self,
        method: str,
        url: URLTypes,
        **kwargs: Unpack[RequestOptions],
    ) -> httpx.Response:
        async def do_request() -> httpx.Response:
            return await self._client.request(method, url, **kwargs)

        return await self._send(do_request, url=str(url))

    async def get(
        self,
        url: URLTypes,
        **kwargs: Unpack[RequestOptions],
    ) -> httpx.Response:
        return await self.request("GET", url, **kwargs)

    async def post(
        self,
        url: URLTypes,
        **kwargs: Unpack[RequestOptions],
    ) -> httpx.Response:
        return await self.request("POST", url, **kwargs)

    async def fetch(self, url: URLTypes, **kwargs: Unpack[RequestOptions]) -> bytes:
        """GET ``url`` and return the body, raising on any non-2xx status."""

        response = await self.get(url, **kwargs)
        _raise_for_status(response)
        return response.content

    async def fetch_json(self, url: URLTypes, **kwargs: Unpack[RequestOptions]) -> object:
        body = await self.fetch(url, **kwargs)
        return _decode_json(body, url=str(url))

    async def post_json(self, url: URLTypes, payload: object) -> object:
        response = await self.post(url, json=payload)
        _raise_for_status(response)
        return _decode_json(response.content, url=str(url))

    async def fetch_paginated(
        self,
        url: URLTypes,
        *,
        pagination: PageStrategy | None = None,
        params: dict[str, str | int] | None = None,
    ) -> list[object]:
        """Walk every page of ``url`` and return the accumulated records.

        Any failing page aborts the walk; no partial result is returned.
        """

        strategy = pagination or JsonApiPagination()
        records: list[object] = []
        page = 1
        while True:
            query: dict[str, str | int] = {**(params or {}), **strategy.page_params(page)}
            payload = await self.fetch_json(url, params=query)
            result = strategy.parse(payload, page=page)
            records.extend(result.records)
            if result.is_last:
                break
            page += 1
        log.debug(f"{self.config.name}: fetched {len(records)} records from {url} ({page} pages)")
        return records

    async def _send(
        self,
        func: Callable[[], Awaitable[httpx.Response]],
        *,
        url: str,
    ) -> httpx.Response:
        policy = self.config.retry
        retries = 0
        while True:
            async with self.limiter:
                response = await func()
            if response.status_code != httpx.codes.TOO_MANY_REQUESTS:
                return response
            if retries >= policy.max_attempts:
                raise RateLimitExceededError(url, attempts=retries)
            retries += 1
            wait = _retry_after_seconds(response, policy)
            log.warning(
                f"{self.config.name}: 429 from {url}, waiting {wait:.1f}s "
                f"(retry {retries}/{policy.max_attempts})"
            )
            await self._sleep(wait)


def _retry_after_seconds(response: httpx.Response, policy: RetryPolicy) -> float:
    header = response.headers.get("Retry-After")
    if header is None:
        return policy.fallback_wait_seconds
    try:
        seconds = float(header.strip())
    except ValueError:
        return policy.fallback_wait_seconds
    if seconds < 0:
        return policy.fallback_wait_seconds
    return min(seconds, policy.max_wait_seconds)


def _raise_for_status(response: httpx.Response) -> None:
    if response.is_success:
        return
    raise UpstreamHTTPError(response.status_code, response.text, url=str(response.request.url))


def _decode_json(body: bytes, *, url: str) -> object:
    try:
        return json.loads(body)
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise UpstreamError(f"Invalid JSON from {url}: {_truncate(repr(body))}") from exc
