"""Configuration types for resilient HTTP clients."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from aiolimiter import AsyncLimiter

if TYPE_CHECKING:
    from collections.abc import Mapping

DEFAULT_USER_AGENT = "Fleet-Manager/1.0"


@dataclass(slots=True, frozen=True)
class RetryPolicy:
    """Bounded retry for HTTP 429 only; every other failure propagates."""

    max_attempts: int = 3
    fallback_wait_seconds: float = 5.0
    max_wait_seconds: float = 60.0


@dataclass(slots=True, frozen=True)
class RateLimit:
    """Token bucket: ``burst`` permits, refilled at ``requests_per_second``."""

    requests_per_second: float
    burst: int = 1

    def build(self) -> AsyncLimiter:
        # aiolimiter refills max_rate permits per time_period seconds.
        return AsyncLimiter(self.burst, self.burst / self.requests_per_second)


@dataclass(slots=True, frozen=True)
class ResilienceConfig:
    name: str
    base_url: str | None = None
    timeout_seconds: float = 30.0
    retry: RetryPolicy = field(default_factory=RetryPolicy)
    ratelimit: RateLimit | None = None
    default_headers: Mapping[str, str] | None = None
