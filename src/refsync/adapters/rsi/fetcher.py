"""RSI storefront source adapter: ship and paint images only."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING, Final

from refsync.adapters.http_resilience import LoopLimiters, ResilientClient
from refsync.adapters.payloads import decode_each
from refsync.domain.model import Source, SyncCategory
from refsync.domain.ports.fetching import FetchResult, UnsupportedCategoryError

from .client import RsiClient, paint_variables, ship_variables
from .schema import BrowseResource
from .translator import translate_resource

if TYPE_CHECKING:
    from refsync.adapters.http_resilience import ClientFactory, RequestLimiter
    from refsync.config.sources import RsiConfig
    from refsync.domain.model import StoreListing
    from refsync.domain.ports.fetching import FetchContext, SourceAdapter

    from .client import VariablesForPage

log = getLogger(__name__)

_VARIABLES: Final[dict[SyncCategory, VariablesForPage]] = {
    SyncCategory.STORE_VEHICLE_IMAGES: ship_variables,
    SyncCategory.STORE_PAINT_IMAGES: paint_variables,
}


class RsiAdapter:
    def __init__(
        self,
        config: RsiConfig,
        *,
        client_factory: ClientFactory = ResilientClient,
        limiter: RequestLimiter | None = None,
    ) -> None:
        self._config = config
        self._client_factory = client_factory
        self._limiter = limiter
        self._limiters = LoopLimiters(config.resilience.ratelimit)

    @property
    def source(self) -> Source:
        return Source.RSI

    @property
    def categories(self) -> frozenset[SyncCategory]:
        return frozenset(_VARIABLES)

    async def fetch_category(
        self,
        category: SyncCategory,
        context: FetchContext,
    ) -> FetchResult[object]:
        variables = _VARIABLES.get(category)
        if variables is None:
            raise UnsupportedCategoryError(self.source, category)

        limiter = self._limiter or self._limiters.current()
        async with self._client_factory(self._config.resilience, limiter=limiter) as http:
            client = RsiClient(http, page_limit=self._config.page_size)
            raw_resources = await client.browse(variables)

        resources, malformed = decode_each(raw_resources, BrowseResource, label="store listing")
        listings: list[StoreListing] = []
        for resource in resources:
            listing = translate_resource(resource)
            if listing is None:
                log.debug(f"RSI listing {resource.id} has no name or image")
                continue
            listings.append(listing)
        log.info(f"RSI {category}: {len(listings)} listings from {len(raw_resources)} resources")
        return FetchResult(records=list[object](listings), malformed=malformed)


if TYPE_CHECKING:
    from refsync.config.sources import get_rsi_config

    _adapter_check: SourceAdapter = RsiAdapter(get_rsi_config())
