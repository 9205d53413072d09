"""SC Wiki source adapter: manufacturers, game versions, vehicles and items."""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING, Final

from refsync.adapters.http_resilience import LoopLimiters, ResilientClient
from refsync.adapters.payloads import decode_each
from refsync.domain.model import Source, SyncCategory
from refsync.domain.ports.fetching import FetchResult, UnsupportedCategoryError

from . import client as endpoints
from .client import ScWikiClient
from .schema import GameVersionPayload, ItemPayload, ManufacturerPayload, VehiclePayload
from .translator import (
    translate_game_version,
    translate_item,
    translate_manufacturer,
    translate_vehicle,
)

if TYPE_CHECKING:
    from collections.abc import Callable

    from pydantic import BaseModel

    from refsync.adapters.http_resilience import ClientFactory, RequestLimiter
    from refsync.config.sources import ScWikiConfig
    from refsync.domain.ports.fetching import FetchContext, SourceAdapter

log = getLogger(__name__)


@dataclass(slots=True, frozen=True)
class _Route:
    endpoint: endpoints.Endpoint
    model: type[BaseModel]
    translate: Callable[..., object]
    label: str


_ROUTES: Final[dict[SyncCategory, _Route]] = {
    SyncCategory.MANUFACTURERS: _Route(
        endpoints.MANUFACTURERS, ManufacturerPayload, translate_manufacturer, "manufacturer"
    ),
    SyncCategory.GAME_VERSIONS: _Route(
        endpoints.GAME_VERSIONS, GameVersionPayload, translate_game_version, "game version"
    ),
    SyncCategory.VEHICLES: _Route(
        endpoints.VEHICLES, VehiclePayload, translate_vehicle, "vehicle"
    ),
    SyncCategory.ITEMS: _Route(endpoints.ITEMS, ItemPayload, translate_item, "item"),
}


class ScWikiAdapter:
    """Paginated REST source for the core reference tables."""

    def __init__(
        self,
        config: ScWikiConfig,
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
        return Source.SCWIKI

    @property
    def categories(self) -> frozenset[SyncCategory]:
        return frozenset(_ROUTES)

    async def fetch_category(
        self,
        category: SyncCategory,
        context: FetchContext,
    ) -> FetchResult[object]:
        route = _ROUTES.get(category)
        if route is None:
            raise UnsupportedCategoryError(self.source, category)

        limiter = self._limiter or self._limiters.current()
        async with self._client_factory(self._config.resilience, limiter=limiter) as http:
            client = ScWikiClient(http, page_size=self._config.page_size)
            raw_records = await client.list_records(route.endpoint)

        payloads, malformed = decode_each(raw_records, route.model, label=route.label)
        records = [route.translate(payload) for payload in payloads]
        if malformed:
            log.warning(f"SC Wiki {category}: skipped {malformed} malformed records")
        return FetchResult(records=records, malformed=malformed)


if TYPE_CHECKING:
    from refsync.config.sources import get_scwiki_config

    _adapter_check: SourceAdapter = ScWikiAdapter(get_scwiki_config())
