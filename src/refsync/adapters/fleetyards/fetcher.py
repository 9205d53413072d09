"""FleetYards source adapter: vehicle and paint images only."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from refsync.adapters.http_resilience import LoopLimiters, ResilientClient
from refsync.adapters.payloads import decode_each
from refsync.domain.model import Source, SyncCategory
from refsync.domain.ports.fetching import FetchResult, UnsupportedCategoryError

from .client import FleetYardsClient
from .schema import ModelPayload, PaintPayload
from .translator import translate_model, translate_paint

if TYPE_CHECKING:
    from refsync.adapters.http_resilience import ClientFactory, RequestLimiter
    from refsync.config.sources import FleetYardsConfig
    from refsync.domain.model import PaintImageRecord, VehicleImageRecord
    from refsync.domain.ports.fetching import FetchContext, SourceAdapter

log = getLogger(__name__)


class FleetYardsAdapter:
    """Image-only source; its records never carry non-image fields."""

    def __init__(
        self,
        config: FleetYardsConfig,
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
        return Source.FLEETYARDS

    @property
    def categories(self) -> frozenset[SyncCategory]:
        return frozenset({SyncCategory.VEHICLE_IMAGES, SyncCategory.PAINT_IMAGES})

    async def fetch_category(
        self,
        category: SyncCategory,
        context: FetchContext,
    ) -> FetchResult[object]:
        if category not in self.categories:
            raise UnsupportedCategoryError(self.source, category)

        limiter = self._limiter or self._limiters.current()
        async with self._client_factory(self._config.resilience, limiter=limiter) as http:
            client = FleetYardsClient(http, page_size=self._config.page_size)
            if category is SyncCategory.VEHICLE_IMAGES:
                return await self._vehicle_images(client)
            return await self._paint_images(client, context.paint_vehicle_slugs)

    async def _vehicle_images(self, client: FleetYardsClient) -> FetchResult[object]:
        raw_models = await client.list_models()
        models, malformed = decode_each(raw_models, ModelPayload, label="FleetYards model")
        records: list[VehicleImageRecord] = [
            record for record in map(translate_model, models) if record is not None
        ]
        log.info(f"FleetYards: {len(records)} vehicle images from {len(raw_models)} models")
        return FetchResult(records=list[object](records), malformed=malformed)

    async def _paint_images(
        self,
        client: FleetYardsClient,
        vehicle_slugs: tuple[str, ...],
    ) -> FetchResult[object]:
        records: list[PaintImageRecord] = []
        malformed = 0
        for slug in vehicle_slugs:
            raw_paints = await client.list_model_paints(slug)
            paints, skipped = decode_each(raw_paints, PaintPayload, label="FleetYards paint")
            malformed += skipped
            for paint in paints:
                record = translate_paint(paint, vehicle_slug=slug)
                if record is not None:
                    records.append(record)
        log.info(f"FleetYards: {len(records)} paint images for {len(vehicle_slugs)} vehicles")
        return FetchResult(records=list[object](records), malformed=malformed)


if TYPE_CHECKING:
    from refsync.config.sources import get_fleetyards_config

    _adapter_check: SourceAdapter = FleetYardsAdapter(get_fleetyards_config())
