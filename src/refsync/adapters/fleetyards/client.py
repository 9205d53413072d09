"""HTTP client for the FleetYards API."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

import httpx

from refsync.adapters.http_resilience import UpstreamError, UpstreamHTTPError
from refsync.adapters.pagination import PlainListPagination

if TYPE_CHECKING:
    from refsync.adapters.http_resilience import ResilientClient

log = getLogger(__name__)


class FleetYardsClient:
    def __init__(self, client: ResilientClient, *, page_size: int = 50) -> None:
        self._client = client
        self._pagination = PlainListPagination(page_size=page_size)

    async def list_models(self) -> list[object]:
        return await self._client.fetch_paginated("/v1/models", pagination=self._pagination)

    async def list_model_paints(self, slug: str) -> list[object]:
        """Paint listings of one model; a 404 means FleetYards has none."""

        try:
            payload = await self._client.fetch_json(f"/v1/models/{slug}/paints")
        except UpstreamHTTPError as exc:
            if exc.status_code == httpx.codes.NOT_FOUND:
                log.debug(f"FleetYards has no paints for {slug}")
                return []
            raise
        if not isinstance(payload, list):
            raise UpstreamError(f"FleetYards paints of {slug} is not a JSON array")
        return list(payload)
