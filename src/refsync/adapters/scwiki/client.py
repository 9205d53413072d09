"""HTTP client for the SC Wiki API."""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING, Final

from refsync.adapters.pagination import JsonApiPagination

if TYPE_CHECKING:
    from refsync.adapters.http_resilience import ResilientClient

log = getLogger(__name__)


@dataclass(slots=True, frozen=True)
class Endpoint:
    path: str
    include: tuple[str, ...] = ()

    def params(self) -> dict[str, str | int]:
        return {"include": ",".join(self.include)} if self.include else {}


MANUFACTURERS: Final = Endpoint("/api/manufacturers")
GAME_VERSIONS: Final = Endpoint("/api/game-versions")
VEHICLES: Final = Endpoint(
    "/api/vehicles", include=("manufacturer", "game_version", "ports", "loaner")
)
ITEMS: Final = Endpoint("/api/items", include=("manufacturer", "game_version"))


class ScWikiClient:
    """Reads whole ``{data, meta}`` collections from the SC Wiki API."""

    def __init__(self, client: ResilientClient, *, page_size: int = 100) -> None:
        self._client = client
        self._pagination = JsonApiPagination(page_size=page_size)

    async def list_records(self, endpoint: Endpoint) -> list[object]:
        records = await self._client.fetch_paginated(
            endpoint.path,
            pagination=self._pagination,
            params=endpoint.params(),
        )
        log.info(f"SC Wiki {endpoint.path}: {len(records)} records")
        return records
