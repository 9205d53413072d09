from __future__ import annotations

import asyncio
import json

import httpx
import pytest

from refsync.adapters.http_resilience import ResilientClient
from refsync.adapters.rsi import GraphQLError, RsiAdapter, RsiClient, build_image_set
from refsync.adapters.rsi.client import ship_variables
from refsync.domain.model import ImageSet, StoreListing, SyncCategory
from refsync.domain.ports.fetching import FetchContext
from tests.helpers.http import make_client_factory, resilience, rsi_config

LEGACY_URL = "https://media.robertsspaceindustries.com/abc123xyz/store_small.jpg"


def _resource(name: str, image: str | None = LEGACY_URL, **extra: object) -> dict[str, object]:
    media = {"thumbnail": {"storeSmall": image}} if image is not None else None
    return {"id": name.lower(), "name": name, "url": f"/pledge/{name}", "media": media, **extra}


def _browse_response(resources: list[object], *, total: int) -> httpx.Response:
    listing = {"resources": resources, "count": len(resources), "totalCount": total}
    return httpx.Response(200, json=[{"data": {"store": {"listing": listing}}}])


def _http(transport: httpx.MockTransport) -> ResilientClient:
    return ResilientClient(resilience("rsi", "https://rsi.test"), transport=transport)


def test_build_image_set_derives_size_variants() -> None:
    images = build_image_set(LEGACY_URL)

    base = "https://media.robertsspaceindustries.com/abc123xyz"
    assert images == ImageSet(
        image_url=f"{base}/store_large.jpg",
        small=f"{base}/store_small.jpg",
        medium=f"{base}/store_large.jpg",
        large=f"{base}/store_hub_large.jpg",
    )


def test_build_image_set_passes_new_cdn_urls_through() -> None:
    url = "https://cdn.robertsspaceindustries.com/static/images/ship.webp"

    assert build_image_set(url) == ImageSet(image_url=url, small=url, medium=url, large=url)


def test_query_posts_a_single_element_batch() -> None:
    bodies: list[object] = []

    def handler(request: httpx.Request) -> httpx.Response:
        bodies.append(json.loads(request.content))
        return httpx.Response(200, json=[{"data": {"ok": True}}])

    async def run() -> dict[str, object]:
        async with _http(httpx.MockTransport(handler)) as http:
            return await RsiClient(http).query("query { ok }", {"a": 1})

    assert asyncio.run(run()) == {"ok": True}
    assert bodies == [[{"query": "query { ok }", "variables": {"a": 1}}]]


@pytest.mark.parametrize(
    "payload",
    [
        [{"data": None, "errors": [{"message": "Unknown field"}]}],
        [{"data": None}],
        [],
        {"data": {}},
    ],
)
def test_query_failures_raise_graphql_error(payload: object) -> None:
    async def run() -> None:
        transport = httpx.MockTransport(lambda _: httpx.Response(200, json=payload))
        async with _http(transport) as http:
            await RsiClient(http).query("query { ok }", {})

    with pytest.raises(GraphQLError):
        asyncio.run(run())


def test_browse_pages_until_total_count() -> None:
    pages: list[int] = []

    def handler(request: httpx.Request) -> httpx.Response:
        variables = json.loads(request.content)[0]["variables"]["query"]
        pages.append(variables["page"])
        assert variables["limit"] == 2
        if variables["page"] == 1:
            return _browse_response([_resource("Aurora"), _resource("Avenger")], total=3)
        return _browse_response([_resource("Carrack")], total=3)

    async def run() -> list[object]:
        async with _http(httpx.MockTransport(handler)) as http:
            return await RsiClient(http, page_limit=2).browse(ship_variables)

    resources = asyncio.run(run())

    assert pages == [1, 2]
    assert len(resources) == 3


def test_adapter_translates_listings_and_skips_incomplete_ones() -> None:
    def handler(_: httpx.Request) -> httpx.Response:
        return _browse_response(
            [
                _resource("Carrack"),
                _resource("No Image", image=None),
                _resource("Bundle", isPackage=True),
                {"name": "Broken", "isPackage": "maybe"},
            ],
            total=4,
        )

    adapter = RsiAdapter(rsi_config(), client_factory=make_client_factory(handler))

    result = asyncio.run(adapter.fetch_category(SyncCategory.STORE_VEHICLE_IMAGES, FetchContext()))

    listings = result.records
    assert [listing.name for listing in listings] == ["Carrack", "Bundle"]  # type: ignore[attr-defined]
    assert isinstance(listings[0], StoreListing)
    assert listings[0].images.small == LEGACY_URL
    assert listings[1].is_package  # type: ignore[attr-defined]
    assert result.malformed == 1
