"""GraphQL client for the RSI storefront."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING, Final

from pydantic import ValidationError

from refsync.adapters.http_resilience import UpstreamError

from .schema import BrowseData, GraphQLEnvelope

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping

    from refsync.adapters.http_resilience import ResilientClient

log = getLogger(__name__)

GRAPHQL_PATH: Final = "/graphql"
PAGE_LIMIT: Final = 100

BROWSE_QUERY: Final = """query GetBrowseItems($query: SearchQuery) {
  store(browse: true) {
    listing: search(query: $query) {
      resources {
        id
        name
        title
        url
        media {
          thumbnail {
            storeSmall
          }
        }
        ... on TySku {
          isPackage
        }
      }
      count
      totalCount
    }
  }
}"""

type VariablesForPage = Callable[[int, int], dict[str, object]]


class GraphQLError(UpstreamError):
    """Raised when a GraphQL response carries errors or no data."""


def ship_variables(page: int, limit: int) -> dict[str, object]:
    return {
        "query": {
            "page": page,
            "limit": limit,
            "ships": {"all": True},
            "sort": {"field": "name", "direction": "asc"},
        }
    }


def paint_variables(page: int, limit: int) -> dict[str, object]:
    return {
        "query": {
            "page": page,
            "limit": limit,
            "skus": {
                "filtersFromTags": {
                    "tagIdentifiers": ["weight", "desc"],
                    "facetIdentifiers": ["paints"],
                },
                "products": [268],
            },
            "sort": {"field": "weight", "direction": "desc"},
        }
    }


class RsiClient:
    """Sends single-query batches; the endpoint only accepts JSON arrays."""

    def __init__(self, client: ResilientClient, *, page_limit: int = PAGE_LIMIT) -> None:
        self._client = client
        self._page_limit = page_limit

    async def query(self, query: str, variables: Mapping[str, object]) -> dict[str, object]:
        payload = await self._client.post_json(
            GRAPHQL_PATH, [{"query": query, "variables": dict(variables)}]
        )
        if not isinstance(payload, list) or not payload:
            raise GraphQLError("Empty GraphQL response")
        try:
            envelope = GraphQLEnvelope.model_validate(payload[0])
        except ValidationError as exc:
            raise GraphQLError("Unexpected GraphQL response shape") from exc
        if envelope.errors:
            raise GraphQLError(f"GraphQL error: {envelope.errors[0].message}")
        if envelope.data is None:
            raise GraphQLError("No data in GraphQL response")
        return envelope.data

    async def browse(self, variables_for_page: VariablesForPage) -> list[object]:
        """Collect every listing resource, page by page, until ``totalCount`` is reached."""

        resources: list[object] = []
        page = 1
        while True:
            data = await self.query(BROWSE_QUERY, variables_for_page(page, self._page_limit))
            try:
                listing = BrowseData.model_validate(data).store.listing
            except ValidationError as exc:
                raise GraphQLError("Browse response has no store listing") from exc
            resources.extend(listing.resources)
            log.debug(
                f"RSI page {page}: {listing.count} items, "
                f"{len(resources)}/{listing.total_count} total"
            )
            if listing.count == 0 or len(resources) >= listing.total_count:
                return resources
            page += 1
