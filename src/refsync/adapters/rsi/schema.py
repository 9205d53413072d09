"""Pydantic models describing the RSI storefront GraphQL payloads."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _blank_to_none(value: object) -> object:
    if isinstance(value, str):
        stripped = value.strip()
        return stripped or None
    return value


class RsiBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class GraphQLErrorEntry(RsiBaseModel):
    message: str = "unknown error"


class GraphQLEnvelope(RsiBaseModel):
    """One element of the batched response array."""

    data: dict[str, object] | None = None
    errors: list[GraphQLErrorEntry] | None = None


class Thumbnail(RsiBaseModel):
    store_small: str | None = Field(default=None, alias="storeSmall")

    _normalize = field_validator("store_small", mode="before")(_blank_to_none)


class ResourceMedia(RsiBaseModel):
    thumbnail: Thumbnail | None = None


class BrowseResource(RsiBaseModel):
    id: str | int | None = None
    name: str | None = None
    title: str | None = None
    url: str | None = None
    media: ResourceMedia | None = None
    is_package: bool = Field(default=False, alias="isPackage")

    _normalize = field_validator("name", "title", "url", mode="before")(_blank_to_none)

    @property
    def display_name(self) -> str | None:
        return self.name or self.title

    @property
    def image_url(self) -> str | None:
        if self.media is None or self.media.thumbnail is None:
            return None
        return self.media.thumbnail.store_small


class BrowseListing(RsiBaseModel):
    # Resources stay raw so one bad entry is skipped instead of failing the page.
    resources: list[object] = Field(default_factory=list[object])
    count: int = 0
    total_count: int = Field(default=0, alias="totalCount")


class BrowseStore(RsiBaseModel):
    listing: BrowseListing


class BrowseData(RsiBaseModel):
    store: BrowseStore
