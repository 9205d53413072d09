"""Pydantic models for the FleetYards model and paint listings."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _blank_to_none(value: object) -> object:
    if isinstance(value, str):
        stripped = value.strip()
        return stripped or None
    return value


class FleetYardsBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class StoreImage(FleetYardsBaseModel):
    source: str | None = None
    small: str | None = None
    medium: str | None = None
    large: str | None = None

    _normalize = field_validator("source", "small", "medium", "large", mode="before")(
        _blank_to_none
    )


class Media(FleetYardsBaseModel):
    store_image: StoreImage | None = Field(default=None, alias="storeImage")


class ModelPayload(FleetYardsBaseModel):
    slug: str
    name: str | None = None
    media: Media | None = None


class PaintPayload(FleetYardsBaseModel):
    name: str
    slug: str | None = None
    media: Media | None = None
