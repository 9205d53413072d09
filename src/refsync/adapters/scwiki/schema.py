"""Pydantic models describing the SC Wiki API payloads."""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime
from typing import cast

from pydantic import BaseModel, ConfigDict, Field, field_validator

LOCALE = "en_EN"


def _blank_to_none(value: object) -> object:
    if isinstance(value, str):
        stripped = value.strip()
        return stripped or None
    return value


def _localized(value: object) -> object:
    """Flatten ``{"en_EN": "..."}`` objects to their English text."""

    if isinstance(value, Mapping):
        mapping_value = cast(Mapping[str, object], value)
        return _blank_to_none(mapping_value.get(LOCALE))
    return _blank_to_none(value)


def _grade_to_text(value: object) -> object:
    if isinstance(value, int | float) and not isinstance(value, bool):
        return str(value)
    return _blank_to_none(value)


class ScWikiBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class ManufacturerRef(ScWikiBaseModel):
    uuid: str | None = None
    name: str | None = None

    _normalize = field_validator("uuid", "name", mode="before")(_blank_to_none)


class GameVersionRef(ScWikiBaseModel):
    uuid: str | None = None
    code: str | None = None

    _normalize = field_validator("uuid", "code", mode="before")(_blank_to_none)


class ManufacturerPayload(ScWikiBaseModel):
    name: str
    uuid: str | None = None
    slug: str | None = None
    code: str | None = None
    known_for: str | None = None
    description: str | None = None

    _normalize = field_validator("uuid", "slug", "code", mode="before")(_blank_to_none)
    _flatten = field_validator("known_for", "description", mode="before")(_localized)


class GameVersionPayload(ScWikiBaseModel):
    code: str
    uuid: str | None = None
    channel: str | None = None
    is_default: bool = False
    released_at: datetime | None = None

    _normalize = field_validator("uuid", "channel", "released_at", mode="before")(_blank_to_none)


class CrewPayload(ScWikiBaseModel):
    min: int | None = None
    max: int | None = None


class SpeedPayload(ScWikiBaseModel):
    scm: float | None = None
    max: float | None = None


class SizesPayload(ScWikiBaseModel):
    length: float | None = None
    beam: float | None = None
    height: float | None = None


class LoanerPayload(ScWikiBaseModel):
    slug: str | None = None
    uuid: str | None = None
    name: str | None = None

    _normalize = field_validator("slug", mode="before")(_blank_to_none)


class SkuPayload(ScWikiBaseModel):
    title: str | None = None
    price: float | None = None
    available: bool = False


class EquippedItemRef(ScWikiBaseModel):
    uuid: str | None = None


class PortPayload(ScWikiBaseModel):
    """One hardpoint; nested ``ports`` are walked separately and not modelled here."""

    name: str
    uuid: str | None = None
    category_label: str | None = None
    size_min: int | None = None
    size_max: int | None = None
    port_type: str | None = None
    equipped_item: EquippedItemRef | None = None

    _normalize = field_validator("uuid", mode="before")(_blank_to_none)
    _flatten = field_validator("category_label", "port_type", mode="before")(_localized)


class VehiclePayload(ScWikiBaseModel):
    name: str
    slug: str
    uuid: str | None = None
    class_name: str | None = None
    manufacturer: ManufacturerRef | None = None
    game_version: GameVersionRef | None = None
    size_class: int | None = None
    size: str | None = None
    career: str | None = None
    role: str | None = None
    foci: list[str] = Field(default_factory=list[str])
    description: str | None = None
    production_status: str | None = None
    sizes: SizesPayload | None = None
    mass_total: float | None = None
    cargo_capacity: float | None = None
    vehicle_inventory: float | None = None
    crew: CrewPayload | None = None
    speed: SpeedPayload | None = None
    health: float | None = None
    shield_hp: float | None = None
    msrp: float | None = None
    pledge_url: str | None = None
    is_spaceship: bool | None = None
    is_vehicle: bool | None = None
    is_gravlev: bool | None = None
    skus: list[SkuPayload] | None = None
    loaner: list[LoanerPayload] | None = None
    # Kept raw: the hardpoint tree is flattened with an explicit work-list.
    ports: list[object] | None = None

    _flatten = field_validator(
        "size", "career", "role", "description", "production_status", mode="before"
    )(_localized)
    _normalize = field_validator("uuid", "class_name", "pledge_url", mode="before")(_blank_to_none)

    @field_validator("foci", mode="before")
    @classmethod
    def _flatten_foci(cls, value: object) -> object:
        if value is None:
            return []
        if isinstance(value, list):
            entries = cast(list[object], value)
            return [text for text in map(_localized, entries) if isinstance(text, str)]
        return value


class ItemPayload(ScWikiBaseModel):
    uuid: str
    name: str
    type: str | None = None
    class_name: str | None = None
    slug: str | None = None
    sub_type: str | None = None
    size: int | None = None
    grade: str | None = None
    manufacturer: ManufacturerRef | None = None
    game_version: GameVersionRef | None = None

    _normalize = field_validator("type", "class_name", "slug", "sub_type", mode="before")(
        _blank_to_none
    )
    _grade = field_validator("grade", mode="before")(_grade_to_text)
