"""Intermediate records emitted by source adapters and consumed by the writer.

Records are source-independent: every adapter translates its payloads into these
shapes, and nothing downstream of an adapter looks at raw upstream JSON again.
Optional fields use ``None`` for "the source did not say"; the writer treats
``None`` as "keep whatever the store already has".
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from datetime import datetime

    from .enums import ItemKind


@dataclass(slots=True, frozen=True)
class EntityRef:
    """Reference to another reference-table row by external id and/or name."""

    uuid: str | None = None
    name: str | None = None

    @property
    def is_empty(self) -> bool:
        return not self.uuid and not self.name

    def describe(self) -> str:
        return self.uuid or self.name or "<empty>"


@dataclass(slots=True)
class ManufacturerRecord:
    slug: str
    name: str
    uuid: str | None = None
    code: str | None = None
    known_for: str | None = None
    description: str | None = None


@dataclass(slots=True)
class GameVersionRecord:
    code: str
    uuid: str | None = None
    channel: str | None = None
    is_default: bool = False
    released_at: datetime | None = None


@dataclass(slots=True)
class PortRecord:
    """One hardpoint row; ``parent_position`` indexes into the same vehicle's ports."""

    position: int
    parent_position: int | None
    depth: int
    name: str
    uuid: str | None = None
    category_label: str | None = None
    size_min: int | None = None
    size_max: int | None = None
    port_type: str | None = None
    equipped_item_uuid: str | None = None


@dataclass(slots=True)
class VehicleRecord:
    slug: str
    name: str
    uuid: str | None = None
    class_name: str | None = None
    manufacturer: EntityRef | None = None
    game_version: EntityRef | None = None
    size_class: int | None = None
    size_label: str | None = None
    career: str | None = None
    role: str | None = None
    focus: str | None = None
    description: str | None = None
    length: float | None = None
    beam: float | None = None
    height: float | None = None
    mass: float | None = None
    cargo_capacity: float | None = None
    vehicle_inventory: float | None = None
    crew_min: int | None = None
    crew_max: int | None = None
    speed_scm: float | None = None
    speed_max: float | None = None
    health: float | None = None
    shield_hp: float | None = None
    pledge_price: float | None = None
    on_sale: bool | None = None
    pledge_url: str | None = None
    production_status: str | None = None
    is_spaceship: bool | None = None
    is_vehicle: bool | None = None
    is_gravlev: bool | None = None
    # None means "not included in the payload": the stored children are left alone.
    ports: list[PortRecord] | None = None
    loaner_slugs: list[str] | None = None


@dataclass(slots=True)
class ItemRecord:
    uuid: str
    name: str
    type: str
    class_name: str | None = None
    slug: str | None = None
    sub_type: str | None = None
    size: int | None = None
    grade: str | None = None
    manufacturer: EntityRef | None = None
    game_version: EntityRef | None = None


@dataclass(slots=True)
class PaintRecord:
    class_name: str
    name: str
    slug: str
    description: str | None = None
    vehicle_tag: str | None = None


@dataclass(slots=True, frozen=True)
class ImageSet:
    image_url: str | None = None
    small: str | None = None
    medium: str | None = None
    large: str | None = None

    @property
    def is_empty(self) -> bool:
        return not (self.image_url or self.small or self.medium or self.large)


@dataclass(slots=True)
class VehicleImageRecord:
    slug: str
    images: ImageSet


@dataclass(slots=True)
class PaintImageRecord:
    """Paint image listed under one vehicle; matched to a paint by name."""

    vehicle_slug: str
    name: str
    images: ImageSet


@dataclass(slots=True)
class PaintImageUpdate:
    class_name: str
    images: ImageSet


@dataclass(slots=True)
class StoreListing:
    """A storefront product (ship or paint) carrying only a name and images."""

    name: str
    images: ImageSet
    is_package: bool = False
    url: str | None = None


@dataclass(slots=True, frozen=True)
class VehicleCandidate:
    id: int
    slug: str
    name: str


@dataclass(slots=True, frozen=True)
class PaintCandidate:
    id: int
    class_name: str
    name: str
    vehicle_slugs: tuple[str, ...] = ()


@dataclass(slots=True)
class ItemRow:
    """An item already routed to its table, with foreign keys resolved."""

    kind: ItemKind
    record: ItemRecord
    manufacturer_id: int | None = None
    game_version_id: int | None = None


@dataclass(slots=True)
class VehicleRow:
    record: VehicleRecord
    manufacturer_id: int | None = None
    game_version_id: int | None = None


@dataclass(slots=True)
class ReferenceLookups:
    """Run-scoped foreign-key maps, loaded once per category."""

    manufacturer_by_uuid: dict[str, int] = field(default_factory=dict[str, int])
    manufacturer_by_name: dict[str, int] = field(default_factory=dict[str, int])
    game_version_by_uuid: dict[str, int] = field(default_factory=dict[str, int])
    game_version_by_code: dict[str, int] = field(default_factory=dict[str, int])

    def manufacturer_id(self, ref: EntityRef | None) -> int | None:
        if ref is None:
            return None
        if ref.uuid and ref.uuid in self.manufacturer_by_uuid:
            return self.manufacturer_by_uuid[ref.uuid]
        if ref.name:
            return self.manufacturer_by_name.get(ref.name.strip().lower())
        return None

    def game_version_id(self, ref: EntityRef | None) -> int | None:
        if ref is None:
            return None
        if ref.uuid and ref.uuid in self.game_version_by_uuid:
            return self.game_version_by_uuid[ref.uuid]
        if ref.name:
            return self.game_version_by_code.get(ref.name.strip())
        return None
