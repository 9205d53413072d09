"""Translate SC Wiki payloads into intermediate records."""

from __future__ import annotations

import re
from collections.abc import Mapping
from logging import getLogger
from typing import TYPE_CHECKING

from refsync.domain.hardpoints import flatten_tree
from refsync.domain.model import (
    EntityRef,
    GameVersionRecord,
    ItemRecord,
    ManufacturerRecord,
    PortRecord,
    VehicleRecord,
)

from .schema import PortPayload

if TYPE_CHECKING:
    from .schema import (
        GameVersionPayload,
        GameVersionRef,
        ItemPayload,
        ManufacturerPayload,
        ManufacturerRef,
        VehiclePayload,
    )

log = getLogger(__name__)

_NON_SLUG = re.compile(r"[^a-z0-9]+")


def slugify(name: str) -> str:
    return _NON_SLUG.sub("-", name.lower()).strip("-")


def _manufacturer_ref(ref: ManufacturerRef | None) -> EntityRef | None:
    if ref is None:
        return None
    entity = EntityRef(uuid=ref.uuid, name=ref.name)
    return None if entity.is_empty else entity


def _game_version_ref(ref: GameVersionRef | None) -> EntityRef | None:
    if ref is None:
        return None
    entity = EntityRef(uuid=ref.uuid, name=ref.code)
    return None if entity.is_empty else entity


def translate_manufacturer(payload: ManufacturerPayload) -> ManufacturerRecord:
    return ManufacturerRecord(
        slug=payload.slug or slugify(payload.name),
        name=payload.name,
        uuid=payload.uuid,
        code=payload.code,
        known_for=payload.known_for,
        description=payload.description,
    )


def translate_game_version(payload: GameVersionPayload) -> GameVersionRecord:
    return GameVersionRecord(
        code=payload.code,
        uuid=payload.uuid,
        channel=payload.channel,
        is_default=payload.is_default,
        released_at=payload.released_at,
    )


def translate_port(raw: Mapping[str, object]) -> PortPayload:
    """Decode one hardpoint node; raises ``ValidationError`` (a ``ValueError``) when malformed."""

    return PortPayload.model_validate(raw)


def _ports(payload: VehiclePayload) -> list[PortRecord] | None:
    if payload.ports is None:
        return None
    nodes = flatten_tree(payload.ports, decode=translate_port)
    return [
        PortRecord(
            position=node.position,
            parent_position=node.parent_position,
            depth=node.depth,
            name=node.value.name,
            uuid=node.value.uuid,
            category_label=node.value.category_label,
            size_min=node.value.size_min,
            size_max=node.value.size_max,
            port_type=node.value.port_type,
            equipped_item_uuid=node.value.equipped_item.uuid if node.value.equipped_item else None,
        )
        for node in nodes
    ]


def _loaner_slugs(payload: VehiclePayload) -> list[str] | None:
    if payload.loaner is None:
        return None
    return [loaner.slug for loaner in payload.loaner if loaner.slug]


def translate_vehicle(payload: VehiclePayload) -> VehicleRecord:
    sizes = payload.sizes
    crew = payload.crew
    speed = payload.speed
    return VehicleRecord(
        slug=payload.slug,
        name=payload.name,
        uuid=payload.uuid,
        class_name=payload.class_name,
        manufacturer=_manufacturer_ref(payload.manufacturer),
        game_version=_game_version_ref(payload.game_version),
        size_class=payload.size_class,
        size_label=payload.size,
        career=payload.career,
        role=payload.role,
        focus=payload.foci[0] if payload.foci else payload.role,
        description=payload.description,
        length=sizes.length if sizes else None,
        beam=sizes.beam if sizes else None,
        height=sizes.height if sizes else None,
        mass=payload.mass_total,
        cargo_capacity=payload.cargo_capacity,
        vehicle_inventory=payload.vehicle_inventory,
        crew_min=crew.min if crew else None,
        crew_max=crew.max if crew else None,
        speed_scm=speed.scm if speed else None,
        speed_max=speed.max if speed else None,
        health=payload.health,
        shield_hp=payload.shield_hp,
        pledge_price=payload.msrp,
        on_sale=any(sku.available for sku in payload.skus) if payload.skus is not None else None,
        pledge_url=payload.pledge_url,
        production_status=payload.production_status,
        is_spaceship=payload.is_spaceship,
        is_vehicle=payload.is_vehicle,
        is_gravlev=payload.is_gravlev,
        ports=_ports(payload),
        loaner_slugs=_loaner_slugs(payload),
    )


def translate_item(payload: ItemPayload) -> ItemRecord:
    return ItemRecord(
        uuid=payload.uuid,
        name=payload.name,
        type=payload.type or "",
        class_name=payload.class_name,
        slug=payload.slug,
        sub_type=payload.sub_type,
        size=payload.size,
        grade=payload.grade,
        manufacturer=_manufacturer_ref(payload.manufacturer),
        game_version=_game_version_ref(payload.game_version),
    )
