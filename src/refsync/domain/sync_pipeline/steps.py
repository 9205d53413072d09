"""Per-category write steps.

A step receives the records an adapter fetched for one category and writes them
through the reference writer, resolving foreign keys and cross-source matches on
the way. Steps never commit; the orchestrator owns the transaction.
"""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from types import MappingProxyType
from typing import TYPE_CHECKING, Final, cast

from refsync.domain.item_routing import route_item
from refsync.domain.matching import (
    PaintNameIndex,
    VehicleNameIndex,
    find_base_images,
    match_paint_by_name,
)
from refsync.domain.model import (
    ItemRow,
    PaintImageUpdate,
    SyncCategory,
    VehicleImageRecord,
    VehicleRow,
)
from refsync.domain.ports.fetching import FetchContext
from refsync.domain.resolution import EntityResolver

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping, Sequence

    from refsync.domain.model import (
        EntityRef,
        GameVersionRecord,
        ImageSet,
        ItemRecord,
        ManufacturerRecord,
        PaintCandidate,
        PaintImageRecord,
        PaintRecord,
        StoreListing,
        VehicleRecord,
    )
    from refsync.domain.ports.persistence import ReferenceWriter

log = getLogger(__name__)


@dataclass(slots=True, frozen=True)
class StepOutcome:
    records: int
    unmatched: int = 0


type WriteStep = Callable[[ReferenceWriter, Sequence[object]], StepOutcome]


def _warn_unresolved(kind: str, owner: str, ref: EntityRef | None, resolved: int | None) -> None:
    if ref is not None and not ref.is_empty and resolved is None:
        log.warning(f"{owner}: {kind} {ref.describe()!r} is not in the store, writing NULL")


def write_manufacturers(writer: ReferenceWriter, records: Sequence[object]) -> StepOutcome:
    return StepOutcome(writer.upsert_manufacturers(cast("Sequence[ManufacturerRecord]", records)))


def write_game_versions(writer: ReferenceWriter, records: Sequence[object]) -> StepOutcome:
    return StepOutcome(writer.upsert_game_versions(cast("Sequence[GameVersionRecord]", records)))


def write_vehicles(writer: ReferenceWriter, records: Sequence[object]) -> StepOutcome:
    lookups = writer.load_lookups()
    rows: list[VehicleRow] = []
    for record in cast("Sequence[VehicleRecord]", records):
        manufacturer_id = lookups.manufacturer_id(record.manufacturer)
        game_version_id = lookups.game_version_id(record.game_version)
        _warn_unresolved("manufacturer", record.slug, record.manufacturer, manufacturer_id)
        _warn_unresolved("game version", record.slug, record.game_version, game_version_id)
        rows.append(VehicleRow(record, manufacturer_id, game_version_id))

    summary = writer.upsert_vehicles(rows)
    log.info(
        f"Vehicles: {summary.vehicles} rows, {summary.ports} ports, "
        f"{summary.loaner_links} loaner links"
    )
    return StepOutcome(summary.vehicles, unmatched=summary.unresolved_loaners)


def write_items(writer: ReferenceWriter, records: Sequence[object]) -> StepOutcome:
    lookups = writer.load_lookups()
    rows: list[ItemRow] = []
    for record in cast("Sequence[ItemRecord]", records):
        kind = route_item(record.type)
        if kind is None:
            log.debug(f"Skipping item {record.uuid} of untracked type {record.type!r}")
            continue
        manufacturer_id = lookups.manufacturer_id(record.manufacturer)
        game_version_id = lookups.game_version_id(record.game_version)
        _warn_unresolved("manufacturer", record.uuid, record.manufacturer, manufacturer_id)
        _warn_unresolved("game version", record.uuid, record.game_version, game_version_id)
        rows.append(ItemRow(kind, record, manufacturer_id, game_version_id))
    return StepOutcome(writer.upsert_items(rows))


def write_paints(writer: ReferenceWriter, records: Sequence[object]) -> StepOutcome:
    paints = cast("Sequence[PaintRecord]", records)
    resolver = EntityResolver(writer.vehicle_candidates())
    paint_ids = writer.upsert_paints(paints)

    links: dict[int, list[int]] = {}
    unmatched = 0
    for paint in paints:
        vehicle_ids = resolver.resolve(paint.vehicle_tag) if paint.vehicle_tag else []
        if not vehicle_ids:
            unmatched += 1
        # An empty set clears links left over from an earlier run.
        links[paint_ids[paint.class_name]] = vehicle_ids
    linked = writer.replace_paint_vehicles(links)
    log.info(f"Paints: {len(paint_ids)} rows, {linked} vehicle links, {unmatched} unmatched")
    return StepOutcome(len(paint_ids), unmatched=unmatched)


def write_vehicle_images(writer: ReferenceWriter, records: Sequence[object]) -> StepOutcome:
    updates = cast("Sequence[VehicleImageRecord]", records)
    written = writer.update_vehicle_images(updates)
    return StepOutcome(written, unmatched=len({record.slug for record in updates}) - written)


def write_paint_images(writer: ReferenceWriter, records: Sequence[object]) -> StepOutcome:
    paints_by_vehicle: dict[str, list[PaintCandidate]] = {}
    for candidate in writer.paint_candidates():
        for slug in candidate.vehicle_slugs:
            paints_by_vehicle.setdefault(slug, []).append(candidate)

    updates: dict[str, PaintImageUpdate] = {}
    unmatched = 0
    for record in cast("Sequence[PaintImageRecord]", records):
        match = match_paint_by_name(record.name, paints_by_vehicle.get(record.vehicle_slug, []))
        if match is None:
            unmatched += 1
            log.debug(f"No stored paint of {record.vehicle_slug} matches {record.name!r}")
            continue
        updates[match.class_name] = PaintImageUpdate(match.class_name, record.images)
    return StepOutcome(writer.update_paint_images(list(updates.values())), unmatched=unmatched)


def write_store_vehicle_images(writer: ReferenceWriter, records: Sequence[object]) -> StepOutcome:
    index = VehicleNameIndex(writer.vehicle_candidates())
    images_by_name: dict[str, ImageSet] = {}
    images_by_slug: dict[str, ImageSet] = {}
    unmatched = 0
    for listing in cast("Sequence[StoreListing]", records):
        images_by_name[listing.name.strip().lower()] = listing.images
        slug = index.find_slug(listing.name)
        if slug is None:
            unmatched += 1
            log.debug(f"No vehicle matches store listing {listing.name!r}")
            continue
        images_by_slug[slug] = listing.images

    inherited = 0
    for vehicle in index.vehicles:
        if vehicle.slug in images_by_slug:
            continue
        base = find_base_images(vehicle.name, images_by_name)
        if base is not None:
            images_by_slug[vehicle.slug] = base
            inherited += 1

    written = writer.update_vehicle_images(
        [VehicleImageRecord(slug, images) for slug, images in images_by_slug.items()]
    )
    log.info(f"Store vehicle images: {written} vehicles ({inherited} inherited from a base)")
    return StepOutcome(written, unmatched=unmatched)


def write_store_paint_images(writer: ReferenceWriter, records: Sequence[object]) -> StepOutcome:
    index = PaintNameIndex(writer.paint_candidates())
    updates: dict[str, PaintImageUpdate] = {}
    unmatched = 0
    for listing in cast("Sequence[StoreListing]", records):
        if listing.is_package:
            continue
        match = index.find(listing.name)
        if match is None:
            unmatched += 1
            continue
        updates[match.class_name] = PaintImageUpdate(match.class_name, listing.images)
    return StepOutcome(writer.update_paint_images(list(updates.values())), unmatched=unmatched)


WRITE_STEPS: Final[Mapping[SyncCategory, WriteStep]] = MappingProxyType(
    {
        SyncCategory.MANUFACTURERS: write_manufacturers,
        SyncCategory.GAME_VERSIONS: write_game_versions,
        SyncCategory.VEHICLES: write_vehicles,
        SyncCategory.ITEMS: write_items,
        SyncCategory.PAINTS: write_paints,
        SyncCategory.VEHICLE_IMAGES: write_vehicle_images,
        SyncCategory.PAINT_IMAGES: write_paint_images,
        SyncCategory.STORE_VEHICLE_IMAGES: write_store_vehicle_images,
        SyncCategory.STORE_PAINT_IMAGES: write_store_paint_images,
    }
)


def fetch_context(category: SyncCategory, writer: ReferenceWriter) -> FetchContext:
    """Inputs a category needs from the store before its adapter can fetch."""

    if category is SyncCategory.PAINT_IMAGES:
        slugs = sorted(
            {slug for paint in writer.paint_candidates() for slug in paint.vehicle_slugs}
        )
        return FetchContext(paint_vehicle_slugs=tuple(slugs))
    return FetchContext()
