"""Batched, idempotent writes into the reference store.

The writer issues a handful of set-based statements per category instead of one
statement per row: foreign keys come from maps loaded with one query, rows are
sent in executemany batches sized to the dialect's parameter limit, and child
collections are replaced per owning parent.

Nothing here commits. Every statement of a category runs inside the session's
single transaction, so a scoped replace (the DELETE plus every INSERT batch)
either lands completely or is rolled back by the unit of work.
"""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING, Final

from sqlalchemy import String, bindparam, delete, func, insert, select, update

from refsync.config.sync import DEFAULT_WRITE_BATCH_SIZE
from refsync.domain.model import (
    PaintCandidate,
    ReferenceLookups,
    VehicleCandidate,
)
from refsync.domain.ports.persistence import VehicleWriteSummary

from .dialects import chunks
from .mappings import (
    IMAGE_COLUMNS,
    ITEM_TABLES,
    game_version_table,
    manufacturer_table,
    paint_table,
    paint_vehicle_table,
    port_table,
    vehicle_loaner_table,
    vehicle_table,
)

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping, Sequence

    from sqlalchemy import Table
    from sqlalchemy.orm import Session
    from sqlalchemy.sql.dml import Insert, Update

    from refsync.domain.model import (
        GameVersionRecord,
        ImageSet,
        ItemKind,
        ItemRow,
        ManufacturerRecord,
        PaintImageUpdate,
        PaintRecord,
        PortRecord,
        VehicleImageRecord,
        VehicleRow,
    )

    from .dialects import StatementBuilder

log = getLogger(__name__)

type Row = dict[str, object]

IN_CLAUSE_SIZE: Final = 500

MANUFACTURER_COLUMNS: Final = ("uuid", "slug", "name", "code", "known_for", "description")
GAME_VERSION_COLUMNS: Final = ("uuid", "code", "channel", "is_default", "released_at")
VEHICLE_COLUMNS: Final = (
    "uuid",
    "slug",
    "name",
    "class_name",
    "manufacturer_id",
    "game_version_id",
    "size_class",
    "size_label",
    "career",
    "role",
    "focus",
    "description",
    "length",
    "beam",
    "height",
    "mass",
    "cargo_capacity",
    "vehicle_inventory",
    "crew_min",
    "crew_max",
    "speed_scm",
    "speed_max",
    "health",
    "shield_hp",
    "pledge_price",
    "on_sale",
    "pledge_url",
    "production_status",
    "is_spaceship",
    "is_vehicle",
    "is_gravlev",
)
ITEM_COLUMNS: Final = (
    "uuid",
    "name",
    "class_name",
    "slug",
    "type",
    "sub_type",
    "size",
    "grade",
    "manufacturer_id",
    "game_version_id",
)
PAINT_COLUMNS: Final = ("class_name", "name", "slug", "description")

_KEY_PARAM: Final = "b_key"
_ID_PARAM: Final = "b_id"


def _param(column: str) -> str:
    # SET-clause bind names must not collide with column names.
    return f"b_{column}"


def _image_params(key: str, images: ImageSet) -> Row:
    return {
        _KEY_PARAM: key,
        _param("image_url"): images.image_url,
        _param("image_url_small"): images.small,
        _param("image_url_medium"): images.medium,
        _param("image_url_large"): images.large,
    }


class SqlAlchemyReferenceWriter:
    def __init__(
        self,
        session: Session,
        *,
        builder: StatementBuilder,
        batch_size: int = DEFAULT_WRITE_BATCH_SIZE,
    ) -> None:
        self.session = session
        self.builder = builder
        self.batch_size = batch_size

    # Lookups -------------------------------------------------------------------

    def load_lookups(self) -> ReferenceLookups:
        lookups = ReferenceLookups()
        manufacturers = self.session.execute(
            select(manufacturer_table.c.id, manufacturer_table.c.uuid, manufacturer_table.c.name)
        )
        for manufacturer_id, uuid, name in manufacturers:
            if uuid:
                lookups.manufacturer_by_uuid[uuid] = manufacturer_id
            lookups.manufacturer_by_name.setdefault(name.strip().lower(), manufacturer_id)
        game_versions = self.session.execute(
            select(game_version_table.c.id, game_version_table.c.uuid, game_version_table.c.code)
        )
        for game_version_id, uuid, code in game_versions:
            if uuid:
                lookups.game_version_by_uuid[uuid] = game_version_id
            lookups.game_version_by_code[code] = game_version_id
        return lookups

    def vehicle_candidates(self) -> list[VehicleCandidate]:
        stmt = select(vehicle_table.c.id, vehicle_table.c.slug, vehicle_table.c.name).order_by(
            vehicle_table.c.slug
        )
        return [
            VehicleCandidate(id=vehicle_id, slug=slug, name=name)
            for vehicle_id, slug, name in self.session.execute(stmt)
        ]

    def paint_candidates(self) -> list[PaintCandidate]:
        stmt = (
            select(
                paint_table.c.id,
                paint_table.c.class_name,
                paint_table.c.name,
                vehicle_table.c.slug,
            )
            .select_from(paint_table)
            .outerjoin(paint_vehicle_table, paint_vehicle_table.c.paint_id == paint_table.c.id)
            .outerjoin(vehicle_table, vehicle_table.c.id == paint_vehicle_table.c.vehicle_id)
            .order_by(paint_table.c.class_name, vehicle_table.c.slug)
        )
        grouped: dict[int, tuple[str, str, list[str]]] = {}
        for paint_id, class_name, name, vehicle_slug in self.session.execute(stmt):
            entry = grouped.setdefault(paint_id, (class_name, name, []))
            if vehicle_slug is not None:
                entry[2].append(vehicle_slug)
        return [
            PaintCandidate(
                id=paint_id, class_name=class_name, name=name, vehicle_slugs=tuple(slugs)
            )
            for paint_id, (class_name, name, slugs) in grouped.items()
        ]

    # Reference rows ------------------------------------------------------------

    def upsert_manufacturers(self, records: Sequence[ManufacturerRecord]) -> int:
        rows = [
            {
                "uuid": record.uuid,
                "slug": record.slug.strip().lower(),
                "name": record.name,
                "code": record.code,
                "known_for": record.known_for,
                "description": record.description,
            }
            for record in records
        ]
        return self._merge_by_identity(
            manufacturer_table,
            rows,
            columns=MANUFACTURER_COLUMNS,
            primary_key="uuid",
            fallback_key="slug",
            overwrite=("name",),
        )

    def upsert_game_versions(self, records: Sequence[GameVersionRecord]) -> int:
        rows = [
            {
                "uuid": record.uuid,
                "code": record.code,
                "channel": record.channel,
                "is_default": record.is_default,
                "released_at": record.released_at,
            }
            for record in records
        ]
        return self._merge_by_identity(
            game_version_table,
            rows,
            columns=GAME_VERSION_COLUMNS,
            primary_key="uuid",
            fallback_key="code",
            overwrite=("is_default",),
        )

    def upsert_vehicles(self, rows: Sequence[VehicleRow]) -> VehicleWriteSummary:
        by_slug: dict[str, VehicleRow] = {row.record.slug: row for row in rows}
        vehicle_rows = [self._vehicle_values(row) for row in by_slug.values()]
        stmt = self.builder.upsert(
            vehicle_table,
            conflict_columns=("slug",),
            columns=VEHICLE_COLUMNS,
            overwrite=("name",),
        )
        self._execute_batches(stmt, vehicle_rows, column_count=len(VEHICLE_COLUMNS))

        ids_by_slug = self._vehicle_ids_by_slug()
        port_count = self._replace_ports(
            {
                ids_by_slug[slug]: row.record.ports
                for slug, row in by_slug.items()
                if row.record.ports is not None
            }
        )
        loaner_links, unresolved = self._replace_loaners(
            {
                ids_by_slug[slug]: row.record.loaner_slugs
                for slug, row in by_slug.items()
                if row.record.loaner_slugs is not None
            },
            ids_by_slug,
        )
        return VehicleWriteSummary(
            vehicles=len(vehicle_rows),
            ports=port_count,
            loaner_links=loaner_links,
            unresolved_loaners=unresolved,
        )

    def upsert_items(self, rows: Sequence[ItemRow]) -> int:
        by_kind: dict[ItemKind, dict[str, Row]] = {}
        for row in rows:
            record = row.record
            by_kind.setdefault(row.kind, {})[record.uuid] = {
                "uuid": record.uuid,
                "name": record.name,
                "class_name": record.class_name,
                "slug": record.slug,
                "type": record.type,
                "sub_type": record.sub_type,
                "size": record.size,
                "grade": record.grade,
                "manufacturer_id": row.manufacturer_id,
                "game_version_id": row.game_version_id,
            }
        written = 0
        for kind, kind_rows in by_kind.items():
            stmt = self.builder.upsert(
                ITEM_TABLES[kind],
                conflict_columns=("uuid",),
                columns=ITEM_COLUMNS,
                overwrite=("name", "type"),
            )
            self._execute_batches(stmt, list(kind_rows.values()), column_count=len(ITEM_COLUMNS))
            log.debug(f"Upserted {len(kind_rows)} rows into {kind}")
            written += len(kind_rows)
        return written

    def upsert_paints(self, records: Sequence[PaintRecord]) -> dict[str, int]:
        rows: dict[str, Row] = {
            record.class_name: {
                "class_name": record.class_name,
                "name": record.name,
                "slug": record.slug,
                "description": record.description,
            }
            for record in records
        }
        stmt = self.builder.upsert(
            paint_table,
            conflict_columns=("class_name",),
            columns=PAINT_COLUMNS,
            overwrite=("name", "slug"),
        )
        self._execute_batches(stmt, list(rows.values()), column_count=len(PAINT_COLUMNS))

        ids: dict[str, int] = {}
        for chunk in chunks(rows, IN_CLAUSE_SIZE):
            result = self.session.execute(
                select(paint_table.c.class_name, paint_table.c.id).where(
                    paint_table.c.class_name.in_(chunk)
                )
            )
            ids.update({class_name: paint_id for class_name, paint_id in result})
        return ids

    def replace_paint_vehicles(self, links: Mapping[int, Sequence[int]]) -> int:
        rows: list[Row] = [
            {"paint_id": paint_id, "vehicle_id": vehicle_id}
            for paint_id, vehicle_ids in links.items()
            for vehicle_id in dict.fromkeys(vehicle_ids)
        ]
        self._replace_children(paint_vehicle_table, "paint_id", links.keys(), rows)
        return len(rows)

    # Images --------------------------------------------------------------------

    def update_vehicle_images(self, updates: Sequence[VehicleImageRecord]) -> int:
        known = self._vehicle_ids_by_slug()
        params: dict[str, Row] = {}
        for record in updates:
            if record.slug not in known:
                log.debug(f"No vehicle with slug {record.slug!r} for image update")
                continue
            if record.images.is_empty:
                continue
            params[record.slug] = _image_params(record.slug, record.images)
        stmt = self._image_update(vehicle_table, key_column="slug")
        self._execute_batches(stmt, list(params.values()), column_count=len(IMAGE_COLUMNS) + 1)
        return len(params)

    def update_paint_images(self, updates: Sequence[PaintImageUpdate]) -> int:
        params: dict[str, Row] = {
            record.class_name: _image_params(record.class_name, record.images)
            for record in updates
            if not record.images.is_empty
        }
        stmt = self._image_update(paint_table, key_column="class_name")
        self._execute_batches(stmt, list(params.values()), column_count=len(IMAGE_COLUMNS) + 1)
        return len(params)

    # Internals -----------------------------------------------------------------

    def _vehicle_values(self, row: VehicleRow) -> Row:
        record = row.record
        values: Row = {column: getattr(record, column, None) for column in VEHICLE_COLUMNS}
        values["manufacturer_id"] = row.manufacturer_id
        values["game_version_id"] = row.game_version_id
        return values

    def _vehicle_ids_by_slug(self) -> dict[str, int]:
        result = self.session.execute(select(vehicle_table.c.slug, vehicle_table.c.id))
        return {slug: vehicle_id for slug, vehicle_id in result}

    def _replace_ports(self, ports_by_vehicle: Mapping[int, Sequence[PortRecord]]) -> int:
        rows: list[Row] = [
            {
                "vehicle_id": vehicle_id,
                "position": port.position,
                "parent_position": port.parent_position,
                "depth": port.depth,
                "uuid": port.uuid,
                "name": port.name,
                "category_label": port.category_label,
                "size_min": port.size_min,
                "size_max": port.size_max,
                "port_type": port.port_type,
                "equipped_item_uuid": port.equipped_item_uuid,
            }
            for vehicle_id, ports in ports_by_vehicle.items()
            for port in ports
        ]
        self._replace_children(port_table, "vehicle_id", ports_by_vehicle.keys(), rows)

        parent = port_table.alias("parent_port")
        parent_id = (
            select(parent.c.id)
            .where(parent.c.vehicle_id == port_table.c.vehicle_id)
            .where(parent.c.position == port_table.c.parent_position)
            .scalar_subquery()
        )
        for chunk in chunks(ports_by_vehicle, IN_CLAUSE_SIZE):
            self.session.execute(
                update(port_table)
                .where(port_table.c.vehicle_id.in_(chunk))
                .where(port_table.c.parent_position.is_not(None))
                .values(parent_port_id=parent_id)
            )
        return len(rows)

    def _replace_loaners(
        self,
        loaners_by_vehicle: Mapping[int, Sequence[str]],
        ids_by_slug: Mapping[str, int],
    ) -> tuple[int, int]:
        rows: list[Row] = []
        unresolved = 0
        for vehicle_id, loaner_slugs in loaners_by_vehicle.items():
            for loaner_slug in dict.fromkeys(loaner_slugs):
                loaner_id = ids_by_slug.get(loaner_slug)
                if loaner_id is None:
                    unresolved += 1
                    log.warning(
                        f"Loaner {loaner_slug!r} of vehicle {vehicle_id} is not in the store"
                    )
                    continue
                rows.append({"vehicle_id": vehicle_id, "loaner_id": loaner_id})
        self._replace_children(vehicle_loaner_table, "vehicle_id", loaners_by_vehicle.keys(), rows)
        return len(rows), unresolved

    def _replace_children(
        self,
        table: Table,
        parent_column: str,
        parent_ids: Iterable[int],
        rows: Sequence[Row],
    ) -> None:
        """Delete every child of ``parent_ids`` then insert ``rows`` in the same transaction."""

        for chunk in chunks(parent_ids, IN_CLAUSE_SIZE):
            self.session.execute(delete(table).where(table.c[parent_column].in_(chunk)))
        if rows:
            self._execute_batches(insert(table), rows, column_count=len(rows[0]))

    def _merge_by_identity(
        self,
        table: Table,
        rows: Sequence[Row],
        *,
        columns: Sequence[str],
        primary_key: str,
        fallback_key: str,
        overwrite: Sequence[str],
    ) -> int:
        """Update rows matched by ``primary_key`` (else ``fallback_key``), insert the rest."""

        by_primary: dict[object, int] = {}
        by_fallback: dict[object, tuple[int, object]] = {}
        existing = self.session.execute(
            select(table.c.id, table.c[primary_key], table.c[fallback_key])
        )
        for row_id, primary, fallback in existing:
            if primary is not None:
                by_primary[primary] = row_id
            by_fallback[fallback] = (row_id, primary)

        # Slots are ("stored", row id) for updates and ("new", key) for inserts.
        pending: dict[tuple[str, object], Row] = {}
        new_by_primary: dict[object, tuple[str, object]] = {}
        claimed: dict[object, tuple[tuple[str, object], object]] = {}
        for row in rows:
            primary = row[primary_key]
            fallback = row[fallback_key]
            target = by_primary.get(primary) if primary is not None else None
            owner = by_fallback.get(fallback)
            if owner is not None and owner[0] != target:
                owner_id, stored_primary = owner
                if target is None and (
                    stored_primary is None or primary is None or stored_primary == primary
                ):
                    target = owner_id
                else:
                    log.warning(
                        f"Skipping {table.name} {fallback!r}: {fallback_key} already belongs "
                        f"to {primary_key} {stored_primary!r}, incoming {primary!r}"
                    )
                    continue

            if target is not None:
                slot: tuple[str, object] = ("stored", target)
            elif primary is not None and primary in new_by_primary:
                slot = new_by_primary[primary]
            else:
                slot = ("new", primary if primary is not None else fallback)

            claim = claimed.get(fallback)
            if claim is not None and claim[0] != slot:
                claimed_slot, claimed_primary = claim
                if claimed_slot[0] == "new" and target is None and (
                    primary is None or claimed_primary is None
                ):
                    slot = claimed_slot
                else:
                    log.warning(
                        f"Skipping {table.name} {fallback!r}: {fallback_key} already used in "
                        f"this batch by {primary_key} {claimed_primary!r}, incoming {primary!r}"
                    )
                    continue

            previous = pending.get(slot)
            if previous is None:
                merged = dict(row)
            else:
                merged = {**previous, **{k: v for k, v in row.items() if v is not None}}
                if previous[fallback_key] != merged[fallback_key]:
                    claimed.pop(previous[fallback_key], None)
            pending[slot] = merged
            claimed[merged[fallback_key]] = (slot, merged[primary_key])
            if slot[0] == "new" and merged[primary_key] is not None:
                new_by_primary[merged[primary_key]] = slot

        updates = [
            {_ID_PARAM: slot[1], **{_param(c): row[c] for c in columns}}
            for slot, row in pending.items()
            if slot[0] == "stored"
        ]
        inserts = [row for slot, row in pending.items() if slot[0] == "new"]

        if updates:
            stmt = (
                update(table)
                .where(table.c.id == bindparam(_ID_PARAM))
                .values(
                    {
                        column: (
                            bindparam(_param(column), type_=table.c[column].type)
                            if column in overwrite
                            else func.coalesce(
                                bindparam(_param(column), type_=table.c[column].type),
                                table.c[column],
                            )
                        )
                        for column in columns
                    }
                )
            )
            self._execute_batches(stmt, updates, column_count=len(columns) + 1)
        if inserts:
            self._execute_batches(insert(table), inserts, column_count=len(columns))
        return len(pending)

    def _image_update(self, table: Table, *, key_column: str) -> Update:
        return (
            update(table)
            .where(table.c[key_column] == bindparam(_KEY_PARAM))
            .values(
                {
                    column: func.coalesce(
                        func.nullif(bindparam(_param(column), type_=String()), ""),
                        table.c[column],
                    )
                    for column in IMAGE_COLUMNS
                }
            )
        )

    def _execute_batches(
        self,
        stmt: Insert | Update,
        rows: Sequence[Row],
        *,
        column_count: int,
    ) -> None:
        size = self.builder.batch_size(column_count=column_count, requested=self.batch_size)
        for batch in chunks(rows, size):
            self._execute_batch(stmt, batch)

    def _execute_batch(self, stmt: Insert | Update, batch: list[Row]) -> None:
        self.session.execute(stmt, batch)
