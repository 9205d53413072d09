"""SQLAlchemy table metadata for the reference store."""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from enum import StrEnum
from types import MappingProxyType
from typing import TYPE_CHECKING, Final

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Dialect,
    Enum,
    Float,
    ForeignKey,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    TypeDecorator,
    UniqueConstraint,
)

from refsync.domain.model import ItemKind, Source, SyncCategory, SyncStatus

if TYPE_CHECKING:
    from collections.abc import Mapping

    from sqlalchemy.engine import Engine

log = logging.getLogger(__name__)


class UTCDateTime(TypeDecorator[datetime]):
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value.astimezone(UTC)

    def process_result_value(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        return value if value.tzinfo else value.replace(tzinfo=UTC)


def _str_enum(enum_cls: type[StrEnum]) -> Enum:
    return Enum(
        enum_cls,
        native_enum=False,
        length=32,
        values_callable=lambda members: [member.value for member in members],
    )


metadata = MetaData(
    naming_convention={
        "ix": "ix_%(column_0_label)s",
        "uq": "uq_%(table_name)s_%(column_0_label)s",
        "ck": "ck_%(table_name)s_%(constraint_name)s",
        "fk": "fk_%(table_name)s_%(column_0_label)s_%(referred_table_name)s",
        "pk": "pk_%(table_name)s",
    }
)

# Reference tables --------------------------------------------------------------

manufacturer_table = Table(
    "manufacturer",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("uuid", String, nullable=True, unique=True),
    Column("slug", String, nullable=False, unique=True),
    Column("name", String, nullable=False),
    Column("code", String, nullable=True),
    Column("known_for", String, nullable=True),
    Column("description", Text, nullable=True),
)

game_version_table = Table(
    "game_version",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("uuid", String, nullable=True, unique=True),
    Column("code", String, nullable=False, unique=True),
    Column("channel", String, nullable=True),
    Column("is_default", Boolean, nullable=False, default=False),
    Column("released_at", UTCDateTime(), nullable=True),
)

IMAGE_COLUMNS: Final = ("image_url", "image_url_small", "image_url_medium", "image_url_large")

vehicle_table = Table(
    "vehicle",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("uuid", String, nullable=True, index=True),
    Column("slug", String, nullable=False, unique=True),
    Column("name", String, nullable=False),
    Column("class_name", String, nullable=True, index=True),
    Column(
        "manufacturer_id",
        Integer,
        ForeignKey("manufacturer.id", ondelete="SET NULL"),
        nullable=True,
    ),
    Column(
        "game_version_id",
        Integer,
        ForeignKey("game_version.id", ondelete="SET NULL"),
        nullable=True,
    ),
    Column("size_class", Integer, nullable=True),
    Column("size_label", String, nullable=True),
    Column("career", String, nullable=True),
    Column("role", String, nullable=True),
    Column("focus", String, nullable=True),
    Column("description", Text, nullable=True),
    Column("length", Float, nullable=True),
    Column("beam", Float, nullable=True),
    Column("height", Float, nullable=True),
    Column("mass", Float, nullable=True),
    Column("cargo_capacity", Float, nullable=True),
    Column("vehicle_inventory", Float, nullable=True),
    Column("crew_min", Integer, nullable=True),
    Column("crew_max", Integer, nullable=True),
    Column("speed_scm", Float, nullable=True),
    Column("speed_max", Float, nullable=True),
    Column("health", Float, nullable=True),
    Column("shield_hp", Float, nullable=True),
    Column("pledge_price", Float, nullable=True),
    Column("on_sale", Boolean, nullable=True),
    Column("pledge_url", String, nullable=True),
    Column("production_status", String, nullable=True),
    Column("is_spaceship", Boolean, nullable=True),
    Column("is_vehicle", Boolean, nullable=True),
    Column("is_gravlev", Boolean, nullable=True),
    *(Column(name, String, nullable=True) for name in IMAGE_COLUMNS),
)

port_table = Table(
    "port",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column(
        "vehicle_id",
        Integer,
        ForeignKey("vehicle.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    ),
    Column("position", Integer, nullable=False),
    Column("parent_position", Integer, nullable=True),
    Column("parent_port_id", Integer, ForeignKey("port.id", ondelete="CASCADE"), nullable=True),
    Column("depth", Integer, nullable=False, default=0),
    Column("uuid", String, nullable=True),
    Column("name", String, nullable=False),
    Column("category_label", String, nullable=True),
    Column("size_min", Integer, nullable=True),
    Column("size_max", Integer, nullable=True),
    Column("port_type", String, nullable=True),
    Column("equipped_item_uuid", String, nullable=True),
    UniqueConstraint("vehicle_id", "position"),
)

vehicle_loaner_table = Table(
    "vehicle_loaner",
    metadata,
    Column(
        "vehicle_id",
        Integer,
        ForeignKey("vehicle.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column(
        "loaner_id",
        Integer,
        ForeignKey("vehicle.id", ondelete="CASCADE"),
        primary_key=True,
    ),
)


def _item_table(name: str) -> Table:
    return Table(
        name,
        metadata,
        Column("id", Integer, primary_key=True, autoincrement=True),
        Column("uuid", String, nullable=False, unique=True),
        Column("name", String, nullable=False),
        Column("class_name", String, nullable=True),
        Column("slug", String, nullable=True),
        Column("type", String, nullable=False),
        Column("sub_type", String, nullable=True),
        Column("size", Integer, nullable=True),
        Column("grade", String, nullable=True),
        Column(
            "manufacturer_id",
            Integer,
            ForeignKey("manufacturer.id", ondelete="SET NULL"),
            nullable=True,
        ),
        Column(
            "game_version_id",
            Integer,
            ForeignKey("game_version.id", ondelete="SET NULL"),
            nullable=True,
        ),
    )


component_table = _item_table("component")
fps_weapon_table = _item_table("fps_weapon")
fps_armour_table = _item_table("fps_armour")
fps_attachment_table = _item_table("fps_attachment")
fps_utility_table = _item_table("fps_utility")

ITEM_TABLES: Final[Mapping[ItemKind, Table]] = MappingProxyType(
    {
        ItemKind.COMPONENT: component_table,
        ItemKind.FPS_WEAPON: fps_weapon_table,
        ItemKind.FPS_ARMOUR: fps_armour_table,
        ItemKind.FPS_ATTACHMENT: fps_attachment_table,
        ItemKind.FPS_UTILITY: fps_utility_table,
    }
)

paint_table = Table(
    "paint",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("class_name", String, nullable=False, unique=True),
    Column("name", String, nullable=False),
    Column("slug", String, nullable=False),
    Column("description", Text, nullable=True),
    *(Column(name, String, nullable=True) for name in IMAGE_COLUMNS),
)

paint_vehicle_table = Table(
    "paint_vehicle",
    metadata,
    Column("paint_id", Integer, ForeignKey("paint.id", ondelete="CASCADE"), primary_key=True),
    Column("vehicle_id", Integer, ForeignKey("vehicle.id", ondelete="CASCADE"), primary_key=True),
)

# Audit -------------------------------------------------------------------------

sync_history_table = Table(
    "sync_history",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("source", _str_enum(Source), nullable=False),
    Column("endpoint", _str_enum(SyncCategory), nullable=False, index=True),
    Column("status", _str_enum(SyncStatus), nullable=False),
    Column("record_count", Integer, nullable=False, default=0),
    Column("malformed_count", Integer, nullable=False, default=0),
    Column("unmatched_count", Integer, nullable=False, default=0),
    Column("error_message", Text, nullable=True),
    Column("started_at", UTCDateTime(), nullable=False),
    Column("completed_at", UTCDateTime(), nullable=True),
)


def create_all_tables(engine: Engine) -> None:
    """Create the reference store tables that do not exist yet."""

    log.info("Creating reference store tables")
    metadata.create_all(engine)
