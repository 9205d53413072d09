"""Translate game-data paint files into paint records."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING, Final

from refsync.domain.model import PaintRecord

if TYPE_CHECKING:
    from .schema import PaintFile

log = getLogger(__name__)

PLACEHOLDER_MARKER: Final = "PLACEHOLDER"
_CLASS_PREFIX: Final = "Paint_"


def is_paint_tag(tag: str) -> bool:
    lowered = tag.lower()
    return lowered.startswith("paint_") or lowered.endswith("_paint")


def name_from_class_name(class_name: str) -> str:
    return class_name.removeprefix(_CLASS_PREFIX).replace("_", " ")


def slug_from_class_name(class_name: str) -> str:
    return class_name.removeprefix(_CLASS_PREFIX).replace("_", "-").lower()


def vehicle_tag(paint: PaintFile) -> str | None:
    """First token of the required tags, when it names a paint slot."""

    item = paint.item
    tags = item.required_tags
    if tags is None and item.std_item is not None and item.std_item.required_tags:
        tags = item.std_item.required_tags[0]
    if not tags:
        return None
    first, *_ = tags.split()
    return first if is_paint_tag(first) else None


def translate_paint(paint: PaintFile) -> PaintRecord | None:
    """Return ``None`` for placeholder paints and paints without a vehicle tag."""

    item = paint.item
    std = item.std_item
    name = (std.name if std is not None else None) or item.name
    class_name = (std.class_name if std is not None else None) or item.class_name

    if name is not None and PLACEHOLDER_MARKER in name:
        log.debug(f"Skipping placeholder paint {class_name}")
        return None
    tag = vehicle_tag(paint)
    if tag is None:
        log.debug(f"Skipping paint {class_name} without a vehicle tag")
        return None

    return PaintRecord(
        class_name=class_name,
        name=name or name_from_class_name(class_name),
        slug=slug_from_class_name(class_name),
        description=std.description if std is not None else None,
        vehicle_tag=tag,
    )
