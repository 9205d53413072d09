"""The fixed category plan: which source serves a category and what it depends on."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Final

from refsync.domain.model import Source, SyncCategory

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence


@dataclass(slots=True, frozen=True)
class CategorySpec:
    category: SyncCategory
    source: Source
    requires: tuple[SyncCategory, ...] = ()


# Dependency order. Game versions are best effort: nothing requires them.
CATEGORY_PLAN: Final[tuple[CategorySpec, ...]] = (
    CategorySpec(SyncCategory.MANUFACTURERS, Source.SCWIKI),
    CategorySpec(SyncCategory.GAME_VERSIONS, Source.SCWIKI),
    CategorySpec(SyncCategory.VEHICLES, Source.SCWIKI, requires=(SyncCategory.MANUFACTURERS,)),
    CategorySpec(SyncCategory.ITEMS, Source.SCWIKI, requires=(SyncCategory.MANUFACTURERS,)),
    CategorySpec(SyncCategory.PAINTS, Source.SCUNPACKED, requires=(SyncCategory.VEHICLES,)),
    CategorySpec(
        SyncCategory.VEHICLE_IMAGES, Source.FLEETYARDS, requires=(SyncCategory.VEHICLES,)
    ),
    CategorySpec(SyncCategory.PAINT_IMAGES, Source.FLEETYARDS, requires=(SyncCategory.PAINTS,)),
    CategorySpec(
        SyncCategory.STORE_VEHICLE_IMAGES, Source.RSI, requires=(SyncCategory.VEHICLES,)
    ),
    CategorySpec(SyncCategory.STORE_PAINT_IMAGES, Source.RSI, requires=(SyncCategory.PAINTS,)),
)


def select_plan(
    categories: Iterable[SyncCategory] | None,
    plan: Sequence[CategorySpec] = CATEGORY_PLAN,
) -> tuple[CategorySpec, ...]:
    """Return the plan entries for ``categories`` in plan order (all of them for ``None``)."""

    if categories is None:
        return tuple(plan)
    wanted = set(categories)
    return tuple(spec for spec in plan if spec.category in wanted)
