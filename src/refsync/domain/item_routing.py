"""Route upstream item ``type`` strings to their reference table."""

from __future__ import annotations

from types import MappingProxyType
from typing import TYPE_CHECKING, Final

from refsync.domain.model import ItemKind

if TYPE_CHECKING:
    from collections.abc import Mapping

SHIP_COMPONENT_TYPES: Final[frozenset[str]] = frozenset(
    {
        "WeaponGun",
        "WeaponMissile",
        "TurretBase",
        "PowerPlant",
        "Cooler",
        "QuantumDrive",
        "Shield",
        "ShieldGenerator",
        "MainThruster",
        "ManneuverThruster",
        "QuantumInterdictionGenerator",
        "Radar",
        "Scanner",
        "Avionics",
    }
)

# New item types are added here; nothing else dispatches on the type string.
ITEM_KIND_BY_TYPE: Final[Mapping[str, ItemKind]] = MappingProxyType(
    {
        **dict.fromkeys(SHIP_COMPONENT_TYPES, ItemKind.COMPONENT),
        "WeaponPersonal": ItemKind.FPS_WEAPON,
        "Armor": ItemKind.FPS_ARMOUR,
        "Helmet": ItemKind.FPS_ARMOUR,
        "Undersuit": ItemKind.FPS_ARMOUR,
        "WeaponAttachment": ItemKind.FPS_ATTACHMENT,
        "MedPen": ItemKind.FPS_UTILITY,
        "Gadget": ItemKind.FPS_UTILITY,
        "Grenade": ItemKind.FPS_UTILITY,
        "Backpack": ItemKind.FPS_UTILITY,
    }
)


def route_item(item_type: str | None) -> ItemKind | None:
    """Return the table kind for ``item_type``, or ``None`` for types we do not keep."""

    if not item_type:
        return None
    return ITEM_KIND_BY_TYPE.get(item_type)
