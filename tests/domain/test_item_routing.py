from __future__ import annotations

import pytest

from refsync.domain.item_routing import ITEM_KIND_BY_TYPE, SHIP_COMPONENT_TYPES, route_item
from refsync.domain.model import ItemKind


@pytest.mark.parametrize(
    ("item_type", "kind"),
    [
        ("WeaponGun", ItemKind.COMPONENT),
        ("QuantumDrive", ItemKind.COMPONENT),
        ("WeaponPersonal", ItemKind.FPS_WEAPON),
        ("Helmet", ItemKind.FPS_ARMOUR),
        ("WeaponAttachment", ItemKind.FPS_ATTACHMENT),
        ("MedPen", ItemKind.FPS_UTILITY),
    ],
)
def test_known_types_route_to_their_table(item_type: str, kind: ItemKind) -> None:
    assert route_item(item_type) is kind


@pytest.mark.parametrize("item_type", ["Cargo", "weapongun", "", None])
def test_untracked_types_are_not_routed(item_type: str | None) -> None:
    assert route_item(item_type) is None


def test_every_ship_component_type_is_routed() -> None:
    assert all(ITEM_KIND_BY_TYPE[name] is ItemKind.COMPONENT for name in SHIP_COMPONENT_TYPES)
