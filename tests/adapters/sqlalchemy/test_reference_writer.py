from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from sqlalchemy.sql.dml import Insert

from refsync.adapters.sqlalchemy import SqlAlchemyReferenceWriter, startup
from refsync.adapters.sqlalchemy.mappings import (
    component_table,
    fps_weapon_table,
    manufacturer_table,
    paint_table,
    paint_vehicle_table,
    port_table,
    vehicle_loaner_table,
    vehicle_table,
)
from refsync.domain.model import (
    EntityRef,
    GameVersionRecord,
    ImageSet,
    ItemRecord,
    ManufacturerRecord,
    PaintRecord,
    PortRecord,
    VehicleImageRecord,
)
from refsync.domain.sync_pipeline.steps import write_items, write_paints, write_vehicles
from tests.helpers.store import ANVIL, id_of, manufacturer_id, rows, vehicle, vehicle_id

if TYPE_CHECKING:
    from collections.abc import Callable

    from sqlalchemy.engine import Engine

    from refsync.adapters.sqlalchemy import SqlAlchemySyncUnitOfWork

    type UowFactory = Callable[[], SqlAlchemySyncUnitOfWork]


CARRACK_PORTS = [
    PortRecord(position=0, parent_position=None, depth=0, name="hardpoint_turret"),
    PortRecord(position=1, parent_position=0, depth=1, name="hardpoint_gun_left"),
    PortRecord(position=2, parent_position=0, depth=1, name="hardpoint_gun_right"),
    PortRecord(position=3, parent_position=None, depth=0, name="hardpoint_shield"),
]


def _seed_manufacturers(factory: UowFactory) -> None:
    with factory() as uow:
        uow.repositories.reference.upsert_manufacturers([ANVIL])
        uow.commit()


def test_manufacturers_merge_by_uuid_then_slug(sqlite_unit_of_work: UowFactory) -> None:
    with sqlite_unit_of_work() as uow:
        writer = uow.repositories.reference
        assert writer.upsert_manufacturers(
            [ANVIL, ManufacturerRecord(slug="Aegis", name="Aegis Dynamics", uuid="m2")]
        ) == 2
        uow.commit()

    with sqlite_unit_of_work() as uow:
        written = uow.repositories.reference.upsert_manufacturers(
            [
                # No uuid: matched by slug; NULLs keep stored values, the name is overwritten.
                ManufacturerRecord(slug="anvil", name="Anvil Aerospace Inc"),
                # Matched by uuid: the slug follows upstream.
                ManufacturerRecord(slug="aegis-dynamics", name="Aegis Dynamics", uuid="m2"),
                ManufacturerRecord(slug="origin", name="Origin Jumpworks", uuid="m3"),
            ]
        )
        uow.commit()

    assert written == 3
    with sqlite_unit_of_work() as uow:
        assert rows(uow.session, manufacturer_table, "uuid", "slug", "name", "code") == [
            ("m1", "anvil", "Anvil Aerospace Inc", "ANVL"),
            ("m2", "aegis-dynamics", "Aegis Dynamics", None),
            ("m3", "origin", "Origin Jumpworks", None),
        ]


def test_slug_owned_by_another_uuid_is_not_overwritten(sqlite_unit_of_work: UowFactory) -> None:
    _seed_manufacturers(sqlite_unit_of_work)

    with sqlite_unit_of_work() as uow:
        written = uow.repositories.reference.upsert_manufacturers(
            [ManufacturerRecord(slug="anvil", name="Impostor", uuid="m99")]
        )
        uow.commit()

    assert written == 0
    with sqlite_unit_of_work() as uow:
        assert rows(uow.session, manufacturer_table, "uuid", "name") == [("m1", "Anvil Aerospace")]


def test_slug_claimed_earlier_in_the_batch_is_not_reused(sqlite_unit_of_work: UowFactory) -> None:
    with sqlite_unit_of_work() as uow:
        written = uow.repositories.reference.upsert_manufacturers(
            [ANVIL, ManufacturerRecord(slug="Anvil", name="Impostor", uuid="m99")]
        )
        uow.commit()

    assert written == 1
    with sqlite_unit_of_work() as uow:
        assert rows(uow.session, manufacturer_table, "uuid", "slug", "name") == [
            ("m1", "anvil", "Anvil Aerospace")
        ]


@pytest.mark.parametrize("uuid_first", [True, False])
def test_uuidless_row_folds_into_the_batch_row_with_its_slug(
    sqlite_unit_of_work: UowFactory, uuid_first: bool
) -> None:
    wiki_row = ManufacturerRecord(slug="ANVIL", name="Anvil Aerospace", known_for="Military ships")
    batch = [ANVIL, wiki_row] if uuid_first else [wiki_row, ANVIL]

    with sqlite_unit_of_work() as uow:
        written = uow.repositories.reference.upsert_manufacturers(batch)
        uow.commit()

    assert written == 1
    with sqlite_unit_of_work() as uow:
        assert rows(uow.session, manufacturer_table, "uuid", "slug", "code", "known_for") == [
            ("m1", "anvil", "ANVL", "Military ships")
        ]


def test_uuid_match_cannot_take_a_slug_stored_on_another_row(
    sqlite_unit_of_work: UowFactory,
) -> None:
    with sqlite_unit_of_work() as uow:
        uow.repositories.reference.upsert_manufacturers(
            [ANVIL, ManufacturerRecord(slug="aegis", name="Aegis Dynamics", uuid="m2")]
        )
        uow.commit()

    with sqlite_unit_of_work() as uow:
        written = uow.repositories.reference.upsert_manufacturers(
            [ManufacturerRecord(slug="anvil", name="Aegis Dynamics", uuid="m2")]
        )
        uow.commit()

    assert written == 0
    with sqlite_unit_of_work() as uow:
        assert rows(uow.session, manufacturer_table, "uuid", "slug") == [
            ("m1", "anvil"),
            ("m2", "aegis"),
        ]


def test_vehicles_resolve_foreign_keys_ports_and_loaners(sqlite_unit_of_work: UowFactory) -> None:
    _seed_manufacturers(sqlite_unit_of_work)
    with sqlite_unit_of_work() as uow:
        uow.repositories.reference.upsert_game_versions(
            [GameVersionRecord(code="4.0.2-LIVE", uuid="g1", is_default=True)]
        )
        uow.commit()

    records = [
        vehicle(
            "carrack",
            game_version=EntityRef(name="4.0.2-LIVE"),
            ports=CARRACK_PORTS,
            loaner_slugs=["c8-pisces", "not-in-store", "c8-pisces"],
        ),
        # Listed after the vehicle that loans it; resolution still succeeds.
        vehicle("c8-pisces", "C8 Pisces", manufacturer=EntityRef(name="ANVIL AEROSPACE")),
    ]
    with sqlite_unit_of_work() as uow:
        outcome = write_vehicles(uow.repositories.reference, records)
        uow.commit()

    assert (outcome.records, outcome.unmatched) == (2, 1)
    with sqlite_unit_of_work() as uow:
        session = uow.session
        anvil_id = manufacturer_id(session, "anvil")
        carrack_id = vehicle_id(session, "carrack")
        pisces_id = vehicle_id(session, "c8-pisces")
        assert rows(session, vehicle_table, "slug", "manufacturer_id") == [
            ("c8-pisces", anvil_id),
            ("carrack", anvil_id),
        ]
        assert rows(session, vehicle_loaner_table, "vehicle_id", "loaner_id") == [
            (carrack_id, pisces_id)
        ]

        ports = rows(session, port_table, "position", "name", "depth", "id", "parent_port_id")
        id_by_position = {position: port_id for position, _, _, port_id, _ in ports}
        assert [(name, depth, parent) for _, name, depth, _, parent in ports] == [
            ("hardpoint_turret", 0, None),
            ("hardpoint_gun_left", 1, id_by_position[0]),
            ("hardpoint_gun_right", 1, id_by_position[0]),
            ("hardpoint_shield", 0, None),
        ]


def test_children_are_kept_when_absent_and_cleared_when_empty(
    sqlite_unit_of_work: UowFactory,
) -> None:
    _seed_manufacturers(sqlite_unit_of_work)
    with sqlite_unit_of_work() as uow:
        write_vehicles(
            uow.repositories.reference,
            [
                vehicle("carrack", ports=CARRACK_PORTS, loaner_slugs=["c8-pisces"]),
                vehicle("c8-pisces"),
            ],
        )
        uow.commit()

    with sqlite_unit_of_work() as uow:
        write_vehicles(uow.repositories.reference, [vehicle("carrack", "Carrack Expedition")])
        uow.commit()
        assert len(rows(uow.session, port_table, "id")) == 4
        assert len(rows(uow.session, vehicle_loaner_table, "vehicle_id")) == 1

    with sqlite_unit_of_work() as uow:
        write_vehicles(
            uow.repositories.reference,
            [vehicle("carrack", ports=[], loaner_slugs=[])],
        )
        uow.commit()
        assert rows(uow.session, port_table, "id") == []
        assert rows(uow.session, vehicle_loaner_table, "vehicle_id") == []


def test_image_updates_only_touch_image_columns(sqlite_unit_of_work: UowFactory) -> None:
    _seed_manufacturers(sqlite_unit_of_work)
    with sqlite_unit_of_work() as uow:
        write_vehicles(uow.repositories.reference, [vehicle("carrack", career="Exploration")])
        uow.commit()

    full = ImageSet(image_url="a.jpg", small="s.jpg", medium="m.jpg", large="l.jpg")
    with sqlite_unit_of_work() as uow:
        writer = uow.repositories.reference
        assert writer.update_vehicle_images(
            [VehicleImageRecord("carrack", full), VehicleImageRecord("ghost-ship", full)]
        ) == 1
        # Blank and missing values keep what is stored.
        writer.update_vehicle_images(
            [VehicleImageRecord("carrack", ImageSet(image_url="b.jpg", small=""))]
        )
        uow.commit()

    with sqlite_unit_of_work() as uow:
        # A later data write does not clear the images.
        write_vehicles(uow.repositories.reference, [vehicle("carrack", "Carrack")])
        uow.commit()

    with sqlite_unit_of_work() as uow:
        assert rows(
            uow.session,
            vehicle_table,
            "slug",
            "name",
            "career",
            "manufacturer_id",
            "image_url",
            "image_url_small",
            "image_url_medium",
            "image_url_large",
        ) == [
            (
                "carrack",
                "Carrack",
                "Exploration",
                manufacturer_id(uow.session, "anvil"),
                "b.jpg",
                "s.jpg",
                "m.jpg",
                "l.jpg",
            )
        ]


def test_items_are_routed_to_their_tables(sqlite_unit_of_work: UowFactory) -> None:
    _seed_manufacturers(sqlite_unit_of_work)
    records = [
        ItemRecord(uuid="i1", name="M5A Cannon", type="WeaponGun", manufacturer=EntityRef("m1")),
        ItemRecord(uuid="i1", name="M5A Laser Cannon", type="WeaponGun", size=1),
        ItemRecord(uuid="i2", name="P4-AR Rifle", type="WeaponPersonal"),
        ItemRecord(uuid="i3", name="Cargo Box", type="Cargo"),
    ]

    with sqlite_unit_of_work() as uow:
        outcome = write_items(uow.repositories.reference, records)
        uow.commit()

    assert outcome.records == 2
    with sqlite_unit_of_work() as uow:
        assert rows(uow.session, component_table, "uuid", "name", "size", "manufacturer_id") == [
            ("i1", "M5A Laser Cannon", 1, None)
        ]
        assert rows(uow.session, fps_weapon_table, "uuid", "type") == [("i2", "WeaponPersonal")]


def test_paints_link_to_resolved_vehicles(sqlite_unit_of_work: UowFactory) -> None:
    _seed_manufacturers(sqlite_unit_of_work)
    with sqlite_unit_of_work() as uow:
        write_vehicles(
            uow.repositories.reference,
            [
                vehicle("890-jump", "890 Jump"),
                vehicle("hornet-f7c", "F7C Hornet"),
                vehicle("hornet-f7c-mk-ii", "F7C Hornet Mk II"),
                vehicle("carrack"),
            ],
        )
        uow.commit()

    paints = [
        PaintRecord("Paint_890J_Gold", "890 Jump Gold", "890j-gold", vehicle_tag="Paint_890J"),
        PaintRecord(
            "Paint_Hornet_Green", "Hornet Green", "hornet-green", vehicle_tag="Paint_Hornet"
        ),
        PaintRecord("Paint_Zeus_Blue", "Zeus Blue", "zeus-blue", vehicle_tag="Paint_Zeus"),
    ]
    with sqlite_unit_of_work() as uow:
        outcome = write_paints(uow.repositories.reference, paints)
        uow.commit()

    assert (outcome.records, outcome.unmatched) == (3, 1)
    with sqlite_unit_of_work() as uow:
        candidates = {
            paint.class_name: paint.vehicle_slugs
            for paint in uow.repositories.reference.paint_candidates()
        }
    assert candidates == {
        "Paint_890J_Gold": ("890-jump",),
        "Paint_Hornet_Green": ("hornet-f7c", "hornet-f7c-mk-ii"),
        "Paint_Zeus_Blue": (),
    }

    retagged = [
        PaintRecord("Paint_Hornet_Green", "Hornet Green", "hornet-green", vehicle_tag="Paint_Zeus")
    ]
    with sqlite_unit_of_work() as uow:
        write_paints(uow.repositories.reference, retagged)
        uow.commit()
        hornet_paint = id_of(uow.session, paint_table, "class_name", "Paint_Hornet_Green")
        links = rows(uow.session, paint_vehicle_table, "paint_id", "vehicle_id")
        linked = [paint_id for paint_id, _ in links]
        assert hornet_paint not in linked


def test_failed_batch_leaves_children_untouched(
    sqlite_engine: Engine,
    sqlite_unit_of_work: UowFactory,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    startup(engine=sqlite_engine, write_batch_size=2, force=True)
    _seed_manufacturers(sqlite_unit_of_work)
    with sqlite_unit_of_work() as uow:
        write_vehicles(uow.repositories.reference, [vehicle("carrack", ports=CARRACK_PORTS[:3])])
        uow.commit()

    original = SqlAlchemyReferenceWriter._execute_batch  # noqa: SLF001
    port_batches = 0

    def flaky(
        self: SqlAlchemyReferenceWriter,
        stmt: object,
        batch: list[dict[str, object]],
    ) -> None:
        nonlocal port_batches
        if isinstance(stmt, Insert) and stmt.table is port_table:
            port_batches += 1
            if port_batches == 2:
                raise RuntimeError("disk full")
        original(self, stmt, batch)  # type: ignore[arg-type]

    monkeypatch.setattr(SqlAlchemyReferenceWriter, "_execute_batch", flaky)
    replacement = [
        PortRecord(position=index, parent_position=None, depth=0, name=f"new_{index}")
        for index in range(5)
    ]

    with pytest.raises(RuntimeError, match="disk full"), sqlite_unit_of_work() as uow:
        renamed = vehicle("carrack", "Renamed", ports=replacement)
        write_vehicles(uow.repositories.reference, [renamed])
        uow.commit()

    assert port_batches == 2
    with sqlite_unit_of_work() as uow:
        assert rows(uow.session, vehicle_table, "slug", "name") == [("carrack", "Carrack")]
        assert [name for _, name in rows(uow.session, port_table, "position", "name")] == [
            "hardpoint_turret",
            "hardpoint_gun_left",
            "hardpoint_gun_right",
        ]


def test_successful_replace_swaps_the_whole_set(
    sqlite_engine: Engine,
    sqlite_unit_of_work: UowFactory,
) -> None:
    startup(engine=sqlite_engine, write_batch_size=2, force=True)
    _seed_manufacturers(sqlite_unit_of_work)
    with sqlite_unit_of_work() as uow:
        write_vehicles(uow.repositories.reference, [vehicle("carrack", ports=CARRACK_PORTS)])
        uow.commit()

    replacement = [
        PortRecord(position=index, parent_position=None, depth=0, name=f"new_{index}")
        for index in range(5)
    ]
    with sqlite_unit_of_work() as uow:
        write_vehicles(uow.repositories.reference, [vehicle("carrack", ports=replacement)])
        uow.commit()

    with sqlite_unit_of_work() as uow:
        assert [name for _, name in rows(uow.session, port_table, "position", "name")] == [
            f"new_{index}" for index in range(5)
        ]
