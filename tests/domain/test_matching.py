from __future__ import annotations

from refsync.domain.matching import (
    PaintNameIndex,
    VehicleNameIndex,
    expand_paint_title,
    find_base_images,
    match_paint_by_name,
    normalize_paint_name,
    paint_full_name,
)
from refsync.domain.model import ImageSet, PaintCandidate, VehicleCandidate

VEHICLES = [
    VehicleCandidate(id=1, slug="600i", name="600i"),
    VehicleCandidate(id=2, slug="mercury-star-runner", name="Mercury Star Runner"),
    VehicleCandidate(id=3, slug="cutlass-black", name="Cutlass Black"),
    VehicleCandidate(id=4, slug="corsair-pyam-exec", name="Corsair PYAM Exec Edition"),
]


def _paint(paint_id: int, name: str, *vehicles: str) -> PaintCandidate:
    return PaintCandidate(
        id=paint_id,
        class_name=f"Paint_{paint_id}",
        name=name,
        vehicle_slugs=vehicles,
    )


def test_vehicle_index_direct_alias_and_prefix_stripping() -> None:
    index = VehicleNameIndex(VEHICLES)

    assert index.find_slug("Cutlass Black") == "cutlass-black"
    assert index.find_slug("600i Touring") == "600i"
    assert index.find_slug("Mercury") == "mercury-star-runner"
    assert index.find_slug("Drake Cutlass Black") == "cutlass-black"
    assert index.find_slug("Javelin") is None


def test_base_images_come_from_the_longest_word_prefix() -> None:
    corsair = ImageSet(image_url="corsair.jpg")
    corsair_pyam = ImageSet(image_url="corsair-pyam.jpg")

    assert find_base_images("Corsair PYAM Exec Edition", {"corsair": corsair}) == corsair
    assert (
        find_base_images(
            "Corsair PYAM Exec Edition",
            {"corsair": corsair, "corsair pyam": corsair_pyam},
        )
        == corsair_pyam
    )
    assert find_base_images("Corsair", {"corsair": corsair}) is None


def test_paint_names_are_normalised() -> None:
    assert normalize_paint_name(" Cutlass Black Bushwacker Livery ") == "cutlass black bushwhacker"
    assert normalize_paint_name("San’tok.yāi Paint") == "san'tok.yai"


def test_paint_titles_expand_abbreviated_ships() -> None:
    assert expand_paint_title("Ares - Cinder") == "Ares Star Fighter - Cinder"
    assert expand_paint_title("Cutlass - Red Alert") == "Cutlass - Red Alert"
    assert paint_full_name("Ares Star Fighter - Cinder") == "Ares Star Fighter Cinder"
    assert paint_full_name("No Separator") == "No Separator"


def test_paint_index_exact_then_prefix_then_year_free() -> None:
    index = PaintNameIndex(
        [
            _paint(1, "Ares Star Fighter Cinder Paint"),
            _paint(2, "Cutlass Black Red Alert Livery Special"),
            _paint(3, "Carrack 2954 Auspicious Red Livery"),
        ]
    )

    assert index.find("Ares - Cinder") == _paint(1, "Ares Star Fighter Cinder Paint")
    assert index.find("Cutlass Black - Red Alert") is not None
    assert index.find("Carrack - Auspicious Red") is not None
    assert index.find("Carrack - Auspicious Red").id == 3  # type: ignore[union-attr]
    assert index.find("Hull C - Nothing Like It") is None
    assert index.find("   ") is None


def test_per_vehicle_paint_match_prefers_equal_names() -> None:
    paints = [
        _paint(1, "890 Jump Gold Standard Livery", "890-jump"),
        _paint(2, "Gold Standard", "890-jump"),
    ]

    assert match_paint_by_name("Gold Standard", paints) == paints[1]
    assert match_paint_by_name("Gold Standard Paint", paints) == paints[1]


def test_per_vehicle_paint_match_falls_back_to_containment() -> None:
    paints = [_paint(1, "890 Jump Gold Standard Livery", "890-jump")]

    assert match_paint_by_name("Gold Standard", paints) == paints[0]
    assert match_paint_by_name("Platinum", paints) is None
    assert match_paint_by_name("", paints) is None
