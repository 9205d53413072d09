"""Name heuristics for the image-only sources.

Storefront and community listings carry display names, not slugs. These helpers
map such names onto vehicles and paints that are already in the store.
"""

from __future__ import annotations

import re
from logging import getLogger
from types import MappingProxyType
from typing import TYPE_CHECKING, Final

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping, Sequence

    from refsync.domain.model import ImageSet, PaintCandidate, VehicleCandidate

log = getLogger(__name__)

# Storefront ship name (lowercase) -> reference vehicle name (lowercase).
SHIP_NAME_ALIASES: Final[Mapping[str, str]] = MappingProxyType(
    {
        "600i explorer": "600i",
        "600i touring": "600i",
        "a2 hercules": "a2 hercules starlifter",
        "c2 hercules": "c2 hercules starlifter",
        "m2 hercules": "m2 hercules starlifter",
        "ares inferno": "ares star fighter inferno",
        "ares ion": "ares star fighter ion",
        "mercury": "mercury star runner",
        "m50": "m50 interceptor",
        "85x": "85x limited",
        "scythe": "vanduul scythe",
        "stinger": "esperia stinger",
        "merchantman": "banu merchantman",
        "dragonfly black": "dragonfly",
        "c8r pisces": "c8r pisces rescue",
        "anvil ballista dunestalker": "ballista dunestalker",
        "anvil ballista snowblind": "ballista snowblind",
        "argo mole carbon edition": "mole carbon",
        "argo mole talus edition": "mole talus",
        "caterpillar best in show edition 2949": "caterpillar 2949 best in show edition",
        "cutlass black best in show edition 2949": "cutlass black 2949 best in show edition",
        "hammerhead best in show edition 2949": "hammerhead 2949 best in show edition",
        "reclaimer best in show edition 2949": "reclaimer 2949 best in show edition",
        "gladius pirate edition": "gladius pirate",
        "caterpillar pirate edition": "caterpillar pirate",
        "f7c-m super hornet heartseeker mk i": "f7c-m hornet heartseeker mk i",
        "san'tok.yāi": "san’tok.yāi",
    }
)

# Abbreviated ship names used in storefront paint titles -> paint name prefix.
PAINT_SHIP_ALIASES: Final[Mapping[str, str]] = MappingProxyType(
    {
        "ares": "Ares Star Fighter",
        "hercules": "Hercules Starlifter",
        "mercury": "Mercury Star Runner",
        "f8c": "F8C Lightning",
        "f7 hornet mk i": "Hornet",
        "f7 hornet mk ii": "Hornet Mk II",
        "f7a hornet mk ii": "Hornet",
        "nova tank": "Nova",
        "san'tok.yāi": "San'tok.yai",
    }
)

_PAINT_SUFFIXES = (" paint", " livery", " skin")
_CHARACTER_FIXES = str.maketrans(
    {
        "ā": "a",
        "ē": "e",
        "ī": "i",
        "ō": "o",
        "ū": "u",
        "’": "'",
        "‘": "'",
        "ʼ": "'",
    }
)
_SPELLING_FIXES = (("bushwacker", "bushwhacker"),)
_YEAR = re.compile(r"\b\d{4}\b")
_TITLE_SEPARATOR = " - "


def normalize_paint_name(name: str) -> str:
    normalized = name.strip().lower()
    for suffix in _PAINT_SUFFIXES:
        normalized = normalized.removesuffix(suffix)
    normalized = normalized.translate(_CHARACTER_FIXES)
    for wrong, right in _SPELLING_FIXES:
        normalized = normalized.replace(wrong, right)
    return normalized


def strip_years(name: str) -> str:
    return " ".join(_YEAR.sub("", name).split())


def expand_paint_title(title: str) -> str:
    """Expand abbreviated ship names: ``Ares - Cinder`` -> ``Ares Star Fighter - Cinder``."""

    ship, separator, paint = title.partition(_TITLE_SEPARATOR)
    if not separator:
        return title
    expanded = PAINT_SHIP_ALIASES.get(ship.strip().lower())
    if expanded is None:
        return title
    return f"{expanded}{_TITLE_SEPARATOR}{paint.strip()}"


def paint_full_name(title: str) -> str:
    """Turn a ``Ship - Paint`` storefront title into the ``Ship Paint`` naming of the store."""

    ship, separator, paint = title.partition(_TITLE_SEPARATOR)
    if not separator:
        return title
    return f"{ship.strip()} {paint.strip()}"


class VehicleNameIndex:
    """Match storefront ship names to vehicle slugs."""

    def __init__(
        self,
        vehicles: Iterable[VehicleCandidate],
        *,
        aliases: Mapping[str, str] = SHIP_NAME_ALIASES,
    ) -> None:
        self._vehicles = list(vehicles)
        self._slug_by_name = {vehicle.name.lower(): vehicle.slug for vehicle in self._vehicles}
        self._aliases = aliases

    @property
    def vehicles(self) -> Sequence[VehicleCandidate]:
        return self._vehicles

    def find_slug(self, listing_name: str) -> str | None:
        lowered = listing_name.strip().lower()
        direct = self._slug_by_name.get(lowered)
        if direct is not None:
            return direct

        aliased = self._aliases.get(lowered)
        if aliased is not None and aliased in self._slug_by_name:
            return self._slug_by_name[aliased]

        _, space, without_prefix = lowered.partition(" ")
        if space and without_prefix:
            return self._slug_by_name.get(without_prefix)
        return None


def find_base_images(vehicle_name: str, images_by_name: Mapping[str, ImageSet]) -> ImageSet | None:
    """Return the images of the longest proper word-prefix of ``vehicle_name`` that has any.

    ``Corsair PYAM Exec Edition`` inherits the images listed under ``corsair``.
    """

    words = vehicle_name.lower().split()
    for length in range(len(words) - 1, 0, -1):
        images = images_by_name.get(" ".join(words[:length]))
        if images is not None:
            return images
    return None


class PaintNameIndex:
    """Match storefront paint titles to stored paints: exact, then prefix, then year-free."""

    def __init__(self, paints: Iterable[PaintCandidate]) -> None:
        self._entries = [(normalize_paint_name(paint.name), paint) for paint in paints]
        self._exact: dict[str, PaintCandidate] = {}
        for normalized, paint in self._entries:
            self._exact.setdefault(normalized, paint)

    def find(self, title: str) -> PaintCandidate | None:
        normalized = normalize_paint_name(paint_full_name(expand_paint_title(title)))
        if not normalized:
            return None

        exact = self._exact.get(normalized)
        if exact is not None:
            return exact

        for candidate_name, paint in self._entries:
            if candidate_name.startswith(normalized):
                return paint

        without_years = strip_years(normalized)
        for candidate_name, paint in self._entries:
            if strip_years(candidate_name) == without_years:
                return paint

        log.debug(f"No paint matches store title {title!r} (normalized {normalized!r})")
        return None


def match_paint_by_name(name: str, paints: Sequence[PaintCandidate]) -> PaintCandidate | None:
    """Match a per-vehicle paint listing: equal names first, then containment either way."""

    wanted = normalize_paint_name(name)
    if not wanted:
        return None
    normalized = [(normalize_paint_name(paint.name), paint) for paint in paints]
    for candidate_name, paint in normalized:
        if candidate_name == wanted:
            return paint
    for candidate_name, paint in normalized:
        if candidate_name and (wanted in candidate_name or candidate_name in wanted):
            return paint
    return None
