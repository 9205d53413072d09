"""Map free-text vehicle tags to canonical vehicle ids.

Paint files in the game-data corpus name the vehicle they apply to with a loose
tag (``Paint_890J``, ``hornet_f7_mk2_paint``...). :class:`EntityResolver` turns such
a tag into vehicle ids using an ordered chain of heuristics, from most to least
precise. The first step that yields anything wins; within a step every match is
returned, because ambiguous tags such as ``hornet`` legitimately apply to several
variants.

The resolver is pure: it works on a pre-loaded candidate list and never touches
the store.
"""

from __future__ import annotations

import re
from logging import getLogger
from types import MappingProxyType
from typing import TYPE_CHECKING, Final

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from refsync.domain.model import VehicleCandidate

log = getLogger(__name__)

WILDCARD = "%"

# Normalized tag -> canonical slug, or a LIKE-style pattern when it contains ``%``.
TAG_ALIASES: Final[Mapping[str, str]] = MappingProxyType(
    {
        "890j": "890-jump",
        "star-runner": "mercury-star-runner",
        "msr": "mercury-star-runner",
        "starfighter": "ares-star-fighter",
        "scout": "khartu-al",
        "hornet": "%hornet%",
        "hornet-f7-mk2": "%hornet%mk-ii",
        "hornet-f7c-mk2": "%hornet%mk-ii",
        "herald": "herald",
        "hull-c": "hull-c",
        "caterpillar": "caterpillar",
        "golem": "%golem%",
        "salvation": "salvation",
        "ursa": "%ursa%",
    }
)

_SEPARATORS = re.compile(r"[\s_]+")
_STRIP_PREFIX = "paint-"
_STRIP_SUFFIX = "-paint"


def normalize_tag(tag: str) -> str:
    """Lowercase ``tag``, drop paint markers and canonicalise separators to ``-``."""

    normalized = _SEPARATORS.sub("-", tag.strip().lower())
    normalized = normalized.removeprefix(_STRIP_PREFIX).removesuffix(_STRIP_SUFFIX)
    return normalized.strip("-")


def _compile_pattern(pattern: str) -> re.Pattern[str]:
    parts = (re.escape(part) for part in pattern.split(WILDCARD))
    return re.compile(".*".join(parts))


class EntityResolver:
    """Deterministic tag -> vehicle id resolution over a fixed candidate set."""

    def __init__(
        self,
        candidates: Iterable[VehicleCandidate],
        *,
        aliases: Mapping[str, str] = TAG_ALIASES,
    ) -> None:
        # Slug order keeps multi-match results stable across runs.
        self._candidates = sorted(candidates, key=lambda candidate: (candidate.slug, candidate.id))
        self._by_slug = {candidate.slug: candidate.id for candidate in self._candidates}
        self._aliases = aliases
        self._patterns: dict[str, re.Pattern[str]] = {}

    def resolve(self, tag: str) -> list[int]:
        """Return every vehicle id matched by the first productive heuristic."""

        normalized = normalize_tag(tag)
        if not normalized:
            return []

        alias = self._aliases.get(normalized)
        if alias is not None:
            if WILDCARD in alias:
                matches = self._match_pattern(alias)
                if matches:
                    return matches
            else:
                normalized = alias

        exact = self._by_slug.get(normalized)
        if exact is not None:
            return [exact]

        prefixed = [c.id for c in self._candidates if c.slug.startswith(normalized)]
        if prefixed:
            return prefixed

        needle = normalized.replace("-", " ")
        named = [c.id for c in self._candidates if needle in c.name.lower()]
        if named:
            return named

        log.debug(f"No vehicle matches tag {tag!r} (normalized {normalized!r})")
        return []

    def resolve_first(self, tag: str) -> int | None:
        matches = self.resolve(tag)
        return matches[0] if matches else None

    def _match_pattern(self, pattern: str) -> list[int]:
        compiled = self._patterns.get(pattern)
        if compiled is None:
            compiled = self._patterns[pattern] = _compile_pattern(pattern)
        return [c.id for c in self._candidates if compiled.fullmatch(c.slug)]
