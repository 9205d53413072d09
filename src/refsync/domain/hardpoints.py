"""Flatten nested hardpoint payloads into an adjacency list.

Upstream vehicles nest ports inside ports (observed up to 13 levels). The tree is
walked with an explicit stack so malformed input (very deep or self-referencing
payloads) cannot exhaust the interpreter stack; each node becomes one row with
a ``position`` and the ``parent_position`` of the row it hangs under.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING, Final, cast

if TYPE_CHECKING:
    from collections.abc import Callable

log = getLogger(__name__)

MAX_PORT_DEPTH: Final = 32
CHILDREN_KEY: Final = "ports"


@dataclass(slots=True, frozen=True)
class FlatNode[T]:
    position: int
    parent_position: int | None
    depth: int
    value: T


def _children(node: Mapping[str, object], key: str) -> list[Mapping[str, object]]:
    raw = node.get(key)
    if not isinstance(raw, Sequence) or isinstance(raw, str | bytes):
        return []
    return [cast(Mapping[str, object], child) for child in raw if isinstance(child, Mapping)]


def flatten_tree[T](
    roots: object,
    *,
    decode: Callable[[Mapping[str, object]], T],
    children_key: str = CHILDREN_KEY,
    max_depth: int = MAX_PORT_DEPTH,
) -> list[FlatNode[T]]:
    """Return the nodes of ``roots`` in document (pre-)order.

    ``decode`` turns one payload into a value; when it raises ``ValueError`` the node
    and its subtree are dropped with a warning. Subtrees deeper than ``max_depth`` and
    payload objects seen before (cycles) are dropped the same way.
    """

    if not isinstance(roots, Sequence) or isinstance(roots, str | bytes):
        return []

    nodes: list[FlatNode[T]] = []
    seen: set[int] = set()
    stack: list[tuple[Mapping[str, object], int | None, int]] = [
        (cast(Mapping[str, object], root), None, 0)
        for root in reversed(roots)
        if isinstance(root, Mapping)
    ]
    while stack:
        payload, parent_position, depth = stack.pop()
        if id(payload) in seen:
            log.warning("Dropping port that appears twice in one payload (cycle)")
            continue
        seen.add(id(payload))
        if depth > max_depth:
            log.warning(f"Dropping port subtree deeper than {max_depth} levels")
            continue
        try:
            value = decode(payload)
        except ValueError as exc:
            log.warning(f"Dropping malformed port {dict(payload)!r}: {exc}")
            continue

        position = len(nodes)
        nodes.append(FlatNode(position, parent_position, depth, value))
        stack.extend(
            (child, position, depth + 1) for child in reversed(_children(payload, children_key))
        )
    return nodes
