from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from refsync.domain.hardpoints import FlatNode, flatten_tree

if TYPE_CHECKING:
    from collections.abc import Mapping


def _name(node: Mapping[str, object]) -> str:
    name = node.get("name")
    if not isinstance(name, str):
        raise ValueError("port without a name")
    return name


def _chain(depth: int) -> dict[str, object]:
    root: dict[str, object] = {"name": "level_0"}
    node = root
    for level in range(1, depth + 1):
        child: dict[str, object] = {"name": f"level_{level}"}
        node["ports"] = [child]
        node = child
    return root


def test_nodes_come_out_in_document_order() -> None:
    roots = [
        {"name": "a", "ports": [{"name": "a1", "ports": [{"name": "a1x"}]}, {"name": "a2"}]},
        {"name": "b"},
    ]

    nodes = flatten_tree(roots, decode=_name)

    assert nodes == [
        FlatNode(0, None, 0, "a"),
        FlatNode(1, 0, 1, "a1"),
        FlatNode(2, 1, 2, "a1x"),
        FlatNode(3, 0, 1, "a2"),
        FlatNode(4, None, 0, "b"),
    ]


def test_malformed_node_drops_its_subtree(caplog: pytest.LogCaptureFixture) -> None:
    roots = [{"size": 3, "ports": [{"name": "orphan"}]}, {"name": "kept"}, "garbage"]

    with caplog.at_level("WARNING"):
        nodes = flatten_tree(roots, decode=_name)

    assert [node.value for node in nodes] == ["kept"]
    assert nodes[0].position == 0
    assert "malformed port" in caplog.text


def test_deep_nesting_does_not_recurse() -> None:
    nodes = flatten_tree([_chain(5000)], decode=_name, max_depth=10_000)

    assert len(nodes) == 5001
    assert nodes[-1] == FlatNode(5000, 4999, 5000, "level_5000")


def test_subtrees_beyond_max_depth_are_dropped() -> None:
    nodes = flatten_tree([_chain(40)], decode=_name, max_depth=13)

    assert [node.depth for node in nodes] == list(range(14))


def test_self_referencing_payload_terminates() -> None:
    node: dict[str, object] = {"name": "loop"}
    node["ports"] = [node]

    nodes = flatten_tree([node], decode=_name)

    assert nodes == [FlatNode(0, None, 0, "loop")]


@pytest.mark.parametrize("roots", [None, "ports", {"name": "not-a-list"}, []])
def test_non_list_roots_flatten_to_nothing(roots: object) -> None:
    assert flatten_tree(roots, decode=_name) == []
