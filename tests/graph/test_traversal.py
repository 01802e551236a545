"""Tests for breadth-first node and link traversal."""

import pytest

from graphmodel.graph.core.graph import Graph
from graphmodel.graph.ops.traversal import GraphLinkTraversal, GraphNodeTraversal


def _ids(nodes) -> list:
    return [node.id for node in nodes]


def test_related_targets_breadth_first(diamond) -> None:
    """Each node is yielded once even when reachable along two paths."""
    assert _ids(diamond["root"].related("target")) == ["a", "b", "leaf"]


def test_related_sources(diamond) -> None:
    assert _ids(diamond["leaf"].related("source")) == ["a", "b", "root"]
    assert list(diamond["root"].related("source")) == []


def test_first_related_stops_early(diamond) -> None:
    seen = []

    def accept(node) -> bool:
        seen.append(node.id)
        return True

    assert diamond["root"].first_related("target", accept_node=accept) is diamond["a"]
    assert seen == ["a"]
    assert diamond["leaf"].first_related("target") is None


def test_traverse_link_filter(diamond) -> None:
    related = diamond["root"].related("target", traverse_link=lambda link: link.target.id != "a")
    assert _ids(related) == ["b", "leaf"]


def test_accept_node_filter(diamond) -> None:
    traversal = GraphNodeTraversal(accept_node=lambda node: node.id == "leaf")
    assert _ids(diamond["root"].related("target", traversal)) == ["leaf"]


def test_traverse_node_limits_expansion(diamond) -> None:
    related = diamond["root"].related("target", traverse_node=lambda node, link: False)
    assert _ids(related) == ["a", "b"]


def test_cycle_yields_start(graph: Graph) -> None:
    graph.links.get_or_create("a", "b")
    graph.links.get_or_create("b", "a")
    assert _ids(graph.nodes.get("a").related("target")) == ["b", "a"]


def test_invalid_direction(diamond) -> None:
    with pytest.raises(ValueError):
        list(diamond["root"].related("up"))
    with pytest.raises(TypeError):
        diamond["root"].related("target", accept=lambda node: True)


def test_link_related(diamond) -> None:
    graph = diamond["root"].owner
    root_a = graph.links.get("root", "a")
    a_leaf = graph.links.get("a", "leaf")
    assert list(root_a.related("target")) == [a_leaf]
    assert list(a_leaf.related("source")) == [root_a]


def test_link_related_callbacks(graph: Graph) -> None:
    first = graph.links.get_or_create("a", "b")
    second = graph.links.get_or_create("b", "c", "Calls")
    third = graph.links.get_or_create("c", "d")

    assert list(first.related("target")) == [second, third]
    assert list(first.related("target", accept_link=lambda link: link.has_category("Calls"))) == [second]
    traversal = GraphLinkTraversal(traverse_link=lambda link: False)
    assert list(first.related("target", traversal)) == [second]
