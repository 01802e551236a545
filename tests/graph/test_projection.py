"""Tests for the NetworkX projection."""

import networkx as nx

from graphmodel.graph.models.common_schema import CONTAINS
from graphmodel.graph.ops.projection import to_networkx


def test_projection_mirrors_structure(diamond) -> None:
    graph = diamond["root"].owner
    diamond["root"].label = "Root"
    graph.links.get_or_create("root", "a", 1)

    projected = to_networkx(graph)
    assert isinstance(projected, nx.MultiDiGraph)
    assert set(projected.nodes) == {"root", "a", "b", "leaf"}
    assert projected.number_of_edges() == 5
    assert projected.number_of_edges("root", "a") == 2
    assert projected.nodes["root"]["label"] == "Root"
    assert projected.nodes["root"]["properties"]["UniqueId"] == "root"
    assert list(nx.topological_sort(projected))[0] == "root"


def test_projection_edge_attributes(graph) -> None:
    link = graph.links.get_or_create("a", "b", CONTAINS)
    link.label = "owns"

    data = to_networkx(graph).edges["a", "b", 0]
    assert data["label"] == "owns"
    assert data["containment"] is True
    assert data["categories"] == ["Contains"]
    assert "SourceNode" not in data["properties"]
    assert data["properties"]["Label"] == "owns"


def test_projection_is_a_snapshot(graph) -> None:
    graph.links.get_or_create("a", "b")
    projected = to_networkx(graph)
    graph.nodes.delete("a")
    assert projected.has_node("a")
    assert to_networkx(graph).number_of_nodes() == 1
