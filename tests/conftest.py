"""Shared fixtures for graphmodel tests."""

from typing import Dict

import pytest

from graphmodel.graph.core.graph import Graph
from graphmodel.graph.core.node import GraphNode


@pytest.fixture
def graph() -> Graph:
    """Return an empty graph with the default configuration."""
    return Graph()


@pytest.fixture
def diamond(graph: Graph) -> Dict[str, GraphNode]:
    """Build root -> {a, b} -> leaf and return the nodes by id."""
    graph.links.get_or_create("root", "a")
    graph.links.get_or_create("root", "b")
    graph.links.get_or_create("a", "leaf")
    graph.links.get_or_create("b", "leaf")
    return {node.id: node for node in graph.nodes.values()}
