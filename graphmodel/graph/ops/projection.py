"""Projection of a graph onto a NetworkX ``MultiDiGraph``."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Dict

import networkx as nx

from graphmodel.graph.models.objects import GraphObject

if TYPE_CHECKING:
    from ..core.graph import Graph

logger = logging.getLogger("graphmodel.graph.ops.projection")


def _attributes(obj: GraphObject) -> Dict[str, Any]:
    """Flatten categories and property values into an attribute mapping.

    Values that are themselves graph objects (the endpoints of a link) are
    left out; NetworkX already encodes them structurally.
    """
    properties = {
        str(prop.id): value
        for prop, value in obj.items()
        if not isinstance(value, GraphObject)
    }
    return {
        "categories": [str(category.id) for category in obj.categories()],
        "properties": properties,
    }


def to_networkx(graph: "Graph") -> nx.MultiDiGraph:
    """Build a ``MultiDiGraph`` snapshot of ``graph``.

    Nodes are keyed by node id and edges by link index, so parallel links
    between the same pair of nodes stay distinct. Each node and edge carries
    ``label``, ``categories`` and ``properties`` attributes.

    Args:
        graph: Graph to project.

    Returns:
        nx.MultiDiGraph: Independent snapshot; later changes to ``graph`` are
        not reflected.
    """
    projected = nx.MultiDiGraph()
    for node in graph.nodes.values():
        projected.add_node(node.id, label=node.label, **_attributes(node))
    for link in graph.links.values():
        projected.add_edge(
            link.source.id,
            link.target.id,
            key=link.index,
            label=link.label,
            containment=link.is_containment,
            **_attributes(link),
        )
    logger.debug(
        "Projected graph to networkx (%d nodes, %d edges)",
        projected.number_of_nodes(),
        projected.number_of_edges(),
    )
    return projected


__all__ = ["to_networkx"]
