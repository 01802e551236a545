"""Graph, nodes, links and their collections."""

from .link import GraphLink, LinkKey
from .node import GraphNode, NodeLike
from .node_collection import GraphNodeCollection
from .link_collection import GraphLinkCollection
from .graph import DocumentSchema, Graph

__all__ = [
    "DocumentSchema",
    "Graph",
    "GraphLink",
    "GraphLinkCollection",
    "GraphNode",
    "GraphNodeCollection",
    "LinkKey",
    "NodeLike",
]
