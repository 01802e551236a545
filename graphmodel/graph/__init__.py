"""The graph model: schema definitions, graph core and graph operations."""

from .models import (
    COMMON_SCHEMA,
    DataType,
    DataTypeKey,
    GraphCategory,
    GraphMetadata,
    GraphMetadataFlags,
    GraphProperty,
    GraphSchema,
)
from .core import Graph, GraphLink, GraphNode
from .ops import GraphLinkTraversal, GraphNodeTraversal, to_networkx

__all__ = [
    "COMMON_SCHEMA",
    "DataType",
    "DataTypeKey",
    "Graph",
    "GraphCategory",
    "GraphLink",
    "GraphLinkTraversal",
    "GraphMetadata",
    "GraphMetadataFlags",
    "GraphNode",
    "GraphNodeTraversal",
    "GraphProperty",
    "GraphSchema",
    "to_networkx",
]
