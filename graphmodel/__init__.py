"""graphmodel: an in-memory directed-graph model.

Graphs hold uniquely identified nodes joined by directed links. Nodes and
links carry categories and typed property values described by schemas, and
every mutation runs inside a transaction scope that commits or rolls back as
a whole.
"""

__version__ = "0.1.0"

from graphmodel.errors import (
    AmbiguousConversionError,
    ConversionError,
    CyclicCategoryError,
    CyclicReferenceError,
    CyclicSchemaError,
    DuplicateNodeError,
    EventDispatchError,
    GraphIntegrityError,
    GraphModelError,
    GraphSchemaError,
    ImmutablePropertyError,
    PropertyValueError,
    TransactionStateError,
)
from graphmodel.identifiers import Identifier, Symbol
from graphmodel.config import GraphModelConfig, load_config
from graphmodel.runtime import GraphTransactionScope, transaction
from graphmodel.graph.models import (
    COMMON_SCHEMA,
    DataType,
    DataTypeKey,
    GraphCategory,
    GraphMetadata,
    GraphMetadataFlags,
    GraphMetadataOptions,
    GraphProperty,
    GraphSchema,
)
from graphmodel.graph.models.common_schema import CONTAINS
from graphmodel.graph.core import Graph, GraphLink, GraphNode
from graphmodel.graph.ops import GraphLinkTraversal, GraphNodeTraversal, to_networkx

__all__ = [
    "AmbiguousConversionError",
    "COMMON_SCHEMA",
    "CONTAINS",
    "ConversionError",
    "CyclicCategoryError",
    "CyclicReferenceError",
    "CyclicSchemaError",
    "DataType",
    "DataTypeKey",
    "DuplicateNodeError",
    "EventDispatchError",
    "Graph",
    "GraphCategory",
    "GraphIntegrityError",
    "GraphLink",
    "GraphLinkTraversal",
    "GraphMetadata",
    "GraphMetadataFlags",
    "GraphMetadataOptions",
    "GraphModelConfig",
    "GraphModelError",
    "GraphNode",
    "GraphNodeTraversal",
    "GraphProperty",
    "GraphSchema",
    "GraphSchemaError",
    "GraphTransactionScope",
    "Identifier",
    "ImmutablePropertyError",
    "PropertyValueError",
    "Symbol",
    "TransactionStateError",
    "__version__",
    "load_config",
    "to_networkx",
    "transaction",
]
