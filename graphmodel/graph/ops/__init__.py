"""Operations built on top of the graph core: traversal, import/merge and projection."""

from .traversal import (
    DIRECTIONS,
    SOURCE,
    TARGET,
    GraphLinkTraversal,
    GraphNodeTraversal,
    containment_closure,
    first_related,
    has_circularity,
    related_links,
    related_nodes,
)
from .merge import import_link, import_node, import_schemas, import_subset
from .projection import to_networkx

__all__ = [
    "DIRECTIONS",
    "GraphLinkTraversal",
    "GraphNodeTraversal",
    "SOURCE",
    "TARGET",
    "containment_closure",
    "first_related",
    "has_circularity",
    "import_link",
    "import_node",
    "import_schemas",
    "import_subset",
    "related_links",
    "related_nodes",
    "to_networkx",
]
