"""The Graph: nodes, links and a document schema.

Usage:
    graph = Graph(my_schema)
    a = graph.nodes.get_or_create("a")
    graph.links.get_or_create(a, "b", CONTAINS)
    for node in a.related("target"):
        ...
"""

from __future__ import annotations

import logging
from typing import Optional, Union

from graphmodel.config.loader import ConfigSource, load_config
from graphmodel.config.schema import GraphModelConfig
from graphmodel.identifiers import Identifier, format_identifier, is_identifier
from graphmodel.runtime.tracked import ChangeTrackedMap
from graphmodel.runtime.transaction import GraphTransactionScope
from graphmodel.graph.models.common_schema import COMMON_SCHEMA
from graphmodel.graph.models.data_types import PACKAGE_QUALIFIER
from graphmodel.graph.models.metadata import GraphMetadata, GraphMetadataContainer
from graphmodel.graph.models.objects import GraphObject
from graphmodel.graph.models.schema import GraphSchema
from graphmodel.graph.ops import merge

from .link import GraphLink
from .link_collection import GraphLinkCollection
from .node import GraphNode, NodeLike
from .node_collection import GraphNodeCollection

logger = logging.getLogger("graphmodel.graph.core.graph")


class DocumentSchema(GraphSchema):
    """The root schema of a graph.

    It always includes the common schema, and cannot be nested in another
    schema.
    """

    def __init__(self, graph: "Graph", *schemas: GraphSchema) -> None:
        self._graph = graph
        super().__init__("DocumentSchema", COMMON_SCHEMA, *schemas)

    @property
    def graph(self) -> "Graph":
        return self._graph


class Graph(GraphObject):
    """A directed graph of uniquely identified nodes.

    Args:
        *schemas: Schemas included in the graph's document schema.
        config: Configuration, or anything :func:`load_config` accepts.
    """

    def __init__(self, *schemas: GraphSchema, config: ConfigSource = None) -> None:
        self._config = load_config(config)
        self._schema = DocumentSchema(self, *schemas)
        # Tracked so metadata materialized in an aborted transaction goes with it.
        self._metadata: ChangeTrackedMap[GraphMetadataContainer, GraphMetadata] = ChangeTrackedMap()
        super().__init__(None)
        self._owner = self
        self.nodes = GraphNodeCollection(self)
        self.links = GraphLinkCollection(self)

    @property
    def schema(self) -> DocumentSchema:
        return self._schema

    @property
    def config(self) -> GraphModelConfig:
        return self._config

    def get_metadata(self, container: GraphMetadataContainer) -> GraphMetadata:
        """Get the metadata of a category or property within this graph."""
        return container.get_metadata(self)

    # ===== Import =====

    def import_schemas(self, source: Union["Graph", GraphSchema]) -> bool:
        """Copy the definitions of another graph (or schema) that this graph lacks.

        Returns:
            bool: True if the document schema changed.
        """
        if isinstance(source, Graph):
            if source is self:
                return False
            source = source.schema
        return merge.import_schemas(self._schema, source)

    def import_node(self, node: GraphNode) -> GraphNode:
        """Merge a node of another graph into the same-id node of this graph."""
        return merge.import_node(self, node)

    def import_link(self, link: GraphLink) -> GraphLink:
        """Merge a link of another graph, and its endpoints, into this graph."""
        return merge.import_link(self, link)

    def import_subset(self, node: GraphNode, depth: int) -> GraphNode:
        """Import a node and every node and link within ``depth`` links of it."""
        return merge.import_subset(self, node, depth)

    # ===== Mutation =====

    def rename(self, node: NodeLike, new_id: Identifier) -> Optional[GraphNode]:
        """Give a node a new id.

        The node is copied under ``new_id`` together with its links, and the
        original is deleted.

        Returns:
            Optional[GraphNode]: The renamed node, or None if ``node`` is an
            unknown id.
        """
        existing = self.nodes.get(node) if is_identifier(node) else node  # type: ignore[arg-type]
        if existing is None:
            return None
        with GraphTransactionScope() as scope:
            renamed = existing.copy(new_id)  # type: ignore[union-attr]
            self.nodes.add(renamed)
            self.nodes.delete(existing)  # type: ignore[arg-type]
            scope.set_complete()
        logger.debug(
            "Renamed node %s to %s",
            format_identifier(existing.id),  # type: ignore[union-attr]
            format_identifier(new_id),
        )
        return renamed

    def clear(self) -> None:
        """Remove every node and link."""
        self.nodes.clear()

    # ===== Metadata side table =====

    def _get_metadata(self, container: GraphMetadataContainer) -> Optional[GraphMetadata]:
        return self._metadata.get(container)

    def _set_metadata(self, container: GraphMetadataContainer, metadata: GraphMetadata) -> None:
        self._metadata.set(container, metadata)

    def __repr__(self) -> str:
        return f"Graph(nodes={self.nodes.size}, links={self.links.size})"


GRAPH_TYPE = COMMON_SCHEMA.data_types.get_or_create_class(Graph, PACKAGE_QUALIFIER)


__all__ = ["DocumentSchema", "GRAPH_TYPE", "Graph"]
