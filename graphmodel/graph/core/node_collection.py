"""The node collection of a graph."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Iterator, Optional, Tuple, Union

from graphmodel.errors import DuplicateNodeError
from graphmodel.events import EventEmitter, EventSubscription
from graphmodel.identifiers import Identifier, format_identifier, is_identifier
from graphmodel.runtime.tracked import ChangeTrackedMap
from graphmodel.runtime.transaction import (
    ChangeTracked,
    ChangeTrackedParent,
    ChangeTracker,
    GraphTransactionScope,
)
from graphmodel.graph.models.objects import CategoryKey, PropertyKey, matches_categories

from .node import GraphNode, NodeLike

if TYPE_CHECKING:
    from .graph import Graph

logger = logging.getLogger("graphmodel.graph.core.node_collection")


class GraphNodeCollection(ChangeTrackedParent):
    """The nodes of a graph, keyed by id.

    ``on_added`` and ``on_deleted`` observers are notified when the
    transaction that added or removed a node commits.
    """

    _EVENTS = frozenset({"on_added", "on_deleted"})

    def __init__(self, graph: "Graph") -> None:
        self._graph = graph
        self._nodes: ChangeTrackedMap[Identifier, GraphNode] = ChangeTrackedMap(self)
        self._events: Optional[EventEmitter] = None

    @property
    def graph(self) -> "Graph":
        return self._graph

    @property
    def size(self) -> int:
        return self._nodes.size

    def __len__(self) -> int:
        return self._nodes.size

    def subscribe(self, **handlers) -> EventSubscription:
        if self._events is None:
            self._events = EventEmitter(self._EVENTS, "GraphNodeCollection")
        return self._events.subscribe(**handlers)

    def has(self, node: NodeLike) -> bool:
        """True if the collection holds ``node`` (by id, or this exact instance)."""
        if is_identifier(node):
            return self._nodes.has(node)  # type: ignore[arg-type]
        return self._nodes.get(node.id) is node  # type: ignore[union-attr]

    def __contains__(self, node: object) -> bool:
        return self.has(node)  # type: ignore[arg-type]

    def get(self, id: Identifier) -> Optional[GraphNode]:
        return self._nodes.get(id)

    def get_or_create(self, id: Identifier, category: Optional[CategoryKey] = None) -> GraphNode:
        """Get the node with the provided id, creating it if needed.

        Args:
            id: Node id.
            category: Category added to the node, whether it is new or not.
        """
        node = self._nodes.get(id)
        if node is None:
            with GraphTransactionScope() as scope:
                node = GraphNode(self._graph, id, category)
                self.add(node)
                scope.set_complete()
        elif category is not None:
            node.add_category(category)
        return node

    def add(self, node: GraphNode) -> GraphNode:
        """Add a node together with the links it already has.

        A node of another graph is imported (merged into a same-id node of
        this graph) instead.

        Returns:
            GraphNode: The node held by this collection.

        Raises:
            DuplicateNodeError: If another node with the same id exists.
        """
        own = self._nodes.get(node.id)
        if own is node:
            return node
        if own is not None:
            logger.debug("Rejected duplicate node %s", format_identifier(node.id))
            raise DuplicateNodeError(f"A node with the id {format_identifier(node.id)!r} already exists.")
        if node.owner is not self._graph:
            return self._graph.import_node(node)
        with GraphTransactionScope() as scope:
            self._nodes.set(node.id, node)
            for link in list(node.links()):
                self._graph.links.add(link)
            scope.set_complete()
        return node

    def delete(self, node: NodeLike) -> Union[GraphNode, bool, None]:
        """Remove a node (by instance or id) and every link incident to it.

        Returns:
            For an id, the removed node or None. For an instance, whether it
            was removed.
        """
        by_id = is_identifier(node)
        id = node if by_id else node.id  # type: ignore[union-attr]
        own = self._nodes.get(id)
        if own is None or (not by_id and own is not node):
            return None if by_id else False
        with GraphTransactionScope() as scope:
            for link in list(own.links()):
                self._graph.links.delete(link)
            self._nodes.delete(id, own)
            scope.set_complete()
        return own if by_id else True

    def clear(self) -> None:
        """Remove every node and link."""
        with GraphTransactionScope() as scope:
            self._graph.links.clear()
            self._nodes.clear()
            scope.set_complete()

    def root_nodes(self) -> Iterator[GraphNode]:
        """Yield each node that has no incoming links."""
        for node in self.values():
            if not node.has_incoming_links():
                yield node

    def leaf_nodes(self) -> Iterator[GraphNode]:
        """Yield each node that has no outgoing links."""
        for node in self.values():
            if not node.has_outgoing_links():
                yield node

    def keys(self) -> Iterator[Identifier]:
        return self._nodes.keys()

    def values(self) -> Iterator[GraphNode]:
        return self._nodes.values()

    def items(self) -> Iterator[Tuple[Identifier, GraphNode]]:
        return self._nodes.items()

    def __iter__(self) -> Iterator[GraphNode]:
        return self.values()

    def by_property(self, key: PropertyKey, value: Any) -> Iterator[GraphNode]:
        """Yield each node whose value for ``key`` equals ``value``."""
        for node in self.values():
            if node.get(key) == value:
                yield node

    def by_category(self, *categories: CategoryKey) -> Iterator[GraphNode]:
        """Yield each node that has one of ``categories``."""
        for node in self.values():
            if matches_categories(node, categories):
                yield node

    # ===== ChangeTrackedParent =====

    def on_changes_committed(self, tracked: ChangeTracked, tracker: ChangeTracker) -> None:
        if self._events is None:
            return
        collect = self._graph.config.collect_observer_errors
        for _, node in tracker.deleted_items():
            self._events.emit("on_deleted", node, collect_errors=collect)
        for _, node in tracker.added_items():
            self._events.emit("on_added", node, collect_errors=collect)

    def on_changes_rolled_back(self, tracked: ChangeTracked, tracker: ChangeTracker) -> None:
        logger.debug(
            "Discarded %d added and %d deleted node(s)",
            tracker.added_count,  # type: ignore[attr-defined]
            tracker.deleted_count,  # type: ignore[attr-defined]
        )

    def __repr__(self) -> str:
        return f"GraphNodeCollection(size={self.size})"


__all__ = ["GraphNodeCollection"]
