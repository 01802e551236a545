"""The link collection of a graph."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Callable, Iterator, Optional, Union

from graphmodel.errors import GraphIntegrityError
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

from .link import GraphLink, LinkKey
from .node import GraphNode, NodeLike

if TYPE_CHECKING:
    from .graph import Graph

logger = logging.getLogger("graphmodel.graph.core.link_collection")


def _node_id(node: NodeLike) -> Identifier:
    return node if is_identifier(node) else node.id  # type: ignore[return-value,union-attr]


class GraphLinkCollection(ChangeTrackedParent):
    """The links of a graph, keyed by ``(source_id, target_id, index)``."""

    _EVENTS = frozenset({"on_added", "on_deleted"})

    def __init__(self, graph: "Graph") -> None:
        self._graph = graph
        self._links: ChangeTrackedMap[LinkKey, GraphLink] = ChangeTrackedMap(self)
        self._events: Optional[EventEmitter] = None

    @property
    def graph(self) -> "Graph":
        return self._graph

    @property
    def size(self) -> int:
        return self._links.size

    def __len__(self) -> int:
        return self._links.size

    def subscribe(self, **handlers) -> EventSubscription:
        if self._events is None:
            self._events = EventEmitter(self._EVENTS, "GraphLinkCollection")
        return self._events.subscribe(**handlers)

    def has(self, link: GraphLink) -> bool:
        return self._links.get(link.key) is link

    def __contains__(self, link: object) -> bool:
        return isinstance(link, GraphLink) and self.has(link)

    def get(self, source_id: Identifier, target_id: Identifier, index: int = 0) -> Optional[GraphLink]:
        return self._links.get((source_id, target_id, index))

    def _endpoint(self, node: NodeLike) -> GraphNode:
        if is_identifier(node):
            return self._graph.nodes.get_or_create(node)  # type: ignore[arg-type]
        if node.owner is not self._graph:  # type: ignore[union-attr]
            return self._graph.import_node(node)  # type: ignore[arg-type]
        return self._graph.nodes.add(node)  # type: ignore[arg-type]

    def get_or_create(
        self,
        source: NodeLike,
        target: NodeLike,
        index_or_category: Union[int, CategoryKey, None] = None,
    ) -> GraphLink:
        """Get the link between two nodes, creating the link and its endpoints
        if needed.

        Args:
            source: Source node or id.
            target: Target node or id.
            index_or_category: Link index (defaults to 0), or a category that
                is added to the link at index 0.

        Returns:
            GraphLink: The link held by this collection.
        """
        if isinstance(index_or_category, int) and not isinstance(index_or_category, bool):
            index, category = index_or_category, None
        else:
            index, category = 0, index_or_category
        link = self.get(_node_id(source), _node_id(target), index)
        if link is None:
            with GraphTransactionScope() as scope:
                link = GraphLink(
                    self._graph, self._endpoint(source), self._endpoint(target), index, category
                )
                self.add(link)
                scope.set_complete()
        elif category is not None:
            link.add_category(category)
        return link

    def add(self, link: GraphLink) -> GraphLink:
        """Add a link, adding its endpoints to the node collection if needed.

        A link with the same key is merged into the existing one; a link of
        another graph is imported.

        Returns:
            GraphLink: The link held by this collection.
        """
        own = self._links.get(link.key)
        if own is link:
            return link
        if own is not None:
            own._merge_from(link)
            return own
        if link.owner is not self._graph:
            return self._graph.import_link(link)
        with GraphTransactionScope() as scope:
            self._links.set(link.key, link)
            for node in (link.source, link.target):
                if not self._graph.nodes.has(node):
                    self._graph.nodes.add(node)
            link.source._add_link(link)
            link.target._add_link(link)
            scope.set_complete()
        return link

    def delete(
        self,
        link_or_source: Union[GraphLink, NodeLike],
        target: Optional[NodeLike] = None,
        category: Optional[CategoryKey] = None,
    ) -> Union[GraphLink, bool, None]:
        """Delete a link, or a category of the link between two nodes.

        ``delete(link)`` removes the link. ``delete(source, target, category)``
        removes ``category`` from the link at index 0 between ``source`` and
        ``target``; the link itself is removed once it has no category left.
        Without ``category`` the link is removed.

        Returns:
            For a link instance, whether it was removed. Otherwise the removed
            link, or None if no link was removed.
        """
        by_link = isinstance(link_or_source, GraphLink)
        if by_link:
            own = self._links.get(link_or_source.key)  # type: ignore[union-attr]
            if own is not link_or_source:
                return False
        else:
            if target is None:
                raise TypeError("delete() needs a target when called with a source node")
            own = self.get(_node_id(link_or_source), _node_id(target))  # type: ignore[arg-type]
            if own is None:
                return None
        with GraphTransactionScope() as scope:
            remove = True
            if category is not None:
                own.delete_category(category)
                remove = own.category_count == 0
            if remove:
                self._links.delete(own.key, own)
                own.source._remove_link(own)
                own.target._remove_link(own)
            scope.set_complete()
        if by_link:
            return remove
        return own if remove else None

    def clear(self) -> None:
        links = list(self._links.values())
        if not links:
            return
        with GraphTransactionScope() as scope:
            for link in links:
                link.source._remove_link(link)
                link.target._remove_link(link)
            self._links.clear()
            scope.set_complete()

    def values(self) -> Iterator[GraphLink]:
        return self._links.values()

    def __iter__(self) -> Iterator[GraphLink]:
        return self._links.values()

    def between(self, source: GraphNode, target: GraphNode) -> Iterator[GraphLink]:
        """Yield every link from ``source`` to ``target``, whatever its index."""
        if source.outgoing_link_count <= target.incoming_link_count:
            for link in source.outgoing_links():
                if link.target is target:
                    yield link
        else:
            for link in target.incoming_links():
                if link.source is source:
                    yield link

    def to(self, node: NodeLike, *categories: CategoryKey) -> Iterator[GraphLink]:
        """Yield the links pointing at ``node``, optionally by category."""
        target = self._graph.nodes.get(node) if is_identifier(node) else node  # type: ignore[arg-type]
        if target is None:
            return iter(())
        return target.incoming_links(*categories)  # type: ignore[union-attr]

    def from_(self, node: NodeLike, *categories: CategoryKey) -> Iterator[GraphLink]:
        """Yield the links leaving ``node``, optionally by category."""
        source = self._graph.nodes.get(node) if is_identifier(node) else node  # type: ignore[arg-type]
        if source is None:
            return iter(())
        return source.outgoing_links(*categories)  # type: ignore[union-attr]

    def by_property(self, key: PropertyKey, value: Any) -> Iterator[GraphLink]:
        for link in self.values():
            if link.get(key) == value:
                yield link

    def by_category(self, *categories: CategoryKey) -> Iterator[GraphLink]:
        for link in self.values():
            if matches_categories(link, categories):
                yield link

    def filter(self, predicate: Callable[[GraphLink], bool]) -> Iterator[GraphLink]:
        for link in self.values():
            if predicate(link):
                yield link

    # ===== ChangeTrackedParent =====

    def on_changes_prepared(self, tracked: ChangeTracked, tracker: ChangeTracker) -> None:
        nodes = self._graph.nodes
        for _, link in tracker.added_items():
            for node in (link.source, link.target):
                if not nodes.has(node):
                    raise GraphIntegrityError(
                        f"Link {link!r} refers to node {format_identifier(node.id)!r}, "
                        "which is not in the graph"
                    )

    def on_changes_committed(self, tracked: ChangeTracked, tracker: ChangeTracker) -> None:
        if self._events is None:
            return
        collect = self._graph.config.collect_observer_errors
        for _, link in tracker.deleted_items():
            self._events.emit("on_deleted", link, collect_errors=collect)
        for _, link in tracker.added_items():
            self._events.emit("on_added", link, collect_errors=collect)

    def on_changes_rolled_back(self, tracked: ChangeTracked, tracker: ChangeTracker) -> None:
        pass

    def __repr__(self) -> str:
        return f"GraphLinkCollection(size={self.size})"


__all__ = ["GraphLinkCollection"]
