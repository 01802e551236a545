"""Graph nodes."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Iterator, Optional, Union

from graphmodel.identifiers import Identifier, format_identifier, is_identifier
from graphmodel.runtime.tracked import ChangeTrackedSet
from graphmodel.runtime.transaction import GraphTransactionScope
from graphmodel.graph.models.common_schema import COMMON_SCHEMA, LABEL, UNIQUE_ID
from graphmodel.graph.models.data_types import PACKAGE_QUALIFIER
from graphmodel.graph.models.objects import CategoryKey, GraphObject, matches_categories
from graphmodel.graph.ops.traversal import (
    SOURCE,
    GraphNodeTraversal,
    containment_closure,
    first_related,
    has_circularity,
    related_nodes,
)

from .link import GraphLink

if TYPE_CHECKING:
    from graphmodel.graph.models.category import GraphCategory
    from .graph import Graph

logger = logging.getLogger("graphmodel.graph.core.node")

NodeLike = Union["GraphNode", Identifier]


class GraphNode(GraphObject):
    """A node in the directed graph.

    Nodes are created through ``graph.nodes.get_or_create()``. A node's
    identity is the pair of its owning graph and its id.

    Args:
        owner: Graph the node belongs to.
        id: Node identifier.
        category: Optional initial category.
    """

    def __init__(self, owner: "Graph", id: Identifier, category: Optional[CategoryKey] = None) -> None:
        if not is_identifier(id):
            raise TypeError(f"Node ids must be strings or symbols, got {type(id).__name__}")
        super().__init__(owner, category)
        self._id = id
        self._incoming_links: Optional[ChangeTrackedSet[GraphLink]] = None
        self._outgoing_links: Optional[ChangeTrackedSet[GraphLink]] = None
        self.set(UNIQUE_ID, id)

    @property
    def owner(self) -> "Graph":
        return self._owner

    @property
    def id(self) -> Identifier:
        """The unique identifier for the node."""
        return self._id

    @property
    def label(self) -> Optional[str]:
        return self.get(LABEL)

    @label.setter
    def label(self, label: Optional[str]) -> None:
        self.set(LABEL, label)

    @property
    def is_container(self) -> bool:
        """True if the node has any outgoing containment link."""
        return any(link.is_containment for link in self.outgoing_links())

    @property
    def is_contained(self) -> bool:
        """True if the node has any incoming containment link."""
        return any(link.is_containment for link in self.incoming_links())

    @property
    def incoming_link_count(self) -> int:
        return self._incoming_links.size if self._incoming_links is not None else 0

    @property
    def outgoing_link_count(self) -> int:
        return self._outgoing_links.size if self._outgoing_links is not None else 0

    @property
    def link_count(self) -> int:
        return self.incoming_link_count + self.outgoing_link_count

    # ===== Links =====

    def incoming_links(self, *categories: CategoryKey) -> Iterator[GraphLink]:
        """Iterate links that have this node as their target.

        Args:
            *categories: When given, only links with one of these categories.
        """
        if self._incoming_links is None:
            return iter(())
        return (link for link in self._incoming_links if matches_categories(link, categories))

    def outgoing_links(self, *categories: CategoryKey) -> Iterator[GraphLink]:
        """Iterate links that have this node as their source."""
        if self._outgoing_links is None:
            return iter(())
        return (link for link in self._outgoing_links if matches_categories(link, categories))

    def links(self, *categories: CategoryKey) -> Iterator[GraphLink]:
        """Iterate incoming, then outgoing links."""
        yield from self.incoming_links(*categories)
        yield from self.outgoing_links(*categories)

    def has_incoming_links(self, *categories: CategoryKey) -> bool:
        return next(self.incoming_links(*categories), None) is not None

    def has_outgoing_links(self, *categories: CategoryKey) -> bool:
        return next(self.outgoing_links(*categories), None) is not None

    def _resolve_peer(self, node: NodeLike) -> Optional["GraphNode"]:
        if is_identifier(node):
            return self.owner.nodes.get(node)  # type: ignore[arg-type]
        if node.owner is not self.owner:  # type: ignore[union-attr]
            return None
        return node  # type: ignore[return-value]

    def get_incoming_link(self, source: NodeLike, index: int = 0) -> Optional[GraphLink]:
        """Get the link from ``source`` to this node with the given index."""
        peer = self._resolve_peer(source)
        if peer is None:
            return None
        for link in self.incoming_links():
            if link.source is peer and link.index == index:
                return link
        return None

    def get_outgoing_link(self, target: NodeLike, index: int = 0) -> Optional[GraphLink]:
        """Get the link from this node to ``target`` with the given index."""
        peer = self._resolve_peer(target)
        if peer is None:
            return None
        for link in self.outgoing_links():
            if link.target is peer and link.index == index:
                return link
        return None

    def _delete_links(self, links: Iterator[GraphLink]) -> int:
        deleted = 0
        with GraphTransactionScope() as scope:
            for link in list(links):
                if self.owner.links.delete(link):
                    deleted += 1
            scope.set_complete()
        return deleted

    def delete_incoming_links(self, *categories: CategoryKey) -> int:
        """Delete incoming links with any of ``categories`` (all when omitted).

        Returns:
            int: The number of links deleted.
        """
        return self._delete_links(self.incoming_links(*categories))

    def delete_outgoing_links(self, *categories: CategoryKey) -> int:
        return self._delete_links(self.outgoing_links(*categories))

    def delete_links(self, *categories: CategoryKey) -> int:
        return self._delete_links(self.links(*categories))

    def delete_self(self) -> bool:
        """Remove this node (and its links) from the graph."""
        return self.owner.nodes.delete(self)

    # ===== Traversal =====

    def related(
        self,
        direction: str,
        traversal: Optional[GraphNodeTraversal] = None,
        **callbacks: Any,
    ) -> Iterator["GraphNode"]:
        """Iterate the nodes related to this node, breadth-first.

        Args:
            direction: ``"target"`` to follow outgoing links or ``"source"``
                to follow incoming links.
            traversal: Optional :class:`GraphNodeTraversal`.
            **callbacks: ``traverse_link``, ``traverse_node`` and
                ``accept_node`` as an alternative to ``traversal``.
        """
        if callbacks:
            traversal = GraphNodeTraversal(**callbacks)
        return related_nodes(self, direction, traversal)

    def first_related(
        self,
        direction: str,
        traversal: Optional[GraphNodeTraversal] = None,
        **callbacks: Any,
    ) -> Optional["GraphNode"]:
        """Return the first node :meth:`related` yields, or None."""
        if callbacks:
            traversal = GraphNodeTraversal(**callbacks)
        return first_related(self, direction, traversal)

    def related_containment_nodes(self, direction: str) -> Iterator["GraphNode"]:
        """Yield the nodes containing this node (``"source"``) or contained
        by it (``"target"``) through a single containment link."""
        if direction == SOURCE:
            for link in self.incoming_links():
                if link.is_containment:
                    yield link.source
        else:
            for link in self.outgoing_links():
                if link.is_containment:
                    yield link.target

    def sources(self, *categories: CategoryKey) -> Iterator["GraphNode"]:
        for link in self.incoming_links(*categories):
            yield link.source

    def targets(self, *categories: CategoryKey) -> Iterator["GraphNode"]:
        for link in self.outgoing_links(*categories):
            yield link.target

    def ancestors(self) -> Iterator["GraphNode"]:
        """Yield each node that transitively contains this node."""
        return containment_closure(self, "source")

    def descendants(self) -> Iterator["GraphNode"]:
        """Yield each node this node transitively contains."""
        return containment_closure(self, "target")

    def has_circularity(self, *categories: CategoryKey) -> bool:
        """Walk incoming links to determine whether there is a cycle."""
        return has_circularity(self, *categories)

    # ===== Copy =====

    def copy(self, new_id: Identifier) -> "GraphNode":
        """Create a copy of the node, including its links, with a new id.

        The copy is not added to the graph; ``graph.nodes.add(copy)`` adds it
        together with the copied links.
        """
        with GraphTransactionScope() as scope:
            node = GraphNode(self.owner, new_id)
            node._merge_from(self)
            for link in self.outgoing_links():
                target = node if link.target is self else link.target
                copied = GraphLink(self.owner, node, target, link.index)
                copied._merge_from(link)
                node._add_link(copied)
            for link in self.incoming_links():
                if link.source is self:
                    continue
                copied = GraphLink(self.owner, link.source, node, link.index)
                copied._merge_from(link)
                node._add_link(copied)
            scope.set_complete()
        return node

    # ===== Internal =====

    def _add_link(self, link: GraphLink) -> None:
        if link.target is self:
            if self._incoming_links is None:
                self._incoming_links = ChangeTrackedSet(self)
            self._incoming_links.add(link)
        if link.source is self:
            if self._outgoing_links is None:
                self._outgoing_links = ChangeTrackedSet(self)
            self._outgoing_links.add(link)

    def _remove_link(self, link: GraphLink) -> None:
        if link.target is self and self._incoming_links is not None:
            self._incoming_links.delete(link)
        if link.source is self and self._outgoing_links is not None:
            self._outgoing_links.delete(link)

    def __repr__(self) -> str:
        return f"GraphNode({format_identifier(self._id)!r})"


NODE_TYPE = COMMON_SCHEMA.data_types.get_or_create_class(GraphNode, PACKAGE_QUALIFIER)


__all__ = ["GraphNode", "NODE_TYPE", "NodeLike"]
