"""Graph links."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Iterator, Optional, Tuple

from graphmodel.identifiers import Identifier, format_identifier
from graphmodel.graph.models.common_schema import (
    COMMON_SCHEMA,
    IS_CONTAINMENT,
    LABEL,
    SOURCE_NODE,
    TARGET_NODE,
)
from graphmodel.graph.models.data_types import PACKAGE_QUALIFIER
from graphmodel.graph.models.objects import CategoryKey, GraphObject
from graphmodel.graph.ops.traversal import GraphLinkTraversal, related_links

if TYPE_CHECKING:
    from .graph import Graph
    from .node import GraphNode

logger = logging.getLogger("graphmodel.graph.core.link")

LinkKey = Tuple[Identifier, Identifier, int]


class GraphLink(GraphObject):
    """A directed link between two nodes of the same graph.

    Links are identified by ``(source.id, target.id, index)``. Several links
    between the same pair of nodes are told apart by ``index``.

    Args:
        owner: Graph the link belongs to.
        source: Source node. Nodes of another graph are imported first.
        target: Target node.
        index: Slot of the link between ``source`` and ``target``.
        category: Optional initial category.
    """

    def __init__(
        self,
        owner: "Graph",
        source: "GraphNode",
        target: "GraphNode",
        index: int = 0,
        category: Optional[CategoryKey] = None,
    ) -> None:
        if source.owner is not owner:
            source = owner.import_node(source)
        if target.owner is not owner:
            target = owner.import_node(target)
        super().__init__(owner, category)
        self._source = source
        self._target = target
        self._index = index
        self.set(SOURCE_NODE, source)
        self.set(TARGET_NODE, target)

    @property
    def owner(self) -> "Graph":
        return self._owner

    @property
    def source(self) -> "GraphNode":
        return self._source

    @property
    def target(self) -> "GraphNode":
        return self._target

    @property
    def index(self) -> int:
        return self._index

    @property
    def key(self) -> LinkKey:
        """Identity of the link within its graph."""
        return (self._source.id, self._target.id, self._index)

    @property
    def label(self) -> Optional[str]:
        return self.get(LABEL)

    @label.setter
    def label(self, label: Optional[str]) -> None:
        self.set(LABEL, label)

    @property
    def is_containment(self) -> bool:
        """True if the link has ``IsContainment`` set, directly or through
        the metadata of one of its categories (e.g. ``Contains``)."""
        return bool(self.get(IS_CONTAINMENT))

    def related(
        self,
        direction: str,
        traversal: Optional[GraphLinkTraversal] = None,
        **callbacks: Any,
    ) -> Iterator["GraphLink"]:
        """Iterate the links related to this link, breadth-first.

        Args:
            direction: ``"source"`` walks the incoming links of each source,
                ``"target"`` the outgoing links of each target.
            traversal: Optional :class:`GraphLinkTraversal`.
            **callbacks: ``traverse_link`` and ``accept_link`` as an
                alternative to ``traversal``.
        """
        if callbacks:
            traversal = GraphLinkTraversal(**callbacks)
        return related_links(self, direction, traversal)

    def delete_self(self) -> bool:
        """Remove this link from the graph."""
        return self.owner.links.delete(self)

    def __repr__(self) -> str:
        return (
            f"GraphLink({format_identifier(self._source.id)!r} -> "
            f"{format_identifier(self._target.id)!r}, index={self._index})"
        )


LINK_TYPE = COMMON_SCHEMA.data_types.get_or_create_class(GraphLink, PACKAGE_QUALIFIER)


__all__ = ["GraphLink", "LINK_TYPE", "LinkKey"]
