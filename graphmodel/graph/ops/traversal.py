"""Breadth-first traversal over nodes and links.

Both traversals are lazy: results are yielded as soon as they are accepted,
so a consumer that stops early (``first_related``) never pays for the rest
of the search.
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Deque, Iterator, List, Optional, Set, Tuple

if TYPE_CHECKING:
    from ..core.link import GraphLink
    from ..core.node import GraphNode

logger = logging.getLogger("graphmodel.graph.ops.traversal")

SOURCE = "source"
TARGET = "target"
DIRECTIONS = (SOURCE, TARGET)


@dataclass(frozen=True)
class GraphNodeTraversal:
    """Callbacks that control a node traversal.

    Attributes:
        traverse_link: Whether the search may cross a link. Defaults to all.
        traverse_node: Whether a reached node is expanded further, given the
            node and the link it was reached through. Defaults to all.
        accept_node: Whether a reached node is yielded. Defaults to all.
    """

    traverse_link: Optional[Callable[["GraphLink"], bool]] = None
    traverse_node: Optional[Callable[["GraphNode", "GraphLink"], bool]] = None
    accept_node: Optional[Callable[["GraphNode"], bool]] = None


@dataclass(frozen=True)
class GraphLinkTraversal:
    """Callbacks that control a link traversal.

    Attributes:
        traverse_link: Whether a reached link is expanded further.
        accept_link: Whether a reached link is yielded.
    """

    traverse_link: Optional[Callable[["GraphLink"], bool]] = None
    accept_link: Optional[Callable[["GraphLink"], bool]] = None


def _check_direction(direction: str) -> None:
    if direction not in DIRECTIONS:
        raise ValueError(f"direction must be 'source' or 'target', got {direction!r}")


def related_nodes(
    start: "GraphNode",
    direction: str,
    traversal: Optional[GraphNodeTraversal] = None,
) -> Iterator["GraphNode"]:
    """Yield nodes reachable from ``start``, breadth-first.

    Args:
        start: Node the search starts from. It is only yielded if reached
            again through a cycle.
        direction: ``"target"`` follows outgoing links, ``"source"`` follows
            incoming links.
        traversal: Optional callbacks filtering expansion and results.

    Yields:
        GraphNode: Each accepted node, once.
    """
    _check_direction(direction)
    traversal = traversal or GraphNodeTraversal()
    accepted: Set["GraphNode"] = set()
    traversed: Set["GraphNode"] = {start}
    queue: Deque["GraphNode"] = deque([start])
    while queue:
        node = queue.popleft()
        links = node.incoming_links() if direction == SOURCE else node.outgoing_links()
        for link in links:
            if traversal.traverse_link is not None and not traversal.traverse_link(link):
                continue
            neighbor = link.source if direction == SOURCE else link.target
            if neighbor not in accepted and (
                traversal.accept_node is None or traversal.accept_node(neighbor)
            ):
                accepted.add(neighbor)
                yield neighbor
            if neighbor not in traversed and (
                traversal.traverse_node is None or traversal.traverse_node(neighbor, link)
            ):
                traversed.add(neighbor)
                queue.append(neighbor)


def related_links(
    start: "GraphLink",
    direction: str,
    traversal: Optional[GraphLinkTraversal] = None,
) -> Iterator["GraphLink"]:
    """Yield links reachable from ``start``, breadth-first.

    ``"source"`` continues through the incoming links of each link's source,
    ``"target"`` through the outgoing links of each link's target.
    """
    _check_direction(direction)
    traversal = traversal or GraphLinkTraversal()
    accepted: Set["GraphLink"] = set()
    traversed: Set["GraphLink"] = {start}
    queue: Deque["GraphLink"] = deque([start])
    while queue:
        link = queue.popleft()
        links = link.source.incoming_links() if direction == SOURCE else link.target.outgoing_links()
        for candidate in links:
            if candidate not in accepted and (
                traversal.accept_link is None or traversal.accept_link(candidate)
            ):
                accepted.add(candidate)
                yield candidate
            if candidate not in traversed and (
                traversal.traverse_link is None or traversal.traverse_link(candidate)
            ):
                traversed.add(candidate)
                queue.append(candidate)


def first_related(
    start: "GraphNode",
    direction: str,
    traversal: Optional[GraphNodeTraversal] = None,
) -> Optional["GraphNode"]:
    """Return the first node :func:`related_nodes` would yield, or None."""
    return next(related_nodes(start, direction, traversal), None)


def containment_closure(start: "GraphNode", direction: str) -> Iterator["GraphNode"]:
    """Yield nodes transitively containing (``"source"``) or contained by
    (``"target"``) ``start``, depth-first, each once."""
    _check_direction(direction)
    seen: Set["GraphNode"] = {start}
    stack: List[Iterator["GraphNode"]] = [start.related_containment_nodes(direction)]
    while stack:
        for node in stack[-1]:
            if node not in seen:
                seen.add(node)
                yield node
                stack.append(node.related_containment_nodes(direction))
                break
        else:
            stack.pop()


def has_circularity(start: "GraphNode", *categories) -> bool:
    """Walk incoming links of ``start`` depth-first looking for a cycle.

    Args:
        start: Node to start from.
        *categories: When given, only links with one of these categories
            are followed.

    Returns:
        bool: True if a cycle is reachable.
    """
    visited: Set["GraphNode"] = set()
    on_stack: Set["GraphNode"] = set()
    frames: List[Tuple["GraphNode", bool]] = [(start, False)]
    while frames:
        node, done = frames[-1]
        if not done:
            if node in on_stack:
                return True
            frames[-1] = (node, True)
            if node not in visited:
                visited.add(node)
                on_stack.add(node)
                for link in node.incoming_links(*categories):
                    frames.append((link.source, False))
        else:
            frames.pop()
            on_stack.discard(node)
    return False


__all__ = [
    "DIRECTIONS",
    "GraphLinkTraversal",
    "GraphNodeTraversal",
    "SOURCE",
    "TARGET",
    "containment_closure",
    "first_related",
    "has_circularity",
    "related_links",
    "related_nodes",
]
