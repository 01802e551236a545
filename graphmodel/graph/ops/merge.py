"""Importing nodes, links and schema definitions from another graph.

Imports never duplicate: an object is merged into the same-id object of the
target graph, created on demand. Merging unions categories and copies
property values (immutable ones excepted); it never removes anything from
the target.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional, Set

from graphmodel.identifiers import format_identifier
from graphmodel.runtime.transaction import GraphTransactionScope

if TYPE_CHECKING:
    from graphmodel.graph.models.schema import GraphSchema
    from ..core.graph import Graph
    from ..core.link import GraphLink
    from ..core.node import GraphNode

logger = logging.getLogger("graphmodel.graph.ops.merge")


def import_schemas(target: "GraphSchema", source: "GraphSchema") -> bool:
    """Copy definitions of ``source`` that ``target`` lacks.

    Categories, properties and data types are matched by id. A child schema
    of ``source`` is added to ``target`` unless ``target`` has a child with
    the same name; when that child is a different instance, the two are
    reconciled recursively.

    Args:
        target: Schema receiving the definitions.
        source: Schema providing them.

    Returns:
        bool: True if ``target`` changed.
    """
    if target is source:
        return False
    changed = False
    for category in source.categories.values():
        if target.find_category(category.id) is None:
            target.categories.add(category)
            changed = True
    for prop in source.properties.values():
        if target.find_property(prop.id) is None:
            target.properties.add(prop)
            changed = True
    for data_type in source.data_types.values():
        if target.find_data_type(data_type.key) is None:
            target.data_types.add(data_type)
            changed = True
    for child in source.schemas.values():
        own = target.schemas.get(child.name)
        if own is None:
            if not target.has_schema(child):
                target.add_schema(child)
                changed = True
        elif own is not child:
            changed = import_schemas(own, child) or changed
    if changed:
        logger.debug(
            "Imported definitions of schema %s into %s",
            format_identifier(source.name),
            format_identifier(target.name),
        )
    return changed


def _import_owner_schemas(graph: "Graph", owner: Optional["Graph"]) -> None:
    if owner is not None and owner is not graph:
        import_schemas(graph.schema, owner.schema)


def import_node(graph: "Graph", node: "GraphNode", include_schema: bool = True) -> "GraphNode":
    """Merge ``node`` into the same-id node of ``graph``.

    Returns:
        GraphNode: ``node`` itself if it already belongs to ``graph``,
        otherwise the node of ``graph`` it was merged into.
    """
    if node.owner is graph:
        return node
    with GraphTransactionScope() as scope:
        if include_schema:
            _import_owner_schemas(graph, node.owner)
        imported = graph.nodes.get_or_create(node.id)
        imported._merge_from(node)
        scope.set_complete()
    logger.debug("Imported node %s", format_identifier(node.id))
    return imported


def import_link(graph: "Graph", link: "GraphLink", include_schema: bool = True) -> "GraphLink":
    """Merge ``link`` (and its endpoints) into ``graph``."""
    if link.owner is graph:
        return link
    with GraphTransactionScope() as scope:
        if include_schema:
            _import_owner_schemas(graph, link.owner)
        source = import_node(graph, link.source, include_schema=False)
        target = import_node(graph, link.target, include_schema=False)
        imported = graph.links.get_or_create(source, target, link.index)
        imported._merge_from(link)
        scope.set_complete()
    return imported


def import_subset(graph: "Graph", node: "GraphNode", depth: int) -> "GraphNode":
    """Import ``node`` and everything within ``depth`` links of it.

    Args:
        graph: Target graph.
        node: Node to start from.
        depth: 0 imports only ``node``; each extra level also imports the
            neighbors reachable through one incoming or outgoing link, and
            the links themselves.

    Returns:
        GraphNode: The imported counterpart of ``node``.

    Raises:
        ValueError: If ``depth`` is negative or exceeds the configured
            ``max_import_depth``.
    """
    if depth < 0:
        raise ValueError(f"depth must be non-negative, got {depth}")
    limit = graph.config.max_import_depth
    if depth > limit:
        raise ValueError(f"depth {depth} exceeds max_import_depth ({limit})")
    if node.owner is graph:
        return node

    seen: Set["GraphNode"] = set()

    def visit(current: "GraphNode", remaining: int) -> "GraphNode":
        if current in seen:
            return graph.nodes.get(current.id) or import_node(graph, current, include_schema=False)
        seen.add(current)
        imported = import_node(graph, current, include_schema=False)
        if remaining > 0:
            for link in list(current.outgoing_links()):
                target = visit(link.target, remaining - 1)
                graph.links.get_or_create(imported, target, link.index)._merge_from(link)
            for link in list(current.incoming_links()):
                source = visit(link.source, remaining - 1)
                graph.links.get_or_create(source, imported, link.index)._merge_from(link)
        return imported

    with GraphTransactionScope() as scope:
        _import_owner_schemas(graph, node.owner)
        result = visit(node, depth)
        scope.set_complete()
    logger.debug("Imported subset of %s (depth %d, %d node(s))", format_identifier(node.id), depth, len(seen))
    return result


__all__ = ["import_link", "import_node", "import_schemas", "import_subset"]
