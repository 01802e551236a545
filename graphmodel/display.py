"""Rich console rendering of graphs for interactive inspection.

Usage:
    from graphmodel.display import print_graph_summary, render_related_tree

    print_graph_summary(graph)
    console.print(render_related_tree(graph.nodes.get("root")))
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional, Set

from rich.console import Console
from rich.markup import escape
from rich.table import Table
from rich.tree import Tree

from graphmodel.identifiers import format_identifier
from graphmodel.graph.ops.traversal import SOURCE, TARGET

if TYPE_CHECKING:
    from graphmodel.graph.core.graph import Graph
    from graphmodel.graph.core.link import GraphLink
    from graphmodel.graph.core.node import GraphNode

logger = logging.getLogger("graphmodel.display")


def node_label(node: "GraphNode") -> str:
    """Display label of a node: its ``Label`` property, or its id."""
    label = node.label
    return label if label else format_identifier(node.id)


def _link_suffix(link: "GraphLink") -> str:
    categories = ", ".join(format_identifier(category.id) for category in link.categories())
    if not categories:
        return ""
    return f" [dim]({escape(categories)})[/dim]"


def render_related_tree(
    node: "GraphNode",
    direction: str = TARGET,
    max_depth: Optional[int] = None,
) -> Tree:
    """Build a rich ``Tree`` of the nodes reachable from ``node``.

    Each node is expanded at most once; later occurrences are marked with
    ``(seen)`` so cycles stay finite.

    Args:
        node: Root of the tree.
        direction: ``"target"`` follows outgoing links, ``"source"`` incoming.
        max_depth: Maximum number of levels below the root, unlimited if None.

    Returns:
        Tree: Renderable tree.
    """
    if direction not in (SOURCE, TARGET):
        raise ValueError(f"direction must be 'source' or 'target', got {direction!r}")

    tree = Tree(f"[bold cyan]{escape(node_label(node))}[/bold cyan]")
    expanded: Set["GraphNode"] = {node}
    stack = [(node, tree, 0)]
    while stack:
        current, branch, depth = stack.pop()
        if max_depth is not None and depth >= max_depth:
            continue
        links = current.outgoing_links() if direction == TARGET else current.incoming_links()
        children = []
        for link in links:
            neighbor = link.target if direction == TARGET else link.source
            label = escape(node_label(neighbor)) + _link_suffix(link)
            if neighbor in expanded:
                branch.add(f"{label} [yellow](seen)[/yellow]")
                continue
            expanded.add(neighbor)
            children.append((neighbor, branch.add(label), depth + 1))
        stack.extend(reversed(children))
    return tree


def print_graph_summary(graph: "Graph", console: Optional[Console] = None, limit: int = 20) -> None:
    """Print node and link counts and a table of the first ``limit`` nodes."""
    console = console or Console()
    console.print(
        f"[bold green]Graph with {graph.nodes.size} nodes and {graph.links.size} links.[/bold green]"
    )
    if not graph.nodes.size:
        return

    table = Table(title=f"Nodes (showing up to {limit})")
    table.add_column("ID", style="magenta")
    table.add_column("Label", style="green")
    table.add_column("Categories", style="cyan")
    table.add_column("In", justify="right")
    table.add_column("Out", justify="right")
    for index, node in enumerate(graph.nodes.values()):
        if index >= limit:
            break
        table.add_row(
            escape(format_identifier(node.id)),
            escape(node.label or ""),
            escape(", ".join(format_identifier(category.id) for category in node.categories())),
            str(node.incoming_link_count),
            str(node.outgoing_link_count),
        )
    console.print(table)
    if graph.nodes.size > limit:
        console.print(f"... and {graph.nodes.size - limit} more.")


__all__ = ["node_label", "print_graph_summary", "render_related_tree"]
