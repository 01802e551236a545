"""Tests for the node and link collections and node link queries."""

import pytest

from graphmodel.errors import DuplicateNodeError, EventDispatchError
from graphmodel.runtime.transaction import GraphTransactionScope
from graphmodel.graph.core.graph import Graph
from graphmodel.graph.core.node import GraphNode
from graphmodel.graph.models.common_schema import CONTAINS, LABEL


def test_get_or_create_link_creates_endpoints(graph: Graph) -> None:
    link = graph.links.get_or_create("a", "b")
    assert graph.nodes.size == 2
    assert graph.links.size == 1
    assert link.key == ("a", "b", 0)
    assert link.source is graph.nodes.get("a")
    assert link.target is graph.nodes.get("b")
    assert graph.links.get_or_create("a", "b") is link
    assert link in graph.links


def test_links_are_told_apart_by_index(graph: Graph) -> None:
    first = graph.links.get_or_create("a", "b")
    second = graph.links.get_or_create("a", "b", 1)
    assert first is not second
    assert graph.links.get("a", "b", 1) is second
    assert graph.links.size == 2
    assert graph.nodes.get("a").outgoing_link_count == 2


def test_category_argument_targets_index_zero(graph: Graph) -> None:
    link = graph.links.get_or_create("a", "b")
    assert graph.links.get_or_create("a", "b", CONTAINS) is link
    assert link.has_category(CONTAINS)
    assert graph.links.size == 1


def test_node_ids_must_be_identifiers(graph: Graph) -> None:
    with pytest.raises(TypeError):
        GraphNode(graph, 5)  # type: ignore[arg-type]


def test_adding_another_node_with_the_same_id_fails(graph: Graph) -> None:
    existing = graph.nodes.get_or_create("a")
    assert graph.nodes.add(existing) is existing
    with pytest.raises(DuplicateNodeError):
        graph.nodes.add(GraphNode(graph, "a"))
    assert graph.nodes.get("a") is existing


def test_add_detached_node(graph: Graph) -> None:
    node = GraphNode(graph, "a")
    assert not graph.nodes.has(node)
    assert graph.nodes.add(node) is node
    assert graph.nodes.has(node)
    assert graph.nodes.has("a")
    assert not graph.nodes.has(GraphNode(graph, "a"))


def test_deleting_a_node_deletes_its_links(graph: Graph) -> None:
    graph.links.get_or_create("a", "b")
    graph.links.get_or_create("b", "c")
    graph.links.get_or_create("a", "c")
    b = graph.nodes.get("b")

    assert graph.nodes.delete("b") is b
    assert graph.nodes.delete("b") is None
    assert graph.links.size == 1
    a = graph.nodes.get("a")
    assert a.outgoing_link_count == 1
    assert graph.nodes.get("c").incoming_link_count == 1
    assert a.get_outgoing_link("c") is not None


def test_delete_requires_the_same_instance(graph: Graph) -> None:
    graph.nodes.get_or_create("a")
    assert not graph.nodes.delete(GraphNode(graph, "a"))
    assert graph.nodes.size == 1


def test_aborted_node_delete_restores_links(graph: Graph) -> None:
    """Rolling back a node delete gives both endpoints their links back."""
    first = graph.links.get_or_create("a", "b")
    second = graph.links.get_or_create("b", "c")
    a, b, c = (graph.nodes.get(id) for id in "abc")

    with GraphTransactionScope():
        assert graph.nodes.delete(b)
        assert a.link_count == 0
        assert list(c.links()) == []

    assert graph.nodes.get("b") is b
    assert graph.links.size == 2
    assert list(a.links()) == [first]
    assert list(b.links()) == [first, second]
    assert list(c.links()) == [second]
    assert a.get_outgoing_link("b") is first

def test_deleting_categories_keeps_link_until_none_left(graph: Graph) -> None:
    link = graph.links.get_or_create("a", "b", "Uses")
    link.add_category("Calls")

    assert graph.links.delete("a", "b", "Uses") is None
    assert graph.links.has(link)
    assert [category.id for category in link.categories()] == ["Calls"]

    assert graph.links.delete("a", "b", "Calls") is link
    assert not graph.links.has(link)
    assert graph.nodes.size == 2


def test_delete_link_variants(graph: Graph) -> None:
    link = graph.links.get_or_create("a", "b")
    other = graph.links.get_or_create("b", "c")
    assert graph.links.delete("a", "missing") is None
    with pytest.raises(TypeError):
        graph.links.delete("a")
    assert graph.links.delete("a", "b") is link
    assert graph.links.delete(link) is False
    assert other.delete_self()
    assert graph.links.size == 0
    assert graph.nodes.get("b").link_count == 0


def test_get_incoming_and_outgoing_link(graph: Graph) -> None:
    zero = graph.links.get_or_create("a", "b")
    one = graph.links.get_or_create("a", "b", 1)
    a, b = graph.nodes.get("a"), graph.nodes.get("b")

    assert a.get_outgoing_link(b) is zero
    assert a.get_outgoing_link("b", 1) is one
    assert b.get_incoming_link("a", 1) is one
    assert b.get_incoming_link("missing") is None
    assert a.get_outgoing_link(Graph().nodes.get_or_create("b")) is None


def test_root_and_leaf_nodes(diamond) -> None:
    graph = diamond["root"].owner
    assert list(graph.nodes.root_nodes()) == [diamond["root"]]
    assert list(graph.nodes.leaf_nodes()) == [diamond["leaf"]]


def test_node_queries(graph: Graph) -> None:
    a = graph.nodes.get_or_create("a", "Module")
    graph.nodes.get_or_create("b", "Function")
    a.label = "Alpha"
    assert list(graph.nodes.by_property(LABEL, "Alpha")) == [a]
    assert list(graph.nodes.by_category("Module")) == [a]
    assert len(list(graph.nodes.by_category())) == 2
    assert list(graph.nodes.keys()) == ["a", "b"]
    assert dict(graph.nodes.items())["a"] is a


def test_link_queries(graph: Graph) -> None:
    calls = graph.links.get_or_create("a", "b", "Calls")
    second = graph.links.get_or_create("a", "b", 1)
    uses = graph.links.get_or_create("c", "b", "Uses")
    a, b = graph.nodes.get("a"), graph.nodes.get("b")

    assert list(graph.links.between(a, b)) == [calls, second]
    assert list(graph.links.between(b, a)) == []
    assert list(graph.links.to("b", "Uses")) == [uses]
    assert len(list(graph.links.to(b))) == 3
    assert list(graph.links.from_("a")) == [calls, second]
    assert list(graph.links.to("missing")) == []
    assert list(graph.links.by_category("Calls")) == [calls]
    assert list(graph.links.filter(lambda link: link.index == 1)) == [second]
    second.label = "again"
    assert list(graph.links.by_property(LABEL, "again")) == [second]
    assert list(b.sources("Calls", "Uses")) == [a, graph.nodes.get("c")]
    assert list(a.targets()) == [b, b]


def test_clear(diamond) -> None:
    graph = diamond["root"].owner
    graph.clear()
    assert graph.nodes.size == 0
    assert graph.links.size == 0
    assert diamond["root"].outgoing_link_count == 0
    assert diamond["leaf"].incoming_link_count == 0


def test_clear_rolls_back(diamond) -> None:
    graph = diamond["root"].owner
    scope = GraphTransactionScope()
    graph.clear()
    assert graph.nodes.size == 0
    scope.dispose()
    assert graph.nodes.size == 4
    assert graph.links.size == 4
    assert diamond["root"].outgoing_link_count == 2


def test_delete_links_by_category(graph: Graph) -> None:
    graph.links.get_or_create("a", "b", "Calls")
    graph.links.get_or_create("a", "c", "Uses")
    graph.links.get_or_create("d", "a", "Calls")
    a = graph.nodes.get("a")

    assert a.delete_outgoing_links("Calls") == 1
    assert a.delete_incoming_links("Uses") == 0
    assert a.delete_links() == 2
    assert a.link_count == 0
    assert graph.nodes.size == 4


def test_containment(graph: Graph) -> None:
    graph.links.get_or_create("root", "a", CONTAINS)
    graph.links.get_or_create("a", "b", CONTAINS)
    graph.links.get_or_create("a", "c")
    root, a, b = (graph.nodes.get(id) for id in ("root", "a", "b"))

    assert root.is_container
    assert not root.is_contained
    assert a.is_container and a.is_contained
    assert list(a.related_containment_nodes("target")) == [b]
    assert list(a.related_containment_nodes("source")) == [root]
    assert list(b.ancestors()) == [a, root]
    assert list(root.descendants()) == [a, b]


def test_has_circularity(graph: Graph) -> None:
    graph.links.get_or_create("a", "b", "Calls")
    graph.links.get_or_create("b", "c", "Calls")
    graph.links.get_or_create("c", "a", "Uses")
    graph.links.get_or_create("x", "a")
    a = graph.nodes.get("a")

    assert a.has_circularity()
    assert not a.has_circularity("Calls")
    assert not graph.nodes.get("x").has_circularity()


def test_self_loop(graph: Graph) -> None:
    link = graph.links.get_or_create("a", "a")
    a = graph.nodes.get("a")
    assert a.incoming_link_count == 1
    assert a.outgoing_link_count == 1
    assert a.link_count == 2
    assert a.has_circularity()
    assert link.delete_self()
    assert a.link_count == 0


def test_collection_events_fire_on_commit(graph: Graph) -> None:
    added, deleted, links_added = [], [], []
    graph.nodes.subscribe(on_added=added.append, on_deleted=deleted.append)
    graph.links.subscribe(on_added=links_added.append)

    with GraphTransactionScope() as scope:
        link = graph.links.get_or_create("a", "b")
        assert added == []
        scope.set_complete()

    assert [node.id for node in added] == ["a", "b"]
    assert links_added == [link]

    graph.nodes.get("a").delete_self()
    assert [node.id for node in deleted] == ["a"]


def test_aborted_changes_raise_no_events(graph: Graph) -> None:
    added = []
    graph.nodes.subscribe(on_added=added.append)
    scope = GraphTransactionScope()
    graph.nodes.get_or_create("a")
    scope.dispose()
    assert added == []
    assert graph.nodes.size == 0


def test_unsubscribe(graph: Graph) -> None:
    added = []
    subscription = graph.nodes.subscribe(on_added=added.append)
    subscription.unsubscribe()
    graph.nodes.get_or_create("a")
    assert added == []
    assert not subscription.active


def test_observer_errors_propagate(graph: Graph) -> None:
    called = []

    def failing(node: GraphNode) -> None:
        raise RuntimeError("observer failed")

    graph.nodes.subscribe(on_added=failing)
    graph.nodes.subscribe(on_added=called.append)
    with pytest.raises(RuntimeError):
        graph.nodes.get_or_create("a")
    assert called == []
    assert graph.nodes.has("a")


def test_observer_errors_can_be_collected() -> None:
    graph = Graph(config={"collect_observer_errors": True})
    called = []

    def failing(node: GraphNode) -> None:
        raise RuntimeError(node.id)

    graph.nodes.subscribe(on_added=failing)
    graph.nodes.subscribe(on_added=called.append)
    graph.nodes.subscribe(on_added=failing)
    with pytest.raises(EventDispatchError) as excinfo:
        graph.nodes.get_or_create("a")
    assert len(excinfo.value.errors) == 2
    assert [node.id for node in called] == ["a"]


def test_links_to_nodes_of_another_graph_are_imported(graph: Graph) -> None:
    other = Graph()
    foreign = other.nodes.get_or_create("x")
    foreign.label = "Foreign"

    link = graph.links.get_or_create(foreign, "y")
    local = graph.nodes.get("x")
    assert local is not foreign
    assert link.source is local
    assert local.label == "Foreign"
    assert other.nodes.size == 1
