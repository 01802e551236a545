"""Tests for importing across graphs and renaming nodes."""

import pytest

from graphmodel.errors import DuplicateNodeError
from graphmodel.graph.core.graph import Graph
from graphmodel.graph.models.common_schema import UNIQUE_ID
from graphmodel.graph.models.metadata import GraphMetadata, GraphMetadataFlags
from graphmodel.graph.models.schema import GraphSchema


def _ids(nodes) -> list:
    return sorted(node.id for node in nodes)


def _immutable(graph: Graph, id: str):
    return graph.schema.properties.get_or_create(
        id, None, lambda: GraphMetadata(flags=GraphMetadataFlags.IMMUTABLE)
    )


@pytest.fixture
def chain() -> Graph:
    """Return a graph with e -> a -> b -> c -> d."""
    source = Graph()
    for start, end in (("e", "a"), ("a", "b"), ("b", "c"), ("c", "d")):
        source.links.get_or_create(start, end)
    return source


def test_import_node_copies_values_and_categories(graph: Graph) -> None:
    other = Graph()
    foreign = other.nodes.get_or_create("x", "Module")
    foreign.label = "Foreign"

    imported = graph.import_node(foreign)
    assert imported is graph.nodes.get("x")
    assert imported.label == "Foreign"
    assert imported.has_category("Module")
    assert graph.schema.find_category("Module") is not None
    assert graph.import_node(imported) is imported


def test_merge_never_removes(graph: Graph) -> None:
    local = graph.nodes.get_or_create("x", "Local")
    local.set("Color", "red")
    local.label = "Mine"
    other = Graph()
    foreign = other.nodes.get_or_create("x", "Remote")
    foreign.label = "Theirs"

    graph.import_node(foreign)
    assert local.label == "Theirs"
    assert local.get("Color") == "red"
    assert local.has_category("Local")
    assert local.has_category("Remote")
    assert local.get(UNIQUE_ID) == "x"


def test_import_link(graph: Graph) -> None:
    other = Graph()
    link = other.links.get_or_create("x", "y", 2)
    link.label = "edge"

    imported = graph.import_link(link)
    assert graph.links.get("x", "y", 2) is imported
    assert imported.label == "edge"
    assert imported.source is graph.nodes.get("x")
    assert graph.nodes.size == 2


def test_adding_a_foreign_link_imports_it(graph: Graph) -> None:
    other = Graph()
    link = other.links.get_or_create("x", "y")
    assert graph.links.add(link) is graph.links.get("x", "y")
    assert other.links.has(link)


def test_import_subset_depths(graph: Graph, chain: Graph) -> None:
    b = chain.nodes.get("b")

    graph.import_subset(b, 0)
    assert _ids(graph.nodes) == ["b"]
    assert graph.links.size == 0

    graph.import_subset(b, 1)
    assert _ids(graph.nodes) == ["a", "b", "c"]
    assert graph.links.size == 2

    graph.import_subset(b, 2)
    assert _ids(graph.nodes) == ["a", "b", "c", "d", "e"]
    assert graph.links.size == 4


def test_import_subset_handles_cycles(graph: Graph) -> None:
    other = Graph()
    other.links.get_or_create("a", "b")
    other.links.get_or_create("b", "a")
    imported = graph.import_subset(other.nodes.get("a"), 5)
    assert imported is graph.nodes.get("a")
    assert graph.nodes.size == 2
    assert graph.links.size == 2


def test_import_subset_depth_limits(graph: Graph, chain: Graph) -> None:
    with pytest.raises(ValueError):
        graph.import_subset(chain.nodes.get("a"), -1)
    limited = Graph(config={"max_import_depth": 1})
    with pytest.raises(ValueError):
        limited.import_subset(chain.nodes.get("a"), 2)
    assert limited.nodes.size == 0


def test_import_schemas(graph: Graph) -> None:
    other_schema = GraphSchema("ext")
    other_schema.categories.get_or_create("Remote")
    other = Graph(other_schema)
    own_schema = GraphSchema("ext")
    own_schema.categories.get_or_create("Local")
    target = Graph(own_schema)

    assert target.import_schemas(other)
    assert own_schema.categories.has("Remote")
    assert target.schema.schemas.get("ext") is own_schema
    assert not target.import_schemas(other)
    assert not target.import_schemas(target)
    assert graph.import_schemas(other_schema)
    assert graph.schema.find_category("Remote") is not None
    assert not graph.schema.has_schema(other_schema)


def test_rename_moves_links(graph: Graph) -> None:
    graph.links.get_or_create("a", "b", "Calls")
    graph.links.get_or_create("c", "a")
    graph.links.get_or_create("a", "a")
    graph.nodes.get("a").label = "Alpha"

    renamed = graph.rename("a", "z")
    assert renamed is graph.nodes.get("z")
    assert not graph.nodes.has("a")
    assert renamed.label == "Alpha"
    assert renamed.get(UNIQUE_ID) == "z"
    assert graph.links.size == 3
    assert graph.links.get("z", "b").has_category("Calls")
    assert graph.links.get("c", "z") is not None
    assert graph.links.get("z", "z") is not None
    assert renamed.link_count == 4
    assert [link.source.id for link in graph.nodes.get("b").incoming_links()] == ["z"]


def test_rename_missing_node(graph: Graph) -> None:
    assert graph.rename("missing", "other") is None


def test_rename_onto_existing_id_changes_nothing(graph: Graph) -> None:
    graph.links.get_or_create("a", "b")
    with pytest.raises(DuplicateNodeError):
        graph.rename("a", "b")
    assert graph.nodes.has("a")
    assert graph.links.size == 1
    assert graph.nodes.get("a").outgoing_link_count == 1


def test_rename_keeps_immutable_values(graph: Graph) -> None:
    created = _immutable(graph, "Created")
    graph.nodes.get_or_create("a").set(created, "2020")

    renamed = graph.rename("a", "z")
    assert renamed.get(created) == "2020"
    assert renamed.get(UNIQUE_ID) == "z"


def test_import_keeps_immutable_values(graph: Graph) -> None:
    other = Graph()
    created = _immutable(other, "Created")
    other.links.get_or_create("x", "y").set(created, "2021")
    other.nodes.get("x").set(created, "2020")

    imported = graph.import_node(other.nodes.get("x"))
    assert imported.get("Created") == "2020"
    assert imported.get(UNIQUE_ID) == "x"
    link = graph.import_link(other.links.get("x", "y"))
    assert link.get("Created") == "2021"
    assert link.source is imported


def test_import_does_not_overwrite_immutable_values(graph: Graph) -> None:
    _immutable(graph, "Created")
    graph.nodes.get_or_create("x").set("Created", "local")
    other = Graph()
    other.nodes.get_or_create("x").set(_immutable(other, "Created"), "foreign")

    assert graph.import_node(other.nodes.get("x")).get("Created") == "local"
