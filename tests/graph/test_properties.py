"""Tests for property values, metadata fallback and change events."""

import pytest

from graphmodel.errors import GraphSchemaError, ImmutablePropertyError, PropertyValueError
from graphmodel.runtime.transaction import GraphTransactionScope
from graphmodel.graph.core.graph import Graph
from graphmodel.graph.models.common_schema import CONTAINS, IS_CONTAINMENT, IS_PSEUDO, LABEL, UNIQUE_ID
from graphmodel.graph.models.data_types import DataType
from graphmodel.graph.models.metadata import GraphMetadata, GraphMetadataFlags
from graphmodel.graph.models.objects import GraphObject


def test_set_get_and_delete_with_none(graph: Graph) -> None:
    node = graph.nodes.get_or_create("a")
    node.label = "Alpha"
    assert node.label == "Alpha"
    assert node.has(LABEL)
    assert node.has("Label")

    node.label = None
    assert not node.has(LABEL)
    assert node.label is None


def test_unknown_property_returns_default(graph: Graph) -> None:
    node = graph.nodes.get_or_create("a")
    assert node.get("Nope") is None
    assert node.get("Nope", 1) == 1
    assert not node.has("Nope")
    assert not node.delete("Nope")


def test_setting_by_id_creates_untyped_property(graph: Graph) -> None:
    node = graph.nodes.get_or_create("a")
    node.set("Color", object)
    prop = graph.schema.find_property("Color")
    assert prop is not None
    assert prop.data_type is None
    assert node.get(prop) is object


def test_values_are_converted_to_the_property_type(graph: Graph) -> None:
    weight = graph.schema.properties.get_or_create("Weight", DataType.number)
    node = graph.nodes.get_or_create("a")
    node.set(weight, "2.5")
    assert node.get(weight) == 2.5
    node.label = 7
    assert node.label == "7"
    with pytest.raises(PropertyValueError):
        node.set(weight, "heavy")
    assert node.get(weight) == 2.5


def test_conversion_can_be_disabled() -> None:
    graph = Graph(config={"convert_property_values": False})
    node = graph.nodes.get_or_create("a")
    with pytest.raises(PropertyValueError):
        node.label = 7
    node.label = "seven"
    assert node.label == "seven"


def test_validation_can_be_disabled() -> None:
    graph = Graph(config={"validate_property_values": False})
    node = graph.nodes.get_or_create("a")
    node.label = 7
    assert node.label == 7


def test_unique_id_is_immutable(graph: Graph) -> None:
    node = graph.nodes.get_or_create("a")
    assert node.get(UNIQUE_ID) == "a"
    node.set(UNIQUE_ID, "a")
    with pytest.raises(ImmutablePropertyError):
        node.set(UNIQUE_ID, "b")
    with pytest.raises(ImmutablePropertyError):
        node.delete(UNIQUE_ID)
    assert node.get(UNIQUE_ID) == "a"


def test_category_metadata_supplies_values(graph: Graph) -> None:
    """Values come from the object, then its categories and their bases, then defaults."""
    weight = graph.schema.properties.get_or_create("Weight", DataType.number)
    weighted = graph.schema.categories.get_or_create(
        "Weighted", lambda: GraphMetadata(properties=[(weight, 3)])
    )
    derived = graph.schema.categories.get_or_create("Derived")
    derived.based_on = weighted

    node = graph.nodes.get_or_create("a", derived)
    assert node.get(weight) == 3
    assert not node.has(weight)
    node.set(weight, 5)
    assert node.get(weight) == 5


def test_property_default_value(graph: Graph) -> None:
    priority = graph.schema.properties.get_or_create(
        "Priority", DataType.integer, lambda: GraphMetadata(default_value=10)
    )
    node = graph.nodes.get_or_create("a")
    assert node.get(priority) == 10
    assert node.get(IS_PSEUDO) is False
    assert graph.get_metadata(priority).default_value == 10


def test_contains_marks_links_as_containment(graph: Graph) -> None:
    plain = graph.links.get_or_create("a", "b")
    contained = graph.links.get_or_create("a", "c", CONTAINS)
    assert plain.get(IS_CONTAINMENT) is False
    assert not plain.is_containment
    assert contained.is_containment
    assert graph.get_metadata(CONTAINS).label == "Contains"


def test_metadata_flags() -> None:
    metadata = GraphMetadata(flags=GraphMetadataFlags.IMMUTABLE | GraphMetadataFlags.SERIALIZABLE)
    assert metadata.is_immutable
    assert metadata.is_serializable
    assert not metadata.is_removable
    assert GraphMetadata().is_sharable
    copy = GraphMetadata(label="x", properties=[(LABEL, "y")]).copy()
    assert copy.label == "x"
    assert copy.get(LABEL) == "y"


def test_metadata_materialized_in_aborted_transaction_is_discarded(graph: Graph) -> None:
    scope = GraphTransactionScope()
    link = graph.links.get_or_create("a", "b", CONTAINS)
    assert link.is_containment
    scope.dispose()

    assert graph.links.size == 0
    assert graph.get_metadata(CONTAINS).get(IS_CONTAINMENT) is True
    assert graph.links.get_or_create("a", "b", CONTAINS).is_containment


def test_property_events_are_raised_on_commit(graph: Graph) -> None:
    node = graph.nodes.get_or_create("a")
    changed = []
    node.subscribe(on_property_changed=changed.append)

    with GraphTransactionScope() as scope:
        node.label = "first"
        node.label = "second"
        assert changed == []
        scope.set_complete()

    assert changed == ["Label"]


def test_category_events_are_raised_on_commit(graph: Graph) -> None:
    node = graph.nodes.get_or_create("a")
    events = []
    node.subscribe(on_category_changed=lambda change, category: events.append((change, category.id)))
    node.add_category("Thing")
    node.delete_category("Thing")
    assert events == [("add", "Thing"), ("delete", "Thing")]


def test_property_change_rolls_back(graph: Graph) -> None:
    node = graph.nodes.get_or_create("a")
    node.label = "kept"
    changed = []
    node.subscribe(on_property_changed=changed.append)

    scope = GraphTransactionScope()
    node.label = "discarded"
    node.add_category("Thing")
    assert node.label == "discarded"
    scope.dispose()

    assert node.label == "kept"
    assert node.category_count == 0
    assert changed == []


def test_detached_object_rejects_unknown_property_ids() -> None:
    detached = GraphObject()
    with pytest.raises(GraphSchemaError):
        detached.set("Anything", 1)
    detached.set(LABEL, "ok")
    assert detached.get(LABEL) == "ok"
    assert [prop for prop, _ in detached.items()] == [LABEL]
