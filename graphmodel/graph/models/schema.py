"""Graph schemas: named bundles of categories, properties and data types.

Schemas nest through :attr:`GraphSchema.schemas`. The containment graph is
kept acyclic and lookups walk it depth-first in pre-order, first match wins.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterator, Optional, Set, Union

from graphmodel.errors import CyclicSchemaError, GraphSchemaError
from graphmodel.events import EventEmitter, EventSubscription
from graphmodel.identifiers import Identifier, format_identifier, is_identifier
from graphmodel.graph.models.category import GraphCategory, GraphCategoryCollection
from graphmodel.graph.models.data_types import DataType, DataTypeCollection, DataTypeLike
from graphmodel.graph.models.property import GraphProperty, GraphPropertyCollection

logger = logging.getLogger("graphmodel.graph.models.schema")


class GraphSchema:
    """A named bundle of category, property and data type definitions.

    Args:
        name: Schema name.
        *schemas: Child schemas to include.
    """

    _EVENTS = frozenset({"on_changed"})

    def __init__(self, name: Identifier, *schemas: "GraphSchema") -> None:
        self._name = name
        self._events: Optional[EventEmitter] = None
        self.categories = GraphCategoryCollection(self)
        self.properties = GraphPropertyCollection(self)
        self.data_types = DataTypeCollection(self)
        self.schemas = GraphSchemaCollection(self)
        for schema in schemas:
            self.add_schema(schema)

    @property
    def name(self) -> Identifier:
        return self._name

    @property
    def graph(self) -> Optional[Any]:
        """The graph that owns this schema. Only set for document schemas."""
        return None

    def subscribe(self, **handlers) -> EventSubscription:
        """Subscribe to ``on_changed``, raised when this schema or a child changes."""
        if self._events is None:
            self._events = EventEmitter(self._EVENTS, "GraphSchema")
        return self._events.subscribe(**handlers)

    def has_schema(self, schema: "GraphSchema") -> bool:
        """True if ``schema`` is this schema or is (transitively) included by it."""
        return any(own is schema for own in self.all_schemas())

    def add_schema(self, schema: "GraphSchema") -> "GraphSchema":
        self.schemas.add(schema)
        return self

    def all_schemas(self) -> Iterator["GraphSchema"]:
        """Yield this schema and every included schema, depth-first, pre-order."""
        seen: Set[int] = set()
        stack = [self]
        while stack:
            schema = stack.pop()
            if id(schema) in seen:
                continue
            seen.add(id(schema))
            yield schema
            stack.extend(reversed(list(schema.schemas.values())))

    def find_category(self, id: Identifier) -> Optional[GraphCategory]:
        for schema in self.all_schemas():
            category = schema.categories.get(id)
            if category is not None:
                return category
        return None

    def find_property(self, id: Identifier) -> Optional[GraphProperty]:
        for schema in self.all_schemas():
            prop = schema.properties.get(id)
            if prop is not None:
                return prop
        return None

    def find_data_type(
        self, name: DataTypeLike, package_qualifier: Optional[str] = None
    ) -> Optional[DataType[Any]]:
        for schema in self.all_schemas():
            data_type = schema.data_types.get(name, package_qualifier)
            if data_type is not None:
                return data_type
        return None

    def all_categories(self, *ids: Identifier) -> Iterator[GraphCategory]:
        """Yield the categories of every schema, optionally filtered by id."""
        for schema in self.all_schemas():
            yield from schema.categories.values(ids or None)

    def all_properties(self, *ids: Identifier) -> Iterator[GraphProperty]:
        for schema in self.all_schemas():
            if ids:
                for id in ids:
                    prop = schema.properties.get(id)
                    if prop is not None:
                        yield prop
            else:
                yield from schema.properties.values()

    def all_data_types(self) -> Iterator[DataType[Any]]:
        for schema in self.all_schemas():
            yield from schema.data_types.values()

    def _raise_on_changed(self) -> None:
        if self._events is not None:
            self._events.emit("on_changed")

    def __repr__(self) -> str:
        return f"{type(self).__name__}({format_identifier(self._name)!r})"


SchemaLike = Union[GraphSchema, Identifier]


class GraphSchemaCollection:
    """A collection of child schemas in a schema."""

    _EVENTS = frozenset({"on_added", "on_deleted"})

    def __init__(self, schema: GraphSchema) -> None:
        self._schema = schema
        self._schemas: Dict[Identifier, GraphSchema] = {}
        self._child_subscriptions: Dict[int, EventSubscription] = {}
        self._events: Optional[EventEmitter] = None

    @property
    def schema(self) -> GraphSchema:
        return self._schema

    @property
    def size(self) -> int:
        return len(self._schemas)

    def __len__(self) -> int:
        return len(self._schemas)

    def subscribe(self, **handlers) -> EventSubscription:
        if self._events is None:
            self._events = EventEmitter(self._EVENTS, "GraphSchemaCollection")
        return self._events.subscribe(**handlers)

    def has(self, schema: SchemaLike) -> bool:
        if is_identifier(schema):
            return schema in self._schemas
        return self._schemas.get(schema.name) is schema

    def __contains__(self, schema: object) -> bool:
        return self.has(schema)

    def get(self, name: Identifier) -> Optional[GraphSchema]:
        return self._schemas.get(name)

    def add(self, schema: GraphSchema) -> "GraphSchemaCollection":
        """Add a child schema.

        Raises:
            CyclicSchemaError: If ``schema`` already includes the owning schema.
            GraphSchemaError: If ``schema`` is the document schema of a graph.
        """
        if schema.has_schema(self._schema):
            logger.debug(
                "Rejected schema %s: it already contains %s",
                format_identifier(schema.name),
                format_identifier(self._schema.name),
            )
            raise CyclicSchemaError("Schemas cannot be circular.")
        if schema.graph is not None:
            raise GraphSchemaError("A document schema cannot be added to another schema.")
        if self._schemas.get(schema.name) is schema:
            return self
        previous = self._schemas.get(schema.name)
        if previous is not None:
            self._detach(previous)
        self._schemas[schema.name] = schema
        self._child_subscriptions[id(schema)] = schema.subscribe(
            on_changed=self._schema._raise_on_changed
        )
        self._schema._raise_on_changed()
        if self._events is not None:
            self._events.emit("on_added", schema)
        return self

    def delete(self, schema: SchemaLike) -> bool:
        name = schema if is_identifier(schema) else schema.name
        own = self._schemas.get(name)
        if own is None or (not is_identifier(schema) and own is not schema):
            return False
        del self._schemas[name]
        self._detach(own)
        self._schema._raise_on_changed()
        if self._events is not None:
            self._events.emit("on_deleted", own)
        return True

    def _detach(self, schema: GraphSchema) -> None:
        subscription = self._child_subscriptions.pop(id(schema), None)
        if subscription is not None:
            subscription.unsubscribe()

    def keys(self) -> Iterator[Identifier]:
        return iter(list(self._schemas))

    def values(self) -> Iterator[GraphSchema]:
        return iter(list(self._schemas.values()))

    def __iter__(self) -> Iterator[GraphSchema]:
        return self.values()


__all__ = ["GraphSchema", "GraphSchemaCollection"]
