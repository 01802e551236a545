"""Graph properties and the per-schema property collection."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Dict, Iterator, Optional, Union

from graphmodel.events import EventEmitter, EventSubscription
from graphmodel.identifiers import Identifier, format_identifier, is_identifier
from graphmodel.graph.models.data_types import DataType
from graphmodel.graph.models.metadata import GraphMetadataContainer, MetadataFactory

if TYPE_CHECKING:
    from graphmodel.graph.models.schema import GraphSchema

logger = logging.getLogger("graphmodel.graph.models.property")


class GraphProperty(GraphMetadataContainer):
    """Descriptor of a typed property slot.

    Args:
        id: Property identifier.
        data_type: Optional type that values are checked against.
        metadata_factory: Optional factory for the property's metadata.
    """

    def __init__(
        self,
        id: Identifier,
        data_type: Optional[DataType[Any]] = None,
        metadata_factory: Optional[MetadataFactory] = None,
    ) -> None:
        super().__init__(metadata_factory)
        self._id = id
        self._data_type = data_type

    @property
    def id(self) -> Identifier:
        return self._id

    @property
    def data_type(self) -> Optional[DataType[Any]]:
        return self._data_type

    def __repr__(self) -> str:
        return f"GraphProperty({format_identifier(self._id)!r})"


PropertyLike = Union[GraphProperty, Identifier]


class GraphPropertyCollection:
    """A collection of graph properties in a schema."""

    _EVENTS = frozenset({"on_added", "on_deleted"})

    def __init__(self, schema: "GraphSchema") -> None:
        self._schema = schema
        self._properties: Dict[Identifier, GraphProperty] = {}
        self._events: Optional[EventEmitter] = None

    @property
    def schema(self) -> "GraphSchema":
        return self._schema

    @property
    def size(self) -> int:
        return len(self._properties)

    def __len__(self) -> int:
        return len(self._properties)

    def subscribe(self, **handlers) -> EventSubscription:
        if self._events is None:
            self._events = EventEmitter(self._EVENTS, "GraphPropertyCollection")
        return self._events.subscribe(**handlers)

    def has(self, prop: PropertyLike) -> bool:
        if is_identifier(prop):
            return prop in self._properties
        return self._properties.get(prop.id) is prop  # type: ignore[union-attr]

    def __contains__(self, prop: object) -> bool:
        return self.has(prop)  # type: ignore[arg-type]

    def get(self, id: Identifier) -> Optional[GraphProperty]:
        return self._properties.get(id)

    def get_or_create(
        self,
        id: Identifier,
        data_type: Optional[DataType[Any]] = None,
        metadata_factory: Optional[MetadataFactory] = None,
    ) -> GraphProperty:
        """Get the property with the provided id, creating it if needed.

        Args:
            id: Property identifier.
            data_type: Data type used when the property is created.
            metadata_factory: Metadata factory used when the property is
                created.

        Returns:
            GraphProperty: The existing or new property.
        """
        prop = self._properties.get(id)
        if prop is None:
            prop = GraphProperty(id, data_type, metadata_factory)
            self.add(prop)
        return prop

    def add(self, prop: GraphProperty) -> "GraphPropertyCollection":
        self._properties[prop.id] = prop
        self._raise_on_added(prop)
        return self

    def delete(self, prop: PropertyLike) -> bool:
        id = prop if is_identifier(prop) else prop.id  # type: ignore[union-attr]
        own = self._properties.get(id)  # type: ignore[arg-type]
        if own is None or (not is_identifier(prop) and own is not prop):
            return False
        del self._properties[id]  # type: ignore[arg-type]
        self._raise_on_deleted(own)
        return True

    def clear(self) -> None:
        for prop in list(self._properties.values()):
            self.delete(prop)

    def keys(self) -> Iterator[Identifier]:
        return iter(list(self._properties))

    def values(self) -> Iterator[GraphProperty]:
        return iter(list(self._properties.values()))

    def __iter__(self) -> Iterator[GraphProperty]:
        return self.values()

    def _raise_on_added(self, prop: GraphProperty) -> None:
        self._schema._raise_on_changed()
        if self._events is not None:
            self._events.emit("on_added", prop)

    def _raise_on_deleted(self, prop: GraphProperty) -> None:
        self._schema._raise_on_changed()
        if self._events is not None:
            self._events.emit("on_deleted", prop)


__all__ = ["GraphProperty", "GraphPropertyCollection", "PropertyLike"]
