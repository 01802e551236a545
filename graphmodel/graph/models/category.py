"""Graph categories and the per-schema category collection.

Categories form a forest through ``based_on``: each category has at most
one base, and assigning a base that would make a category its own ancestor
raises :class:`~graphmodel.errors.CyclicCategoryError`.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Dict, Iterable, Iterator, Optional, Union

from graphmodel.errors import CyclicCategoryError
from graphmodel.events import EventEmitter, EventSubscription
from graphmodel.identifiers import Identifier, format_identifier, is_identifier
from graphmodel.graph.models.metadata import GraphMetadataContainer, MetadataFactory

if TYPE_CHECKING:
    from graphmodel.graph.models.schema import GraphSchema

logger = logging.getLogger("graphmodel.graph.models.category")


class GraphCategory(GraphMetadataContainer):
    """A tag attachable to nodes and links.

    Args:
        id: Category identifier.
        metadata_factory: Optional factory for the category's metadata.
        based_on: Optional base category.
    """

    def __init__(
        self,
        id: Identifier,
        metadata_factory: Optional[MetadataFactory] = None,
        based_on: Optional["GraphCategory"] = None,
    ) -> None:
        super().__init__(metadata_factory)
        self._id = id
        self._based_on: Optional[GraphCategory] = None
        if based_on is not None:
            self.based_on = based_on

    @property
    def id(self) -> Identifier:
        return self._id

    @property
    def based_on(self) -> Optional["GraphCategory"]:
        return self._based_on

    @based_on.setter
    def based_on(self, value: Optional["GraphCategory"]) -> None:
        if value is self._based_on:
            return
        if value is not None and value.is_based_on(self):
            logger.debug(
                "Rejected based_on %s -> %s: would create a cycle",
                format_identifier(self._id),
                format_identifier(value.id),
            )
            raise CyclicCategoryError(
                "Invalid attempt to create a circular reference in category inheritance: "
                f"{format_identifier(value.id)!r} is already based on {format_identifier(self._id)!r}"
            )
        self._based_on = value

    def ancestors(self) -> Iterator["GraphCategory"]:
        """Yield the base categories, nearest first."""
        current = self._based_on
        while current is not None:
            yield current
            current = current._based_on

    def is_based_on(self, category: Union["GraphCategory", Identifier]) -> bool:
        """True if this category, or one of its bases, is ``category``.

        Args:
            category: A category instance (matched by identity) or an id.
        """
        current: Optional[GraphCategory] = self
        if is_identifier(category):
            while current is not None:
                if current._id == category:
                    return True
                current = current._based_on
            return False
        while current is not None:
            if current is category:
                return True
            current = current._based_on
        return False

    def __repr__(self) -> str:
        return f"GraphCategory({format_identifier(self._id)!r})"


CategoryLike = Union[GraphCategory, Identifier]


class GraphCategoryCollection:
    """A collection of graph categories in a schema."""

    _EVENTS = frozenset({"on_added", "on_deleted"})

    def __init__(self, schema: "GraphSchema") -> None:
        self._schema = schema
        self._categories: Dict[Identifier, GraphCategory] = {}
        self._events: Optional[EventEmitter] = None

    @property
    def schema(self) -> "GraphSchema":
        return self._schema

    @property
    def size(self) -> int:
        return len(self._categories)

    def __len__(self) -> int:
        return len(self._categories)

    def subscribe(self, **handlers) -> EventSubscription:
        if self._events is None:
            self._events = EventEmitter(self._EVENTS, "GraphCategoryCollection")
        return self._events.subscribe(**handlers)

    def has(self, category: CategoryLike) -> bool:
        if is_identifier(category):
            return category in self._categories
        return self._categories.get(category.id) is category  # type: ignore[union-attr]

    def __contains__(self, category: object) -> bool:
        return self.has(category)  # type: ignore[arg-type]

    def get(self, id: Identifier) -> Optional[GraphCategory]:
        return self._categories.get(id)

    def get_or_create(
        self, id: Identifier, metadata_factory: Optional[MetadataFactory] = None
    ) -> GraphCategory:
        """Get the category with the provided id, creating it if needed."""
        category = self._categories.get(id)
        if category is None:
            category = GraphCategory(id, metadata_factory)
            self.add(category)
        return category

    def add(self, category: GraphCategory) -> "GraphCategoryCollection":
        self._categories[category.id] = category
        self._raise_on_added(category)
        return self

    def delete(self, category: CategoryLike) -> bool:
        """Remove a category by instance or id. Returns False if absent."""
        id = category if is_identifier(category) else category.id  # type: ignore[union-attr]
        own = self._categories.get(id)  # type: ignore[arg-type]
        if own is None or (not is_identifier(category) and own is not category):
            return False
        del self._categories[id]  # type: ignore[arg-type]
        self._raise_on_deleted(own)
        return True

    def clear(self) -> None:
        for category in list(self._categories.values()):
            self.delete(category)

    def keys(self) -> Iterator[Identifier]:
        return iter(list(self._categories))

    def values(self, ids: Optional[Iterable[Identifier]] = None) -> Iterator[GraphCategory]:
        """Iterate categories, optionally only those with the given ids."""
        if ids is None:
            return iter(list(self._categories.values()))
        return iter([self._categories[id] for id in ids if id in self._categories])

    def __iter__(self) -> Iterator[GraphCategory]:
        return self.values()

    def based_on(self, base: CategoryLike) -> Iterator[GraphCategory]:
        """Yield the categories in the collection that are based on ``base``."""
        for category in self.values():
            if category.is_based_on(base):
                yield category

    def _raise_on_added(self, category: GraphCategory) -> None:
        self._schema._raise_on_changed()
        if self._events is not None:
            self._events.emit("on_added", category)

    def _raise_on_deleted(self, category: GraphCategory) -> None:
        self._schema._raise_on_changed()
        if self._events is not None:
            self._events.emit("on_deleted", category)


__all__ = ["CategoryLike", "GraphCategory", "GraphCategoryCollection"]
