"""Base class for extensible graph objects.

A :class:`GraphObject` carries a set of categories and a map of property
values. Both live in change-tracked containers, so category and property
edits made inside an aborted transaction scope are discarded together with
the structural changes of that scope. Change events are raised when the
transaction commits.
"""

from __future__ import annotations

import logging
from typing import (
    TYPE_CHECKING,
    AbstractSet,
    Any,
    Iterable,
    Iterator,
    Optional,
    Tuple,
    Union,
)

from graphmodel.config.schema import DEFAULT_CONFIG, GraphModelConfig
from graphmodel.errors import (
    ConversionError,
    GraphSchemaError,
    ImmutablePropertyError,
    PropertyValueError,
)
from graphmodel.events import EventEmitter, EventSubscription
from graphmodel.identifiers import Identifier, format_identifier, is_identifier
from graphmodel.runtime.tracked import ChangeTrackedMap, ChangeTrackedSet
from graphmodel.runtime.transaction import (
    ChangeTracked,
    ChangeTrackedParent,
    ChangeTracker,
    GraphTransactionScope,
)

if TYPE_CHECKING:
    from graphmodel.graph.models.category import GraphCategory
    from graphmodel.graph.models.property import GraphProperty
    from graphmodel.graph.models.schema import GraphSchema

logger = logging.getLogger("graphmodel.graph.models.objects")

PropertyKey = Union[Identifier, "GraphProperty"]
CategoryKey = Union[Identifier, "GraphCategory"]

MATCH_EXACT = "exact"
MATCH_INHERITED = "inherited"

_MISSING: Any = object()


def expand_category_set(categories: Iterable["GraphCategory"]) -> AbstractSet["GraphCategory"]:
    """Return ``categories`` together with all of their ancestors."""
    expanded = set()
    for category in categories:
        current: Optional[GraphCategory] = category
        while current is not None and current not in expanded:
            expanded.add(current)
            current = current.based_on
    return expanded


def matches_categories(obj: "GraphObject", categories: Tuple[CategoryKey, ...]) -> bool:
    """Exact category filter used by link and node queries.

    An empty selection matches every object. Otherwise one of the object's
    own categories must be in the selection, either as an instance or by id.
    """
    if not categories:
        return True
    for own in obj.categories():
        for category in categories:
            if own is category or (is_identifier(category) and own.id == category):
                return True
    return False


class GraphObject(ChangeTrackedParent):
    """The base definition of an extensible graph object.

    Args:
        owner: Graph the object belongs to, if any.
        category: Optional initial category.
    """

    _EVENTS = frozenset({"on_category_changed", "on_property_changed"})

    def __init__(self, owner: Optional[Any] = None, category: Optional["GraphCategory"] = None) -> None:
        self._owner = owner
        self._categories: Optional[ChangeTrackedSet[GraphCategory]] = None
        self._properties: Optional[ChangeTrackedMap[GraphProperty, Any]] = None
        self._events: Optional[EventEmitter] = None
        if category is not None:
            self.add_category(category)

    @property
    def owner(self) -> Optional[Any]:
        """The graph that this object belongs to."""
        return self._owner

    @property
    def schema(self) -> Optional["GraphSchema"]:
        """The document schema of the owning graph."""
        return self._owner.schema if self._owner is not None else None

    @property
    def config(self) -> GraphModelConfig:
        return self._owner.config if self._owner is not None else DEFAULT_CONFIG

    @property
    def category_count(self) -> int:
        return self._categories.size if self._categories is not None else 0

    @property
    def property_count(self) -> int:
        return self._properties.size if self._properties is not None else 0

    def subscribe(self, **handlers) -> EventSubscription:
        """Subscribe to ``on_category_changed`` and ``on_property_changed``.

        ``on_category_changed(change, category)`` receives ``"add"`` or
        ``"delete"``; ``on_property_changed(property_id)`` receives the id of
        the changed property.
        """
        if self._events is None:
            self._events = EventEmitter(self._EVENTS, type(self).__name__)
        return self._events.subscribe(**handlers)

    # ===== Categories =====

    def _resolve_category(self, category: CategoryKey, create: bool) -> Optional["GraphCategory"]:
        if not is_identifier(category):
            return category  # type: ignore[return-value]
        schema = self.schema
        if schema is None:
            return None
        found = schema.find_category(category)  # type: ignore[arg-type]
        if found is None and create:
            found = schema.categories.get_or_create(category)  # type: ignore[arg-type]
        return found

    def has_category(self, category: Union[CategoryKey, Iterable["GraphCategory"]]) -> bool:
        """Determine whether the object has a category, by id, instance or set.

        A single category (or id) matches when one of the object's categories
        is based on it. An iterable is matched exactly, see
        :meth:`has_category_in_set`.
        """
        if not self._categories:
            return False
        if not is_identifier(category) and not hasattr(category, "is_based_on"):
            return self.has_category_in_set(set(category), MATCH_EXACT)  # type: ignore[arg-type]
        for own in self._categories:
            if own.is_based_on(category):  # type: ignore[arg-type]
                return True
        return False

    def has_category_in_set(self, categories: AbstractSet["GraphCategory"], match: str = MATCH_EXACT) -> bool:
        """Determine whether the object has any of the categories in ``categories``.

        Args:
            categories: Set of categories to test against.
            match: ``"exact"`` to only match categories in the set, or
                ``"inherited"`` to also match through ``based_on`` chains.

        Returns:
            bool: True on a match.
        """
        if not self._categories:
            return False
        if match == MATCH_EXACT:
            return any(own in categories for own in self._categories)
        if match != MATCH_INHERITED:
            raise ValueError(f"Unknown category match mode: {match!r}")
        expanded = expand_category_set(categories)
        for own in self._categories:
            current: Optional[GraphCategory] = own
            while current is not None:
                if current in expanded:
                    return True
                current = current.based_on
        return False

    def add_category(self, category: CategoryKey) -> "GraphObject":
        resolved = self._resolve_category(category, create=True)
        if resolved is None:
            raise GraphSchemaError(
                f"Unknown category {format_identifier(category)!r}"  # type: ignore[arg-type]
            )
        if self._categories is None:
            self._categories = ChangeTrackedSet(self)
        self._categories.add(resolved)
        return self

    def delete_category(self, category: CategoryKey) -> bool:
        """Remove a category. Returns False if the object did not have it."""
        if self._categories is None:
            return False
        resolved = self._resolve_category(category, create=False)
        if resolved is None:
            return False
        return self._categories.delete(resolved)

    def categories(self) -> Iterator["GraphCategory"]:
        if self._categories is None:
            return iter(())
        return self._categories.values()

    # ===== Properties =====

    def _resolve_property(self, key: PropertyKey, create: bool) -> Optional["GraphProperty"]:
        if not is_identifier(key):
            return key  # type: ignore[return-value]
        schema = self.schema
        if schema is None:
            return None
        found = schema.find_property(key)  # type: ignore[arg-type]
        if found is None and create:
            found = schema.properties.get_or_create(key)  # type: ignore[arg-type]
        return found

    def _metadata_for(self, container: Any) -> Any:
        return container.get_metadata(self._owner)

    def has(self, key: PropertyKey) -> bool:
        """Determine whether the object holds its own value for a property."""
        if self._properties is None:
            return False
        prop = self._resolve_property(key, create=False)
        return prop is not None and self._properties.has(prop)

    def get(self, key: PropertyKey, default: Any = None) -> Any:
        """Get a property value.

        Falls back to values assigned by the metadata of the object's
        categories (following ``based_on``), then to the property's default
        value.
        """
        prop = self._resolve_property(key, create=False)
        if prop is None:
            return default
        if self._properties is not None:
            value = self._properties.get(prop, _MISSING)
            if value is not _MISSING:
                return value
        if self._categories:
            for own in self._categories:
                current: Optional[GraphCategory] = own
                while current is not None:
                    metadata = self._metadata_for(current)
                    if metadata.has(prop):
                        return metadata.get(prop)
                    current = current.based_on
        default_value = self._metadata_for(prop).default_value
        return default_value if default_value is not None else default

    def _check_value(self, prop: "GraphProperty", value: Any) -> Any:
        config = self.config
        data_type = prop.data_type
        if data_type is None or not config.validate_property_values:
            return value
        if data_type.validate(value):
            return value
        if config.convert_property_values:
            try:
                return data_type.convert(value)
            except ConversionError as exc:
                raise PropertyValueError(
                    f"Invalid value {value!r} for property {format_identifier(prop.id)!r}: {exc}"
                ) from exc
        raise PropertyValueError(
            f"Invalid value {value!r} for property {format_identifier(prop.id)!r} "
            f"(expected {data_type.full_name})"
        )

    def set(self, key: PropertyKey, value: Any) -> "GraphObject":
        """Set a property value. ``None`` deletes the property.

        Raises:
            GraphSchemaError: If ``key`` is an id that cannot be resolved.
            PropertyValueError: If the value does not fit the property's type.
            ImmutablePropertyError: If an immutable property already holds a
                different value.
        """
        if value is None:
            self.delete(key)
            return self

        prop = self._resolve_property(key, create=True)
        if prop is None:
            raise GraphSchemaError(f"Unknown property {format_identifier(key)!r}")  # type: ignore[arg-type]

        value = self._check_value(prop, value)
        if self._properties is None:
            self._properties = ChangeTrackedMap(self)
        current = self._properties.get(prop, _MISSING)
        if current is value:
            return self
        if current is not _MISSING and self._metadata_for(prop).is_immutable and current != value:
            logger.debug("Rejected change of immutable property %s", format_identifier(prop.id))
            raise ImmutablePropertyError(
                f"Property {format_identifier(prop.id)!r} is immutable"
            )
        self._properties.set(prop, value)
        return self

    def delete(self, key: PropertyKey) -> bool:
        """Remove a property value. Returns False if the object had none.

        Raises:
            ImmutablePropertyError: If the property is immutable.
        """
        if self._properties is None:
            return False
        prop = self._resolve_property(key, create=False)
        if prop is None or not self._properties.has(prop):
            return False
        if self._metadata_for(prop).is_immutable:
            raise ImmutablePropertyError(
                f"Property {format_identifier(prop.id)!r} is immutable"
            )
        return self._properties.delete(prop)

    def keys(self) -> Iterator["GraphProperty"]:
        if self._properties is None:
            return iter(())
        return self._properties.keys()

    def items(self) -> Iterator[Tuple["GraphProperty", Any]]:
        if self._properties is None:
            return iter(())
        return self._properties.items()

    def __iter__(self) -> Iterator[Tuple["GraphProperty", Any]]:
        return self.items()

    # ===== Internal =====

    def _set_owner(self, owner: Any) -> None:
        if self._owner is None:
            self._owner = owner

    def _local_category(self, category: "GraphCategory") -> "GraphCategory":
        schema = self.schema
        if schema is not None:
            found = schema.find_category(category.id)
            if found is not None:
                return found
        return category

    def _local_property(self, prop: "GraphProperty") -> "GraphProperty":
        schema = self.schema
        if schema is not None:
            found = schema.find_property(prop.id)
            if found is not None:
                return found
        return prop

    def _merge_from(self, other: "GraphObject") -> None:
        """Union categories and copy property values.

        Immutable properties this object already holds keep their value.

        Categories and properties are matched by id against this object's
        schema, so merging across graphs reuses the local definitions.
        """
        with GraphTransactionScope() as scope:
            for category in other.categories():
                self.add_category(self._local_category(category))
            for prop, value in other.items():
                prop = self._local_property(prop)
                if self._metadata_for(prop).is_immutable and self.has(prop):
                    continue
                self.set(prop, value)
            scope.set_complete()

    def _emit(self, event: str, *args: Any) -> None:
        if self._events is not None:
            self._events.emit(event, *args, collect_errors=self.config.collect_observer_errors)

    # ===== ChangeTrackedParent =====

    def on_changes_committed(self, tracked: ChangeTracked, tracker: ChangeTracker) -> None:
        if self._events is None:
            return
        if tracked is self._categories:
            for category in tracker.added_items():
                self._emit("on_category_changed", "add", category)
            for category in tracker.deleted_items():
                self._emit("on_category_changed", "delete", category)
        elif tracked is self._properties:
            changed = {}
            for prop, _ in tracker.added_items():
                changed[prop] = None
            for prop, _ in tracker.deleted_items():
                changed[prop] = None
            for prop in changed:
                self._emit("on_property_changed", prop.id)

    def on_changes_rolled_back(self, tracked: ChangeTracked, tracker: ChangeTracker) -> None:
        pass


__all__ = [
    "CategoryKey",
    "GraphObject",
    "MATCH_EXACT",
    "MATCH_INHERITED",
    "PropertyKey",
    "expand_category_set",
    "matches_categories",
]
