"""Change-tracked map and set primitives.

Reads combine the committed backing structure with the pending changes of
the current transaction: entries deleted in the transaction are invisible,
entries added in it are visible. Writes never touch the backing structure
directly; they are staged in a tracker that the transaction engine applies
on commit or discards on rollback.

Iteration yields a snapshot of the coalesced view: committed entries first
(in their insertion order), then entries added by the transaction. Mutating
a container while iterating it is therefore safe.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Generic, Iterator, List, Optional, Tuple, TypeVar

from .transaction import ChangeTracked, ChangeTracker, GraphTransactionScope

logger = logging.getLogger("graphmodel.runtime.tracked")

K = TypeVar("K")
V = TypeVar("V")
T = TypeVar("T")

_MISSING: Any = object()


class MapChangeTracker(ChangeTracker, Generic[K, V]):
    """Pending additions and deletions for a :class:`ChangeTrackedMap`.

    An entry is never staged on both sides with the same value: re-adding
    the deleted value restores it, deleting an added entry discards it. A key
    may be on both sides with different values, which is a net overwrite.
    """

    __slots__ = ("_added", "_deleted")

    def __init__(self) -> None:
        self._added: Optional[Dict[K, V]] = None
        self._deleted: Optional[Dict[K, V]] = None

    @property
    def is_empty(self) -> bool:
        return not self._added and not self._deleted

    @property
    def added_count(self) -> int:
        return len(self._added) if self._added else 0

    @property
    def deleted_count(self) -> int:
        return len(self._deleted) if self._deleted else 0

    def added_items(self) -> Iterator[Tuple[K, V]]:
        return iter(list(self._added.items())) if self._added else iter(())

    def deleted_items(self) -> Iterator[Tuple[K, V]]:
        return iter(list(self._deleted.items())) if self._deleted else iter(())

    def is_added(self, key: K) -> bool:
        return bool(self._added) and key in self._added

    def is_deleted(self, key: K) -> bool:
        return bool(self._deleted) and key in self._deleted

    def get_added(self, key: K, default: Any = None) -> Any:
        if self._added:
            return self._added.get(key, default)
        return default

    def set(self, key: K, value: V, committed: Optional[Dict[K, V]]) -> None:
        if committed is not None and key in committed and committed[key] is value:
            # Restores (or keeps) the committed entry.
            if self._deleted:
                self._deleted.pop(key, None)
            if self._added:
                self._added.pop(key, None)
            return
        if self._added is None:
            self._added = {}
        self._added[key] = value

    def delete(self, key: K, committed: Optional[Dict[K, V]]) -> None:
        if self._added:
            self._added.pop(key, None)
        if committed is not None and key in committed:
            if self._deleted is None:
                self._deleted = {}
            self._deleted[key] = committed[key]


class SetChangeTracker(ChangeTracker, Generic[T]):
    """Pending additions and deletions for a :class:`ChangeTrackedSet`.

    Dictionaries are used as insertion-ordered sets.
    """

    __slots__ = ("_added", "_deleted")

    def __init__(self) -> None:
        self._added: Optional[Dict[T, None]] = None
        self._deleted: Optional[Dict[T, None]] = None

    @property
    def is_empty(self) -> bool:
        return not self._added and not self._deleted

    @property
    def added_count(self) -> int:
        return len(self._added) if self._added else 0

    @property
    def deleted_count(self) -> int:
        return len(self._deleted) if self._deleted else 0

    def added_items(self) -> Iterator[T]:
        return iter(list(self._added)) if self._added else iter(())

    def deleted_items(self) -> Iterator[T]:
        return iter(list(self._deleted)) if self._deleted else iter(())

    def is_added(self, value: T) -> bool:
        return bool(self._added) and value in self._added

    def is_deleted(self, value: T) -> bool:
        return bool(self._deleted) and value in self._deleted

    def add(self, value: T) -> None:
        if self._deleted and value in self._deleted:
            del self._deleted[value]
            return
        if self._added is None:
            self._added = {}
        self._added[value] = None

    def delete(self, value: T) -> None:
        if self._added and value in self._added:
            del self._added[value]
            return
        if self._deleted is None:
            self._deleted = {}
        self._deleted[value] = None


class ChangeTrackedMap(ChangeTracked, Generic[K, V]):
    """A mapping whose mutations are transactional.

    Args:
        parent: Optional owner notified (if it is a ``ChangeTrackedParent``)
            when a transaction touching this map commits or rolls back.
    """

    def __init__(self, parent: Optional[object] = None) -> None:
        super().__init__(parent)
        self._map: Optional[Dict[K, V]] = None
        self._cached_size: Optional[int] = None

    def _tracker(self) -> Optional[MapChangeTracker[K, V]]:
        return GraphTransactionScope.get_change_tracker(self)  # type: ignore[return-value]

    @property
    def size(self) -> int:
        if self._cached_size is None:
            committed = len(self._map) if self._map else 0
            tracker = self._tracker()
            if tracker is None or tracker.is_empty:
                return committed
            added = sum(
                1 for key, _ in tracker.added_items() if not self._map or key not in self._map
            )
            # A key deleted and then set again to another value stays visible.
            deleted = sum(1 for key, _ in tracker.deleted_items() if not tracker.is_added(key))
            self._cached_size = committed + added - deleted
        return self._cached_size

    def __len__(self) -> int:
        return self.size

    def __bool__(self) -> bool:
        return self.size > 0

    def __contains__(self, key: object) -> bool:
        return self.has(key)  # type: ignore[arg-type]

    def has(self, key: K) -> bool:
        tracker = self._tracker()
        if tracker is not None:
            if tracker.is_added(key):
                return True
            if tracker.is_deleted(key):
                return False
        return self._map is not None and key in self._map

    def get(self, key: K, default: Any = None) -> Any:
        tracker = self._tracker()
        if tracker is not None:
            if tracker.is_added(key):
                return tracker.get_added(key)
            if tracker.is_deleted(key):
                return default
        if self._map is not None:
            return self._map.get(key, default)
        return default

    def __getitem__(self, key: K) -> V:
        value = self.get(key, _MISSING)
        if value is _MISSING:
            raise KeyError(key)
        return value

    def set(self, key: K, value: V) -> "ChangeTrackedMap[K, V]":
        with GraphTransactionScope() as scope:
            tracker = GraphTransactionScope.get_or_create_change_tracker(self)
            tracker.set(key, value, self._map)  # type: ignore[attr-defined]
            self._invalidate_caches()
            scope.set_complete()
        return self

    def __setitem__(self, key: K, value: V) -> None:
        self.set(key, value)

    def delete(self, key: K, value: Any = _MISSING) -> bool:
        """Delete ``key``; when ``value`` is given, only if it is the current value."""
        current = self.get(key, _MISSING)
        if current is _MISSING:
            return False
        if value is not _MISSING and current is not value:
            return False
        with GraphTransactionScope() as scope:
            tracker = GraphTransactionScope.get_or_create_change_tracker(self)
            tracker.delete(key, self._map)  # type: ignore[attr-defined]
            self._invalidate_caches()
            scope.set_complete()
        return True

    def clear(self) -> None:
        keys = list(self.keys())
        if not keys:
            return
        with GraphTransactionScope() as scope:
            tracker = GraphTransactionScope.get_or_create_change_tracker(self)
            for key in keys:
                tracker.delete(key, self._map)  # type: ignore[attr-defined]
            self._invalidate_caches()
            scope.set_complete()

    def _coalesce(self) -> List[Tuple[K, V]]:
        tracker = self._tracker()
        if tracker is None or tracker.is_empty:
            return list(self._map.items()) if self._map else []
        result: List[Tuple[K, V]] = []
        if self._map:
            for key, value in self._map.items():
                if tracker.is_added(key):
                    # Overwritten in place.
                    result.append((key, tracker.get_added(key)))
                elif not tracker.is_deleted(key):
                    result.append((key, value))
        for key, value in tracker.added_items():
            if not self._map or key not in self._map:
                result.append((key, value))
        return result

    def items(self) -> Iterator[Tuple[K, V]]:
        return iter(self._coalesce())

    def keys(self) -> Iterator[K]:
        return iter([key for key, _ in self._coalesce()])

    def values(self) -> Iterator[V]:
        return iter([value for _, value in self._coalesce()])

    def __iter__(self) -> Iterator[K]:
        return self.keys()

    def __repr__(self) -> str:
        return f"ChangeTrackedMap({dict(self._coalesce())!r})"

    def _invalidate_caches(self) -> None:
        self._cached_size = None

    # ===== ChangeTracked =====

    def create_change_tracker(self) -> MapChangeTracker[K, V]:
        return MapChangeTracker()

    def commit_changes(self, tracker: ChangeTracker) -> None:
        assert isinstance(tracker, MapChangeTracker)
        self._invalidate_caches()
        if self._map is None:
            self._map = {}
        for key, value in tracker.deleted_items():
            if key in self._map and self._map[key] is value:
                del self._map[key]
        for key, value in tracker.added_items():
            self._map[key] = value

    def rollback_changes(self, tracker: ChangeTracker) -> None:
        self._invalidate_caches()


class ChangeTrackedSet(ChangeTracked, Generic[T]):
    """An insertion-ordered set whose mutations are transactional."""

    def __init__(self, parent: Optional[object] = None) -> None:
        super().__init__(parent)
        self._set: Optional[Dict[T, None]] = None
        self._cached_size: Optional[int] = None

    def _tracker(self) -> Optional[SetChangeTracker[T]]:
        return GraphTransactionScope.get_change_tracker(self)  # type: ignore[return-value]

    @property
    def size(self) -> int:
        if self._cached_size is None:
            committed = len(self._set) if self._set else 0
            tracker = self._tracker()
            if tracker is None:
                return committed
            self._cached_size = committed + tracker.added_count - tracker.deleted_count
        return self._cached_size

    def __len__(self) -> int:
        return self.size

    def __bool__(self) -> bool:
        return self.size > 0

    def __contains__(self, value: object) -> bool:
        return self.has(value)  # type: ignore[arg-type]

    def has(self, value: T) -> bool:
        tracker = self._tracker()
        if tracker is not None:
            if tracker.is_added(value):
                return True
            if tracker.is_deleted(value):
                return False
        return self._set is not None and value in self._set

    def add(self, value: T) -> "ChangeTrackedSet[T]":
        if not self.has(value):
            with GraphTransactionScope() as scope:
                GraphTransactionScope.get_or_create_change_tracker(self).add(value)  # type: ignore[attr-defined]
                self._invalidate_caches()
                scope.set_complete()
        return self

    def delete(self, value: T) -> bool:
        if not self.has(value):
            return False
        with GraphTransactionScope() as scope:
            GraphTransactionScope.get_or_create_change_tracker(self).delete(value)  # type: ignore[attr-defined]
            self._invalidate_caches()
            scope.set_complete()
        return True

    def discard(self, value: T) -> None:
        self.delete(value)

    def clear(self) -> None:
        values = self._coalesce()
        if not values:
            return
        with GraphTransactionScope() as scope:
            tracker = GraphTransactionScope.get_or_create_change_tracker(self)
            for value in values:
                tracker.delete(value)  # type: ignore[attr-defined]
            self._invalidate_caches()
            scope.set_complete()

    def _coalesce(self) -> List[T]:
        tracker = self._tracker()
        if tracker is None or tracker.is_empty:
            return list(self._set) if self._set else []
        result: List[T] = []
        if self._set:
            result.extend(value for value in self._set if not tracker.is_deleted(value))
        result.extend(tracker.added_items())
        return result

    def values(self) -> Iterator[T]:
        return iter(self._coalesce())

    def __iter__(self) -> Iterator[T]:
        return iter(self._coalesce())

    def __repr__(self) -> str:
        return f"ChangeTrackedSet({self._coalesce()!r})"

    def _invalidate_caches(self) -> None:
        self._cached_size = None

    # ===== ChangeTracked =====

    def create_change_tracker(self) -> SetChangeTracker[T]:
        return SetChangeTracker()

    def commit_changes(self, tracker: ChangeTracker) -> None:
        assert isinstance(tracker, SetChangeTracker)
        self._invalidate_caches()
        if self._set is None:
            self._set = {}
        for value in tracker.added_items():
            self._set[value] = None
        for value in tracker.deleted_items():
            self._set.pop(value, None)

    def rollback_changes(self, tracker: ChangeTracker) -> None:
        self._invalidate_caches()


__all__ = [
    "ChangeTrackedMap",
    "ChangeTrackedSet",
    "MapChangeTracker",
    "SetChangeTracker",
]
