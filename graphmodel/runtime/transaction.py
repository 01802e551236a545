"""Transaction scopes for graph mutations.

Every mutating operation on a change-tracked container opens a
:class:`GraphTransactionScope`. Scopes nest; only the outermost scope decides
whether the pending changes of all enlisted containers are committed or
rolled back.

Usage:
    with GraphTransactionScope() as scope:
        graph.nodes.get_or_create("n3")
        scope.set_complete()

The current scope and the current enlistment are held in context variables,
so each thread (and each asyncio task) has its own scope stack.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any, Dict, Iterator, List, Optional, Tuple

from graphmodel.errors import TransactionStateError

logger = logging.getLogger("graphmodel.runtime.transaction")


class ChangeTracker(ABC):
    """Per-transaction staging area for one change-tracked container."""

    @abstractmethod
    def added_items(self) -> Iterator[Any]:
        """Iterate items staged for addition."""

    @abstractmethod
    def deleted_items(self) -> Iterator[Any]:
        """Iterate items staged for deletion."""

    @property
    @abstractmethod
    def is_empty(self) -> bool:
        """True when no changes are staged."""


class ChangeTrackedParent(ABC):
    """Owner of a change-tracked container that reacts to its outcome.

    The transaction engine calls these hooks (through the container) after
    every container in the transaction has been committed or rolled back.
    """

    def on_changes_prepared(self, tracked: "ChangeTracked", tracker: ChangeTracker) -> None:
        """Validate staged changes before commit. Raising aborts the commit."""

    @abstractmethod
    def on_changes_committed(self, tracked: "ChangeTracked", tracker: ChangeTracker) -> None:
        """Called once the staged changes of ``tracked`` are applied."""

    @abstractmethod
    def on_changes_rolled_back(self, tracked: "ChangeTracked", tracker: ChangeTracker) -> None:
        """Called once the staged changes of ``tracked`` are discarded."""


class ChangeTracked(ABC):
    """A container whose mutations are staged in a transaction-local tracker."""

    def __init__(self, parent: Optional[object] = None) -> None:
        self._parent = parent

    @property
    def parent(self) -> Optional[object]:
        return self._parent

    @abstractmethod
    def create_change_tracker(self) -> ChangeTracker:
        """Create an empty tracker for a new transaction."""

    def prepare_changes(self, tracker: ChangeTracker) -> None:
        if isinstance(self._parent, ChangeTrackedParent):
            self._parent.on_changes_prepared(self, tracker)

    @abstractmethod
    def commit_changes(self, tracker: ChangeTracker) -> None:
        """Apply staged changes onto the backing structure."""

    def rollback_changes(self, tracker: ChangeTracker) -> None:
        """Discard staged changes. The backing structure is left untouched."""

    def changes_committed(self, tracker: ChangeTracker) -> None:
        if isinstance(self._parent, ChangeTrackedParent):
            self._parent.on_changes_committed(self, tracker)

    def changes_rolled_back(self, tracker: ChangeTracker) -> None:
        if isinstance(self._parent, ChangeTrackedParent):
            self._parent.on_changes_rolled_back(self, tracker)


class GraphEnlistment:
    """All change trackers participating in the open top-level transaction."""

    def __init__(self) -> None:
        self._trackers: Dict[ChangeTracked, ChangeTracker] = {}

    def __len__(self) -> int:
        return len(self._trackers)

    def get_change_tracker(self, tracked: ChangeTracked) -> Optional[ChangeTracker]:
        return self._trackers.get(tracked)

    def get_or_create_change_tracker(self, tracked: ChangeTracked) -> ChangeTracker:
        tracker = self._trackers.get(tracked)
        if tracker is None:
            tracker = tracked.create_change_tracker()
            self._trackers[tracked] = tracker
        return tracker

    def _snapshot(self) -> List[Tuple[ChangeTracked, ChangeTracker]]:
        return list(self._trackers.items())

    def prepare(self) -> None:
        for tracked, tracker in self._snapshot():
            tracked.prepare_changes(tracker)

    def commit(self) -> None:
        entries = self._snapshot()
        self._trackers.clear()
        for tracked, tracker in entries:
            tracked.commit_changes(tracker)
        # Parents are notified only once every container reflects the commit.
        for tracked, tracker in entries:
            tracked.changes_committed(tracker)

    def rollback(self) -> None:
        entries = self._snapshot()
        self._trackers.clear()
        for tracked, tracker in entries:
            tracked.rollback_changes(tracker)
        for tracked, tracker in entries:
            tracked.changes_rolled_back(tracker)


_current_scope: ContextVar[Optional["GraphTransactionScope"]] = ContextVar(
    "graphmodel_current_scope", default=None
)
_current_enlistment: ContextVar[Optional[GraphEnlistment]] = ContextVar(
    "graphmodel_current_enlistment", default=None
)


class GraphTransactionScope:
    """A scope for transactional changes to a graph.

    Creating a scope makes it current; the previously current scope becomes
    its parent. Disposing the scope restores the parent. When the outermost
    scope is disposed, pending changes are committed if every scope in the
    chain called :meth:`set_complete`, and rolled back otherwise.
    """

    def __init__(self) -> None:
        self._parent: Optional[GraphTransactionScope] = _current_scope.get()
        self._completed = False
        self._aborted = False
        self._disposed = False
        _current_scope.set(self)

    @property
    def completed(self) -> bool:
        return self._completed

    @property
    def aborted(self) -> bool:
        return self._aborted

    @property
    def disposed(self) -> bool:
        return self._disposed

    @property
    def is_outermost(self) -> bool:
        return self._parent is None and not self._disposed

    def set_complete(self) -> None:
        """Mark the scope as successfully completed.

        Raises:
            TransactionStateError: If the scope was already completed,
                disposed, or aborted by a nested scope.
        """
        if self._disposed:
            raise TransactionStateError("Transaction scope has already been disposed.")
        if self._completed:
            raise TransactionStateError("Transaction scope has already been completed.")
        if self._aborted:
            raise TransactionStateError("Transaction scope has been aborted.")
        self._completed = True

    def dispose(self) -> None:
        """Leave the scope, committing or rolling back if it is outermost.

        Disposing twice is a no-op.

        Raises:
            TransactionStateError: If this scope is not the current innermost
                scope.
        """
        if self._disposed:
            return
        self._disposed = True

        if _current_scope.get() is not self:
            raise TransactionStateError(
                "Transaction scopes must be disposed in the reverse order of their creation."
            )

        parent = self._parent
        _current_scope.set(parent)
        self._parent = None

        if self._completed:
            if parent is None:
                self._commit()
        else:
            # Any incomplete scope aborts the entire chain up to the outermost scope.
            self._aborted = True
            scope = parent
            while scope is not None:
                scope._completed = False
                scope._aborted = True
                scope = scope._parent
            if parent is None:
                self._rollback()

    def __enter__(self) -> "GraphTransactionScope":
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        self.dispose()
        return False

    # ===== Engine entry points used by change-tracked containers =====

    @staticmethod
    def current() -> Optional["GraphTransactionScope"]:
        """Return the innermost open scope, if any."""
        return _current_scope.get()

    @staticmethod
    def get_change_tracker(tracked: ChangeTracked) -> Optional[ChangeTracker]:
        enlistment = _current_enlistment.get()
        if enlistment is None:
            return None
        return enlistment.get_change_tracker(tracked)

    @staticmethod
    def get_or_create_change_tracker(tracked: ChangeTracked) -> ChangeTracker:
        if _current_scope.get() is None:
            raise TransactionStateError("Changes can only be tracked inside a transaction scope.")
        enlistment = _current_enlistment.get()
        if enlistment is None:
            enlistment = GraphEnlistment()
            _current_enlistment.set(enlistment)
        return enlistment.get_or_create_change_tracker(tracked)

    def _commit(self) -> None:
        enlistment = _current_enlistment.get()
        if enlistment is None:
            return
        try:
            # Validation runs against the pending view of the transaction.
            enlistment.prepare()
        except Exception:
            _current_enlistment.set(None)
            logger.debug("Prepare failed; rolling back %d tracker(s)", len(enlistment))
            enlistment.rollback()
            raise
        _current_enlistment.set(None)
        logger.debug("Committing %d tracker(s)", len(enlistment))
        enlistment.commit()

    def _rollback(self) -> None:
        enlistment = _current_enlistment.get()
        _current_enlistment.set(None)
        if enlistment is not None:
            logger.debug("Rolling back %d tracker(s)", len(enlistment))
            enlistment.rollback()


@contextmanager
def transaction() -> Iterator[GraphTransactionScope]:
    """Open a scope that completes when the block exits without an exception.

    Raises:
        TransactionStateError: If a nested scope aborted the transaction and
            the block still exited normally. The changes are rolled back.

    Example:
        with transaction():
            graph.nodes.delete("a")
            graph.links.get_or_create("b", "c")
    """
    scope = GraphTransactionScope()
    try:
        yield scope
        if not scope.completed:
            scope.set_complete()
    finally:
        scope.dispose()


__all__ = [
    "ChangeTracked",
    "ChangeTrackedParent",
    "ChangeTracker",
    "GraphEnlistment",
    "GraphTransactionScope",
    "transaction",
]
