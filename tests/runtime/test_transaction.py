"""Tests for transaction scopes and the commit/rollback protocol."""

import contextvars
from typing import Iterator, List

import pytest

from graphmodel.errors import DuplicateNodeError, GraphIntegrityError, TransactionStateError
from graphmodel.graph.core.graph import Graph
from graphmodel.runtime.transaction import (
    ChangeTracked,
    ChangeTrackedParent,
    ChangeTracker,
    GraphTransactionScope,
    transaction,
)


class _ListTracker(ChangeTracker):
    def __init__(self) -> None:
        self.items: List[int] = []

    def added_items(self) -> Iterator[int]:
        return iter(self.items)

    def deleted_items(self) -> Iterator[int]:
        return iter(())

    @property
    def is_empty(self) -> bool:
        return not self.items


class _RecordingParent(ChangeTrackedParent):
    def __init__(self, reject: bool = False) -> None:
        self.reject = reject
        self.committed = 0
        self.rolled_back = 0

    def on_changes_prepared(self, tracked: ChangeTracked, tracker: ChangeTracker) -> None:
        if self.reject:
            raise GraphIntegrityError("rejected")

    def on_changes_committed(self, tracked: ChangeTracked, tracker: ChangeTracker) -> None:
        self.committed += 1

    def on_changes_rolled_back(self, tracked: ChangeTracked, tracker: ChangeTracker) -> None:
        self.rolled_back += 1


class _TrackedList(ChangeTracked):
    def __init__(self, parent: ChangeTrackedParent) -> None:
        super().__init__(parent)
        self.values: List[int] = []

    def create_change_tracker(self) -> _ListTracker:
        return _ListTracker()

    def commit_changes(self, tracker: ChangeTracker) -> None:
        self.values.extend(tracker.added_items())

    def append(self, value: int) -> None:
        with GraphTransactionScope() as scope:
            GraphTransactionScope.get_or_create_change_tracker(self).items.append(value)
            scope.set_complete()


@pytest.fixture
def two_nodes(graph: Graph) -> Graph:
    graph.nodes.get_or_create("n1")
    graph.nodes.get_or_create("n2")
    return graph


def test_incomplete_scope_rolls_back(two_nodes: Graph) -> None:
    """Disposing without set_complete discards the pending node."""
    scope = GraphTransactionScope()
    two_nodes.nodes.get_or_create("n3")
    assert two_nodes.nodes.size == 3
    assert "n3" in list(two_nodes.nodes.keys())
    scope.dispose()

    assert two_nodes.nodes.size == 2
    assert "n3" not in list(two_nodes.nodes.keys())
    with GraphTransactionScope() as later:
        assert sorted(two_nodes.nodes.keys()) == ["n1", "n2"]
        later.set_complete()


def test_completed_scope_commits(two_nodes: Graph) -> None:
    """set_complete on the outermost scope makes the change permanent."""
    with GraphTransactionScope() as scope:
        two_nodes.nodes.get_or_create("n3")
        scope.set_complete()

    assert two_nodes.nodes.size == 3
    with GraphTransactionScope() as later:
        assert two_nodes.nodes.has("n3")
        later.set_complete()
    assert two_nodes.nodes.has("n3")


def test_completed_inner_scope_does_not_commit_incomplete_outer(two_nodes: Graph) -> None:
    """Completion requires every scope up to the outermost one."""
    outer = GraphTransactionScope()
    inner = GraphTransactionScope()
    two_nodes.nodes.get_or_create("n3")
    inner.set_complete()
    inner.dispose()
    assert two_nodes.nodes.has("n3")
    outer.dispose()

    assert not two_nodes.nodes.has("n3")
    assert two_nodes.nodes.size == 2


def test_incomplete_inner_scope_aborts_outer(two_nodes: Graph) -> None:
    """An aborted nested scope poisons the whole chain."""
    outer = GraphTransactionScope()
    inner = GraphTransactionScope()
    two_nodes.nodes.get_or_create("n3")
    inner.dispose()

    assert outer.aborted
    with pytest.raises(TransactionStateError):
        outer.set_complete()
    outer.dispose()
    assert not two_nodes.nodes.has("n3")


def test_set_complete_twice_raises() -> None:
    with GraphTransactionScope() as scope:
        scope.set_complete()
        with pytest.raises(TransactionStateError):
            scope.set_complete()


def test_set_complete_after_dispose_raises() -> None:
    scope = GraphTransactionScope()
    scope.dispose()
    assert scope.disposed
    with pytest.raises(TransactionStateError):
        scope.set_complete()
    scope.dispose()


def test_dispose_out_of_order_raises() -> None:
    """Scopes must unwind innermost first."""

    def run() -> None:
        outer = GraphTransactionScope()
        GraphTransactionScope()
        with pytest.raises(TransactionStateError):
            outer.dispose()

    # The failed unwind leaves the current scope pointer behind; keep it
    # out of the test session's context.
    contextvars.copy_context().run(run)
    assert GraphTransactionScope.current() is None


def test_tracking_requires_a_scope() -> None:
    tracked = _TrackedList(_RecordingParent())
    with pytest.raises(TransactionStateError):
        GraphTransactionScope.get_or_create_change_tracker(tracked)


def test_parents_notified_on_commit() -> None:
    parent = _RecordingParent()
    tracked = _TrackedList(parent)
    with GraphTransactionScope() as scope:
        tracked.append(1)
        tracked.append(2)
        assert tracked.values == []
        scope.set_complete()

    assert tracked.values == [1, 2]
    assert parent.committed == 1
    assert parent.rolled_back == 0


def test_prepare_failure_rolls_back_everything(two_nodes: Graph) -> None:
    """A failing prepare step rolls back every tracker, then re-raises."""
    parent = _RecordingParent(reject=True)
    tracked = _TrackedList(parent)

    with pytest.raises(GraphIntegrityError):
        with GraphTransactionScope() as scope:
            two_nodes.nodes.get_or_create("n3")
            tracked.append(1)
            scope.set_complete()

    assert not two_nodes.nodes.has("n3")
    assert tracked.values == []
    assert parent.committed == 0
    assert parent.rolled_back == 1
    assert GraphTransactionScope.current() is None


def test_link_to_missing_node_fails_prepare(graph: Graph) -> None:
    """Links whose endpoints left the node collection cannot be committed."""
    with pytest.raises(GraphIntegrityError):
        with GraphTransactionScope() as scope:
            graph.links.get_or_create("a", "b")
            # Bypass the cascading delete of the collection.
            graph.nodes._nodes.delete("b")
            scope.set_complete()

    assert graph.nodes.size == 0
    assert graph.links.size == 0


def test_transaction_helper_commits_and_rolls_back(graph: Graph) -> None:
    with transaction():
        graph.nodes.get_or_create("kept")

    with pytest.raises(RuntimeError):
        with transaction():
            graph.nodes.get_or_create("dropped")
            raise RuntimeError("boom")

    assert graph.nodes.has("kept")
    assert not graph.nodes.has("dropped")


def test_transaction_helper_reports_nested_abort(two_nodes: Graph) -> None:
    """A swallowed failure in a nested scope still fails the enclosing block."""
    with pytest.raises(TransactionStateError):
        with transaction():
            two_nodes.nodes.get_or_create("kept")
            try:
                two_nodes.rename("n1", "n2")
            except DuplicateNodeError:
                pass

    assert not two_nodes.nodes.has("kept")
    assert two_nodes.nodes.has("n1")
    assert GraphTransactionScope.current() is None
