"""Transactional runtime: scopes, enlistment and change-tracked containers."""

from .transaction import (
    ChangeTracked,
    ChangeTrackedParent,
    ChangeTracker,
    GraphEnlistment,
    GraphTransactionScope,
    transaction,
)
from .tracked import (
    ChangeTrackedMap,
    ChangeTrackedSet,
    MapChangeTracker,
    SetChangeTracker,
)

__all__ = [
    "ChangeTracked",
    "ChangeTrackedMap",
    "ChangeTrackedParent",
    "ChangeTrackedSet",
    "ChangeTracker",
    "GraphEnlistment",
    "GraphTransactionScope",
    "MapChangeTracker",
    "SetChangeTracker",
    "transaction",
]
