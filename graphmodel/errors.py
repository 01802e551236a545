"""Exception hierarchy for graphmodel.

Invariant violations (cyclic categories, cyclic schemas, misuse of
transaction scopes, duplicate node ids) raise immediately. Lookups whose
"absent" outcome is normal return ``None``/``False`` instead of raising.
"""

from typing import List, Optional


class GraphModelError(Exception):
    """Base class for all errors raised by graphmodel."""

    pass


class TransactionStateError(GraphModelError):
    """Invalid operation on a transaction scope.

    Raised when ``set_complete()`` is called twice, after the scope was
    disposed or aborted, or when a scope that is not the innermost one is
    disposed.
    """

    pass


class GraphIntegrityError(GraphModelError):
    """Pending changes would leave the graph structurally inconsistent."""

    pass


class DuplicateNodeError(GraphIntegrityError):
    """A different node instance with the same id already exists."""

    pass


class CyclicReferenceError(GraphModelError):
    """An assignment would create a cycle in an acyclic relation."""

    pass


class CyclicCategoryError(CyclicReferenceError):
    """Raised when a ``based_on`` assignment would make a category its own ancestor."""

    pass


class CyclicSchemaError(CyclicReferenceError):
    """Raised when a schema would (transitively) contain itself."""

    pass


class GraphSchemaError(GraphModelError):
    """Schema composition error."""

    pass


class ConversionError(GraphModelError):
    """A value cannot be converted to a data type."""

    pass


class AmbiguousConversionError(ConversionError):
    """A value could be converted by more than one union constituent."""

    pass


class PropertyValueError(GraphModelError, ValueError):
    """A property value is not valid for the property's data type."""

    pass


class ImmutablePropertyError(GraphModelError):
    """An immutable property already holds a different value."""

    pass


class EventDispatchError(GraphModelError):
    """One or more observers raised while an event was being dispatched.

    Attributes:
        errors: Exceptions raised by the observers, in notification order.
    """

    def __init__(self, message: str, errors: Optional[List[BaseException]] = None) -> None:
        super().__init__(message)
        self.errors: List[BaseException] = list(errors or [])


__all__ = [
    "AmbiguousConversionError",
    "ConversionError",
    "CyclicCategoryError",
    "CyclicReferenceError",
    "CyclicSchemaError",
    "DuplicateNodeError",
    "EventDispatchError",
    "GraphIntegrityError",
    "GraphModelError",
    "GraphSchemaError",
    "ImmutablePropertyError",
    "PropertyValueError",
    "TransactionStateError",
]
