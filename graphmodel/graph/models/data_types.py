"""Data types for property values.

A :class:`DataType` is either a leaf type (a validator plus an optional
converter) or a flattened union of leaf types. Types are identified by a
:class:`DataTypeKey`: a ``(name, package_qualifier)`` pair for leaf types or
the sorted tuple of constituent keys for unions.
"""

from __future__ import annotations

import logging
import math
from decimal import Decimal, InvalidOperation
from enum import Enum
from fractions import Fraction
from typing import (
    TYPE_CHECKING,
    Any,
    Callable,
    Dict,
    Generic,
    Iterable,
    Iterator,
    Optional,
    Tuple,
    TypeVar,
    Union,
)

from graphmodel.errors import AmbiguousConversionError, ConversionError
from graphmodel.events import EventEmitter, EventSubscription
from graphmodel.identifiers import Identifier, Symbol, format_identifier, tagged_id

if TYPE_CHECKING:
    from graphmodel.graph.models.schema import GraphSchema

logger = logging.getLogger("graphmodel.graph.models.data_types")

T = TypeVar("T")

Validator = Callable[[Any], bool]
Converter = Callable[[Any], Any]

PACKAGE_QUALIFIER = "graphmodel"


class Conversion(str, Enum):
    """Outcome of :meth:`DataType.can_convert`."""

    CONVERTIBLE = "convertible"
    NOT_CONVERTIBLE = "not-convertible"
    AMBIGUOUS = "ambiguous"


class DataTypeKey:
    """Canonical identity of a data type.

    Args:
        name: Type name (a string or a symbol).
        package_qualifier: Optional package the type belongs to.
    """

    __slots__ = ("_name", "_package_qualifier", "_constituents", "_id")

    def __init__(self, name: Identifier, package_qualifier: str = "") -> None:
        if isinstance(name, Symbol) and package_qualifier:
            raise ValueError("Symbolic data type names cannot be package-qualified")
        self._name = name
        self._package_qualifier = package_qualifier or ""
        self._constituents: Tuple[DataTypeKey, ...] = ()
        if isinstance(name, Symbol):
            self._id = tagged_id(name)
        elif self._package_qualifier:
            self._id = tagged_id(f"{self._package_qualifier}!{name}")
        else:
            self._id = tagged_id(name)

    @classmethod
    def from_class(cls, type_: type, package_qualifier: Optional[str] = None) -> "DataTypeKey":
        return cls(type_.__name__, package_qualifier or "")

    @classmethod
    def union(cls, keys: Iterable["DataTypeKey"]) -> "DataTypeKey":
        """Build the key of a union from leaf keys.

        Duplicates are removed and constituents are sorted by id, so the
        result does not depend on argument order.
        """
        unique: Dict[str, DataTypeKey] = {}
        for key in keys:
            if key.is_union:
                raise ValueError("Union keys cannot be nested")
            unique.setdefault(key.id, key)
        ordered = tuple(unique[key_id] for key_id in sorted(unique))
        if len(ordered) < 2:
            raise ValueError("A union key needs at least two distinct constituents")
        key = cls.__new__(cls)
        key._name = "|".join(part.full_name for part in ordered)
        key._package_qualifier = ""
        key._constituents = ordered
        key._id = "|".join(part.id for part in ordered)
        return key

    @property
    def name(self) -> Identifier:
        return self._name

    @property
    def package_qualifier(self) -> str:
        return self._package_qualifier

    @property
    def constituents(self) -> Tuple["DataTypeKey", ...]:
        return self._constituents

    @property
    def is_union(self) -> bool:
        return bool(self._constituents)

    @property
    def id(self) -> str:
        """Stable id used for ordering and lookup."""
        return self._id

    @property
    def full_name(self) -> str:
        """Display name, ``qualifier!name`` for qualified types."""
        if isinstance(self._name, Symbol):
            return format_identifier(self._name)
        if self._package_qualifier:
            return f"{self._package_qualifier}!{self._name}"
        return self._name

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, DataTypeKey):
            return NotImplemented
        return self._id == other._id

    def __hash__(self) -> int:
        return hash(self._id)

    def __lt__(self, other: "DataTypeKey") -> bool:
        return self._id < other._id

    def __repr__(self) -> str:
        return f"DataTypeKey({self.full_name!r})"


class DataType(Generic[T]):
    """A value type with validation and best-effort conversion.

    Instances for custom types are normally created through
    ``GraphSchema.data_types.get_or_create()``. Unions are created with
    :meth:`DataType.union` and cached, so the same set of constituents always
    yields the same instance.
    """

    _unions: Dict[str, "DataType[Any]"] = {}

    # Built-in leaf types, assigned below the class body.
    string: "DataType[str]"
    symbol: "DataType[Symbol]"
    number: "DataType[Union[int, float]]"
    integer: "DataType[int]"
    decimal: "DataType[Decimal]"
    boolean: "DataType[bool]"
    object: "DataType[Any]"
    function: "DataType[Callable[..., Any]]"
    null: "DataType[None]"
    unknown: "DataType[Any]"
    never: "DataType[Any]"
    any: "DataType[Any]"

    def __init__(
        self,
        key: DataTypeKey,
        validator: Optional[Validator] = None,
        can_convert: Optional[Validator] = None,
        converter: Optional[Converter] = None,
        constituents: Optional[Tuple["DataType[Any]", ...]] = None,
    ) -> None:
        self._key = key
        self._validator = validator
        self._can_convert = can_convert
        self._converter = converter
        self._constituents = constituents
        self._can_validate: Optional[bool] = None

    @property
    def key(self) -> DataTypeKey:
        return self._key

    @property
    def name(self) -> Identifier:
        return self._key.name

    @property
    def package_qualifier(self) -> str:
        return self._key.package_qualifier

    @property
    def full_name(self) -> str:
        return self._key.full_name

    @property
    def constituents(self) -> Tuple["DataType[Any]", ...]:
        return self._constituents or ()

    @property
    def is_union(self) -> bool:
        return self._constituents is not None

    @property
    def can_validate(self) -> bool:
        """True if values can be checked: a union needs every constituent to validate."""
        if self._constituents is not None:
            if self._can_validate is None:
                self._can_validate = all(part.can_validate for part in self._constituents)
            return self._can_validate
        return self._validator is not None

    @classmethod
    def union(cls, *types: "DataType[Any]") -> "DataType[Any]":
        """Return the union of ``types``.

        Nested unions are flattened, ``never`` is dropped and ``any`` or
        ``unknown`` absorb every other member.
        """
        if not types:
            return cls.never

        members: Dict[str, DataType[Any]] = {}
        for data_type in types:
            for part in data_type._constituents or (data_type,):
                members.setdefault(part._key.id, part)

        members.pop(cls.never._key.id, None)
        if cls.any._key.id in members:
            return cls.any
        if cls.unknown._key.id in members:
            return cls.unknown
        if not members:
            return cls.never
        if len(members) == 1:
            return next(iter(members.values()))

        ordered = tuple(members[key_id] for key_id in sorted(members))
        key = DataTypeKey.union(part._key for part in ordered)
        cached = cls._unions.get(key.id)
        if cached is None:
            cached = cls(key, constituents=ordered)
            cls._unions[key.id] = cached
        return cached

    def validate(self, value: Any) -> bool:
        """Return True if ``value`` already belongs to this type."""
        if self._constituents is not None:
            if not self.can_validate:
                return True
            return any(part.validate(value) for part in self._constituents)
        if self._validator is None:
            return True
        return bool(self._validator(value))

    def _convertible_candidates(self, value: Any) -> Tuple[Conversion, list, list]:
        candidates = []
        primitives = []
        for part in self._constituents or ():
            outcome = part.can_convert(value)
            if outcome is Conversion.AMBIGUOUS:
                return Conversion.AMBIGUOUS, [], []
            if outcome is Conversion.CONVERTIBLE:
                if part is DataType.null:
                    continue
                if part in _PRIMITIVE_PREFERENCE:
                    primitives.append(part)
                else:
                    candidates.append(part)
        if len(candidates) > 1:
            return Conversion.AMBIGUOUS, candidates, primitives
        if candidates or primitives:
            return Conversion.CONVERTIBLE, candidates, primitives
        return Conversion.NOT_CONVERTIBLE, candidates, primitives

    def can_convert(self, value: Any) -> Conversion:
        """Report whether :meth:`convert` would succeed for ``value``."""
        if self.validate(value):
            return Conversion.CONVERTIBLE
        if self._constituents is not None:
            outcome, _, _ = self._convertible_candidates(value)
            return outcome
        if self._converter is None:
            return Conversion.NOT_CONVERTIBLE
        if self._can_convert is None or self._can_convert(value):
            return Conversion.CONVERTIBLE
        return Conversion.NOT_CONVERTIBLE

    def convert(self, value: Any) -> T:
        """Convert ``value`` to this type.

        For unions, a single non-primitive candidate wins; otherwise
        ``number`` is preferred over ``string`` over ``boolean``.

        Raises:
            AmbiguousConversionError: More than one constituent could convert
                the value and none is preferred.
            ConversionError: The value cannot be converted.
        """
        if self.validate(value):
            return value
        if self._constituents is not None:
            outcome, candidates, primitives = self._convertible_candidates(value)
            if outcome is Conversion.AMBIGUOUS:
                raise AmbiguousConversionError(
                    f"Conversion of {value!r} to {self.full_name} would be ambiguous"
                )
            if candidates:
                return candidates[0].convert(value)
            for preferred in _PRIMITIVE_PREFERENCE:
                if preferred in primitives:
                    return preferred.convert(value)
            raise ConversionError(f"Cannot convert {value!r} to {self.full_name}")
        if self.can_convert(value) is Conversion.CONVERTIBLE:
            assert self._converter is not None
            return self._converter(value)
        raise ConversionError(f"Cannot convert {value!r} to {self.full_name}")

    def __str__(self) -> str:
        return self.full_name

    def __repr__(self) -> str:
        return f"DataType({self.full_name!r})"


# ===== Built-in validators and converters =====


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _is_integer(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _parse_number(text: str) -> Union[int, float]:
    text = text.strip()
    try:
        return int(text)
    except ValueError:
        return float(text)


def _exact_number(value: Union[Decimal, Fraction]) -> Optional[Union[int, float]]:
    if isinstance(value, Decimal) and not value.is_finite():
        return None
    if value == int(value):
        return int(value)
    as_float = float(value)
    if type(value)(as_float) == value:
        return as_float
    return None


def _number_can_convert(value: Any) -> bool:
    if isinstance(value, str):
        try:
            _parse_number(value)
        except ValueError:
            return False
        return True
    if isinstance(value, (Decimal, Fraction)):
        return _exact_number(value) is not None
    return False


def _number_convert(value: Any) -> Union[int, float]:
    if isinstance(value, str):
        return _parse_number(value)
    result = _exact_number(value)
    if result is None:
        raise ConversionError(f"{value!r} is not exactly representable as a number")
    return result


def _integer_can_convert(value: Any) -> bool:
    if isinstance(value, str):
        try:
            int(value.strip())
        except ValueError:
            return False
        return True
    if isinstance(value, float):
        return math.isfinite(value) and value.is_integer()
    if isinstance(value, Decimal):
        return value.is_finite() and value == value.to_integral_value()
    if isinstance(value, Fraction):
        return value.denominator == 1
    return False


def _integer_convert(value: Any) -> int:
    if isinstance(value, str):
        return int(value.strip())
    return int(value)


def _decimal_can_convert(value: Any) -> bool:
    if isinstance(value, str):
        try:
            Decimal(value.strip())
        except InvalidOperation:
            return False
        return True
    if isinstance(value, float):
        return math.isfinite(value)
    return _is_integer(value)


def _decimal_convert(value: Any) -> Decimal:
    if isinstance(value, str):
        return Decimal(value.strip())
    return Decimal(value)


def _always(value: Any) -> bool:
    return True


def _identity(value: Any) -> Any:
    return value


def _builtin(name: str, validator: Optional[Validator], can_convert=None, converter=None) -> DataType[Any]:
    return DataType(DataTypeKey(name), validator, can_convert, converter)


DataType.string = _builtin(
    "string",
    lambda value: isinstance(value, str),
    lambda value: not isinstance(value, Symbol),
    str,
)
DataType.symbol = _builtin("symbol", lambda value: isinstance(value, Symbol))
DataType.number = _builtin("number", _is_number, _number_can_convert, _number_convert)
DataType.integer = _builtin("integer", _is_integer, _integer_can_convert, _integer_convert)
DataType.decimal = _builtin(
    "decimal", lambda value: isinstance(value, Decimal), _decimal_can_convert, _decimal_convert
)
DataType.boolean = _builtin("boolean", lambda value: isinstance(value, bool), _always, bool)
DataType.object = _builtin(
    "object", lambda value: value is not None, lambda value: value is not None, _identity
)
DataType.function = _builtin("function", callable)
DataType.null = _builtin("null", lambda value: value is None, _always, lambda value: None)
DataType.unknown = _builtin("unknown", _always, _always, _identity)
DataType.never = _builtin("never", lambda value: False)
DataType.any = _builtin("any", _always, _always, _identity)

_PRIMITIVE_PREFERENCE: Tuple[DataType[Any], ...] = (
    DataType.number,
    DataType.string,
    DataType.boolean,
)

BUILTIN_DATA_TYPES: Tuple[DataType[Any], ...] = (
    DataType.string,
    DataType.symbol,
    DataType.number,
    DataType.integer,
    DataType.decimal,
    DataType.boolean,
    DataType.object,
    DataType.function,
    DataType.null,
    DataType.unknown,
    DataType.never,
    DataType.any,
)


DataTypeLike = Union[Identifier, DataTypeKey, DataType[Any]]


def _key_of(data_type: DataTypeLike, package_qualifier: Optional[str] = None) -> DataTypeKey:
    if isinstance(data_type, DataType):
        return data_type.key
    if isinstance(data_type, DataTypeKey):
        return data_type
    return DataTypeKey(data_type, package_qualifier or "")


class DataTypeCollection:
    """The data types registered in a schema, keyed by canonical key."""

    _EVENTS = frozenset({"on_added", "on_deleted"})

    def __init__(self, schema: "GraphSchema") -> None:
        self._schema = schema
        self._types: Dict[str, DataType[Any]] = {}
        self._events: Optional[EventEmitter] = None

    @property
    def schema(self) -> "GraphSchema":
        return self._schema

    @property
    def size(self) -> int:
        return len(self._types)

    def __len__(self) -> int:
        return len(self._types)

    def subscribe(self, **handlers) -> EventSubscription:
        if self._events is None:
            self._events = EventEmitter(self._EVENTS, "DataTypeCollection")
        return self._events.subscribe(**handlers)

    def has(self, data_type: DataTypeLike, package_qualifier: Optional[str] = None) -> bool:
        """Check membership by name/key, or by instance for a DataType."""
        key = _key_of(data_type, package_qualifier)
        own = self._types.get(key.id)
        if isinstance(data_type, DataType):
            return own is data_type
        return own is not None

    def __contains__(self, data_type: object) -> bool:
        return self.has(data_type)  # type: ignore[arg-type]

    def get(
        self, name: DataTypeLike, package_qualifier: Optional[str] = None
    ) -> Optional[DataType[Any]]:
        return self._types.get(_key_of(name, package_qualifier).id)

    def get_or_create(
        self,
        name: Identifier,
        package_qualifier: Optional[str] = None,
        validator: Optional[Validator] = None,
        can_convert: Optional[Validator] = None,
        converter: Optional[Converter] = None,
    ) -> DataType[Any]:
        """Get the data type with the given name, creating it if needed.

        Args:
            name: Type name.
            package_qualifier: Optional package of the type.
            validator: Validator used when the type is created.
            can_convert: Optional convertibility check for ``converter``.
            converter: Optional converter used when the type is created.

        Returns:
            DataType: The registered data type.
        """
        key = DataTypeKey(name, package_qualifier or "")
        data_type = self._types.get(key.id)
        if data_type is None:
            data_type = DataType(key, validator, can_convert, converter)
            self.add(data_type)
        return data_type

    def get_or_create_class(
        self, type_: type, package_qualifier: Optional[str] = None
    ) -> DataType[Any]:
        """Get or create a data type whose values are instances of ``type_``."""
        key = DataTypeKey.from_class(type_, package_qualifier)
        data_type = self._types.get(key.id)
        if data_type is None:
            data_type = DataType(key, lambda value: isinstance(value, type_))
            self.add(data_type)
        return data_type

    def add(self, data_type: DataType[Any]) -> "DataTypeCollection":
        self._types[data_type.key.id] = data_type
        self._raise_on_added(data_type)
        return self

    def delete(
        self, data_type: DataTypeLike, package_qualifier: Optional[str] = None
    ) -> bool:
        """Remove a data type by instance or canonical key.

        Returns:
            bool: True if a data type was removed.
        """
        key = _key_of(data_type, package_qualifier)
        own = self._types.get(key.id)
        if own is None:
            return False
        if isinstance(data_type, DataType) and own is not data_type:
            return False
        del self._types[key.id]
        self._raise_on_deleted(own)
        return True

    def clear(self) -> None:
        for data_type in list(self._types.values()):
            self.delete(data_type)

    def values(self) -> Iterator[DataType[Any]]:
        return iter(list(self._types.values()))

    def __iter__(self) -> Iterator[DataType[Any]]:
        return self.values()

    def _raise_on_added(self, data_type: DataType[Any]) -> None:
        self._schema._raise_on_changed()
        if self._events is not None:
            self._events.emit("on_added", data_type)

    def _raise_on_deleted(self, data_type: DataType[Any]) -> None:
        self._schema._raise_on_changed()
        if self._events is not None:
            self._events.emit("on_deleted", data_type)


__all__ = [
    "BUILTIN_DATA_TYPES",
    "Conversion",
    "DataType",
    "DataTypeCollection",
    "DataTypeKey",
    "DataTypeLike",
    "PACKAGE_QUALIFIER",
]
