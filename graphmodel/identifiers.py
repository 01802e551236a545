"""Identifier helpers for nodes, properties, categories and schemas.

An identifier is either a plain string or a :class:`Symbol`. Strings compare
by value; symbols compare by identity and are never equal to any string, so
both can be mixed freely as dictionary keys.
"""

from __future__ import annotations

import itertools
import threading
from typing import Dict, Optional, Union

_serials = itertools.count()
_registry: Dict[str, "Symbol"] = {}
_registry_lock = threading.Lock()

TAG_STRING = "S"
TAG_INTERNED = "%"
TAG_SYMBOL = "@"


class Symbol:
    """A unique symbolic identifier.

    Two symbols are equal only when they are the same object. Use
    :meth:`intern` to share one symbol across modules by key.
    """

    __slots__ = ("_description", "_serial", "_key")

    def __init__(self, description: Optional[str] = None) -> None:
        self._description = description
        self._serial = next(_serials)
        self._key: Optional[str] = None

    @classmethod
    def intern(cls, key: str) -> "Symbol":
        """Return the registered symbol for ``key``, creating it on first use."""
        with _registry_lock:
            symbol = _registry.get(key)
            if symbol is None:
                symbol = cls(key)
                symbol._key = key
                _registry[key] = symbol
            return symbol

    @staticmethod
    def key_for(symbol: "Symbol") -> Optional[str]:
        """Return the registry key of an interned symbol, or ``None``."""
        return symbol._key

    @property
    def description(self) -> Optional[str]:
        return self._description

    def __repr__(self) -> str:
        return f"Symbol({self._description!r})" if self._description is not None else "Symbol()"

    def __str__(self) -> str:
        return f"Symbol({self._description or ''})"


Identifier = Union[str, Symbol]


def is_identifier(value: object) -> bool:
    """Return True if ``value`` can be used as a graph identifier."""
    return isinstance(value, (str, Symbol))


def tagged_id(identifier: Identifier) -> str:
    """Return a stable, ordered string id for an identifier.

    Args:
        identifier: A string or a symbol.

    Returns:
        ``S,<text>`` for strings, ``%,<key>`` for interned symbols and
        ``@,<serial>,<description>`` for other symbols.
    """
    if isinstance(identifier, str):
        return f"{TAG_STRING},{identifier}"
    if isinstance(identifier, Symbol):
        key = Symbol.key_for(identifier)
        if key is not None:
            return f"{TAG_INTERNED},{key}"
        return f"{TAG_SYMBOL},{identifier._serial},{identifier.description or ''}"
    raise TypeError(f"Unsupported identifier type: {type(identifier)!r}")


def format_identifier(identifier: Identifier) -> str:
    """Human-readable form of an identifier for messages and labels."""
    return identifier if isinstance(identifier, str) else str(identifier)


__all__ = [
    "Identifier",
    "Symbol",
    "format_identifier",
    "is_identifier",
    "tagged_id",
]
