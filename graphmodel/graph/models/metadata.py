"""Metadata describing properties and categories.

Each :class:`GraphProperty` and :class:`GraphCategory` is a
:class:`GraphMetadataContainer`. The container creates a
:class:`GraphMetadata` on demand, once per graph, and stores it in the
graph's metadata side table.
"""

from __future__ import annotations

import logging
from enum import IntFlag
from typing import Any, Callable, List, Optional, Tuple

from pydantic import BaseModel, Field, field_validator

from graphmodel.graph.models.objects import GraphObject

logger = logging.getLogger("graphmodel.graph.models.metadata")


class GraphMetadataFlags(IntFlag):
    """Flags that control the behavior of a property or category."""

    NONE = 0
    IMMUTABLE = 1 << 0
    REMOVABLE = 1 << 1
    SERIALIZABLE = 1 << 2
    SHARABLE = 1 << 5
    DEFAULT = REMOVABLE | SHARABLE


class GraphMetadataOptions(BaseModel):
    """Options used to build a :class:`GraphMetadata`.

    Attributes:
        label: Display label.
        description: Longer description.
        group: Group name used to organize properties in tooling.
        default_value: Default value of a property. Only used for property
            metadata.
        flags: Behavior flags.
        properties: ``(property, value)`` pairs assigned by the metadata.
            Only used for category metadata.
    """

    label: Optional[str] = None
    description: Optional[str] = None
    group: Optional[str] = None
    default_value: Any = None
    flags: int = Field(default=GraphMetadataFlags.DEFAULT, ge=0)
    properties: List[Tuple[Any, Any]] = Field(default_factory=list)

    model_config = {"arbitrary_types_allowed": True, "frozen": True}

    @field_validator("flags")
    @classmethod
    def validate_flags(cls, v: int) -> GraphMetadataFlags:
        """Normalize flags to :class:`GraphMetadataFlags`."""
        return GraphMetadataFlags(v)


class GraphMetadata(GraphObject):
    """Graph metadata defines information about a GraphProperty or GraphCategory.

    Accepts either a :class:`GraphMetadataOptions` instance or the same
    options as keyword arguments.
    """

    def __init__(self, options: Optional[GraphMetadataOptions] = None, **kwargs: Any) -> None:
        super().__init__()
        if options is None:
            options = GraphMetadataOptions(**kwargs)
        elif kwargs:
            options = options.model_copy(update=kwargs)
        self._options = options
        for prop, value in options.properties:
            self.set(prop, value)

    @property
    def options(self) -> GraphMetadataOptions:
        return self._options

    @property
    def label(self) -> Optional[str]:
        return self._options.label

    @property
    def description(self) -> Optional[str]:
        return self._options.description

    @property
    def group(self) -> Optional[str]:
        return self._options.group

    @property
    def default_value(self) -> Any:
        return self._options.default_value

    @property
    def flags(self) -> GraphMetadataFlags:
        return GraphMetadataFlags(self._options.flags)

    @property
    def is_immutable(self) -> bool:
        """True if the property cannot be changed once it is set."""
        return bool(self._options.flags & GraphMetadataFlags.IMMUTABLE)

    @property
    def is_removable(self) -> bool:
        return bool(self._options.flags & GraphMetadataFlags.REMOVABLE)

    @property
    def is_serializable(self) -> bool:
        return bool(self._options.flags & GraphMetadataFlags.SERIALIZABLE)

    @property
    def is_sharable(self) -> bool:
        return bool(self._options.flags & GraphMetadataFlags.SHARABLE)

    def copy(self) -> "GraphMetadata":
        """Create a copy with the same options and property values."""
        copy = GraphMetadata(self._options.model_copy(update={"properties": []}))
        for prop, value in self.items():
            copy.set(prop, value)
        for category in self.categories():
            copy.add_category(category)
        return copy

    def __repr__(self) -> str:
        return f"GraphMetadata(label={self.label!r}, flags={self.flags!r})"


MetadataFactory = Callable[[], GraphMetadata]


class GraphMetadataContainer:
    """The base class for an object that can have associated graph metadata.

    Args:
        metadata_factory: Callable returning the default metadata. When
            omitted an empty metadata with default flags is used.
    """

    def __init__(self, metadata_factory: Optional[MetadataFactory] = None) -> None:
        self._metadata_factory = metadata_factory

    @property
    def metadata_factory(self) -> Optional[MetadataFactory]:
        return self._metadata_factory

    def create_default_metadata(self) -> GraphMetadata:
        """Create a new metadata object for the container."""
        if self._metadata_factory is not None:
            return self._metadata_factory()
        return GraphMetadata()

    def get_metadata(self, graph: Optional[Any] = None) -> GraphMetadata:
        """Get the metadata for this container within a graph.

        The metadata is created on first use and kept in the graph's side
        table. Without a graph a fresh default metadata is returned.
        """
        if graph is None:
            return self.create_default_metadata()
        metadata = graph._get_metadata(self)
        if metadata is None:
            metadata = self.create_default_metadata()
            graph._set_metadata(self, metadata)
        return metadata


__all__ = [
    "GraphMetadata",
    "GraphMetadataContainer",
    "GraphMetadataFlags",
    "GraphMetadataOptions",
    "MetadataFactory",
]
