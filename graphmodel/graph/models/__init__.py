"""Schema-level model: data types, metadata, categories, properties and schemas."""

from .data_types import (
    BUILTIN_DATA_TYPES,
    Conversion,
    DataType,
    DataTypeCollection,
    DataTypeKey,
)
from .objects import GraphObject, MATCH_EXACT, MATCH_INHERITED
from .metadata import (
    GraphMetadata,
    GraphMetadataContainer,
    GraphMetadataFlags,
    GraphMetadataOptions,
)
from .category import GraphCategory, GraphCategoryCollection
from .property import GraphProperty, GraphPropertyCollection
from .schema import GraphSchema, GraphSchemaCollection
from . import common_schema
from .common_schema import COMMON_SCHEMA

__all__ = [
    "BUILTIN_DATA_TYPES",
    "COMMON_SCHEMA",
    "Conversion",
    "DataType",
    "DataTypeCollection",
    "DataTypeKey",
    "GraphCategory",
    "GraphCategoryCollection",
    "GraphMetadata",
    "GraphMetadataContainer",
    "GraphMetadataFlags",
    "GraphMetadataOptions",
    "GraphObject",
    "GraphProperty",
    "GraphPropertyCollection",
    "GraphSchema",
    "GraphSchemaCollection",
    "MATCH_EXACT",
    "MATCH_INHERITED",
    "common_schema",
]
