"""Definitions shared by every graph.

This module builds :data:`COMMON_SCHEMA` at import time: the built-in data
types, the common properties (``Label``, ``UniqueId``, ``IsContainment``,
...) and the ``Contains`` category. Every document schema includes it.
"""

import logging

from graphmodel.identifiers import is_identifier
from graphmodel.graph.models.data_types import BUILTIN_DATA_TYPES, PACKAGE_QUALIFIER, DataType
from graphmodel.graph.models.metadata import GraphMetadata, GraphMetadataFlags
from graphmodel.graph.models.schema import GraphSchema

logger = logging.getLogger("graphmodel.graph.models.common_schema")

COMMON_SCHEMA = GraphSchema("GraphCommonSchema")

for _data_type in BUILTIN_DATA_TYPES:
    COMMON_SCHEMA.data_types.add(_data_type)

IDENTIFIER_TYPE = COMMON_SCHEMA.data_types.get_or_create(
    "Identifier", PACKAGE_QUALIFIER, is_identifier
)

BASE_URI = COMMON_SCHEMA.properties.get_or_create(
    "BaseUri",
    DataType.string,
    lambda: GraphMetadata(flags=GraphMetadataFlags.REMOVABLE),
)
VERSION = COMMON_SCHEMA.properties.get_or_create(
    "Version",
    DataType.number,
    lambda: GraphMetadata(flags=GraphMetadataFlags.REMOVABLE),
)
SOURCE_NODE = COMMON_SCHEMA.properties.get_or_create(
    "SourceNode",
    DataType.object,
    lambda: GraphMetadata(flags=GraphMetadataFlags.IMMUTABLE),
)
TARGET_NODE = COMMON_SCHEMA.properties.get_or_create(
    "TargetNode",
    DataType.object,
    lambda: GraphMetadata(flags=GraphMetadataFlags.IMMUTABLE),
)
IS_CONTAINMENT = COMMON_SCHEMA.properties.get_or_create(
    "IsContainment",
    DataType.boolean,
    lambda: GraphMetadata(default_value=False),
)
IS_PSEUDO = COMMON_SCHEMA.properties.get_or_create(
    "IsPseudo",
    DataType.boolean,
    lambda: GraphMetadata(
        default_value=False,
        flags=GraphMetadataFlags.REMOVABLE
        | GraphMetadataFlags.SERIALIZABLE
        | GraphMetadataFlags.SHARABLE,
    ),
)
IS_TAG = COMMON_SCHEMA.properties.get_or_create(
    "IsTag",
    DataType.boolean,
    lambda: GraphMetadata(default_value=False),
)
LABEL = COMMON_SCHEMA.properties.get_or_create(
    "Label",
    DataType.string,
    lambda: GraphMetadata(label="Label"),
)
UNIQUE_ID = COMMON_SCHEMA.properties.get_or_create(
    "UniqueId",
    IDENTIFIER_TYPE,
    lambda: GraphMetadata(flags=GraphMetadataFlags.IMMUTABLE),
)

CONTAINS = COMMON_SCHEMA.categories.get_or_create(
    "Contains",
    lambda: GraphMetadata(label="Contains", properties=[(IS_CONTAINMENT, True)]),
)


__all__ = [
    "BASE_URI",
    "COMMON_SCHEMA",
    "CONTAINS",
    "IDENTIFIER_TYPE",
    "IS_CONTAINMENT",
    "IS_PSEUDO",
    "IS_TAG",
    "LABEL",
    "SOURCE_NODE",
    "TARGET_NODE",
    "UNIQUE_ID",
    "VERSION",
]
