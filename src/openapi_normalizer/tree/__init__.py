"""Schema tree typing and traversal helpers."""

from __future__ import annotations

from openapi_normalizer.tree.nodes import (
    APPLICATOR_KEYWORDS,
    COMBINATOR_KEYWORDS,
    CONDITIONAL_KEYWORDS,
    JSON_SCHEMA_TYPES,
    JsonValue,
    SchemaNode,
    is_schema,
)
from openapi_normalizer.tree.walker import (
    MAX_SCHEMA_DEPTH,
    check_depth,
    join_pointer,
    map_subschemas,
    walk,
)

__all__ = [
    "APPLICATOR_KEYWORDS",
    "COMBINATOR_KEYWORDS",
    "CONDITIONAL_KEYWORDS",
    "JSON_SCHEMA_TYPES",
    "MAX_SCHEMA_DEPTH",
    "JsonValue",
    "SchemaNode",
    "check_depth",
    "is_schema",
    "join_pointer",
    "map_subschemas",
    "walk",
]
