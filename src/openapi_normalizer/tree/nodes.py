"""SchemaNode typing and JSON Schema keyword tables.

A ``SchemaNode`` is a JSON Schema (or OpenAPI Schema Object) held as a plain
``dict``.  The ``TypedDict`` below names every keyword the transformers read
or write, with its precise value type, so a type checker can tell a scalar
``type`` from a type array.  Keywords not listed (``format``, ``pattern``,
``x-*`` extensions, ...) pass through untouched.

The keyword tables describe where subschemas live:

- ``SCHEMA_MAP_KEYWORDS``: name -> schema mappings (``properties``).
- ``SCHEMA_LIST_KEYWORDS``: ordered lists of schemas (combiners, tuples).
- ``SCHEMA_KEYWORDS``: a single schema (or boolean schema).

``items`` may be either a single schema or a list, so it appears in both
``SCHEMA_KEYWORDS`` and ``SCHEMA_LIST_KEYWORDS``; the walker decides by the
runtime value.
"""

from __future__ import annotations

from typing import Any, TypedDict, TypeGuard

__all__ = [
    "APPLICATOR_KEYWORDS",
    "COMBINATOR_KEYWORDS",
    "CONDITIONAL_KEYWORDS",
    "JSON_SCHEMA_TYPES",
    "SCHEMA_KEYWORDS",
    "SCHEMA_LIST_KEYWORDS",
    "SCHEMA_MAP_KEYWORDS",
    "DiscriminatorObject",
    "JsonValue",
    "SchemaNode",
    "is_schema",
]

JsonValue = None | bool | int | float | str | list[Any] | dict[str, Any]


class DiscriminatorObject(TypedDict, total=False):
    propertyName: str
    mapping: dict[str, str]


# Functional syntax: several keywords ("if", "else", "not", "$ref") are not
# valid Python identifiers.
SchemaNode = TypedDict(
    "SchemaNode",
    {
        "$ref": str,
        "type": "str | list[str]",
        "nullable": bool,
        "title": str,
        "description": str,
        "properties": "dict[str, SchemaNode | bool]",
        "patternProperties": "dict[str, SchemaNode | bool]",
        "required": list[str],
        "additionalProperties": "SchemaNode | bool",
        "unevaluatedProperties": "SchemaNode | bool",
        "items": "SchemaNode | list[SchemaNode | bool] | bool",
        "prefixItems": "list[SchemaNode | bool]",
        "additionalItems": "SchemaNode | bool",
        "unevaluatedItems": "SchemaNode | bool",
        "minItems": int,
        "maxItems": int,
        "contains": "SchemaNode | bool",
        "minContains": int,
        "maxContains": int,
        "const": JsonValue,
        "enum": list[JsonValue],
        "discriminator": DiscriminatorObject,
        "if": "SchemaNode | bool",
        "then": "SchemaNode | bool",
        "else": "SchemaNode | bool",
        "not": "SchemaNode | bool",
        "allOf": "list[SchemaNode | bool]",
        "anyOf": "list[SchemaNode | bool]",
        "oneOf": "list[SchemaNode | bool]",
        "x-discriminator-enhanced": dict[str, Any],
    },
    total=False,
)

JSON_SCHEMA_TYPES: frozenset[str] = frozenset(
    {"null", "boolean", "object", "array", "number", "string", "integer"}
)

COMBINATOR_KEYWORDS: tuple[str, ...] = ("allOf", "anyOf", "oneOf")
CONDITIONAL_KEYWORDS: tuple[str, ...] = ("if", "then", "else")

SCHEMA_MAP_KEYWORDS: frozenset[str] = frozenset({"properties", "patternProperties"})
SCHEMA_LIST_KEYWORDS: frozenset[str] = frozenset(
    {*COMBINATOR_KEYWORDS, "prefixItems", "items"}
)
SCHEMA_KEYWORDS: frozenset[str] = frozenset(
    {
        *CONDITIONAL_KEYWORDS,
        "items",
        "additionalItems",
        "additionalProperties",
        "unevaluatedItems",
        "unevaluatedProperties",
        "contains",
        "not",
    }
)

# Every keyword whose value holds subschemas, in a stable traversal order.
APPLICATOR_KEYWORDS: tuple[str, ...] = (
    "properties",
    "patternProperties",
    "additionalProperties",
    "unevaluatedProperties",
    "items",
    "prefixItems",
    "additionalItems",
    "unevaluatedItems",
    "contains",
    *COMBINATOR_KEYWORDS,
    "not",
    *CONDITIONAL_KEYWORDS,
)


def is_schema(value: object) -> TypeGuard[SchemaNode]:
    """Return True when *value* is an object schema (not a boolean schema)."""
    return isinstance(value, dict)
