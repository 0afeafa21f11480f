"""Convert OpenAPI Schema Objects into plain JSON Schema.

OpenAPI 3.0 schema objects are a dialect of JSON Schema with a few extra
keywords.  ``openapi_to_json_schema`` rewrites them bottom-up:

- ``nullable: true`` -> ``"null"`` added to ``type`` (which becomes an array)
- ``example`` -> ``examples: [example]`` (unless ``examples`` is present)
- ``xml`` and ``externalDocs`` are dropped

``discriminator`` and every other keyword pass through.  The input is never
modified.

Example::

    openapi_to_json_schema({"type": "string", "nullable": True})
    # {"type": ["string", "null"]}
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from openapi_normalizer.errors import ConversionError
from openapi_normalizer.tree.nodes import APPLICATOR_KEYWORDS, SchemaNode
from openapi_normalizer.tree.walker import map_subschemas

__all__ = ["SchemaConverter", "openapi_to_json_schema"]

SchemaConverter = Callable[[Any], SchemaNode]

_DROPPED_KEYWORDS = frozenset({"xml", "externalDocs"})


def _convert_node(node: SchemaNode, location: str, depth: int) -> tuple[SchemaNode, bool]:
    node, changed = map_subschemas(node, APPLICATOR_KEYWORDS, _convert_node, location, depth)
    if not ({"nullable", "example"} | _DROPPED_KEYWORDS) & node.keys():
        return node, changed

    converted: dict[str, Any] = {
        k: v for k, v in node.items() if k not in _DROPPED_KEYWORDS and k != "nullable"
    }
    if node.get("nullable") is True:
        types = node.get("type")
        if isinstance(types, str):
            converted["type"] = [types, "null"] if types != "null" else types
        elif isinstance(types, list) and "null" not in types:
            converted["type"] = [*types, "null"]
    if "example" in converted:
        example = converted.pop("example")
        converted.setdefault("examples", [example])
    return converted, True  # type: ignore[return-value]


def openapi_to_json_schema(schema: Any) -> SchemaNode:
    """Convert one OpenAPI Schema Object into JSON Schema.

    Args:
        schema: The schema object (a mapping).

    Returns:
        A new schema tree; unchanged subtrees are shared with *schema*.

    Raises:
        ConversionError: *schema* is not a schema object.
    """
    if not isinstance(schema, dict):
        msg = f"Cannot convert a {type(schema).__name__} to JSON Schema"
        raise ConversionError(msg)
    converted, _ = _convert_node(schema, "#", 0)  # type: ignore[arg-type]
    return converted
