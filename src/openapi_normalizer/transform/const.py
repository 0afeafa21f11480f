"""ConstNormalizer: make ``const`` explicit for enum-oriented generators.

Every node with a ``const`` value gains the JSON Schema ``type`` of that
value and a single-member ``enum``.  Keywords already present on the node are
respected: only a missing ``type`` or ``enum`` is synthesized.

Example::

    ConstNormalizer().transform({"const": "cat"}).schema
    # {"const": "cat", "type": "string", "enum": ["cat"]}
"""

from __future__ import annotations

import json
from functools import partial
from typing import Any

from openapi_normalizer.errors import NonSerializableConstError, UnsupportedConstTypeError
from openapi_normalizer.result import ConstInfo, TransformResult
from openapi_normalizer.transform.base import TransformKind
from openapi_normalizer.tree.nodes import APPLICATOR_KEYWORDS, JsonValue, SchemaNode
from openapi_normalizer.tree.walker import map_subschemas, walk

__all__ = ["ConstNormalizer", "create_const_schema", "infer_const_type"]


def infer_const_type(value: Any, location: str | None = None) -> str:
    """Return the JSON Schema type name of a ``const`` value.

    Raises:
        UnsupportedConstTypeError: *value* has no JSON Schema type.
    """
    # bool is a subclass of int; test it first.
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, int):
        return "integer"
    if isinstance(value, float):
        return "integer" if value.is_integer() else "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list | tuple):
        return "array"
    if isinstance(value, dict):
        return "object"
    msg = f"Unsupported const value type: {type(value).__name__}"
    raise UnsupportedConstTypeError(
        msg,
        location=location,
        suggestion="Use a JSON value (null, boolean, number, string, array or object)",
    )


def _ensure_serializable(value: Any, location: str | None) -> None:
    try:
        json.dumps(value, sort_keys=True, allow_nan=False)
    except (TypeError, ValueError, RecursionError) as exc:
        msg = f"const value cannot be serialized: {exc}"
        raise NonSerializableConstError(msg, location=location) from exc


def create_const_schema(value: JsonValue, **extra: Any) -> SchemaNode:
    """Build a validated ``{"const", "type", "enum"}`` schema plus *extra* keywords."""
    inferred = infer_const_type(value)
    _ensure_serializable(value, None)
    return {"const": value, "type": inferred, "enum": [value], **extra}  # type: ignore[typeddict-item]


class ConstNormalizer:
    """Synthesize ``type`` and ``enum`` next to every ``const``."""

    kind = TransformKind.CONST_KEYWORD

    def detect(self, node: SchemaNode) -> bool:
        return any("const" in child for child, _, _ in walk(node, APPLICATOR_KEYWORDS))

    def transform(
        self, node: SchemaNode, location: str = "#"
    ) -> TransformResult[list[ConstInfo]]:
        found: list[ConstInfo] = []
        new_node, changed = self._normalize(node, location, 0, found=found)
        return TransformResult(schema=new_node, was_transformed=changed, metadata=found)

    def _normalize(
        self,
        node: SchemaNode,
        location: str,
        depth: int,
        *,
        found: list[ConstInfo],
    ) -> tuple[SchemaNode, bool]:
        visit = partial(self._normalize, found=found)
        node, changed = map_subschemas(node, APPLICATOR_KEYWORDS, visit, location, depth)
        if "const" not in node:
            return node, changed

        value = node["const"]
        inferred = infer_const_type(value, location)
        _ensure_serializable(value, location)
        found.append(ConstInfo(location=location, value=value, inferred_type=inferred))

        additions: dict[str, Any] = {}
        if "type" not in node:
            additions["type"] = inferred
        if "enum" not in node:
            additions["enum"] = [value]
        if not additions:
            return node, changed
        return {**node, **additions}, True  # type: ignore[typeddict-item]
