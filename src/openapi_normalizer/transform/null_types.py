"""NullTypeNormalizer: rewrite JSON Schema ``type`` arrays.

Draft-07 oriented generators understand a scalar ``type`` plus OpenAPI's
``nullable`` flag, or an explicit ``anyOf`` union, but not ``type`` arrays.

Rewrite policy:

- ``["T", "null"]``            -> ``{"type": "T", "nullable": true}``
- ``["T1", "T2", ..., "null"]`` -> ``anyOf`` of single-type schemas plus
  ``{"type": "null"}``; ``type`` removed
- ``["T1", "T2", ...]``         -> ``anyOf`` of single-type schemas
- ``["T"]``                     -> ``{"type": "T"}``

When the node already carries an ``anyOf``, the new union is added to
``allOf`` instead of replacing it.

With ``collapse_nullable=True`` (OpenAPI 3.0 input, where ``nullable`` is
the native keyword), ``nullable: true`` on a scalar ``type`` is collapsed to
``anyOf: [{"type": "T"}, {"type": "null"}]``, and ``["T", "null"]`` takes
the same ``anyOf`` shape.  Both shapes describe the same instances; which
one is produced depends only on this flag.
"""

from __future__ import annotations

from functools import partial
from typing import Any

from openapi_normalizer.errors import InvalidTypeArrayError
from openapi_normalizer.result import TransformResult, UnionTypeInfo
from openapi_normalizer.transform.base import TransformKind
from openapi_normalizer.tree.nodes import (
    APPLICATOR_KEYWORDS,
    JSON_SCHEMA_TYPES,
    SchemaNode,
)
from openapi_normalizer.tree.walker import map_subschemas, walk

__all__ = ["NullTypeNormalizer", "extract_union_types"]


class NullTypeNormalizer:
    """Normalize ``type`` arrays (and optionally ``nullable``) everywhere.

    Args:
        collapse_nullable: Also collapse ``nullable: true`` + scalar ``type``
            into an ``anyOf`` union.  Defaults to False.
    """

    kind = TransformKind.NULL_TYPES

    def __init__(self, collapse_nullable: bool = False) -> None:
        self._collapse_nullable = collapse_nullable

    def detect(self, node: SchemaNode) -> bool:
        return any(
            self._needs_rewrite(child) for child, _, _ in walk(node, APPLICATOR_KEYWORDS)
        )

    def transform(
        self, node: SchemaNode, location: str = "#"
    ) -> TransformResult[list[UnionTypeInfo]]:
        found: list[UnionTypeInfo] = []
        new_node, changed = self._normalize(node, location, 0, found=found)
        return TransformResult(schema=new_node, was_transformed=changed, metadata=found)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _needs_rewrite(self, node: SchemaNode) -> bool:
        types = node.get("type")
        if isinstance(types, list):
            return True
        return (
            self._collapse_nullable
            and node.get("nullable") is True
            and isinstance(types, str)
            and types != "null"
        )

    def _normalize(
        self,
        node: SchemaNode,
        location: str,
        depth: int,
        *,
        found: list[UnionTypeInfo],
    ) -> tuple[SchemaNode, bool]:
        visit = partial(self._normalize, found=found)
        node, changed = map_subschemas(node, APPLICATOR_KEYWORDS, visit, location, depth)

        types = node.get("type")
        if isinstance(types, list):
            _validate_type_array(types, location)
            return self._rewrite_type_array(node, types, location, found), True
        if self._needs_rewrite(node):
            rewritten = {k: v for k, v in node.items() if k not in ("type", "nullable")}
            members: list[Any] = [{"type": types}, {"type": "null"}]
            found.append(
                UnionTypeInfo(
                    location=location,
                    types=[str(types), "null"],
                    nullable=True,
                    as_any_of=True,
                )
            )
            return _attach_union(rewritten, members), True
        return node, changed

    def _rewrite_type_array(
        self,
        node: SchemaNode,
        types: list[str],
        location: str,
        found: list[UnionTypeInfo],
    ) -> SchemaNode:
        unique = list(dict.fromkeys(types))
        non_null = [t for t in unique if t != "null"]
        has_null = len(non_null) < len(unique)
        as_any_of = len(non_null) >= 2 or (
            has_null and len(non_null) == 1 and self._collapse_nullable
        )
        found.append(
            UnionTypeInfo(location=location, types=unique, nullable=has_null, as_any_of=as_any_of)
        )

        if as_any_of:
            members: list[Any] = [{"type": t} for t in non_null]
            if has_null:
                members.append({"type": "null"})
            rewritten = {k: v for k, v in node.items() if k != "type"}
            return _attach_union(rewritten, members)

        if not non_null:
            return {**node, "type": "null"}  # type: ignore[typeddict-item]
        rewritten = {**node, "type": non_null[0]}
        if has_null:
            rewritten["nullable"] = True
        return rewritten  # type: ignore[return-value]


def _validate_type_array(types: list[Any], location: str) -> None:
    if not types:
        msg = "Type array must contain at least one type"
        raise InvalidTypeArrayError(msg, location=location)
    for entry in types:
        if not isinstance(entry, str):
            msg = f"Type array entries must be strings, got {type(entry).__name__}"
            raise InvalidTypeArrayError(msg, location=location)
        if entry not in JSON_SCHEMA_TYPES:
            msg = f"Invalid type in type array: {entry!r}"
            raise InvalidTypeArrayError(
                msg,
                location=location,
                suggestion=f"Use one of: {', '.join(sorted(JSON_SCHEMA_TYPES))}",
            )


def _attach_union(node: dict[str, Any], members: list[Any]) -> SchemaNode:
    if "anyOf" not in node:
        node["anyOf"] = members
    else:
        node["allOf"] = [*node.get("allOf", []), {"anyOf": members}]
    return node  # type: ignore[return-value]


def extract_union_types(node: SchemaNode) -> list[str]:
    """Return the type union a normalized node encodes.

    Reads an ``anyOf`` of single-type schemas, a ``nullable`` scalar type, or
    a raw ``type`` array; returns an empty list otherwise.
    """
    any_of = node.get("anyOf")
    if isinstance(any_of, list):
        return [
            member["type"]
            for member in any_of
            if isinstance(member, dict) and isinstance(member.get("type"), str)
        ]
    types = node.get("type")
    if isinstance(types, str) and node.get("nullable") is True:
        return [types, "null"]
    if isinstance(types, list):
        return list(types)
    return []
