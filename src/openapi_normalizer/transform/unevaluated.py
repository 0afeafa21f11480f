"""UnevaluatedPropertiesNormalizer: approximate ``unevaluated*`` for generators.

``unevaluatedProperties``/``unevaluatedItems`` are kept verbatim (the target
validator understands them) and mirrored into ``additionalProperties``/
``additionalItems`` so a Draft-07 type generator sees an equivalent
constraint:

- ``false``: sets the sibling to ``false`` when absent, and forces it to
  ``false`` when it is ``true`` (unevaluated is the more restrictive).
- ``true``: sets the sibling to ``true`` when absent.
- a schema: normalized recursively, then copied into the sibling when absent.

``check_conflict`` classifies disagreements between the two keywords for
diagnostics; it never fails.
"""

from __future__ import annotations

from functools import partial
from typing import Any

from openapi_normalizer.errors import InvalidUnevaluatedValueError
from openapi_normalizer.result import (
    ConflictInfo,
    ConflictType,
    TransformResult,
    UnevaluatedInfo,
)
from openapi_normalizer.transform.base import TransformKind
from openapi_normalizer.tree.nodes import APPLICATOR_KEYWORDS, SchemaNode, is_schema
from openapi_normalizer.tree.walker import join_pointer, map_subschemas, walk

__all__ = [
    "UNEVALUATED_SIBLINGS",
    "UnevaluatedPropertiesNormalizer",
    "check_conflict",
    "create_unevaluated_schema",
    "extract_unevaluated_info",
]

UNEVALUATED_SIBLINGS: dict[str, str] = {
    "unevaluatedProperties": "additionalProperties",
    "unevaluatedItems": "additionalItems",
}


def check_conflict(
    node: SchemaNode, keyword: str = "unevaluatedProperties"
) -> ConflictInfo | None:
    """Classify a disagreement between *keyword* and its ``additional*`` sibling.

    Returns None when only one of the two is present or they agree.
    """
    sibling = UNEVALUATED_SIBLINGS[keyword]
    if keyword not in node or sibling not in node:
        return None
    unevaluated: Any = node[keyword]  # type: ignore[literal-required]
    additional: Any = node[sibling]  # type: ignore[literal-required]

    if isinstance(unevaluated, bool) and isinstance(additional, bool):
        if unevaluated == additional:
            return None
        return ConflictInfo(
            ConflictType.BOOLEAN_MISMATCH,
            f"{keyword} takes precedence as it is more specific",
        )
    if isinstance(unevaluated, bool) or isinstance(additional, bool):
        return ConflictInfo(
            ConflictType.SCHEMA_OVERRIDE,
            "Schema-based constraint takes precedence over boolean",
        )
    return ConflictInfo(
        ConflictType.COMPLEX,
        "Both define schema constraints - manual review recommended",
    )


def _validate_value(keyword: str, value: Any, location: str) -> None:
    if not isinstance(value, bool) and not is_schema(value):
        msg = f"{keyword} must be a boolean or a schema object"
        raise InvalidUnevaluatedValueError(msg, location=join_pointer(location, keyword))


def extract_unevaluated_info(node: SchemaNode, location: str = "#") -> list[UnevaluatedInfo]:
    """Report the ``unevaluated*`` keywords set directly on *node*.

    Nothing is mirrored, so ``mirrored_into`` is always None.
    """
    return [
        UnevaluatedInfo(
            keyword=keyword,
            value=node[keyword],  # type: ignore[literal-required]
            location=location,
            conflict=check_conflict(node, keyword),
        )
        for keyword in UNEVALUATED_SIBLINGS
        if keyword in node
    ]


def create_unevaluated_schema(
    value: SchemaNode | bool,
    base: SchemaNode | None = None,
    keyword: str = "unevaluatedProperties",
) -> SchemaNode:
    """Return a copy of *base* with *keyword* set to a validated *value*."""
    if keyword not in UNEVALUATED_SIBLINGS:
        msg = f"Unknown keyword: {keyword}"
        raise ValueError(msg)
    _validate_value(keyword, value, "#")
    return {**(base or {}), keyword: value}  # type: ignore[return-value]


class UnevaluatedPropertiesNormalizer:
    """Mirror ``unevaluated*`` keywords into their ``additional*`` siblings."""

    kind = TransformKind.UNEVALUATED_PROPERTIES

    def detect(self, node: SchemaNode) -> bool:
        return any(
            keyword in child
            for child, _, _ in walk(node, APPLICATOR_KEYWORDS)
            for keyword in UNEVALUATED_SIBLINGS
        )

    def transform(
        self, node: SchemaNode, location: str = "#"
    ) -> TransformResult[list[UnevaluatedInfo]]:
        found: list[UnevaluatedInfo] = []
        new_node, changed = self._normalize(node, location, 0, found=found)
        return TransformResult(schema=new_node, was_transformed=changed, metadata=found)

    def check_conflict(
        self, node: SchemaNode, keyword: str = "unevaluatedProperties"
    ) -> ConflictInfo | None:
        return check_conflict(node, keyword)

    def _normalize(
        self,
        node: SchemaNode,
        location: str,
        depth: int,
        *,
        found: list[UnevaluatedInfo],
    ) -> tuple[SchemaNode, bool]:
        visit = partial(self._normalize, found=found)
        node, changed = map_subschemas(node, APPLICATOR_KEYWORDS, visit, location, depth)

        updates: dict[str, Any] = {}
        for keyword, sibling in UNEVALUATED_SIBLINGS.items():
            if keyword not in node:
                continue
            value: Any = node[keyword]  # type: ignore[literal-required]
            _validate_value(keyword, value, location)

            conflict = check_conflict(node, keyword)
            current: Any = node.get(sibling)  # type: ignore[misc]
            if sibling not in node or (value is False and current is True):
                updates[sibling] = value
            found.append(
                UnevaluatedInfo(
                    keyword=keyword,
                    value=value,
                    location=location,
                    mirrored_into=sibling if sibling in updates else None,
                    conflict=conflict,
                )
            )

        if not updates:
            return node, changed
        return {**node, **updates}, True  # type: ignore[typeddict-item]
