"""ContainsNormalizer: validate and record ``contains`` constraints.

``contains``/``minContains``/``maxContains`` are understood natively by the
downstream validator, so the tree is never rewritten.  Each occurrence is
validated and reported as a ``ContainsPattern``.
"""

from __future__ import annotations

from typing import Any

from openapi_normalizer.errors import InvalidContainsConstraintError, InvalidContainsSchemaError
from openapi_normalizer.result import ContainsPattern, TransformResult
from openapi_normalizer.transform.base import TransformKind
from openapi_normalizer.tree.nodes import APPLICATOR_KEYWORDS, SchemaNode, is_schema
from openapi_normalizer.tree.walker import join_pointer, walk

__all__ = ["ContainsNormalizer", "create_contains_schema", "validate_contains_bounds"]

_CONTAINS_KEYWORDS = ("contains", "minContains", "maxContains")


def _is_count(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value >= 0


def validate_contains_bounds(
    min_contains: Any, max_contains: Any, location: str = "#"
) -> None:
    """Raise unless both bounds are non-negative integers with min <= max.

    ``None`` means the bound is absent.
    """
    for keyword, value in (("minContains", min_contains), ("maxContains", max_contains)):
        if value is not None and not _is_count(value):
            msg = f"{keyword} must be a non-negative integer, got {value!r}"
            raise InvalidContainsConstraintError(msg, location=join_pointer(location, keyword))
    if min_contains is not None and max_contains is not None and min_contains > max_contains:
        msg = (
            "minContains must be less than or equal to maxContains "
            f"(got {min_contains} > {max_contains})"
        )
        raise InvalidContainsConstraintError(msg, location=location)


class ContainsNormalizer:
    """Validate every ``contains`` occurrence and collect its constraints."""

    kind = TransformKind.CONTAINS

    def detect(self, node: SchemaNode) -> bool:
        return any(
            keyword in child
            for child, _, _ in walk(node, APPLICATOR_KEYWORDS)
            for keyword in _CONTAINS_KEYWORDS
        )

    def transform(
        self, node: SchemaNode, location: str = "#"
    ) -> TransformResult[list[ContainsPattern]]:
        patterns: list[ContainsPattern] = []
        for child, pointer, _ in walk(node, APPLICATOR_KEYWORDS, location):
            if not any(keyword in child for keyword in _CONTAINS_KEYWORDS):
                continue
            min_contains = child.get("minContains")
            max_contains = child.get("maxContains")
            validate_contains_bounds(min_contains, max_contains, pointer)
            if "contains" not in child:
                continue
            schema = child["contains"]
            if not is_schema(schema):
                msg = "contains must be a schema object"
                raise InvalidContainsSchemaError(msg, location=join_pointer(pointer, "contains"))
            patterns.append(
                ContainsPattern(
                    schema=schema,
                    location=pointer,
                    min_contains=min_contains,
                    max_contains=max_contains,
                )
            )
        return TransformResult(schema=node, was_transformed=False, metadata=patterns)


def create_contains_schema(
    schema: SchemaNode,
    *,
    min_contains: int | None = None,
    max_contains: int | None = None,
) -> SchemaNode:
    """Build a validated array schema with a ``contains`` constraint."""
    if not is_schema(schema):
        msg = "contains must be a schema object"
        raise InvalidContainsSchemaError(msg)
    validate_contains_bounds(min_contains, max_contains)
    result: dict[str, Any] = {"type": "array", "contains": schema}
    if min_contains is not None:
        result["minContains"] = min_contains
    if max_contains is not None:
        result["maxContains"] = max_contains
    return result  # type: ignore[return-value]
