"""ConditionalNormalizer: validate and record ``if``/``then``/``else``.

Draft-07 validators evaluate conditionals natively, so the tree is kept
verbatim.  Every ``if`` is validated (schema-object branches, at least one of
``then``/``else``) and reported as a ``ConditionalPattern``.
"""

from __future__ import annotations

from typing import Any

from loguru import logger

from openapi_normalizer.errors import IncompleteConditionalError, InvalidConditionalSchemaError
from openapi_normalizer.result import ConditionalPattern, TransformResult
from openapi_normalizer.transform.base import TransformKind
from openapi_normalizer.tree.nodes import (
    APPLICATOR_KEYWORDS,
    CONDITIONAL_KEYWORDS,
    SchemaNode,
    is_schema,
)
from openapi_normalizer.tree.walker import join_pointer, walk

__all__ = ["ConditionalNormalizer", "create_conditional_schema", "validate_conditional"]


def validate_conditional(node: SchemaNode, location: str = "#") -> None:
    """Validate the ``if``/``then``/``else`` keywords of a single node.

    Raises:
        InvalidConditionalSchemaError: a branch is not a schema object.
        IncompleteConditionalError: ``if`` has neither ``then`` nor ``else``.
    """
    for keyword in CONDITIONAL_KEYWORDS:
        if keyword in node and not is_schema(node[keyword]):  # type: ignore[literal-required]
            msg = f"{keyword} clause must be a schema object"
            raise InvalidConditionalSchemaError(msg, location=join_pointer(location, keyword))
    if "then" not in node and "else" not in node:
        msg = "if clause requires at least a then or else clause"
        raise IncompleteConditionalError(
            msg,
            location=location,
            suggestion='Add a "then" or "else" schema, or remove "if"',
        )


class ConditionalNormalizer:
    """Validate conditionals and collect them as ``ConditionalPattern`` records."""

    kind = TransformKind.CONDITIONAL

    def detect(self, node: SchemaNode) -> bool:
        return any("if" in child for child, _, _ in walk(node, APPLICATOR_KEYWORDS))

    def transform(
        self, node: SchemaNode, location: str = "#"
    ) -> TransformResult[list[ConditionalPattern]]:
        patterns: list[ConditionalPattern] = []
        for child, pointer, _ in walk(node, APPLICATOR_KEYWORDS, location):
            if "if" not in child:
                if "then" in child or "else" in child:
                    logger.debug("Ignoring then/else without if at {}", pointer)
                continue
            validate_conditional(child, pointer)
            if "const" in child:
                logger.warning(
                    "Conditional schema combined with const at {} may not behave as expected",
                    pointer,
                )
            patterns.append(
                ConditionalPattern(
                    if_schema=child["if"],
                    location=pointer,
                    then_schema=child.get("then"),
                    else_schema=child.get("else"),
                )
            )
        return TransformResult(schema=node, was_transformed=False, metadata=patterns)


def create_conditional_schema(
    if_: SchemaNode,
    *,
    then: SchemaNode | None = None,
    else_: SchemaNode | None = None,
) -> SchemaNode:
    """Build a validated conditional schema."""
    result: dict[str, Any] = {"if": if_}
    if then is not None:
        result["then"] = then
    if else_ is not None:
        result["else"] = else_
    validate_conditional(result)  # type: ignore[arg-type]
    return result  # type: ignore[return-value]
