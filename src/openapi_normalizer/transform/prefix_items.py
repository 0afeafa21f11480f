"""PrefixItemsNormalizer: rewrite 2020-12 tuples into Draft-07 form.

``prefixItems`` becomes an ``items`` array, ``minItems`` is the tuple length,
and the tuple's openness is carried by ``additionalItems``/``maxItems``:

=====================================  =======================================
Input                                  Output
=====================================  =======================================
``items: false``                       closed: ``maxItems = minItems``
``items: <schema>``                    open: ``additionalItems = <schema>``
``items: true``                        open: ``additionalItems = true``
``additionalItems: false`` (no items)  closed: ``maxItems = minItems``
``additionalItems: <schema|true>``     open: ``additionalItems`` kept
neither                                open: ``additionalItems = true``
=====================================  =======================================

An empty ``prefixItems`` is dropped without producing a tuple.  ``prefixItems``
never survives into the output.

Example::

    schema = {
        "type": "array",
        "prefixItems": [{"type": "string"}, {"type": "number"}],
        "items": False,
    }
    PrefixItemsNormalizer().transform(schema).schema
    # {"type": "array", "items": [{"type": "string"}, {"type": "number"}],
    #  "minItems": 2, "maxItems": 2}
"""

from __future__ import annotations

from functools import partial
from typing import Any

from openapi_normalizer.errors import ConflictingTupleConfigError, InvalidPrefixItemsError
from openapi_normalizer.result import TransformResult, TupleInfo
from openapi_normalizer.transform.base import TransformKind
from openapi_normalizer.tree.nodes import APPLICATOR_KEYWORDS, SchemaNode, is_schema
from openapi_normalizer.tree.walker import join_pointer, map_subschemas, walk

__all__ = ["PrefixItemsNormalizer", "create_tuple_schema", "extract_tuple_info"]


class PrefixItemsNormalizer:
    """Replace every ``prefixItems`` tuple with its Draft-07 equivalent."""

    kind = TransformKind.PREFIX_ITEMS

    def detect(self, node: SchemaNode) -> bool:
        return any("prefixItems" in child for child, _, _ in walk(node, APPLICATOR_KEYWORDS))

    def transform(
        self, node: SchemaNode, location: str = "#"
    ) -> TransformResult[list[TupleInfo]]:
        found: list[TupleInfo] = []
        new_node, changed = self._normalize(node, location, 0, found=found)
        return TransformResult(schema=new_node, was_transformed=changed, metadata=found)

    def _normalize(
        self,
        node: SchemaNode,
        location: str,
        depth: int,
        *,
        found: list[TupleInfo],
    ) -> tuple[SchemaNode, bool]:
        if "prefixItems" in node:
            _validate(node, location)
        visit = partial(self._normalize, found=found)
        node, changed = map_subschemas(node, APPLICATOR_KEYWORDS, visit, location, depth)
        if "prefixItems" not in node:
            return node, changed
        return _rewrite_tuple(node, location, found), True


def _validate(node: SchemaNode, location: str) -> None:
    prefix = node["prefixItems"]
    pointer = join_pointer(location, "prefixItems")
    if not isinstance(prefix, list):
        msg = f"prefixItems must be an array, got {type(prefix).__name__}"
        raise InvalidPrefixItemsError(msg, location=pointer)
    for index, entry in enumerate(prefix):
        if not is_schema(entry):
            msg = f"prefixItems[{index}] must be a schema object"
            raise InvalidPrefixItemsError(msg, location=join_pointer(pointer, index))

    items = node.get("items")
    if isinstance(items, list):
        msg = "prefixItems cannot be combined with an items array"
        raise ConflictingTupleConfigError(
            msg,
            location=location,
            suggestion="Move the positional schemas into prefixItems and use items for the rest",
        )
    if items is False and "additionalItems" in node:
        msg = "additionalItems cannot be combined with items: false"
        raise ConflictingTupleConfigError(msg, location=location)


def _rewrite_tuple(node: SchemaNode, location: str, found: list[TupleInfo]) -> SchemaNode:
    prefix: list[Any] = node["prefixItems"]
    rewritten: dict[str, Any] = {k: v for k, v in node.items() if k != "prefixItems"}
    if not prefix:
        return rewritten  # type: ignore[return-value]

    count = len(prefix)
    max_items: int | None = None
    if "items" in node:
        items = node["items"]
        if items is False:
            additional: Any = False
        else:
            additional = items if is_schema(items) else True
            rewritten["additionalItems"] = additional
    elif "additionalItems" in node:
        additional = node["additionalItems"]
    else:
        additional = True
        rewritten["additionalItems"] = True

    rewritten["items"] = prefix
    rewritten["minItems"] = count
    if additional is False:
        max_items = count
        rewritten["maxItems"] = count

    found.append(
        TupleInfo(
            location=location,
            prefix_items=list(prefix),
            min_items=count,
            max_items=max_items,
            additional_items=additional,
        )
    )
    return rewritten  # type: ignore[return-value]


def extract_tuple_info(node: SchemaNode, location: str = "#") -> TupleInfo | None:
    """Recover tuple information from a 2020-12 or already-normalized tuple."""
    prefix = node.get("prefixItems")
    if isinstance(prefix, list) and prefix:
        items = node.get("items", True)
        additional: Any = items if items is False or is_schema(items) else True
        return TupleInfo(
            location=location,
            prefix_items=list(prefix),
            min_items=len(prefix),
            max_items=len(prefix) if additional is False else None,
            additional_items=additional,
        )
    items = node.get("items")
    if isinstance(items, list) and items:
        additional = node.get("additionalItems", True)
        closed = additional is False or node.get("maxItems") == len(items)
        return TupleInfo(
            location=location,
            prefix_items=list(items),
            min_items=len(items),
            max_items=len(items) if closed else None,
            additional_items=False if closed else additional,
        )
    return None


def create_tuple_schema(
    prefix_items: list[SchemaNode], additional_items: SchemaNode | bool = True
) -> SchemaNode:
    """Build a 2020-12 tuple schema from positional item schemas."""
    return {"type": "array", "prefixItems": list(prefix_items), "items": additional_items}
