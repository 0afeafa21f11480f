"""Copy-on-write traversal over SchemaNode trees.

Transformers never mutate their input.  ``map_subschemas`` applies a visitor
to the subschemas under a set of keywords and rebuilds only the containers
whose children actually changed; every untouched subtree is shared with the
input.  ``walk`` is the read-only counterpart used by ``detect`` predicates
and by the pattern-collecting transformers.

Locations are JSON Pointers rooted at ``#`` with RFC 6901 escaping, e.g.
``#/properties/a~1b/items/0``.  Nesting deeper than ``MAX_SCHEMA_DEPTH``
raises ``SchemaDepthExceededError`` instead of exhausting the interpreter
stack.

Example::

    def visit(child, location, depth):
        return normalize(child, location, depth)

    new_node, changed = map_subschemas(node, APPLICATOR_KEYWORDS, visit, "#", 0)
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator
from typing import Any

from openapi_normalizer.errors import SchemaDepthExceededError
from openapi_normalizer.tree.nodes import (
    SCHEMA_KEYWORDS,
    SCHEMA_LIST_KEYWORDS,
    SCHEMA_MAP_KEYWORDS,
    SchemaNode,
    is_schema,
)

__all__ = [
    "MAX_SCHEMA_DEPTH",
    "Visitor",
    "check_depth",
    "escape_token",
    "join_pointer",
    "map_subschemas",
    "walk",
]

MAX_SCHEMA_DEPTH = 200

Visitor = Callable[[SchemaNode, str, int], tuple[SchemaNode, bool]]


def escape_token(token: str | int) -> str:
    """Escape one JSON Pointer reference token (``~`` before ``/``)."""
    return str(token).replace("~", "~0").replace("/", "~1")


def join_pointer(location: str, *tokens: str | int) -> str:
    """Append escaped *tokens* to a ``#``-rooted JSON Pointer."""
    return "/".join([location, *(escape_token(t) for t in tokens)])


def check_depth(depth: int, location: str) -> None:
    if depth > MAX_SCHEMA_DEPTH:
        msg = f"Schema nesting exceeds the maximum depth of {MAX_SCHEMA_DEPTH}"
        raise SchemaDepthExceededError(msg, location=location)


def _children(
    node: SchemaNode, keyword: str, location: str
) -> Iterator[tuple[str | int, SchemaNode, str]]:
    """Yield ``(token, child, pointer)`` for object subschemas under *keyword*."""
    value: Any = node.get(keyword)  # type: ignore[misc]
    base = join_pointer(location, keyword)
    if keyword in SCHEMA_MAP_KEYWORDS:
        if isinstance(value, dict):
            for name, child in value.items():
                if is_schema(child):
                    yield name, child, join_pointer(base, name)
    elif isinstance(value, list):
        if keyword in SCHEMA_LIST_KEYWORDS:
            for index, child in enumerate(value):
                if is_schema(child):
                    yield index, child, join_pointer(base, index)
    elif keyword in SCHEMA_KEYWORDS and is_schema(value):
        yield keyword, value, base


def map_subschemas(
    node: SchemaNode,
    keywords: Iterable[str],
    visit: Visitor,
    location: str,
    depth: int,
) -> tuple[SchemaNode, bool]:
    """Apply *visit* to every object subschema under *keywords*.

    Args:
        node: The parent schema.  Never mutated.
        keywords: Keywords whose values hold subschemas.
        visit: ``visit(child, pointer, depth) -> (new_child, changed)``.
        location: JSON Pointer of *node*.
        depth: Nesting depth of *node*; children are visited at ``depth + 1``.

    Returns:
        ``(node, False)`` when no child changed (the same object is returned),
        otherwise a shallow copy of *node* with the changed containers rebuilt
        and ``True``.
    """
    updates: dict[str, Any] = {}
    for keyword in keywords:
        if keyword not in node:
            continue
        replaced: dict[str | int, SchemaNode] = {}
        for token, child, pointer in _children(node, keyword, location):
            check_depth(depth + 1, pointer)
            new_child, changed = visit(child, pointer, depth + 1)
            if changed:
                replaced[token] = new_child
        if not replaced:
            continue

        value: Any = node[keyword]  # type: ignore[literal-required]
        if isinstance(value, dict) and keyword in SCHEMA_MAP_KEYWORDS:
            updates[keyword] = {k: replaced.get(k, v) for k, v in value.items()}
        elif isinstance(value, list):
            updates[keyword] = [replaced.get(i, v) for i, v in enumerate(value)]
        else:
            updates[keyword] = replaced[keyword]

    if not updates:
        return node, False
    return {**node, **updates}, True  # type: ignore[typeddict-item]


def walk(
    node: SchemaNode,
    keywords: Iterable[str],
    location: str = "#",
    depth: int = 0,
) -> Iterator[tuple[SchemaNode, str, int]]:
    """Yield ``(node, pointer, depth)`` for *node* and every reachable subschema.

    Traversal is pre-order and only descends through *keywords*.
    """
    keywords = tuple(keywords)
    check_depth(depth, location)
    yield node, location, depth
    for keyword in keywords:
        if keyword not in node:
            continue
        for _, child, pointer in _children(node, keyword, location):
            yield from walk(child, keywords, pointer, depth + 1)
