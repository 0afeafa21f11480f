"""SchemaTransformer Protocol and the TransformKind enum.

A transformer is any object with a ``kind``, a ``detect`` predicate and a
``transform`` method; no inheritance is required.  Transformers hold no
per-call state and never mutate their input, so one instance may be shared
across threads.

Example::

    from openapi_normalizer.transform.base import SchemaTransformer
    from openapi_normalizer.transform.null_types import NullTypeNormalizer

    assert isinstance(NullTypeNormalizer(), SchemaTransformer)
"""

from __future__ import annotations

from enum import StrEnum
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from openapi_normalizer.result import TransformResult
    from openapi_normalizer.tree.nodes import SchemaNode

__all__ = ["SchemaTransformer", "TransformKind"]


class TransformKind(StrEnum):
    """Identifier of a transformation, used in reports and cache keys."""

    NULL_TYPES = "null-types"
    CONST_KEYWORD = "const-keyword"
    PREFIX_ITEMS = "prefix-items"
    CONTAINS = "contains"
    CONDITIONAL = "conditional"
    DISCRIMINATOR = "discriminator"
    UNEVALUATED_PROPERTIES = "unevaluated-properties"
    WEBHOOKS = "webhooks"
    FULL_SCHEMA = "full-schema"


@runtime_checkable
class SchemaTransformer(Protocol):
    """Structural protocol for schema-tree rewrites.

    ``detect`` must be cheap relative to ``transform`` and must return True
    whenever ``transform`` could change the tree or record diagnostics.
    ``transform`` returns the input object unchanged (``was_transformed``
    False) when there is nothing to rewrite.
    """

    kind: TransformKind

    def detect(self, node: SchemaNode) -> bool: ...

    def transform(self, node: SchemaNode, location: str = "#") -> TransformResult[Any]: ...
