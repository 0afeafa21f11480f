"""Result and diagnostic types returned by transformers and the pipeline.

Every transformer returns a ``TransformResult`` whose ``metadata`` type
depends on the transformer:

=======================  ==============================
Transformer              metadata
=======================  ==============================
null types               ``list[UnionTypeInfo]``
const keyword            ``list[ConstInfo]``
prefixItems              ``list[TupleInfo]``
contains                 ``list[ContainsPattern]``
conditional              ``list[ConditionalPattern]``
discriminator            ``list[DiscriminatorInfo]``
unevaluated              ``list[UnevaluatedInfo]``
pipeline                 ``PipelineReport``
=======================  ==============================
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING, Any, Generic, TypeVar

if TYPE_CHECKING:
    from openapi_normalizer.tree.nodes import JsonValue, SchemaNode
    from openapi_normalizer.version import VersionInfo

__all__ = [
    "ConditionalPattern",
    "ConflictInfo",
    "ConflictType",
    "ConstInfo",
    "ContainsPattern",
    "DiscriminatorInfo",
    "NormalizedDocument",
    "PipelineReport",
    "TransformResult",
    "TupleInfo",
    "UnevaluatedInfo",
    "UnionTypeInfo",
]

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class TransformResult(Generic[T]):
    """Output of one transformation.

    Attributes:
        schema: The (possibly new) schema tree.  When ``was_transformed`` is
            False this is the input object itself.
        was_transformed: True iff the tree differs from the input.
        metadata: Transformer-specific diagnostics.
    """

    schema: SchemaNode
    was_transformed: bool
    metadata: T | None = None


@dataclass(frozen=True, slots=True)
class UnionTypeInfo:
    """A ``type`` union found at *location* and how it was rewritten."""

    location: str
    types: list[str]
    nullable: bool
    as_any_of: bool


@dataclass(frozen=True, slots=True)
class ConstInfo:
    location: str
    value: JsonValue
    inferred_type: str


@dataclass(frozen=True, slots=True)
class TupleInfo:
    """A ``prefixItems`` tuple and its resolved openness.

    Attributes:
        location: JSON Pointer of the tuple schema.
        prefix_items: The positional item schemas.
        min_items: Always ``len(prefix_items)``.
        max_items: Set only for closed tuples.
        additional_items: ``False`` (closed), ``True`` (open) or the schema
            trailing items must satisfy.
    """

    location: str
    prefix_items: list[SchemaNode | bool]
    min_items: int
    max_items: int | None
    additional_items: SchemaNode | bool

    @property
    def is_closed(self) -> bool:
        return self.additional_items is False


@dataclass(frozen=True, slots=True)
class ContainsPattern:
    schema: SchemaNode | bool
    location: str
    min_contains: int | None = None
    max_contains: int | None = None


@dataclass(frozen=True, slots=True)
class ConditionalPattern:
    if_schema: SchemaNode | bool
    location: str
    then_schema: SchemaNode | bool | None = None
    else_schema: SchemaNode | bool | None = None


@dataclass(frozen=True, slots=True)
class DiscriminatorInfo:
    """A discriminator found at *location*, with its resolved mapping."""

    property_name: str
    mapping: dict[str, str]
    location: str
    is_inheritance: bool = False
    is_nested: bool = False
    inferred: bool = False


class ConflictType(StrEnum):
    BOOLEAN_MISMATCH = "boolean-mismatch"
    SCHEMA_OVERRIDE = "schema-override"
    COMPLEX = "complex"


@dataclass(frozen=True, slots=True)
class ConflictInfo:
    conflict_type: ConflictType
    resolution: str


@dataclass(frozen=True, slots=True)
class UnevaluatedInfo:
    """An ``unevaluatedProperties``/``unevaluatedItems`` occurrence."""

    keyword: str
    value: SchemaNode | bool
    location: str
    mirrored_into: str | None = None
    conflict: ConflictInfo | None = None


@dataclass(slots=True)
class PipelineReport:
    """Diagnostics of one pipeline run.

    Attributes:
        applied: Transform kinds that ran (flag on and ``detect`` true), in
            pipeline order.
        changed: The subset of ``applied`` that changed the tree.
        from_cache: True when the whole result came from the cache.
        duration_ms: Wall-clock time of the run in milliseconds.
        diagnostics: Transform kind -> that transformer's metadata.
    """

    applied: list[str] = field(default_factory=list)
    changed: list[str] = field(default_factory=list)
    from_cache: bool = False
    duration_ms: float = 0.0
    diagnostics: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class NormalizedDocument:
    """Normalized definitions and webhooks of one OpenAPI document.

    Attributes:
        version: The detected document version.
        definitions: ``components.schemas`` name -> normalized schema.
        webhooks: Webhook name -> structured schema, in document order.
        reports: Definition name -> pipeline report (3.1 definitions only).
    """

    version: VersionInfo
    definitions: dict[str, SchemaNode]
    webhooks: dict[str, SchemaNode]
    reports: dict[str, PipelineReport] = field(default_factory=dict)
