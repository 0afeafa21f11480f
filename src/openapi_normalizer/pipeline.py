"""SchemaPipeline: run the enabled transformers in their fixed order.

Order: null types -> const -> prefixItems -> contains -> conditional ->
discriminator -> unevaluated.  A transformer runs only when its
``ParseOptions`` flag is on **and** its ``detect`` predicate matches the tree
as it stands at that point; its output is folded into the next step.

Architecture:

- ``transform`` computes a whole-schema cache key first and returns a cached
  result on a hit.  On a miss it runs the steps, caches the final tree with
  its ``PipelineReport`` and returns it.
- ``apply_transformation`` runs a single transform kind with per-kind
  memoization, for callers that cache at a finer granularity.
- Transformer errors propagate unchanged: a failing step aborts the whole
  run and nothing is cached.
- The cache is optional.  Without one every call recomputes.

Example::

    from openapi_normalizer.pipeline import SchemaPipeline
    from openapi_normalizer.version import parse_version_string

    pipeline = SchemaPipeline()
    result = pipeline.transform({"type": ["string", "null"]}, parse_version_string("3.1.0"))
    result.schema             # {"type": "string", "nullable": True}
    result.metadata.applied   # ["null-types"]
"""

from __future__ import annotations

import time
from typing import TYPE_CHECKING, Any

from loguru import logger

from openapi_normalizer.cache import CacheKey, schema_fingerprint
from openapi_normalizer.options import ParseOptions
from openapi_normalizer.result import PipelineReport, TransformResult
from openapi_normalizer.transform.base import SchemaTransformer, TransformKind
from openapi_normalizer.transform.conditional import ConditionalNormalizer
from openapi_normalizer.transform.const import ConstNormalizer
from openapi_normalizer.transform.contains import ContainsNormalizer
from openapi_normalizer.transform.discriminator import DiscriminatorEnhancer
from openapi_normalizer.transform.null_types import NullTypeNormalizer
from openapi_normalizer.transform.prefix_items import PrefixItemsNormalizer
from openapi_normalizer.transform.unevaluated import UnevaluatedPropertiesNormalizer

if TYPE_CHECKING:
    from openapi_normalizer.cache import TransformationCache
    from openapi_normalizer.tree.nodes import SchemaNode
    from openapi_normalizer.version import VersionInfo

__all__ = ["PIPELINE_ORDER", "SchemaPipeline"]

PIPELINE_ORDER: tuple[TransformKind, ...] = (
    TransformKind.NULL_TYPES,
    TransformKind.CONST_KEYWORD,
    TransformKind.PREFIX_ITEMS,
    TransformKind.CONTAINS,
    TransformKind.CONDITIONAL,
    TransformKind.DISCRIMINATOR,
    TransformKind.UNEVALUATED_PROPERTIES,
)


class SchemaPipeline:
    """Orchestrates the schema transformers and the transformation cache.

    Args:
        cache: Optional shared ``TransformationCache``.  When None nothing is
            memoized.
    """

    def __init__(self, cache: TransformationCache | None = None) -> None:
        self._cache = cache

    @property
    def cache(self) -> TransformationCache | None:
        return self._cache

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def transform(
        self,
        schema: SchemaNode,
        version: VersionInfo,
        options: ParseOptions | None = None,
        location: str = "#",
    ) -> TransformResult[PipelineReport]:
        """Normalize *schema* with every enabled, applicable transformer.

        Args:
            schema: Root schema; never mutated.
            version: Detected document version.  For 3.0 documents the null
                normalizer also collapses ``nullable`` into ``anyOf``.
            options: Feature flags.  Defaults to ``ParseOptions()``.
            location: JSON Pointer of *schema* inside its document, used in
                diagnostics and error locations.

        Returns:
            The final tree; ``was_transformed`` is True if any step changed
            it, and ``metadata`` is the run's ``PipelineReport``.
        """
        options = options if options is not None else ParseOptions()
        t0 = time.perf_counter()

        key = self._key(schema, version, options, TransformKind.FULL_SCHEMA, location)
        if key is not None and self._cache is not None:
            cached = self._cache.get(key)
            if isinstance(cached, TransformResult):
                report: PipelineReport = cached.metadata  # type: ignore[assignment]
                report.from_cache = True
                report.duration_ms = (time.perf_counter() - t0) * 1000.0
                logger.debug("Full-schema cache hit at {}", location)
                return cached

        report = PipelineReport()
        current = schema
        for kind in PIPELINE_ORDER:
            if not options.is_enabled(kind):
                logger.debug("Skipping {}: disabled by options", kind)
                continue
            transformer = self._transformer(kind, version)
            if not transformer.detect(current):
                logger.debug("Skipping {}: nothing to normalize at {}", kind, location)
                continue
            step = transformer.transform(current, location)
            report.applied.append(str(kind))
            report.diagnostics[str(kind)] = step.metadata
            if step.was_transformed:
                report.changed.append(str(kind))
                current = step.schema

        report.duration_ms = (time.perf_counter() - t0) * 1000.0
        result: TransformResult[PipelineReport] = TransformResult(
            schema=current,
            was_transformed=bool(report.changed),
            metadata=report,
        )
        if key is not None and self._cache is not None:
            self._cache.set(key, result)
        return result

    def apply_transformation(
        self,
        kind: TransformKind,
        schema: SchemaNode,
        version: VersionInfo,
        options: ParseOptions | None = None,
        location: str = "#",
    ) -> TransformResult[Any]:
        """Run a single transform kind, memoized per kind.

        The option flag is not consulted: callers asking for one kind get it.
        """
        options = options if options is not None else ParseOptions()
        kind = TransformKind(kind)
        key = self._key(schema, version, options, kind, location)
        if key is not None and self._cache is not None:
            cached = self._cache.get(key)
            if isinstance(cached, TransformResult):
                return cached

        result = self._transformer(kind, version).transform(schema, location)
        if key is not None and self._cache is not None:
            self._cache.set(key, result)
        return result

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _key(
        self,
        schema: SchemaNode,
        version: VersionInfo,
        options: ParseOptions,
        kind: TransformKind,
        location: str,
    ) -> CacheKey | None:
        if self._cache is None:
            return None
        # Output embeds the location (discriminator pointers, diagnostics).
        schema_hash = schema_fingerprint(schema, salt=location if location != "#" else "")
        if schema_hash is None:
            return None
        return CacheKey(
            schema_hash=schema_hash,
            version=version.version,
            options_hash=options.fingerprint(),
            transform_kind=str(kind),
        )

    @staticmethod
    def _transformer(kind: TransformKind, version: VersionInfo) -> SchemaTransformer:
        if kind is TransformKind.NULL_TYPES:
            return NullTypeNormalizer(collapse_nullable=version.is_version_30)
        if kind is TransformKind.CONST_KEYWORD:
            return ConstNormalizer()
        if kind is TransformKind.PREFIX_ITEMS:
            return PrefixItemsNormalizer()
        if kind is TransformKind.CONTAINS:
            return ContainsNormalizer()
        if kind is TransformKind.CONDITIONAL:
            return ConditionalNormalizer()
        if kind is TransformKind.DISCRIMINATOR:
            return DiscriminatorEnhancer()
        if kind is TransformKind.UNEVALUATED_PROPERTIES:
            return UnevaluatedPropertiesNormalizer()
        msg = f"{kind} is not a schema-tree transformation"
        raise ValueError(msg)
