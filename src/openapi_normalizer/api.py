"""Public API functions for openapi-normalizer.

This module provides the user-facing entry points: normalize_schema,
normalize_document and structure_webhooks.  Each call builds fresh,
stateless transformers; the only state that can outlive a call is the
``TransformationCache`` the caller passes in.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from loguru import logger

from openapi_normalizer.convert import SchemaConverter, openapi_to_json_schema
from openapi_normalizer.errors import (
    ConfigurationConflictError,
    SerializationError,
    StructuralValidationError,
)
from openapi_normalizer.options import ParseOptions
from openapi_normalizer.pipeline import SchemaPipeline
from openapi_normalizer.result import NormalizedDocument, PipelineReport, TransformResult
from openapi_normalizer.transform.webhooks import WebhookStructurer
from openapi_normalizer.tree.walker import join_pointer
from openapi_normalizer.version import (
    VersionInfo,
    detect_version,
    feature_support,
    parse_version_string,
)

if TYPE_CHECKING:
    from openapi_normalizer.cache import TransformationCache
    from openapi_normalizer.tree.nodes import SchemaNode

__all__ = ["normalize_document", "normalize_schema", "structure_webhooks"]

# Errors after which a 3.1 definition may be re-processed on the 3.0 path.
_RECOVERABLE_ERRORS = (StructuralValidationError, ConfigurationConflictError, SerializationError)


def _resolve_options(options: ParseOptions | Mapping[str, Any] | None) -> ParseOptions:
    if isinstance(options, ParseOptions):
        return options
    return ParseOptions.from_mapping(options)


def normalize_schema(
    schema: SchemaNode,
    version: VersionInfo | str = "3.1.0",
    options: ParseOptions | Mapping[str, Any] | None = None,
    cache: TransformationCache | None = None,
    location: str = "#",
) -> TransformResult[PipelineReport]:
    """Normalize one schema tree.

    Args:
        schema:   The (``$ref``-resolved) JSON Schema to normalize.
        version:  Document version, as ``VersionInfo`` or a string such as
                  ``"3.1.0"``.
        options:  ``ParseOptions`` or a camelCase/snake_case mapping of flags.
        cache:    Optional cache shared across calls.
        location: JSON Pointer of the schema inside its document.

    Returns:
        A ``TransformResult`` whose metadata is the run's ``PipelineReport``.
    """
    info = version if isinstance(version, VersionInfo) else parse_version_string(version)
    pipeline = SchemaPipeline(cache=cache)
    return pipeline.transform(schema, info, _resolve_options(options), location)


def structure_webhooks(
    document: Mapping[str, Any],
    converter: SchemaConverter | None = None,
) -> dict[str, SchemaNode]:
    """Return the structured ``name -> schema`` map of ``document["webhooks"]``."""
    return WebhookStructurer(converter=converter).transform(document).metadata or {}


def normalize_document(
    document: Mapping[str, Any],
    options: ParseOptions | Mapping[str, Any] | None = None,
    cache: TransformationCache | None = None,
    converter: SchemaConverter | None = None,
) -> NormalizedDocument:
    """Normalize every ``components.schemas`` definition and the webhooks.

    Definitions of a 3.0 document only go through the OpenAPI -> JSON Schema
    converter.  Definitions of a 3.1 document are converted and then run
    through the pipeline.  When ``fallback_to_openapi30`` is enabled, a 3.1
    definition whose normalization fails is re-processed the 3.0 way.
    Webhooks are structured when ``enable_webhooks`` is on and the version
    supports them.

    Raises:
        VersionError: the document version is missing or unsupported.
        NormalizationError: a definition failed and no fallback applied.
    """
    opts = _resolve_options(options)
    info = detect_version(document)
    convert = converter or openapi_to_json_schema
    pipeline = SchemaPipeline(cache=cache)

    definitions: dict[str, SchemaNode] = {}
    reports: dict[str, PipelineReport] = {}
    components = document.get("components")
    schemas = components.get("schemas") if isinstance(components, Mapping) else None
    if isinstance(schemas, Mapping):
        for name, schema in schemas.items():
            location = join_pointer("#/components/schemas", name)
            if not info.is_version_31:
                definitions[name] = convert(schema)
                continue
            try:
                result = pipeline.transform(convert(schema), info, opts, location)
            except _RECOVERABLE_ERRORS as exc:
                if not opts.fallback_to_openapi30:
                    raise
                logger.warning(
                    "Falling back to OpenAPI 3.0 processing for {}: {}", location, exc
                )
                definitions[name] = convert(schema)
                continue
            definitions[name] = result.schema
            if result.metadata is not None:
                reports[name] = result.metadata

    webhooks: dict[str, SchemaNode] = {}
    if opts.enable_webhooks and feature_support(info).webhooks:
        webhooks = structure_webhooks(document, converter=convert)

    logger.info(
        "Normalized OpenAPI {} document: {} definitions, {} webhooks",
        info.version,
        len(definitions),
        len(webhooks),
    )
    return NormalizedDocument(
        version=info, definitions=definitions, webhooks=webhooks, reports=reports
    )
