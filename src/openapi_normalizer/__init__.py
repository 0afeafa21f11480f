"""OpenAPI normalizer - rewrite OpenAPI 3.1 / JSON Schema 2020-12 for Draft-07 tooling."""

from __future__ import annotations

from loguru import logger

from openapi_normalizer.api import normalize_document, normalize_schema, structure_webhooks
from openapi_normalizer.cache import (
    CacheKey,
    CacheStats,
    TransformationCache,
    default_cache,
    reset_default_cache,
)
from openapi_normalizer.errors import (
    ConfigurationConflictError,
    NormalizationError,
    OptionsValidationError,
    SerializationError,
    StructuralValidationError,
    VersionError,
)
from openapi_normalizer.options import CacheConfig, ParseOptions
from openapi_normalizer.pipeline import SchemaPipeline
from openapi_normalizer.result import NormalizedDocument, PipelineReport, TransformResult
from openapi_normalizer.transform.base import TransformKind
from openapi_normalizer.version import FeatureSupport, VersionInfo, detect_version, feature_support

logger.disable("openapi_normalizer")

__version__: str = "0.1.0"
__all__: list[str] = [
    "CacheConfig",
    "CacheKey",
    "CacheStats",
    "ConfigurationConflictError",
    "FeatureSupport",
    "NormalizationError",
    "NormalizedDocument",
    "OptionsValidationError",
    "ParseOptions",
    "PipelineReport",
    "SchemaPipeline",
    "SerializationError",
    "StructuralValidationError",
    "TransformKind",
    "TransformResult",
    "TransformationCache",
    "VersionError",
    "VersionInfo",
    "default_cache",
    "detect_version",
    "feature_support",
    "normalize_document",
    "normalize_schema",
    "reset_default_cache",
    "structure_webhooks",
]
