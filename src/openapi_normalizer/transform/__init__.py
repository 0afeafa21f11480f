"""Schema-tree transformers, one module per JSON Schema 2020-12 feature."""

from __future__ import annotations

from openapi_normalizer.transform.base import SchemaTransformer, TransformKind
from openapi_normalizer.transform.conditional import ConditionalNormalizer
from openapi_normalizer.transform.const import ConstNormalizer
from openapi_normalizer.transform.contains import ContainsNormalizer
from openapi_normalizer.transform.discriminator import DiscriminatorEnhancer
from openapi_normalizer.transform.null_types import NullTypeNormalizer
from openapi_normalizer.transform.prefix_items import PrefixItemsNormalizer
from openapi_normalizer.transform.unevaluated import UnevaluatedPropertiesNormalizer
from openapi_normalizer.transform.webhooks import WebhookStructurer

__all__ = [
    "ConditionalNormalizer",
    "ConstNormalizer",
    "ContainsNormalizer",
    "DiscriminatorEnhancer",
    "NullTypeNormalizer",
    "PrefixItemsNormalizer",
    "SchemaTransformer",
    "TransformKind",
    "UnevaluatedPropertiesNormalizer",
    "WebhookStructurer",
]
