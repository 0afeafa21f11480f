"""ParseOptions and CacheConfig: immutable configuration objects.

``ParseOptions`` holds one boolean flag per transformer plus the webhook and
3.0-fallback switches.  Callers coming from a camelCase configuration layer
can build one with ``ParseOptions.from_mapping``.  ``CacheConfig`` bounds the
transformation cache.

Example::

    from openapi_normalizer.options import ParseOptions

    opts = ParseOptions.from_mapping({"enableWebhooks": True})
    opts.enable_webhooks           # True
    opts.enable_prefix_items       # True (default)
"""

from __future__ import annotations

import hashlib
import json
from collections.abc import Mapping
from dataclasses import asdict, dataclass, fields
from typing import Any

from openapi_normalizer.errors import OptionsValidationError

__all__ = ["CacheConfig", "ParseOptions"]

_CAMEL_TO_FIELD: dict[str, str] = {
    "strictNullHandling": "strict_null_handling",
    "enableConditionalSchemas": "enable_conditional_schemas",
    "enablePrefixItems": "enable_prefix_items",
    "enableUnevaluatedProperties": "enable_unevaluated_properties",
    "enableConstKeyword": "enable_const_keyword",
    "enableContainsKeyword": "enable_contains_keyword",
    "enableEnhancedDiscriminator": "enable_enhanced_discriminator",
    "enableWebhooks": "enable_webhooks",
    "fallbackToOpenAPI30": "fallback_to_openapi30",
}

# Transform kind value -> flag gating it.
_FLAG_BY_KIND: dict[str, str] = {
    "null-types": "strict_null_handling",
    "const-keyword": "enable_const_keyword",
    "prefix-items": "enable_prefix_items",
    "contains": "enable_contains_keyword",
    "conditional": "enable_conditional_schemas",
    "discriminator": "enable_enhanced_discriminator",
    "unevaluated-properties": "enable_unevaluated_properties",
    "webhooks": "enable_webhooks",
}


@dataclass(frozen=True, slots=True)
class ParseOptions:
    """Feature flags controlling which normalizations run.

    Attributes:
        strict_null_handling: Normalize ``type`` arrays and ``nullable``.
        enable_conditional_schemas: Validate and record ``if``/``then``/``else``.
        enable_prefix_items: Rewrite ``prefixItems`` tuples.
        enable_unevaluated_properties: Mirror ``unevaluated*`` into
            ``additional*``.
        enable_const_keyword: Synthesize ``type``/``enum`` for ``const``.
        enable_contains_keyword: Validate and record ``contains`` constraints.
        enable_enhanced_discriminator: Infer discriminator mappings.
        enable_webhooks: Structure the top-level ``webhooks`` map.
            Default False.
        fallback_to_openapi30: Re-process a 3.1 definition with the 3.0
            path when its normalization fails.  Default False.
    """

    strict_null_handling: bool = True
    enable_conditional_schemas: bool = True
    enable_prefix_items: bool = True
    enable_unevaluated_properties: bool = True
    enable_const_keyword: bool = True
    enable_contains_keyword: bool = True
    enable_enhanced_discriminator: bool = True
    enable_webhooks: bool = False
    fallback_to_openapi30: bool = False

    def __post_init__(self) -> None:
        for field in fields(self):
            value = getattr(self, field.name)
            if not isinstance(value, bool):
                msg = f"{field.name} must be a boolean, got {type(value).__name__}"
                raise OptionsValidationError(msg)

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Any] | None) -> ParseOptions:
        """Build options from camelCase or snake_case keys.

        Absent keys take their defaults; ``None`` values are treated as absent.

        Raises:
            OptionsValidationError: an unknown key or a non-boolean value.
        """
        if mapping is None:
            return cls()
        known = {f.name for f in fields(cls)}
        kwargs: dict[str, Any] = {}
        for key, value in mapping.items():
            name = _CAMEL_TO_FIELD.get(key, key)
            if name not in known:
                msg = f"Unknown parse option: {key}"
                raise OptionsValidationError(msg)
            if value is not None:
                kwargs[name] = value
        return cls(**kwargs)

    def is_enabled(self, kind: str) -> bool:
        """Return the flag gating transform *kind* (always True if ungated)."""
        flag = _FLAG_BY_KIND.get(str(kind))
        return True if flag is None else bool(getattr(self, flag))

    def enabled_features(self) -> list[str]:
        return [f.name for f in fields(self) if getattr(self, f.name)]

    def fingerprint(self) -> str:
        """Stable hash of the transformation-relevant flags."""
        payload = json.dumps(asdict(self), sort_keys=True, separators=(",", ":"))
        return hashlib.sha256(payload.encode("utf-8")).hexdigest()[:16]


@dataclass(frozen=True, slots=True)
class CacheConfig:
    """Bounds for ``TransformationCache``.

    Attributes:
        max_entries: Maximum number of cached results.  Default 1000.
        max_memory_bytes: Approximate memory ceiling.  Default 100 MiB.
        ttl_seconds: Time-to-live of an entry.  Default 30 minutes.
    """

    max_entries: int = 1000
    max_memory_bytes: int = 100 * 1024 * 1024
    ttl_seconds: float = 30 * 60

    def __post_init__(self) -> None:
        if self.max_entries < 1:
            msg = f"max_entries must be >= 1, got {self.max_entries}"
            raise ValueError(msg)
        if self.max_memory_bytes < 1:
            msg = f"max_memory_bytes must be >= 1, got {self.max_memory_bytes}"
            raise ValueError(msg)
        if self.ttl_seconds <= 0:
            msg = f"ttl_seconds must be > 0, got {self.ttl_seconds}"
            raise ValueError(msg)
