"""OpenAPI version detection and per-version feature support.

``detect_version`` reads the ``openapi`` field of a parsed document and
returns a ``VersionInfo``.  Only 3.0.x and 3.1.x are accepted; anything else
raises a ``VersionError`` before any schema is touched.

Example::

    from openapi_normalizer.version import detect_version, feature_support

    info = detect_version({"openapi": "3.1.0"})
    info.is_version_31                 # True
    feature_support(info).webhooks     # True
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from openapi_normalizer.errors import (
    InvalidVersionFormatError,
    MissingVersionError,
    UnsupportedVersionError,
)

__all__ = [
    "FeatureSupport",
    "VersionInfo",
    "detect_version",
    "feature_support",
    "parse_version_string",
]

# major.minor(.patch)?(-prerelease)?
_VERSION_PATTERN = re.compile(r"(\d+)\.(\d+)(?:\.(\d+))?(?:-.*)?")

_SUPPORTED_MINORS = frozenset({0, 1})


@dataclass(frozen=True, slots=True)
class VersionInfo:
    """Parsed ``openapi`` version.

    Attributes:
        version: The raw version string from the document.
        major: Major component (always 3 for an accepted document).
        minor: Minor component (0 or 1).
        patch: Patch component, or None when the string has only two parts.
    """

    version: str
    major: int
    minor: int
    patch: int | None = None

    @property
    def is_version_30(self) -> bool:
        return self.major == 3 and self.minor == 0

    @property
    def is_version_31(self) -> bool:
        return self.major == 3 and self.minor == 1


@dataclass(frozen=True, slots=True)
class FeatureSupport:
    """JSON Schema 2020-12 features available in a document's dialect."""

    webhooks: bool
    type_arrays: bool
    conditional_schemas: bool
    prefix_items: bool
    unevaluated_properties: bool
    const_keyword: bool
    contains_keyword: bool
    enhanced_discriminator: bool


def parse_version_string(version: str) -> VersionInfo:
    """Parse and validate a version string such as ``"3.1.0"``.

    Raises:
        InvalidVersionFormatError: *version* is not ``major.minor(.patch)?``.
        UnsupportedVersionError: the version is not 3.0.x or 3.1.x.
    """
    match = _VERSION_PATTERN.fullmatch(version)
    if match is None:
        raise InvalidVersionFormatError(version)

    major = int(match.group(1))
    minor = int(match.group(2))
    patch = int(match.group(3)) if match.group(3) is not None else None

    if major != 3 or minor not in _SUPPORTED_MINORS:
        raise UnsupportedVersionError(version, major, minor)
    return VersionInfo(version=version, major=major, minor=minor, patch=patch)


def detect_version(document: Mapping[str, Any]) -> VersionInfo:
    """Detect the OpenAPI version of a parsed document.

    Args:
        document: The parsed (and ``$ref``-resolved) OpenAPI document.

    Returns:
        The parsed ``VersionInfo``.

    Raises:
        MissingVersionError: no ``openapi`` field, or it is not a string.
        InvalidVersionFormatError: the string is malformed.
        UnsupportedVersionError: the version is outside 3.0.x / 3.1.x.
    """
    if not isinstance(document, Mapping):
        msg = "OpenAPI document must be a mapping"
        raise MissingVersionError(msg)
    version = document.get("openapi")
    if version is None:
        raise MissingVersionError
    if not isinstance(version, str):
        msg = f"openapi field must be a string, got {type(version).__name__}"
        raise MissingVersionError(msg)
    return parse_version_string(version)


def feature_support(info: VersionInfo) -> FeatureSupport:
    """Every 2020-12 feature is available exactly when the document is 3.1."""
    enabled = info.is_version_31
    return FeatureSupport(
        webhooks=enabled,
        type_arrays=enabled,
        conditional_schemas=enabled,
        prefix_items=enabled,
        unevaluated_properties=enabled,
        const_keyword=enabled,
        contains_keyword=enabled,
        enhanced_discriminator=enabled,
    )
