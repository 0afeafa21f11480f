"""Exception hierarchy for OpenAPI schema normalization.

Every error raised by this package derives from ``NormalizationError`` and
carries a stable ``kind`` string so callers can branch on the failure family
without importing every concrete class:

- ``VersionError`` (``"version"``): missing, malformed or unsupported
  ``openapi`` field.  Raised before any transformation runs.
- ``StructuralValidationError`` (``"structural-validation"``): a malformed
  subtree (conditional, tuple, contains, const, discriminator, webhook).
- ``ConfigurationConflictError`` (``"configuration-conflict"``): keywords
  that cannot be combined, e.g. ``prefixItems`` with an ``items`` array.
- ``SerializationError`` (``"serialization"``): a ``const`` value that has no
  canonical JSON form.

Errors detected inside a schema tree carry a JSON-Pointer ``location``.

Example::

    from openapi_normalizer.errors import NormalizationError

    try:
        normalize_schema(schema)
    except NormalizationError as exc:
        print(exc.kind, exc.location)
        print(exc.formatted_message())
"""

from __future__ import annotations

__all__ = [
    "ConfigurationConflictError",
    "ConflictingTupleConfigError",
    "ConversionError",
    "IncompleteConditionalError",
    "InvalidConditionalSchemaError",
    "InvalidContainsConstraintError",
    "InvalidContainsSchemaError",
    "InvalidDiscriminatorError",
    "InvalidHttpMethodError",
    "InvalidPrefixItemsError",
    "InvalidTypeArrayError",
    "InvalidUnevaluatedValueError",
    "InvalidVersionFormatError",
    "MissingVersionError",
    "NonSerializableConstError",
    "NormalizationError",
    "OptionsValidationError",
    "SchemaDepthExceededError",
    "SerializationError",
    "StructuralValidationError",
    "UnsupportedConstTypeError",
    "UnsupportedVersionError",
    "VersionError",
]


class NormalizationError(Exception):
    """Base class for every error raised while normalizing a document.

    Attributes:
        kind: Stable family discriminant (class attribute).
        location: JSON Pointer of the offending node, or ``None`` when the
            error is not tied to a node.
        suggestion: Optional hint on how to fix the input.
    """

    kind: str = "normalization"

    def __init__(
        self,
        message: str,
        *,
        location: str | None = None,
        suggestion: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.location = location
        self.suggestion = suggestion

    def formatted_message(self) -> str:
        """Render the message with its location and suggestion, if any."""
        text = self.message
        if self.location:
            text = f"{text} (at {self.location})"
        if self.suggestion:
            text = f"{text}\n\nSuggestion: {self.suggestion}"
        return text


# ------------------------------------------------------------------
# Version detection
# ------------------------------------------------------------------


class VersionError(NormalizationError):
    """The document's ``openapi`` version cannot be processed."""

    kind = "version"


class MissingVersionError(VersionError):
    def __init__(self, message: str = "Missing or invalid openapi field") -> None:
        super().__init__(
            message,
            suggestion='Add an "openapi" field such as "3.0.3" or "3.1.0"',
        )


class InvalidVersionFormatError(VersionError):
    def __init__(self, version: str) -> None:
        super().__init__(
            f"Invalid OpenAPI version format: {version}",
            suggestion="Use the form major.minor or major.minor.patch",
        )
        self.version = version


class UnsupportedVersionError(VersionError):
    def __init__(self, version: str, major: int, minor: int) -> None:
        if major != 3:
            message = (
                f"OpenAPI major version {major} is not supported. "
                "Only OpenAPI 3.x is supported."
            )
        else:
            message = (
                f"OpenAPI version {version} is not supported. "
                "Only OpenAPI 3.0.x and 3.1.x are supported."
            )
        super().__init__(message)
        self.version = version
        self.major = major
        self.minor = minor


# ------------------------------------------------------------------
# Structural validation
# ------------------------------------------------------------------


class StructuralValidationError(NormalizationError):
    """A schema subtree is malformed for the keyword being normalized."""

    kind = "structural-validation"


class InvalidTypeArrayError(StructuralValidationError):
    pass


class UnsupportedConstTypeError(StructuralValidationError):
    pass


class InvalidPrefixItemsError(StructuralValidationError):
    pass


class IncompleteConditionalError(StructuralValidationError):
    pass


class InvalidConditionalSchemaError(StructuralValidationError):
    pass


class InvalidContainsConstraintError(StructuralValidationError):
    pass


class InvalidContainsSchemaError(StructuralValidationError):
    pass


class InvalidDiscriminatorError(StructuralValidationError):
    pass


class InvalidUnevaluatedValueError(StructuralValidationError):
    pass


class InvalidHttpMethodError(StructuralValidationError):
    pass


class SchemaDepthExceededError(StructuralValidationError):
    pass


# ------------------------------------------------------------------
# Conflicts, serialization, conversion, options
# ------------------------------------------------------------------


class ConfigurationConflictError(NormalizationError):
    """Two keywords on the same node cannot be combined."""

    kind = "configuration-conflict"


class ConflictingTupleConfigError(ConfigurationConflictError):
    pass


class SerializationError(NormalizationError):
    """A value has no canonical JSON serialization."""

    kind = "serialization"


class NonSerializableConstError(SerializationError):
    pass


class ConversionError(NormalizationError):
    """The OpenAPI to JSON Schema converter rejected its input."""

    kind = "conversion"


class OptionsValidationError(NormalizationError, ValueError):
    """A ``ParseOptions`` field was given a value of the wrong type."""

    kind = "options"
