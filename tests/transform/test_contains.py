"""Tests for ContainsNormalizer.

Covers:
- Validity of minContains/maxContains pairs (fails iff negative, non-integer
  or min > max)
- contains must be a schema object
- Patterns collected with locations through nested keywords
- Tree left structurally untouched
"""

from __future__ import annotations

from typing import Any

import pytest

from openapi_normalizer.errors import InvalidContainsConstraintError, InvalidContainsSchemaError
from openapi_normalizer.transform.contains import ContainsNormalizer, create_contains_schema


@pytest.fixture
def normalizer() -> ContainsNormalizer:
    return ContainsNormalizer()


class TestConstraintValidity:
    def test_min_greater_than_max(self, normalizer: ContainsNormalizer) -> None:
        """minContains above maxContains is rejected with a clear message."""
        schema = {
            "type": "array",
            "contains": {"type": "string"},
            "minContains": 2,
            "maxContains": 1,
        }
        with pytest.raises(
            InvalidContainsConstraintError,
            match="minContains must be less than or equal to maxContains",
        ):
            normalizer.transform(schema)

    @pytest.mark.parametrize(
        ("min_contains", "max_contains", "valid"),
        [
            (0, 0, True),
            (1, 3, True),
            (3, 3, True),
            (None, 2, True),
            (2, None, True),
            (-1, 2, False),
            (1, -1, False),
            (1.5, 2, False),
            (True, 2, False),
            (4, 3, False),
            ("1", 2, False),
        ],
    )
    def test_pairs(
        self,
        normalizer: ContainsNormalizer,
        min_contains: Any,
        max_contains: Any,
        valid: bool,
    ) -> None:
        """Bounds must be non-negative ints with min <= max; either may be absent."""
        schema: dict[str, Any] = {"type": "array", "contains": {"type": "integer"}}
        if min_contains is not None:
            schema["minContains"] = min_contains
        if max_contains is not None:
            schema["maxContains"] = max_contains
        if valid:
            normalizer.transform(schema)
        else:
            with pytest.raises(InvalidContainsConstraintError):
                normalizer.transform(schema)

    def test_contains_must_be_schema(self, normalizer: ContainsNormalizer) -> None:
        """A non-object contains is reported at its own pointer."""
        with pytest.raises(InvalidContainsSchemaError) as exc_info:
            normalizer.transform({"properties": {"tags": {"contains": "string"}}})
        assert exc_info.value.location == "#/properties/tags/contains"


class TestPatterns:
    def test_untouched_and_recorded(self, normalizer: ContainsNormalizer) -> None:
        """The tree is returned as is; each contains is recorded in pre-order."""
        schema = {
            "type": "object",
            "properties": {
                "tags": {"type": "array", "contains": {"const": "x"}, "minContains": 1},
            },
            "anyOf": [{"items": {"contains": {"type": "number"}, "maxContains": 4}}],
        }
        result = normalizer.transform(schema)
        assert result.schema is schema
        assert not result.was_transformed
        assert result.metadata is not None
        assert [(p.location, p.min_contains, p.max_contains) for p in result.metadata] == [
            ("#/properties/tags", 1, None),
            ("#/anyOf/0/items", None, 4),
        ]
        assert result.metadata[0].schema == {"const": "x"}

    def test_detect(self, normalizer: ContainsNormalizer) -> None:
        """minContains alone is enough to trigger validation."""
        assert normalizer.detect({"items": {"contains": {}}})
        assert normalizer.detect({"minContains": 1})
        assert not normalizer.detect({"type": "array"})


class TestCreateContainsSchema:
    def test_builds(self) -> None:
        """Only the given bounds are added."""
        assert create_contains_schema({"type": "string"}, min_contains=1) == {
            "type": "array",
            "contains": {"type": "string"},
            "minContains": 1,
        }

    def test_validates(self) -> None:
        """Bounds are validated before the schema is built."""
        with pytest.raises(InvalidContainsConstraintError):
            create_contains_schema({"type": "string"}, min_contains=3, max_contains=2)
