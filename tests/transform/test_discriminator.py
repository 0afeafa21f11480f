"""Tests for DiscriminatorEnhancer.

Covers:
- Mapping inference from $ref, const/enum and title
- Every union member pinned with a const discriminator property
- Explicit mappings honored
- Inheritance via allOf
- Nested discriminators and enhancement metadata
- Validation of malformed discriminator objects
"""

from __future__ import annotations

from typing import Any

import pytest

from openapi_normalizer.errors import InvalidDiscriminatorError
from openapi_normalizer.transform.discriminator import (
    ENHANCED_METADATA_KEY,
    DiscriminatorEnhancer,
    infer_discriminator_mapping,
    validate_discriminator,
)

CAT_REF = "#/components/schemas/Cat"
DOG_REF = "#/components/schemas/Dog"


@pytest.fixture
def enhancer() -> DiscriminatorEnhancer:
    return DiscriminatorEnhancer()


@pytest.fixture
def pet_union() -> dict[str, Any]:
    return {
        "oneOf": [{"$ref": CAT_REF}, {"$ref": DOG_REF}],
        "discriminator": {"propertyName": "petType"},
    }


# ---------------------------------------------------------------------------
# Mapping inference
# ---------------------------------------------------------------------------


class TestInferMapping:
    def test_from_refs(self) -> None:
        """$ref members are named after the last pointer segment."""
        mapping = infer_discriminator_mapping(
            [{"$ref": CAT_REF}, {"$ref": DOG_REF}], "petType"
        )
        assert mapping == {"Cat": CAT_REF, "Dog": DOG_REF}

    def test_from_const_enum_and_title(self) -> None:
        """Inline members map to their own pointer; members with no value are skipped."""
        members = [
            {"properties": {"kind": {"const": "circle"}}},
            {"properties": {"kind": {"enum": ["square"]}}},
            {"title": "Triangle"},
            {"type": "object"},
        ]
        mapping = infer_discriminator_mapping(members, "kind", "#/components/schemas/Shape")
        assert mapping == {
            "circle": "#/components/schemas/Shape/oneOf/0",
            "square": "#/components/schemas/Shape/oneOf/1",
            "Triangle": "#/components/schemas/Shape/oneOf/2",
        }

    def test_first_claim_wins(self) -> None:
        """A duplicated value keeps its first target."""
        mapping = infer_discriminator_mapping([{"title": "A"}, {"title": "A"}], "kind")
        assert mapping == {"A": "#/oneOf/0"}


# ---------------------------------------------------------------------------
# Unions
# ---------------------------------------------------------------------------


class TestUnion:
    def test_refs_pinned(self, enhancer: DiscriminatorEnhancer, pet_union: dict[str, Any]) -> None:
        """Each $ref member gets a required const discriminator property."""
        result = enhancer.transform(pet_union)
        assert result.was_transformed
        cat, dog = result.schema["oneOf"]
        assert cat["properties"]["petType"] == {"type": "string", "const": "Cat"}
        assert dog["properties"]["petType"] == {"type": "string", "const": "Dog"}
        assert "petType" in cat["required"]
        assert "petType" in dog["required"]

    def test_enhanced_metadata(
        self, enhancer: DiscriminatorEnhancer, pet_union: dict[str, Any]
    ) -> None:
        """The parent carries x-discriminator-enhanced with the inferred mapping."""
        result = enhancer.transform(pet_union, "#/components/schemas/Pet")
        assert result.schema[ENHANCED_METADATA_KEY] == {
            "propertyName": "petType",
            "mapping": {"Cat": CAT_REF, "Dog": DOG_REF},
            "location": "#/components/schemas/Pet",
        }
        assert result.metadata is not None
        (info,) = result.metadata
        assert info.inferred
        assert not info.is_nested
        assert not info.is_inheritance

    def test_explicit_mapping(self, enhancer: DiscriminatorEnhancer) -> None:
        """Explicit mapping values win over inferred names, by full or short ref."""
        schema = {
            "anyOf": [{"$ref": CAT_REF}, {"$ref": DOG_REF}],
            "discriminator": {
                "propertyName": "petType",
                "mapping": {"cat": CAT_REF, "dog": "Dog"},
            },
        }
        result = enhancer.transform(schema)
        cat, dog = result.schema["anyOf"]
        assert cat["properties"]["petType"]["const"] == "cat"
        assert dog["properties"]["petType"]["const"] == "dog"
        assert result.metadata is not None
        assert not result.metadata[0].inferred

    def test_existing_property_and_required_kept(self, enhancer: DiscriminatorEnhancer) -> None:
        """Pinning merges into an existing property and does not duplicate required."""
        member = {
            "title": "Card",
            "properties": {"method": {"description": "How to pay"}},
            "required": ["amount", "method"],
        }
        result = enhancer.transform(
            {"oneOf": [member], "discriminator": {"propertyName": "method"}}
        )
        (pinned,) = result.schema["oneOf"]
        assert pinned["properties"]["method"] == {
            "description": "How to pay",
            "type": "string",
            "const": "Card",
        }
        assert pinned["required"] == ["amount", "method"]

    def test_member_without_value_untouched(self, enhancer: DiscriminatorEnhancer) -> None:
        """A member with nothing to go on is passed through as the same object."""
        anonymous = {"type": "object"}
        result = enhancer.transform(
            {"oneOf": [anonymous], "discriminator": {"propertyName": "kind"}}
        )
        assert result.schema["oneOf"][0] is anonymous

    def test_input_not_mutated(
        self, enhancer: DiscriminatorEnhancer, pet_union: dict[str, Any]
    ) -> None:
        """The input union and its members are left untouched."""
        enhancer.transform(pet_union)
        assert pet_union["oneOf"] == [{"$ref": CAT_REF}, {"$ref": DOG_REF}]
        assert ENHANCED_METADATA_KEY not in pet_union

    def test_idempotent(self, enhancer: DiscriminatorEnhancer, pet_union: dict[str, Any]) -> None:
        """A pinned union is not changed again."""
        once = enhancer.transform(pet_union).schema
        twice = enhancer.transform(once)
        assert not twice.was_transformed
        assert twice.schema == once


# ---------------------------------------------------------------------------
# Inheritance and nesting
# ---------------------------------------------------------------------------


class TestInheritance:
    def test_base_property_required(self, enhancer: DiscriminatorEnhancer) -> None:
        """An allOf discriminator gets a required string property on the base."""
        schema = {
            "allOf": [{"$ref": "#/components/schemas/Base"}],
            "discriminator": {"propertyName": "kind"},
        }
        result = enhancer.transform(schema)
        assert result.schema["properties"] == {"kind": {"type": "string"}}
        assert result.schema["required"] == ["kind"]
        assert result.schema[ENHANCED_METADATA_KEY]["isInheritance"] is True
        assert result.metadata is not None
        assert result.metadata[0].is_inheritance

    def test_existing_property_kept(self, enhancer: DiscriminatorEnhancer) -> None:
        """An existing discriminator property is not replaced."""
        schema = {
            "allOf": [{}],
            "properties": {"kind": {"enum": ["a", "b"]}},
            "discriminator": {"propertyName": "kind"},
        }
        result = enhancer.transform(schema)
        assert result.schema["properties"]["kind"] == {"enum": ["a", "b"]}


class TestNested:
    def test_nested_reported(self, enhancer: DiscriminatorEnhancer) -> None:
        """Discriminators below the root are pinned and flagged as nested."""
        schema = {
            "type": "object",
            "properties": {
                "owner": {
                    "oneOf": [{"title": "Person"}, {"title": "Company"}],
                    "discriminator": {"propertyName": "ownerType"},
                }
            },
        }
        result = enhancer.transform(schema)
        assert result.metadata is not None
        (info,) = result.metadata
        assert info.is_nested
        assert info.location == "#/properties/owner"
        person = result.schema["properties"]["owner"]["oneOf"][0]
        assert person["properties"]["ownerType"]["const"] == "Person"

    def test_detect(self, enhancer: DiscriminatorEnhancer) -> None:
        assert enhancer.detect({"items": {"discriminator": {"propertyName": "k"}, "oneOf": []}})
        assert not enhancer.detect({"oneOf": [{"type": "string"}]})


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


class TestValidation:
    @pytest.mark.parametrize(
        "discriminator",
        [
            "petType",
            {},
            {"propertyName": ""},
            {"propertyName": 3},
            {"propertyName": "petType", "mapping": {"cat": 1}},
            {"propertyName": "petType", "mapping": ["Cat"]},
        ],
    )
    def test_malformed(self, discriminator: Any) -> None:
        """Non-objects, bad propertyName and non-string mappings are rejected."""
        with pytest.raises(InvalidDiscriminatorError):
            validate_discriminator(discriminator)

    def test_raised_during_transform(self, enhancer: DiscriminatorEnhancer) -> None:
        """Validation runs during transform and reports the discriminator pointer."""
        with pytest.raises(InvalidDiscriminatorError) as exc_info:
            enhancer.transform({"oneOf": [], "discriminator": {"mapping": {}}})
        assert exc_info.value.location == "#/discriminator"
