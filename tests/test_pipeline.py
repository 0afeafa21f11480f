"""Tests for SchemaPipeline.

Covers:
- Fixed transformer order and the applied/changed report
- Option flags and detect() gating
- Version-dependent null handling
- Idempotence on its own output
- Full-schema and per-kind caching
- Errors abort the run and nothing is cached
"""

from __future__ import annotations

from typing import Any

import pytest

from openapi_normalizer.cache import TransformationCache
from openapi_normalizer.errors import InvalidContainsConstraintError
from openapi_normalizer.options import ParseOptions
from openapi_normalizer.pipeline import PIPELINE_ORDER, SchemaPipeline
from openapi_normalizer.transform.base import TransformKind
from openapi_normalizer.version import VersionInfo, parse_version_string


@pytest.fixture
def v31() -> VersionInfo:
    return parse_version_string("3.1.0")


@pytest.fixture
def order_schema() -> dict[str, Any]:
    return {
        "type": "object",
        "properties": {
            "point": {"type": "array", "prefixItems": [{"type": "number"}], "items": False},
            "tags": {"type": "array", "contains": {"const": "x"}, "minContains": 1},
        },
        "unevaluatedProperties": False,
    }


# ---------------------------------------------------------------------------
# Ordering and reporting
# ---------------------------------------------------------------------------


class TestOrdering:
    def test_pipeline_order(self) -> None:
        """Transformers always run in this fixed order."""
        assert [str(kind) for kind in PIPELINE_ORDER] == [
            "null-types",
            "const-keyword",
            "prefix-items",
            "contains",
            "conditional",
            "discriminator",
            "unevaluated-properties",
        ]

    def test_nullable_type_array(self, v31: VersionInfo) -> None:
        """A lone type array only triggers the null-types step."""
        result = SchemaPipeline().transform({"type": ["string", "null"]}, v31)
        assert result.schema == {"type": "string", "nullable": True}
        assert result.was_transformed
        assert result.metadata is not None
        assert result.metadata.applied == ["null-types"]
        assert result.metadata.changed == ["null-types"]

    def test_applied_and_changed(self, v31: VersionInfo, order_schema: dict[str, Any]) -> None:
        """applied lists every detected step; changed only those that rewrote."""
        result = SchemaPipeline().transform(order_schema, v31)
        report = result.metadata
        assert report is not None
        assert report.applied == [
            "const-keyword",
            "prefix-items",
            "contains",
            "unevaluated-properties",
        ]
        assert report.changed == ["const-keyword", "prefix-items", "unevaluated-properties"]
        assert not report.from_cache
        assert report.duration_ms >= 0.0

        schema = result.schema
        assert schema["additionalProperties"] is False
        assert schema["properties"]["point"] == {
            "type": "array",
            "items": [{"type": "number"}],
            "minItems": 1,
            "maxItems": 1,
        }
        assert schema["properties"]["tags"]["contains"] == {
            "const": "x",
            "type": "string",
            "enum": ["x"],
        }
        assert [p.location for p in report.diagnostics["contains"]] == ["#/properties/tags"]

    def test_discriminator_pins_refs(self, v31: VersionInfo) -> None:
        """$ref members of a discriminated union get a pinned const."""
        schema = {
            "oneOf": [
                {"$ref": "#/components/schemas/Cat"},
                {"$ref": "#/components/schemas/Dog"},
            ],
            "discriminator": {"propertyName": "petType"},
        }
        result = SchemaPipeline().transform(schema, v31)
        for member, name in zip(result.schema["oneOf"], ["Cat", "Dog"], strict=True):
            assert member["properties"]["petType"] == {"type": "string", "const": name}
            assert "petType" in member["required"]

    def test_input_not_mutated(self, v31: VersionInfo, order_schema: dict[str, Any]) -> None:
        """The caller's schema is never modified."""
        before = repr(order_schema)
        SchemaPipeline().transform(order_schema, v31)
        assert repr(order_schema) == before


# ---------------------------------------------------------------------------
# Gating
# ---------------------------------------------------------------------------


class TestGating:
    def test_flag_disables_step(self, v31: VersionInfo, order_schema: dict[str, Any]) -> None:
        """A disabled flag skips its step even when detect() would fire."""
        options = ParseOptions(enable_prefix_items=False)
        result = SchemaPipeline().transform(order_schema, v31, options)
        assert result.metadata is not None
        assert "prefix-items" not in result.metadata.applied
        assert "prefixItems" in result.schema["properties"]["point"]

    def test_strict_null_handling_off(self, v31: VersionInfo) -> None:
        """Type arrays pass through when null handling is off."""
        options = ParseOptions(strict_null_handling=False)
        result = SchemaPipeline().transform({"type": ["string", "null"]}, v31, options)
        assert result.schema == {"type": ["string", "null"]}
        assert not result.was_transformed

    def test_nothing_detected(self, v31: VersionInfo, log_messages: list[str]) -> None:
        """A schema with nothing to rewrite is logged and returned as is."""
        result = SchemaPipeline().transform({"type": "string"}, v31)
        assert result.metadata is not None
        assert result.metadata.applied == []
        assert not result.was_transformed
        assert any("nothing to normalize" in m for m in log_messages)

    def test_openapi30_collapses_nullable(self) -> None:
        """On 3.0 input nullable: true becomes an anyOf with null."""
        result = SchemaPipeline().transform(
            {"type": "string", "nullable": True}, parse_version_string("3.0.3")
        )
        assert result.schema == {"anyOf": [{"type": "string"}, {"type": "null"}]}

    def test_openapi31_keeps_nullable(self, v31: VersionInfo) -> None:
        """On 3.1 input an existing nullable flag is left alone."""
        schema = {"type": "string", "nullable": True}
        result = SchemaPipeline().transform(schema, v31)
        assert result.schema is schema


# ---------------------------------------------------------------------------
# Idempotence
# ---------------------------------------------------------------------------


class TestIdempotence:
    @pytest.mark.parametrize(
        "schema",
        [
            {"type": ["string", "null"]},
            {"type": ["string", "integer", "null"]},
            {"type": ["integer"]},
            {"prefixItems": [{"type": "string"}], "items": {"type": "number"}},
            {"const": 3, "unevaluatedItems": False},
        ],
    )
    def test_rerun_unchanged(self, v31: VersionInfo, schema: dict[str, Any]) -> None:
        """Running the pipeline on its own output changes nothing."""
        pipeline = SchemaPipeline()
        once = pipeline.transform(schema, v31)
        twice = pipeline.transform(once.schema, v31)
        assert twice.schema == once.schema
        assert twice.metadata is not None
        assert twice.metadata.changed == []

    def test_order_schema(self, v31: VersionInfo, order_schema: dict[str, Any]) -> None:
        """The fixture schema settles after a single run."""
        pipeline = SchemaPipeline()
        once = pipeline.transform(order_schema, v31)
        assert not pipeline.transform(once.schema, v31).was_transformed

    def test_pinned_discriminator_gains_enum_once(self, v31: VersionInfo) -> None:
        """Pinned const values get their enum on the second run, then settle."""
        schema = {
            "oneOf": [
                {"title": "Card", "properties": {"method": {"enum": ["card"]}}},
                {"title": "Cash"},
            ],
            "discriminator": {"propertyName": "method"},
        }
        pipeline = SchemaPipeline()
        once = pipeline.transform(schema, v31)
        assert once.metadata is not None
        assert once.metadata.changed == ["discriminator"]

        twice = pipeline.transform(once.schema, v31)
        assert twice.metadata is not None
        assert twice.metadata.changed == ["const-keyword"]
        card = twice.schema["oneOf"][0]["properties"]["method"]
        assert card == {"enum": ["card"], "type": "string", "const": "card"}
        cash = twice.schema["oneOf"][1]["properties"]["method"]
        assert cash == {"type": "string", "const": "Cash", "enum": ["Cash"]}

        thrice = pipeline.transform(twice.schema, v31)
        assert not thrice.was_transformed
        assert thrice.schema == twice.schema


# ---------------------------------------------------------------------------
# Caching and errors
# ---------------------------------------------------------------------------


class TestCaching:
    def test_full_schema_hit(self, v31: VersionInfo, order_schema: dict[str, Any]) -> None:
        """A second identical run is served from the full-schema cache."""
        cache = TransformationCache()
        pipeline = SchemaPipeline(cache=cache)
        first = pipeline.transform(order_schema, v31)
        second = pipeline.transform(order_schema, v31)
        assert second.schema == first.schema
        assert second.metadata is not None
        assert second.metadata.from_cache
        assert second.metadata.applied == first.metadata.applied  # type: ignore[union-attr]
        assert cache.stats().hits == 1

    def test_key_depends_on_options_and_location(self, v31: VersionInfo) -> None:
        """Options and location are part of the cache key."""
        cache = TransformationCache()
        pipeline = SchemaPipeline(cache=cache)
        schema = {"type": ["integer", "null"]}
        pipeline.transform(schema, v31)
        pipeline.transform(schema, v31, ParseOptions(enable_const_keyword=False))
        pipeline.transform(schema, v31, location="#/components/schemas/Age")
        assert cache.stats().hits == 0
        assert cache.curr_size == 3

    def test_cached_result_is_isolated(self, v31: VersionInfo) -> None:
        """Mutating a returned schema does not poison the cache."""
        pipeline = SchemaPipeline(cache=TransformationCache())
        first = pipeline.transform({"type": ["integer", "null"]}, v31)
        first.schema["mutated"] = True  # type: ignore[typeddict-unknown-key]
        second = pipeline.transform({"type": ["integer", "null"]}, v31)
        assert "mutated" not in second.schema

    def test_apply_transformation(self, v31: VersionInfo) -> None:
        """Single-kind transforms are cached per kind and ignore flags."""
        cache = TransformationCache()
        pipeline = SchemaPipeline(cache=cache)
        schema = {"prefixItems": [{"type": "string"}], "items": False}
        options = ParseOptions(enable_prefix_items=False)
        first = pipeline.apply_transformation(TransformKind.PREFIX_ITEMS, schema, v31, options)
        second = pipeline.apply_transformation(TransformKind.PREFIX_ITEMS, schema, v31, options)
        assert first.was_transformed
        assert second.schema == first.schema
        assert cache.stats().hits == 1

    def test_apply_transformation_rejects_document_kinds(self, v31: VersionInfo) -> None:
        """Webhooks work on documents, not schema trees."""
        with pytest.raises(ValueError, match="not a schema-tree transformation"):
            SchemaPipeline().apply_transformation(TransformKind.WEBHOOKS, {}, v31)

    def test_error_aborts_and_is_not_cached(self, v31: VersionInfo) -> None:
        """A failing step aborts the run and leaves the cache empty."""
        cache = TransformationCache()
        schema = {"type": "array", "contains": {}, "minContains": 2, "maxContains": 1}
        with pytest.raises(InvalidContainsConstraintError):
            SchemaPipeline(cache=cache).transform(schema, v31)
        assert cache.curr_size == 0
