"""DiscriminatorEnhancer: infer mappings and pin discriminator values.

Two shapes are handled:

- **Sibling union**: ``discriminator`` next to ``oneOf``/``anyOf``.  When the
  discriminator has no ``mapping`` one is inferred from the members, in order
  of preference:

  1. the trailing segment of the member's ``$ref``
     (``#/components/schemas/Cat`` -> ``Cat``),
  2. the ``const`` (or single-value ``enum``) of the member's own
     discriminator property,
  3. the member's ``title``.

  Members yielding no value are skipped.  Every member whose value is known
  gets ``properties[<propertyName>] = {"type": "string", "const": <value>}``
  and ``<propertyName>`` in ``required``.

- **Inheritance**: ``discriminator`` next to ``allOf``.  The discriminator
  property is ensured on the base schema (default ``{"type": "string"}``)
  and made required.

Both shapes attach ``x-discriminator-enhanced`` (``propertyName``,
``mapping``, ``location`` and, for inheritance, ``isInheritance``) to the
parent.  Discriminators found below the transformed root are reported with
``is_nested=True``.

Pinned properties carry ``const`` but no ``enum``.  The const step runs
before this one in the pipeline, so a second pipeline run over the output
adds the single-member ``enum`` once; a third run changes nothing.
"""

from __future__ import annotations

from functools import partial
from typing import Any

from openapi_normalizer.errors import InvalidDiscriminatorError
from openapi_normalizer.result import DiscriminatorInfo, TransformResult
from openapi_normalizer.transform.base import TransformKind
from openapi_normalizer.tree.nodes import APPLICATOR_KEYWORDS, SchemaNode, is_schema
from openapi_normalizer.tree.walker import join_pointer, map_subschemas, walk

__all__ = [
    "ENHANCED_METADATA_KEY",
    "DiscriminatorEnhancer",
    "infer_discriminator_mapping",
    "validate_discriminator",
]

ENHANCED_METADATA_KEY = "x-discriminator-enhanced"

_UNION_KEYWORDS = ("oneOf", "anyOf")


def validate_discriminator(discriminator: Any, location: str = "#") -> None:
    """Raise ``InvalidDiscriminatorError`` for a malformed discriminator object."""
    pointer = join_pointer(location, "discriminator")
    if not isinstance(discriminator, dict):
        msg = "discriminator must be an object"
        raise InvalidDiscriminatorError(msg, location=pointer)
    name = discriminator.get("propertyName")
    if not isinstance(name, str) or not name:
        msg = "discriminator.propertyName must be a non-empty string"
        raise InvalidDiscriminatorError(msg, location=pointer)
    mapping = discriminator.get("mapping")
    if mapping is None:
        return
    if not isinstance(mapping, dict) or not all(
        isinstance(k, str) and isinstance(v, str) for k, v in mapping.items()
    ):
        msg = "discriminator.mapping must map strings to strings"
        raise InvalidDiscriminatorError(msg, location=join_pointer(pointer, "mapping"))


def _ref_name(ref: str) -> str:
    return ref.rsplit("/", 1)[-1]


def _member_value(member: SchemaNode, property_name: str) -> str | None:
    ref = member.get("$ref")
    if isinstance(ref, str) and ref:
        return _ref_name(ref)
    properties = member.get("properties")
    if isinstance(properties, dict):
        prop = properties.get(property_name)
        if is_schema(prop):
            if "const" in prop and prop["const"] is not None:
                return str(prop["const"])
            enum = prop.get("enum")
            if isinstance(enum, list) and len(enum) == 1:
                return str(enum[0])
    title = member.get("title")
    if isinstance(title, str) and title:
        return title
    return None


def infer_discriminator_mapping(
    members: list[Any],
    property_name: str,
    location: str = "#",
    combiner: str = "oneOf",
) -> dict[str, str]:
    """Infer ``value -> target`` for the members of a union.

    Targets are the member's ``$ref`` or, for inline members, the JSON Pointer
    of the member (``<location>/<combiner>/<index>``).  The first member to
    claim a value wins.
    """
    mapping: dict[str, str] = {}
    for index, member in enumerate(members):
        if not is_schema(member):
            continue
        value = _member_value(member, property_name)
        if value is None or value in mapping:
            continue
        ref = member.get("$ref")
        target = ref if isinstance(ref, str) and ref else join_pointer(location, combiner, index)
        mapping[value] = target
    return mapping


def _mapped_value(
    mapping: dict[str, str], member: SchemaNode, pointer: str
) -> str | None:
    ref = member.get("$ref")
    for value, target in mapping.items():
        if target == pointer:
            return value
        if isinstance(ref, str) and (target == ref or ref.endswith("/" + target)):
            return value
    return None


def _pin_property(member: SchemaNode, property_name: str, value: str) -> SchemaNode:
    properties: dict[str, Any] = dict(member.get("properties") or {})
    existing = properties.get(property_name)
    base = existing if is_schema(existing) else {}
    properties[property_name] = {**base, "type": "string", "const": value}
    return _with_required(member, property_name, properties)


def _with_required(
    node: SchemaNode, property_name: str, properties: dict[str, Any]
) -> SchemaNode:
    required = list(node.get("required") or [])
    if property_name not in required:
        required.append(property_name)
    return {**node, "properties": properties, "required": required}  # type: ignore[typeddict-item]


class DiscriminatorEnhancer:
    """Infer discriminator mappings and make discriminator values explicit."""

    kind = TransformKind.DISCRIMINATOR

    def detect(self, node: SchemaNode) -> bool:
        return any(
            "discriminator" in child for child, _, _ in walk(node, APPLICATOR_KEYWORDS)
        )

    def transform(
        self, node: SchemaNode, location: str = "#"
    ) -> TransformResult[list[DiscriminatorInfo]]:
        found: list[DiscriminatorInfo] = []
        new_node, changed = self._enhance(node, location, 0, found=found)
        return TransformResult(schema=new_node, was_transformed=changed, metadata=found)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _enhance(
        self,
        node: SchemaNode,
        location: str,
        depth: int,
        *,
        found: list[DiscriminatorInfo],
    ) -> tuple[SchemaNode, bool]:
        visit = partial(self._enhance, found=found)
        node, changed = map_subschemas(node, APPLICATOR_KEYWORDS, visit, location, depth)
        if "discriminator" not in node:
            return node, changed

        discriminator = node["discriminator"]
        validate_discriminator(discriminator, location)
        combiner = next((k for k in _UNION_KEYWORDS if isinstance(node.get(k), list)), None)
        if combiner is not None:
            enhanced, info = self._enhance_union(node, combiner, location, depth)
        elif isinstance(node.get("allOf"), list):
            enhanced, info = self._enhance_inheritance(node, location, depth)
        else:
            return node, changed

        found.append(info)
        if enhanced == node:
            return node, changed
        return enhanced, True

    def _enhance_union(
        self, node: SchemaNode, combiner: str, location: str, depth: int
    ) -> tuple[SchemaNode, DiscriminatorInfo]:
        discriminator = node["discriminator"]
        property_name: str = discriminator["propertyName"]
        members: list[Any] = node[combiner]  # type: ignore[literal-required]
        explicit = discriminator.get("mapping")
        mapping = (
            dict(explicit)
            if explicit
            else infer_discriminator_mapping(members, property_name, location, combiner)
        )

        new_members: list[Any] = []
        for index, member in enumerate(members):
            if not is_schema(member):
                new_members.append(member)
                continue
            pointer = join_pointer(location, combiner, index)
            value = _mapped_value(mapping, member, pointer)
            if value is None:
                value = _member_value(member, property_name)
            new_members.append(
                member if value is None else _pin_property(member, property_name, value)
            )

        enhanced: dict[str, Any] = {
            **node,
            combiner: new_members,
            ENHANCED_METADATA_KEY: {
                "propertyName": property_name,
                "mapping": mapping,
                "location": location,
            },
        }
        info = DiscriminatorInfo(
            property_name=property_name,
            mapping=mapping,
            location=location,
            is_nested=depth > 0,
            inferred=not explicit,
        )
        return enhanced, info  # type: ignore[return-value]

    def _enhance_inheritance(
        self, node: SchemaNode, location: str, depth: int
    ) -> tuple[SchemaNode, DiscriminatorInfo]:
        discriminator = node["discriminator"]
        property_name: str = discriminator["propertyName"]
        mapping = dict(discriminator.get("mapping") or {})

        properties: dict[str, Any] = dict(node.get("properties") or {})
        if property_name not in properties:
            properties[property_name] = {"type": "string"}
        enhanced: dict[str, Any] = {
            **_with_required(node, property_name, properties),
            ENHANCED_METADATA_KEY: {
                "propertyName": property_name,
                "mapping": mapping,
                "location": location,
                "isInheritance": True,
            },
        }
        info = DiscriminatorInfo(
            property_name=property_name,
            mapping=mapping,
            location=location,
            is_inheritance=True,
            is_nested=depth > 0,
        )
        return enhanced, info  # type: ignore[return-value]
