"""WebhookStructurer: turn the top-level ``webhooks`` map into object schemas.

Each webhook becomes an object schema whose properties are its HTTP
operations.  Each operation aggregates ``requestBody`` (keyed by normalized
media type), ``responses`` (keyed by status code), ``parameters`` and
``headers``; every embedded OpenAPI schema is converted to JSON Schema with
the injected converter.

Content that cannot be used is dropped silently, bottom-up: a media type
without a schema, an operation without any content, and finally a webhook
without any operation.  A schema the converter rejects is skipped with a
warning.

Example::

    structurer = WebhookStructurer()
    webhooks = structurer.structure(document["webhooks"])
    webhooks["newPet"]["properties"]["post"]["title"]   # "PostOperation"
"""

from __future__ import annotations

import copy
import re
from collections.abc import Iterable, Mapping
from typing import Any

from loguru import logger

from openapi_normalizer.convert import SchemaConverter, openapi_to_json_schema
from openapi_normalizer.errors import InvalidHttpMethodError, NormalizationError
from openapi_normalizer.result import TransformResult
from openapi_normalizer.transform.base import TransformKind
from openapi_normalizer.tree.nodes import SchemaNode
from openapi_normalizer.tree.walker import join_pointer

__all__ = [
    "HTTP_METHODS",
    "WebhookStructurer",
    "create_webhook_schema",
    "extract_webhook_names",
    "normalize_media_type",
    "validate_webhook_config",
]

HTTP_METHODS: frozenset[str] = frozenset(
    {"get", "post", "put", "patch", "delete", "head", "options", "trace"}
)

# Path Item fields that are not operations.
_PATH_ITEM_FIELDS = frozenset({"summary", "description", "servers", "parameters", "$ref"})

_NON_ALNUM = re.compile(r"[^a-zA-Z0-9]+")
_SEPARATED_CHAR = re.compile(r"_([a-zA-Z0-9])")


def normalize_media_type(media_type: str) -> str:
    """Turn a media type into a camelCase identifier.

    ``application/json`` -> ``applicationJson``,
    ``application/vnd.api+json`` -> ``applicationVndApiJson``.
    """
    collapsed = _NON_ALNUM.sub("_", media_type).strip("_")
    return _SEPARATED_CHAR.sub(lambda m: m.group(1).upper(), collapsed)


def _capitalize(name: str) -> str:
    return name[:1].upper() + name[1:]


def _object_schema(title: str, description: str) -> dict[str, Any]:
    return {
        "type": "object",
        "title": title,
        "description": description,
        "properties": {},
        "additionalProperties": False,
    }


def extract_webhook_names(document: Mapping[str, Any]) -> list[str]:
    webhooks = document.get("webhooks")
    if not isinstance(webhooks, Mapping):
        return []
    return [name for name, item in webhooks.items() if isinstance(item, Mapping)]


def _is_operation_key(key: str) -> bool:
    return key not in _PATH_ITEM_FIELDS and not key.startswith("x-")


def validate_webhook_config(webhooks: Any) -> list[str]:
    """Return every problem found in a ``webhooks`` map; empty when it is valid.

    Unlike ``WebhookStructurer.structure`` this never raises, so all
    problems are reported at once.
    """
    if not isinstance(webhooks, Mapping):
        return ["Webhooks must be an object"]
    errors: list[str] = []
    for name, path_item in webhooks.items():
        if not isinstance(path_item, Mapping):
            errors.append(f"Webhook {name!r} must be an object")
            continue
        for key, operation in path_item.items():
            if not _is_operation_key(key):
                continue
            if key not in HTTP_METHODS:
                errors.append(f"Invalid HTTP method in webhook {name!r}: {key}")
            elif not isinstance(operation, Mapping):
                errors.append(f"Operation {key!r} in webhook {name!r} must be an object")
    return errors


def create_webhook_schema(
    name: str, methods: Iterable[str] = ("post",)
) -> dict[str, dict[str, Any]]:
    """Build a minimal ``webhooks`` map with one JSON event operation per method.

    Example::

        webhooks = create_webhook_schema("orderShipped", ["post", "put"])
        WebhookStructurer().structure(webhooks)["orderShipped"]["title"]
        # "OrderShippedWebhook"
    """
    event = {
        "type": "object",
        "properties": {
            "id": {"type": "string"},
            "timestamp": {"type": "string", "format": "date-time"},
            "data": {"type": "object"},
        },
        "required": ["id", "timestamp"],
    }
    ack = {
        "type": "object",
        "properties": {"success": {"type": "boolean"}, "message": {"type": "string"}},
        "required": ["success"],
    }
    path_item: dict[str, Any] = {}
    for method in methods:
        path_item[method] = {
            "requestBody": {"content": {"application/json": {"schema": copy.deepcopy(event)}}},
            "responses": {
                "200": {
                    "description": "Success",
                    "content": {"application/json": {"schema": copy.deepcopy(ack)}},
                }
            },
        }
    return {name: path_item}


class WebhookStructurer:
    """Build one object schema per webhook.

    Args:
        converter: OpenAPI -> JSON Schema converter applied to every embedded
            schema.  Defaults to ``openapi_to_json_schema``.
    """

    kind = TransformKind.WEBHOOKS

    def __init__(self, converter: SchemaConverter | None = None) -> None:
        self._convert: SchemaConverter = converter or openapi_to_json_schema

    def detect(self, document: Mapping[str, Any]) -> bool:
        return bool(extract_webhook_names(document))

    def transform(
        self, document: Mapping[str, Any], location: str = "#"
    ) -> TransformResult[dict[str, SchemaNode]]:
        """Structure ``document["webhooks"]``.

        The document itself is returned unchanged as ``schema``; the
        structured ``name -> schema`` map is the result's ``metadata``.
        """
        webhooks = document.get("webhooks")
        if not isinstance(webhooks, Mapping):
            return TransformResult(
                schema=document,  # type: ignore[arg-type]
                was_transformed=False,
                metadata={},
            )
        structured = self.structure(webhooks, join_pointer(location, "webhooks"))
        return TransformResult(
            schema=document,  # type: ignore[arg-type]
            was_transformed=bool(structured),
            metadata=structured,
        )

    def structure(
        self, webhooks: Mapping[str, Any], location: str = "#/webhooks"
    ) -> dict[str, SchemaNode]:
        """Return ``name -> schema`` for every webhook with a usable operation.

        Raises:
            InvalidHttpMethodError: a path item key is neither an HTTP method
                nor a known Path Item field.
        """
        result: dict[str, SchemaNode] = {}
        for name, path_item in webhooks.items():
            if not isinstance(path_item, Mapping):
                continue
            schema = self._webhook(name, path_item, join_pointer(location, name))
            if schema is not None:
                result[name] = schema
        return result

    # ------------------------------------------------------------------
    # Webhook and operation
    # ------------------------------------------------------------------

    def _webhook(
        self, name: str, path_item: Mapping[str, Any], location: str
    ) -> SchemaNode | None:
        schema = _object_schema(f"{_capitalize(name)}Webhook", f"Webhook definition for {name}")
        for key, operation in path_item.items():
            if not _is_operation_key(key):
                continue
            if key not in HTTP_METHODS:
                msg = f"Invalid HTTP method in webhook {name!r}: {key}"
                raise InvalidHttpMethodError(
                    msg,
                    location=join_pointer(location, key),
                    suggestion=f"Use one of: {', '.join(sorted(HTTP_METHODS))}",
                )
            if not isinstance(operation, Mapping):
                continue
            operation_schema = self._operation(key, operation, join_pointer(location, key))
            if operation_schema is not None:
                schema["properties"][key] = operation_schema
        return schema if schema["properties"] else None  # type: ignore[return-value]

    def _operation(
        self, method: str, operation: Mapping[str, Any], location: str
    ) -> dict[str, Any] | None:
        schema = _object_schema(
            f"{_capitalize(method)}Operation", f"{method.upper()} operation for webhook"
        )
        parts = {
            "requestBody": self._request_body(operation.get("requestBody"), location),
            "responses": self._responses(operation.get("responses"), location),
            "parameters": self._parameters(operation.get("parameters"), location),
            "headers": self._headers(operation.get("headers"), location),
        }
        for key, part in parts.items():
            if part is not None:
                schema["properties"][key] = part
        return schema if schema["properties"] else None

    # ------------------------------------------------------------------
    # Operation parts
    # ------------------------------------------------------------------

    def _content(
        self, content: Any, title: str, description: str, location: str
    ) -> dict[str, Any] | None:
        if not isinstance(content, Mapping):
            return None
        schema = _object_schema(title, description)
        for media_type, media in content.items():
            if not isinstance(media, Mapping) or media.get("schema") is None:
                continue
            converted = self._try_convert(
                media["schema"], join_pointer(location, "content", media_type, "schema")
            )
            if converted is not None:
                schema["properties"][normalize_media_type(media_type)] = converted
        return schema if schema["properties"] else None

    def _request_body(self, request_body: Any, location: str) -> dict[str, Any] | None:
        if not isinstance(request_body, Mapping):
            return None
        schema = self._content(
            request_body.get("content"),
            "RequestBody",
            "Request body content",
            join_pointer(location, "requestBody"),
        )
        if schema is not None and request_body.get("required") is True:
            schema["required"] = list(schema["properties"])
        return schema

    def _responses(self, responses: Any, location: str) -> dict[str, Any] | None:
        if not isinstance(responses, Mapping):
            return None
        schema = _object_schema("Responses", "Response definitions")
        for status, response in responses.items():
            if not isinstance(response, Mapping):
                continue
            pointer = join_pointer(location, "responses", status)
            response_schema = _object_schema(
                f"Response{status}", f"Response for status code {status}"
            )
            content = self._content(response.get("content"), "Content", "Response content", pointer)
            if content is not None:
                response_schema["properties"]["content"] = content
            headers = self._headers(response.get("headers"), pointer)
            if headers is not None:
                response_schema["properties"]["headers"] = headers
            if response_schema["properties"]:
                schema["properties"][str(status)] = response_schema
        return schema if schema["properties"] else None

    def _parameters(self, parameters: Any, location: str) -> dict[str, Any] | None:
        if not isinstance(parameters, list):
            return None
        schema = _object_schema("Parameters", "Operation parameters")
        required: list[str] = []
        for index, parameter in enumerate(parameters):
            if not isinstance(parameter, Mapping) or not parameter.get("name"):
                continue
            name = parameter["name"]
            param_schema = self._field_schema(
                parameter, join_pointer(location, "parameters", index, "schema")
            )
            if param_schema is None:
                continue
            schema["properties"][name] = param_schema
            if parameter.get("required") is True and name not in required:
                required.append(name)
        if required:
            schema["required"] = required
        return schema if schema["properties"] else None

    def _headers(self, headers: Any, location: str) -> dict[str, Any] | None:
        if not isinstance(headers, Mapping):
            return None
        schema = _object_schema("Headers", "HTTP headers")
        required: list[str] = []
        for name, header in headers.items():
            if not isinstance(header, Mapping):
                continue
            header_schema = self._field_schema(
                header, join_pointer(location, "headers", name, "schema")
            )
            if header_schema is None:
                continue
            schema["properties"][name] = header_schema
            if header.get("required") is True:
                required.append(name)
        if required:
            schema["required"] = required
        return schema if schema["properties"] else None

    def _field_schema(self, field: Mapping[str, Any], location: str) -> dict[str, Any] | None:
        """Schema of a parameter or header; ``{"type": "string"}`` when absent."""
        if field.get("schema") is None:
            converted: dict[str, Any] | None = {"type": "string"}
        else:
            converted = self._try_convert(field["schema"], location)
        if converted is not None and field.get("description"):
            converted = {**converted, "description": field["description"]}
        return converted

    def _try_convert(self, schema: Any, location: str) -> dict[str, Any] | None:
        try:
            return dict(self._convert(schema))
        except NormalizationError as exc:
            logger.warning("Skipping webhook schema at {}: {}", location, exc)
            return None
