"""Shared fixtures: loguru capture and a few reusable schemas."""

from __future__ import annotations

from collections.abc import Iterator
from typing import Any

import pytest
from loguru import logger


@pytest.fixture
def log_messages() -> Iterator[list[str]]:
    """Enable the package logger and collect ``LEVEL:message`` lines."""
    messages: list[str] = []
    logger.enable("openapi_normalizer")
    handler_id = logger.add(
        lambda message: messages.append(
            f"{message.record['level'].name}:{message.record['message']}"
        ),
        level="DEBUG",
    )
    try:
        yield messages
    finally:
        logger.remove(handler_id)
        logger.disable("openapi_normalizer")


@pytest.fixture
def pet_document() -> dict[str, Any]:
    """A small OpenAPI 3.1 document exercising several 2020-12 features."""
    return {
        "openapi": "3.1.0",
        "info": {"title": "Pets", "version": "1.0.0"},
        "components": {
            "schemas": {
                "Cat": {
                    "type": "object",
                    "properties": {"name": {"type": ["string", "null"]}},
                },
                "Dog": {
                    "type": "object",
                    "properties": {"bark": {"type": "boolean"}},
                },
                "Pet": {
                    "oneOf": [
                        {"$ref": "#/components/schemas/Cat"},
                        {"$ref": "#/components/schemas/Dog"},
                    ],
                    "discriminator": {"propertyName": "petType"},
                },
                "Point": {
                    "type": "array",
                    "prefixItems": [{"type": "number"}, {"type": "number"}],
                    "items": False,
                },
            }
        },
        "webhooks": {
            "newPet": {
                "post": {
                    "requestBody": {
                        "required": True,
                        "content": {
                            "application/json": {
                                "schema": {
                                    "type": "object",
                                    "properties": {"id": {"type": "integer"}},
                                }
                            }
                        },
                    },
                    "responses": {"200": {"description": "ok"}},
                }
            }
        },
    }
