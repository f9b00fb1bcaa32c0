"""Shared fixtures for agenterra tests.

Template trees are written under tmp_path so every test compiles its own
Jinja2 environment; the engine cache is keyed by directory.
"""

from __future__ import annotations

import copy
import json
from pathlib import Path
from typing import Any, Callable

import pytest

from agenterra.loader import OpenApiDocument
from agenterra.templates import clear_engine_cache


# ---------------------------------------------------------------------------
# Sample documents
# ---------------------------------------------------------------------------

PETSTORE: dict[str, Any] = {
    "openapi": "3.0.3",
    "info": {"title": "Pet Store", "version": "1.2.0"},
    "servers": [{"url": "https://petstore.example.com/v1"}],
    "paths": {
        "/pets": {
            "get": {
                "operationId": "listPets",
                "summary": "List all pets!",
                "tags": ["pets"],
                "parameters": [
                    {"name": "limit", "in": "query", "schema": {"type": "integer"}},
                ],
                "responses": {
                    "200": {
                        "description": "A list of pets",
                        "content": {
                            "application/json": {
                                "schema": {
                                    "type": "array",
                                    "items": {"$ref": "#/components/schemas/Pet"},
                                },
                            },
                        },
                    },
                },
            },
            "post": {
                "operationId": "createPet",
                "summary": "Create a pet",
                "tags": ["pets"],
                "requestBody": {
                    "content": {
                        "application/json": {
                            "schema": {"$ref": "#/components/schemas/NewPet"},
                        },
                    },
                },
                "responses": {
                    "200": {
                        "description": "The created pet",
                        "content": {
                            "application/json": {
                                "schema": {"$ref": "#/components/schemas/Pet"},
                            },
                        },
                    },
                },
            },
        },
    },
    "components": {
        "schemas": {
            "Pet": {
                "type": "object",
                "properties": {
                    "id": {"type": "integer", "description": "Unique id"},
                    "name": {"type": "string", "example": "Rex"},
                },
            },
            "NewPet": {
                "type": "object",
                "properties": {
                    "name": {"type": "string", "title": "Name"},
                },
            },
        },
    },
}


@pytest.fixture
def petstore() -> dict[str, Any]:
    """A fresh copy of the two-operation pet store document."""
    return copy.deepcopy(PETSTORE)


@pytest.fixture
def petstore_doc(petstore) -> OpenApiDocument:
    return OpenApiDocument(petstore)


@pytest.fixture
def petstore_file(tmp_path, petstore) -> Path:
    path = tmp_path / "openapi.json"
    path.write_text(json.dumps(petstore), encoding="utf-8")
    return path


# ---------------------------------------------------------------------------
# Template trees
# ---------------------------------------------------------------------------

@pytest.fixture
def make_template_dir(tmp_path) -> Callable[..., Path]:
    """Return a factory that writes a template tree and returns its path.

    Usage::

        template_dir = make_template_dir({"manifest.yaml": "...", "a.j2": "..."})
    """
    counter = 0

    def _make(files: dict[str, str], name: str | None = None) -> Path:
        nonlocal counter
        counter += 1
        root = tmp_path / (name or f"templates_{counter}")
        for rel, content in files.items():
            path = root / rel
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content, encoding="utf-8")
        root.mkdir(parents=True, exist_ok=True)
        return root

    return _make


@pytest.fixture(autouse=True)
def _fresh_engine_cache():
    clear_engine_cache()
    yield
    clear_engine_cache()
