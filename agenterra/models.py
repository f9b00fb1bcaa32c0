"""Normalized operation model built from a raw OpenAPI document.

These are the only structured types the rest of the pipeline sees. Raw
schema subtrees (schemas, request bodies, security blocks) are kept as
plain dicts since templates consume them as JSON.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

PARAMETER_LOCATIONS = ("path", "query", "header", "cookie")


def _str(data: dict[str, Any], key: str) -> str | None:
    value = data.get(key)
    return value if isinstance(value, str) else None


def _bool(data: dict[str, Any], key: str) -> bool | None:
    value = data.get(key)
    return value if isinstance(value, bool) else None


def _map(data: dict[str, Any], key: str) -> dict[str, Any] | None:
    value = data.get(key)
    return value if isinstance(value, dict) else None


def vendor_extensions(data: dict[str, Any]) -> dict[str, Any]:
    """Collect ``x-`` prefixed keys of an OpenAPI object."""
    return {k: v for k, v in data.items() if isinstance(k, str) and k.startswith("x-")}


@dataclass(frozen=True)
class Parameter:
    """An operation parameter (path, query, header or cookie)."""

    name: str
    location: str
    description: str | None = None
    required: bool | None = None
    deprecated: bool | None = None
    allow_empty_value: bool | None = None
    style: str | None = None
    explode: bool | None = None
    allow_reserved: bool | None = None
    schema: dict[str, Any] | None = None
    example: Any = None
    examples: dict[str, Any] | None = None
    content: dict[str, Any] | None = None
    vendor_extensions: dict[str, Any] = field(default_factory=dict)

    @property
    def is_required(self) -> bool:
        """Declared ``required``, defaulting to true only for path parameters."""
        if self.required is not None:
            return self.required
        return self.location == "path"

    @classmethod
    def from_dict(cls, data: Any) -> Parameter | None:
        """Build a Parameter, or None when ``name``/``in`` are unusable."""
        if not isinstance(data, dict):
            return None
        name = _str(data, "name")
        location = _str(data, "in")
        if name is None or location is None:
            return None
        return cls(
            name=name,
            location=location,
            description=_str(data, "description"),
            required=_bool(data, "required"),
            deprecated=_bool(data, "deprecated"),
            allow_empty_value=_bool(data, "allowEmptyValue"),
            style=_str(data, "style"),
            explode=_bool(data, "explode"),
            allow_reserved=_bool(data, "allowReserved"),
            schema=_map(data, "schema"),
            example=data.get("example"),
            examples=_map(data, "examples"),
            content=_map(data, "content"),
            vendor_extensions=vendor_extensions(data),
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize under the original OpenAPI field names."""
        return {
            "name": self.name,
            "in": self.location,
            "description": self.description,
            "required": self.required,
            "deprecated": self.deprecated,
            "allowEmptyValue": self.allow_empty_value,
            "style": self.style,
            "explode": self.explode,
            "allowReserved": self.allow_reserved,
            "schema": self.schema,
            "example": self.example,
            "examples": self.examples,
            "content": self.content,
            **self.vendor_extensions,
        }


@dataclass(frozen=True)
class Response:
    """A single entry of an operation's ``responses`` map."""

    description: str | None = None
    headers: dict[str, Any] | None = None
    content: dict[str, Any] | None = None
    links: dict[str, Any] | None = None
    vendor_extensions: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Any) -> Response | None:
        if not isinstance(data, dict):
            return None
        return cls(
            description=_str(data, "description"),
            headers=_map(data, "headers"),
            content=_map(data, "content"),
            links=_map(data, "links"),
            vendor_extensions=vendor_extensions(data),
        )

    def json_schema(self) -> dict[str, Any] | None:
        """Return the ``application/json`` schema of this response, if any."""
        media = (self.content or {}).get("application/json")
        if not isinstance(media, dict):
            return None
        schema = media.get("schema")
        return schema if isinstance(schema, dict) else None

    def to_dict(self) -> dict[str, Any]:
        return {
            "description": self.description,
            "headers": self.headers,
            "content": self.content,
            "links": self.links,
            **self.vendor_extensions,
        }


@dataclass(frozen=True)
class Operation:
    """One (path, HTTP method) pair of the document."""

    id: str
    path: str
    method: str
    summary: str | None = None
    description: str | None = None
    tags: list[str] = field(default_factory=list)
    parameters: list[Parameter] = field(default_factory=list)
    request_body: dict[str, Any] | None = None
    responses: dict[str, Response] = field(default_factory=dict)
    external_docs: dict[str, Any] | None = None
    callbacks: dict[str, Any] | None = None
    deprecated: bool | None = None
    security: list[Any] | None = None
    servers: list[Any] | None = None
    vendor_extensions: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Serialize under the original OpenAPI field names."""
        return {
            "operationId": self.id,
            "path": self.path,
            "method": self.method,
            "tags": list(self.tags),
            "summary": self.summary,
            "description": self.description,
            "externalDocs": self.external_docs,
            "parameters": [p.to_dict() for p in self.parameters],
            "requestBody": self.request_body,
            "responses": {code: r.to_dict() for code, r in self.responses.items()},
            "callbacks": self.callbacks,
            "deprecated": self.deprecated,
            "security": self.security,
            "servers": self.servers,
            **self.vendor_extensions,
        }
