"""Build language-specific endpoint contexts from parsed operations.

Each target template language has one builder. A builder maps an
Operation to the naming, typing and property data that language's
templates expect. The language set is closed: it mirrors the
``language`` field of template manifests.
"""

from __future__ import annotations

import dataclasses
import enum
from dataclasses import dataclass, field
from typing import Any, Protocol

from .models import PARAMETER_LOCATIONS, Operation, Parameter
from .naming import to_snake_case, to_upper_camel_case
from .schema_parser import extract_response_properties, response_schema

SPEC_FILE_NAME = "openapi.json"


class TemplateLanguage(enum.StrEnum):
    RUST = "rust"
    PYTHON = "python"
    TYPESCRIPT = "typescript"


class ParameterKind(enum.StrEnum):
    """Where a parameter is sent, from the OpenAPI ``in`` field."""

    PATH = "path"
    QUERY = "query"
    HEADER = "header"
    COOKIE = "cookie"

    @classmethod
    def from_location(cls, location: str | None) -> ParameterKind:
        if location in PARAMETER_LOCATIONS:
            return cls(location)
        return cls.QUERY


@dataclass
class TemplateParameterInfo:
    name: str
    target_type: str
    description: str | None
    example: Any
    kind: ParameterKind


@dataclass
class RustPropertyInfo:
    name: str
    rust_type: str
    title: str | None = None
    description: str | None = None
    example: Any = None


@dataclass
class RustEndpointContext:
    """Template context for one endpoint of a Rust server."""

    endpoint: str
    endpoint_cap: str
    endpoint_fs: str
    path: str
    fn_name: str
    parameters_type: str
    properties_type: str
    response_type: str
    envelope_properties: dict[str, Any] | None
    properties: list[RustPropertyInfo]
    properties_for_handler: list[str]
    parameters: list[TemplateParameterInfo]
    summary: str
    description: str
    tags: list[str]
    properties_schema: dict[str, Any]
    response_schema: dict[str, Any] | None
    spec_file_name: str | None
    valid_fields: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return dataclasses.asdict(self)


class EndpointContextBuilder(Protocol):
    def build(self, operation: Operation) -> dict[str, Any]: ...


def map_openapi_schema_to_rust_type(schema: Any) -> str:
    """Map a schema's ``type`` to a Rust type, defaulting to String."""
    if not isinstance(schema, dict):
        return "String"
    schema_type = schema.get("type")
    if not isinstance(schema_type, str):
        return "String"
    return {
        "string": "String",
        "integer": "i32",
        "boolean": "bool",
        "number": "f64",
    }.get(schema_type, schema_type)


def order_for_handler(parameters: list[Parameter]) -> list[Parameter]:
    """Path parameters first, everything else after, otherwise stable."""
    return sorted(parameters, key=lambda p: 0 if p.location == "path" else 1)


class RustEndpointContextBuilder:
    """Builds contexts for the ``rust`` template language (Axum servers)."""

    def __init__(self, spec: dict[str, Any], spec_file_name: str | None = SPEC_FILE_NAME) -> None:
        self.spec = spec
        self.spec_file_name = spec_file_name

    def build(self, operation: Operation) -> dict[str, Any]:
        op_id = operation.id
        props, _ = extract_response_properties(self.spec, operation)
        props = props or {}

        properties = [
            RustPropertyInfo(
                name=name,
                rust_type=map_openapi_schema_to_rust_type(schema),
                title=_text(schema, "title"),
                description=_text(schema, "description"),
                example=schema.get("example") if isinstance(schema, dict) else None,
            )
            for name, schema in props.items()
        ]
        property_names = [p.name for p in properties]

        parameters = [
            TemplateParameterInfo(
                name=p.name,
                target_type=map_openapi_schema_to_rust_type(p.schema),
                description=p.description,
                example=p.example,
                kind=ParameterKind.from_location(p.location),
            )
            for p in order_for_handler(operation.parameters)
        ]

        context = RustEndpointContext(
            endpoint=to_snake_case(op_id),
            endpoint_cap=to_upper_camel_case(op_id),
            endpoint_fs=to_snake_case(op_id),
            path=operation.path,
            fn_name=to_snake_case(op_id),
            parameters_type=to_upper_camel_case(f"{op_id}_params"),
            properties_type=to_upper_camel_case(f"{op_id}_properties"),
            response_type=to_upper_camel_case(f"{op_id}_response"),
            envelope_properties=props or None,
            properties=properties,
            properties_for_handler=property_names,
            parameters=parameters,
            summary=operation.summary or "",
            description=operation.description or "",
            tags=list(operation.tags),
            properties_schema=dict(props),
            response_schema=response_schema(operation),
            spec_file_name=self.spec_file_name,
            valid_fields=list(property_names),
        )
        return context.to_dict()


def _text(schema: Any, key: str) -> str | None:
    if not isinstance(schema, dict):
        return None
    value = schema.get(key)
    return value if isinstance(value, str) else None


BUILDERS: dict[TemplateLanguage, type[RustEndpointContextBuilder]] = {
    TemplateLanguage.RUST: RustEndpointContextBuilder,
}


def get_builder(language: TemplateLanguage, spec: dict[str, Any]) -> EndpointContextBuilder:
    """Return the builder for ``language``.

    Languages without a builder raise NotImplementedError right away
    rather than rendering templates with a wrong context.
    """
    try:
        builder_cls = BUILDERS[language]
    except KeyError:
        raise NotImplementedError(
            f"Builder not implemented for template language: {language}"
        ) from None
    return builder_cls(spec)


def transform_endpoints(
    language: TemplateLanguage,
    operations: list[Operation],
    spec: dict[str, Any],
) -> list[dict[str, Any]]:
    """Build contexts for all operations, sorted by endpoint name."""
    builder = get_builder(language, spec)
    contexts = [builder.build(op) for op in operations]
    contexts.sort(key=lambda ctx: ctx.get("endpoint") or "")
    return contexts
