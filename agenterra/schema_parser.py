"""Extract operations, parameters and schema properties from an OpenAPI spec.

Handles:
- Every standard HTTP method on every path item
- Path-item and operation level parameters, with $ref resolution
- Vendor extensions (x-*) on operations and parameters
- Response/request body property lookup through #/components/schemas
- Text sanitizing for summaries, descriptions, tags and markdown

Extraction is permissive: a broken parameter ref or an unparseable
response is dropped. Only schema ref resolution for property lookup
raises, since silently guessing there would misrepresent the output.
"""

from __future__ import annotations

import dataclasses
import logging
import re
from typing import Any

from .loader import get_paths, resolve_ref, resolve_schema_ref
from .models import Operation, Parameter, Response, vendor_extensions
from .naming import default_operation_id, to_snake_case

logger = logging.getLogger(__name__)

# Path Item Object field order
HTTP_METHODS = ("get", "put", "post", "delete", "options", "head", "patch", "trace")


def _resolve_parameter(spec: dict[str, Any], raw: Any) -> Parameter | None:
    if isinstance(raw, dict) and isinstance(raw.get("$ref"), str):
        ref = raw["$ref"]
        raw = resolve_ref(spec, ref, strict=False)
        if raw is None:
            logger.debug("Dropping parameter with unresolvable ref %s", ref)
            return None
    param = Parameter.from_dict(raw)
    if param is None:
        logger.debug("Dropping malformed parameter %r", raw)
    return param


def extract_parameters(
    spec: dict[str, Any],
    path_item: dict[str, Any],
    operation: dict[str, Any] | None = None,
) -> list[Parameter]:
    """Collect parameters for an operation.

    Path-item parameters come first; an operation-level parameter with
    the same (name, in) replaces its path-item counterpart in place.
    """
    params: list[Parameter] = []
    for raw in path_item.get("parameters") or []:
        param = _resolve_parameter(spec, raw)
        if param is not None:
            params.append(param)

    if operation is not None:
        for raw in operation.get("parameters") or []:
            param = _resolve_parameter(spec, raw)
            if param is None:
                continue
            for i, existing in enumerate(params):
                if (existing.name, existing.location) == (param.name, param.location):
                    params[i] = param
                    break
            else:
                params.append(param)

    return params


def extract_responses(spec: dict[str, Any], operation: dict[str, Any]) -> dict[str, Response]:
    """Parse the ``responses`` map, dropping entries that fail to parse."""
    responses: dict[str, Response] = {}
    raw_responses = operation.get("responses")
    if not isinstance(raw_responses, dict):
        return responses

    for code, raw in raw_responses.items():
        if isinstance(raw, dict) and isinstance(raw.get("$ref"), str):
            raw = resolve_ref(spec, raw["$ref"], strict=False)
        response = Response.from_dict(raw)
        if response is not None:
            responses[str(code)] = response
    return responses


def _deduplicate_operation_ids(operations: list[Operation]) -> list[Operation]:
    """Ensure operation IDs stay unique once converted to snake_case.

    Generated files are named after the snake_case form, so ``listPets``
    and ``list_pets`` collide. A colliding ID gets a ``_<method>`` suffix,
    then ``_<method>_<n>`` until its snake_case form is unused.
    """
    seen: set[str] = set()
    result: list[Operation] = []
    for op in operations:
        if to_snake_case(op.id) in seen:
            logger.warning(
                "Duplicate operation ID '%s' at %s %s", op.id, op.method.upper(), op.path
            )
            candidate = f"{op.id}_{op.method}"
            n = 2
            while to_snake_case(candidate) in seen:
                candidate = f"{op.id}_{op.method}_{n}"
                n += 1
            op = dataclasses.replace(op, id=candidate)
        seen.add(to_snake_case(op.id))
        result.append(op)
    return result


def parse_operations(spec: dict[str, Any]) -> list[Operation]:
    """Build one Operation per (path, method) in document order.

    Raises ParseError if the document has no ``paths`` object.
    """
    operations: list[Operation] = []

    for path, path_item in get_paths(spec).items():
        if not isinstance(path_item, dict):
            continue

        for method in HTTP_METHODS:
            raw_op = path_item.get(method)
            if not isinstance(raw_op, dict):
                continue

            operation_id = raw_op.get("operationId")
            if not isinstance(operation_id, str) or not operation_id:
                operation_id = default_operation_id(method, path)

            tags = raw_op.get("tags")
            request_body = raw_op.get("requestBody")
            deprecated = raw_op.get("deprecated")
            security = raw_op.get("security")
            servers = raw_op.get("servers")

            operations.append(Operation(
                id=operation_id,
                path=path,
                method=method,
                summary=raw_op.get("summary") if isinstance(raw_op.get("summary"), str) else None,
                description=(
                    raw_op.get("description")
                    if isinstance(raw_op.get("description"), str) else None
                ),
                tags=[t for t in tags if isinstance(t, str)] if isinstance(tags, list) else [],
                parameters=extract_parameters(spec, path_item, raw_op),
                request_body=request_body if isinstance(request_body, dict) else None,
                responses=extract_responses(spec, raw_op),
                external_docs=(
                    raw_op.get("externalDocs")
                    if isinstance(raw_op.get("externalDocs"), dict) else None
                ),
                callbacks=raw_op.get("callbacks") if isinstance(raw_op.get("callbacks"), dict) else None,
                deprecated=deprecated if isinstance(deprecated, bool) else None,
                security=security if isinstance(security, list) else None,
                servers=servers if isinstance(servers, list) else None,
                vendor_extensions=vendor_extensions(raw_op),
            ))

    return _deduplicate_operation_ids(operations)


def extract_schema_properties(
    spec: dict[str, Any],
    schema: Any,
) -> tuple[dict[str, Any] | None, str | None]:
    """Find the ``properties`` object behind a schema.

    Returns (properties, schema_name). Inline ``properties`` (or
    ``additionalProperties``) are used as-is; primitive types have none;
    otherwise the direct or ``items`` $ref is looked up in
    #/components/schemas. A ref outside that section, a missing
    components section or a missing schema raises SchemaResolutionError.
    """
    if not isinstance(schema, dict):
        return None, None

    if "properties" in schema or "additionalProperties" in schema:
        props = schema.get("properties")
        return (props if isinstance(props, dict) else None), None

    schema_type = schema.get("type")
    if isinstance(schema_type, str) and schema_type not in ("object", "array"):
        return None, None

    ref = schema.get("$ref")
    if not isinstance(ref, str):
        items = schema.get("items")
        ref = items.get("$ref") if isinstance(items, dict) else None
        if not isinstance(ref, str):
            return None, None

    name, definition = resolve_schema_ref(spec, ref)
    props = definition.get("properties") if isinstance(definition, dict) else None
    return (props if isinstance(props, dict) else None), name


def response_schema(operation: Operation) -> dict[str, Any] | None:
    """The ``application/json`` schema of the 200 response, if present."""
    response = operation.responses.get("200")
    return response.json_schema() if response is not None else None


def extract_response_properties(
    spec: dict[str, Any],
    operation: Operation,
) -> tuple[dict[str, Any] | None, str | None]:
    return extract_schema_properties(spec, response_schema(operation))


def extract_request_body_properties(
    spec: dict[str, Any],
    operation: Operation,
) -> tuple[dict[str, Any] | None, str | None]:
    """Properties of the ``application/json`` request body schema.

    An operation without a request body yields ({}, None). A body
    without JSON content or schema yields (None, None).
    """
    if operation.request_body is None:
        return {}, None

    content = operation.request_body.get("content")
    if not isinstance(content, dict):
        return None, None
    media = content.get("application/json")
    if not isinstance(media, dict) or "schema" not in media:
        return None, None
    return extract_schema_properties(spec, media["schema"])


def extract_row_properties(properties: Any) -> list[dict[str, Any]]:
    """List (name, schema) rows, unwrapping a ``data.properties`` envelope."""
    if not isinstance(properties, dict):
        return []
    data = properties.get("data")
    if isinstance(data, dict) and isinstance(data.get("properties"), dict):
        properties = data["properties"]
    return [{"name": name, "schema": schema} for name, schema in properties.items()]


def extract_property_info(properties: Any) -> list[dict[str, Any]]:
    rows = []
    for row in extract_row_properties(properties):
        schema = row["schema"] if isinstance(row["schema"], dict) else {}
        rows.append({
            "name": row["name"],
            "title": schema.get("title") if isinstance(schema.get("title"), str) else None,
            "description": (
                schema.get("description")
                if isinstance(schema.get("description"), str) else None
            ),
            "example": schema.get("example"),
        })
    return rows


def extract_parameter_info(parameters: list[Parameter]) -> list[dict[str, Any]]:
    """Annotate parameters for templates, keeping OpenAPI field names.

    Only attributes present on the parameter are emitted, except
    ``required`` which is always set (defaulting to true for path
    parameters). Vendor extensions are re-attached at the top level.
    """
    info: list[dict[str, Any]] = []
    for p in parameters:
        entry: dict[str, Any] = {"name": p.name, "in": p.location}
        if p.description is not None:
            entry["description"] = p.description
        entry["required"] = p.is_required
        if p.schema is not None:
            entry["schema"] = p.schema
        if p.content is not None:
            entry["content"] = p.content
        if p.example is not None:
            entry["example"] = p.example
        if p.examples is not None:
            entry["examples"] = p.examples
        if p.deprecated is not None:
            entry["deprecated"] = p.deprecated
        if p.style is not None:
            entry["style"] = p.style
        if p.explode is not None:
            entry["explode"] = p.explode
        if p.allow_empty_value is not None:
            entry["allowEmptyValue"] = p.allow_empty_value
        if p.allow_reserved is not None:
            entry["allowReserved"] = p.allow_reserved
        entry.update(p.vendor_extensions)
        info.append(entry)
    return info


def sanitize_summary(text: str | None) -> str | None:
    """Keep ASCII letters, digits and whitespace."""
    if text is None:
        return None
    return "".join(c for c in text if (c.isascii() and c.isalnum()) or c.isspace()).strip()


def sanitize_description(text: str | None) -> str | None:
    """Keep ASCII letters, digits, whitespace, periods and commas."""
    if text is None:
        return None
    return "".join(
        c for c in text if (c.isascii() and c.isalnum()) or c.isspace() or c in ".,"
    ).strip()


def sanitize_tags(tags: list[str]) -> list[str]:
    return [t.strip().replace("\n", " ").replace("\r", " ") for t in tags]


_SMART_CHARS = {
    "‘": "'",
    "’": "'",
    "“": '"',
    "”": '"',
    "—": "-",
}


def sanitize_markdown(text: str) -> str:
    """Flatten markdown into a single line safe for string literals."""
    lines = []
    for line in text.splitlines():
        line = line.replace("\t", " ")
        line = re.sub("[‘’“”—]", lambda m: _SMART_CHARS[m.group(0)], line)
        line = re.sub(r"\s+", " ", line.strip())
        line = line.replace(" - ", "-").replace("- ", "-").replace(" -", "-")
        line = line.replace("\\", "\\\\").replace('"', '\\"')
        line = (
            line.replace("{", "&#123;")
            .replace("}", "&#125;")
            .replace("[", "&#91;")
            .replace("]", "&#93;")
        )
        if line:
            lines.append(line)
    return " ".join(lines)
