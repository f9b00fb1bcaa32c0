"""Render templates and write generated output.

TemplateManager drives a run: it resolves the template directory, loads
the manifest and compiles the templates, then renders every manifest
entry against a context built from the OpenAPI spec. Entries with
``for_each: endpoint`` (or ``operation``) render once per operation and
also dump a dereferenced JSON schema of the operation to
``schemas/<operation>.json``.
"""

from __future__ import annotations

import enum
import json
import logging
from pathlib import Path
from typing import Any

import jinja2

from .config import DEFAULT_LOG_FILE, DEFAULT_SERVER_PORT, Config, GenerationOptions
from .context_builder import SPEC_FILE_NAME, get_builder, transform_endpoints
from .errors import ConfigurationError, TemplateError
from .hooks import run_hooks
from .loader import SCHEMA_REF_PREFIX, OpenApiDocument, get_schemas
from .manifest import TemplateFile, TemplateManifest
from .models import Operation
from .naming import to_snake_case
from .schema_parser import (
    extract_parameter_info,
    extract_property_info,
    extract_request_body_properties,
    parse_operations,
    sanitize_description,
    sanitize_summary,
    sanitize_tags,
)
from .templates import TemplateKind, get_engine, resolve_template_dir

logger = logging.getLogger(__name__)

FOR_EACH_OPERATION = ("endpoint", "operation")
SCHEMAS_DIR = "schemas"


class GenerationState(enum.Enum):
    UNINITIALIZED = "uninitialized"
    DIRECTORY_RESOLVED = "directory_resolved"
    MANIFEST_LOADED = "manifest_loaded"
    TEMPLATES_LOADED = "templates_loaded"
    READY = "ready"
    GENERATING = "generating"
    POST_HOOKS_RUN = "post_hooks_run"
    DONE = "done"


def resolve_base_api_url(spec: OpenApiDocument, base_url: str | None) -> str:
    """Combine the spec's server URL with a caller-supplied base URL.

    Absolute server URLs are used verbatim. Root-relative ones need
    ``base_url``. Anything else, or no server at all, is an error.
    """
    spec_url = spec.base_path()
    if spec_url is None:
        raise ConfigurationError(
            "No server URL found in OpenAPI spec. Please define at least one server "
            "in the 'servers' section (OpenAPI 3.0+) or 'host' field (Swagger 2.0) "
            "of your OpenAPI specification"
        )
    if spec_url.startswith(("http://", "https://")):
        return spec_url
    if spec_url.startswith("/"):
        if not base_url:
            raise ConfigurationError(
                f"OpenAPI spec contains a relative server URL '{spec_url}', but no base URL "
                "was provided. Please provide a base URL "
                "(e.g., --base-url https://api.example.com)"
            )
        return base_url.rstrip("/") + spec_url
    raise ConfigurationError(
        f"Invalid server URL format in OpenAPI spec: '{spec_url}'. URL must be either a "
        "fully qualified URL (https://api.example.com/v1) or a relative path (/api/v1)"
    )


def dereference_schema_refs(
    value: Any,
    spec: dict[str, Any],
    _expanding: tuple[str, ...] = (),
) -> Any:
    """Return a copy of ``value`` with component schema refs inlined.

    A ref back to a schema that is already being expanded is left as
    its ``$ref`` node. Refs to missing schemas are left untouched.
    """
    if isinstance(value, list):
        return [dereference_schema_refs(item, spec, _expanding) for item in value]
    if not isinstance(value, dict):
        return value

    ref = value.get("$ref")
    if isinstance(ref, str) and ref.startswith(SCHEMA_REF_PREFIX):
        name = ref[len(SCHEMA_REF_PREFIX):]
        definition = get_schemas(spec).get(name)
        if definition is not None:
            if name in _expanding:
                return dict(value)
            return dereference_schema_refs(definition, spec, (*_expanding, name))

    return {k: dereference_schema_refs(v, spec, _expanding) for k, v in value.items()}


class TemplateManager:
    """Manages loading and rendering of code generation templates."""

    def __init__(
        self,
        template_kind: TemplateKind | str = TemplateKind.RUST_AXUM,
        template_dir: Path | str | None = None,
    ) -> None:
        self.state = GenerationState.UNINITIALIZED
        if not isinstance(template_kind, TemplateKind):
            template_kind = TemplateKind.parse(template_kind)
        self.template_kind = template_kind

        self.template_dir = resolve_template_dir(
            template_kind, Path(template_dir) if template_dir is not None else None
        )
        self._advance(GenerationState.DIRECTORY_RESOLVED)

        self.manifest = TemplateManifest.load_from_dir(self.template_dir)
        self._advance(GenerationState.MANIFEST_LOADED)

        self.engine = get_engine(self.template_dir)
        self._advance(GenerationState.TEMPLATES_LOADED)

        self.language = template_kind.language(self.manifest.language)
        self._written: dict[Path, str] = {}
        self._schema_dumps: dict[Path, None] = {}
        self._overwrite = True
        self._advance(GenerationState.READY)

    def _advance(self, state: GenerationState) -> None:
        logger.info("TemplateManager: %s -> %s", self.state.value, state.value)
        self.state = state

    def has_template(self, name: str) -> bool:
        try:
            self.engine.get_template(name)
        except jinja2.TemplateNotFound:
            return False
        return True

    def list_templates(self) -> list[tuple[str, str]]:
        """(source, destination) of manifest entries whose template exists."""
        return [
            (f.source, f.destination)
            for f in self.manifest.files
            if self.has_template(f.source)
        ]

    def render(self, template_name: str, context: dict[str, Any]) -> str:
        keys = sorted(str(k) for k in context)
        try:
            template = self.engine.get_template(template_name)
        except jinja2.TemplateNotFound as exc:
            raise TemplateError(
                f"Template not found: {template_name}",
                template=template_name,
                context_keys=keys,
            ) from exc

        logger.debug("Rendering template: %s", template_name)
        try:
            return template.render(context)
        except jinja2.TemplateError as exc:
            logger.error("Template rendering failed for '%s': %s", template_name, exc)
            raise TemplateError(
                f"Failed to render template '{template_name}': {exc}",
                template=template_name,
                context_keys=keys,
            ) from exc

    @staticmethod
    def validate_context(
        template: str,
        context: dict[str, Any],
        required: tuple[str, ...] | list[str] = (),
    ) -> None:
        missing = [key for key in required if key not in context]
        if missing:
            raise TemplateError(
                f"Missing required context variables for template '{template}': "
                f"{', '.join(missing)}",
                template=template,
            )

    def generate_with_context(
        self,
        template_name: str,
        context: dict[str, Any],
        output_path: Path | str,
        required: tuple[str, ...] | list[str] = (),
    ) -> Path:
        """Render one template with an arbitrary context to ``output_path``."""
        self.validate_context(template_name, context, required)
        output_path = Path(output_path)
        content = self.render(template_name, context)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(content, encoding="utf-8")
        return output_path

    def build_context(
        self,
        spec: OpenApiDocument,
        config: Config,
        options: GenerationOptions,
    ) -> tuple[dict[str, Any], list[Operation]]:
        """Build the base context shared by every template, and the operations."""
        context: dict[str, Any] = {}

        title = spec.title
        if title is not None:
            context["project_name"] = to_snake_case(title)
            context["project_title"] = title
        if spec.version is not None:
            context["api_version"] = spec.version

        context["agent_instructions"] = (
            options.agent_instructions if options.agent_instructions is not None else ""
        )
        context["spec"] = spec.json
        context["spec_file_name"] = SPEC_FILE_NAME

        operations = parse_operations(spec.json)
        context["endpoints"] = transform_endpoints(self.language, operations, spec.json)

        context["server_port"] = (
            options.server_port if options.server_port is not None else DEFAULT_SERVER_PORT
        )
        context["log_file"] = options.log_file if options.log_file is not None else DEFAULT_LOG_FILE
        context["include_tests"] = options.include_tests
        context["base_api_url"] = resolve_base_api_url(spec, config.base_url)

        logger.debug("Template context keys: %s", ", ".join(context))
        return context, operations

    @staticmethod
    def create_file_context(base_context: dict[str, Any], file: TemplateFile) -> dict[str, Any]:
        """Merge base context with file context, giving precedence to file context keys."""
        return {**base_context, **file.context}

    def generate(
        self,
        spec: OpenApiDocument,
        config: Config,
        options: GenerationOptions | None = None,
    ) -> list[Path]:
        """Render every manifest entry and run hooks. Returns the files written."""
        if options is None:
            options = GenerationOptions(
                all_operations=config.include_all,
                include_operations=list(config.include_operations),
                exclude_operations=list(config.exclude_operations),
            )

        for file in self.manifest.files:
            if file.for_each is not None and file.for_each not in FOR_EACH_OPERATION:
                raise ConfigurationError(
                    f"Unknown for_each directive '{file.for_each}' for template '{file.source}'"
                )

        self._advance(GenerationState.GENERATING)
        self._written = {}
        self._schema_dumps = {}
        self._overwrite = options.overwrite

        base_context, operations = self.build_context(spec, config, options)

        output_dir = Path(config.output_dir)
        output_dir.mkdir(parents=True, exist_ok=True)

        run_hooks(self.manifest.hooks.pre_generate, output_dir, stage="pre-generation")

        for file in self.manifest.files:
            logger.debug("Processing file: %s -> %s", file.source, file.destination)
            if file.for_each is None:
                self.process_single_file(file, base_context, output_dir)
            else:
                self.process_operation_file(file, base_context, output_dir, operations, options, spec)

        run_hooks(self.manifest.hooks.post_generate, output_dir)
        self._advance(GenerationState.POST_HOOKS_RUN)

        written = list(self._written)
        written.extend(p for p in self._schema_dumps if p not in self._written)
        self._advance(GenerationState.DONE)
        return written

    def process_single_file(
        self,
        file: TemplateFile,
        base_context: dict[str, Any],
        output_dir: Path,
    ) -> Path:
        context = self.create_file_context(base_context, file)
        content = self.render(file.source, context)
        return self._write_output(output_dir / file.destination, content, file.source)

    def build_operation_context(
        self,
        base_context: dict[str, Any],
        operation: Operation,
        spec: OpenApiDocument,
    ) -> dict[str, Any]:
        """Base context + endpoint context + operation fields, in that order."""
        context = dict(base_context)
        endpoint_context = get_builder(self.language, spec.json).build(operation)
        context.update(endpoint_context)
        context["typed_parameters"] = endpoint_context.get("parameters", [])

        context["operation_id"] = operation.id
        context["method"] = operation.method
        context["path"] = operation.path
        context["summary"] = sanitize_summary(operation.summary)
        context["description"] = sanitize_description(operation.description)
        context["deprecated"] = operation.deprecated
        context["tags"] = sanitize_tags(operation.tags)
        context["parameters"] = [p.to_dict() for p in operation.parameters]
        context["parameter_info"] = extract_parameter_info(operation.parameters)
        context["responses"] = {code: r.to_dict() for code, r in operation.responses.items()}

        context["has_request_body"] = operation.request_body is not None
        context["request_body"] = operation.request_body
        context["request_properties"] = self._request_properties(operation, spec)
        context["security"] = operation.security

        context["sanitized_operation_name"] = "".join(
            c for c in operation.id if (c.isascii() and c.isalnum()) or c == "_"
        )
        endpoint_fs = endpoint_context.get("endpoint_fs") or operation.id
        context["sanitized_filename"] = to_snake_case(endpoint_fs)
        return context

    @staticmethod
    def _request_properties(operation: Operation, spec: OpenApiDocument) -> list[dict[str, Any]]:
        if operation.request_body is None:
            return []

        props, _ = extract_request_body_properties(spec.json, operation)
        if props is not None:
            return extract_property_info(props)

        # Fall back to inline properties of the first JSON media type
        content = operation.request_body.get("content")
        if isinstance(content, dict):
            for media_type, media in content.items():
                if "json" not in media_type or not isinstance(media, dict):
                    continue
                schema = media.get("schema")
                if isinstance(schema, dict):
                    return extract_property_info(schema.get("properties"))
        return []

    def process_operation_file(
        self,
        file: TemplateFile,
        base_context: dict[str, Any],
        output_dir: Path,
        operations: list[Operation],
        options: GenerationOptions,
        spec: OpenApiDocument,
    ) -> list[Path]:
        schemas_dir = output_dir / SCHEMAS_DIR
        schemas_dir.mkdir(parents=True, exist_ok=True)

        file_context = self.create_file_context(base_context, file)
        written: list[Path] = []
        for operation in operations:
            if not options.includes(operation.id):
                logger.debug("Skipping operation %s", operation.id)
                continue

            logger.debug("Processing template for operation: %s", operation.id)
            context = self.build_operation_context(file_context, operation, spec)
            self.write_schema_dump(operation, spec, schemas_dir)

            endpoint_fs = context.get("endpoint_fs") or operation.id
            endpoint = context.get("endpoint") or operation.id
            destination = (
                file.destination.replace("{{operation_id}}", endpoint_fs)
                .replace("{operation_id}", endpoint_fs)
                .replace("{{endpoint}}", endpoint)
                .replace("{endpoint}", endpoint)
            )
            content = self.render(file.source, context)
            written.append(self._write_output(output_dir / destination, content, file.source))
        return written

    def write_schema_dump(
        self,
        operation: Operation,
        spec: OpenApiDocument,
        schemas_dir: Path,
    ) -> Path:
        """Write the operation with all component schema refs inlined."""
        schema_path = schemas_dir / f"{to_snake_case(operation.id)}.json"
        value = dereference_schema_refs(operation.to_dict(), spec.json)
        value = {k: v for k, v in value.items() if v is not None}

        if schema_path not in self._schema_dumps:
            self._check_overwrite(schema_path)
        schema_path.write_text(
            json.dumps(value, indent=2, ensure_ascii=False) + "\n", encoding="utf-8"
        )
        self._schema_dumps[schema_path] = None
        return schema_path

    def _check_overwrite(self, path: Path) -> None:
        if not self._overwrite and path.exists():
            raise ConfigurationError(
                f"Refusing to overwrite existing file {path} (overwrite is disabled)"
            )

    def _write_output(self, path: Path, content: str, source: str) -> Path:
        if path in self._written:
            raise ConfigurationError(
                f"Destination collision: {path} is rendered by both "
                f"'{self._written[path]}' and '{source}'"
            )
        self._check_overwrite(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        self._written[path] = source
        logger.debug("Wrote %s", path)
        return path


def generate(
    spec: OpenApiDocument,
    config: Config,
    options: GenerationOptions | None = None,
) -> list[Path]:
    """Generate a project for ``config`` in one call."""
    manager = TemplateManager(
        config.template_kind,
        Path(config.template_dir) if config.template_dir else None,
    )
    return manager.generate(spec, config, options)
