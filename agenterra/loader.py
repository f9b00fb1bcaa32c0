"""Load OpenAPI documents and resolve $ref pointers.

Documents come from a local JSON/YAML file or an http(s) URL. Remote
documents are buffered to a temporary file so parsing always goes
through the same path-based entry point.
"""

from __future__ import annotations

import json
import logging
import tempfile
from pathlib import Path
from typing import Any

import httpx
import yaml

from .errors import ParseError, SchemaResolutionError, SpecLoadError

logger = logging.getLogger(__name__)

SCHEMA_REF_PREFIX = "#/components/schemas/"


def _unescape(segment: str) -> str:
    return segment.replace("~1", "/").replace("~0", "~")


def resolve_ref(
    spec: dict[str, Any],
    ref: str,
    *,
    prefixes: tuple[str, ...] = ("#/",),
    strict: bool = True,
) -> Any:
    """Resolve a local $ref pointer in the spec.

    The pointer must start with one of ``prefixes``. Each segment after
    the leading ``#/`` is looked up as a map key. When ``strict`` is true
    any failure raises SchemaResolutionError; otherwise None is returned.
    """
    if not any(ref.startswith(prefix) for prefix in prefixes):
        if strict:
            raise SchemaResolutionError(f"Unexpected ref '{ref}'")
        return None

    node: Any = spec
    for part in ref[2:].split("/"):
        part = _unescape(part)
        if not isinstance(node, dict) or part not in node:
            if strict:
                raise SchemaResolutionError(f"Cannot resolve '{ref}': '{part}' not found")
            return None
        node = node[part]
    return node


def resolve_schema_ref(spec: dict[str, Any], ref: str) -> tuple[str, dict[str, Any]]:
    """Resolve a ``#/components/schemas/<Name>`` ref to (name, definition)."""
    if not ref.startswith(SCHEMA_REF_PREFIX):
        raise SchemaResolutionError(f"Unexpected schema ref '{ref}'")
    name = ref[len(SCHEMA_REF_PREFIX):]
    schemas = get_schemas(spec)
    if not schemas:
        raise SchemaResolutionError("No components.schemas section")
    definition = schemas.get(name)
    if definition is None:
        raise SchemaResolutionError(f"Schema '{name}' not found")
    return name, definition


def get_paths(spec: dict[str, Any]) -> dict[str, Any]:
    """Extract paths from the spec."""
    paths = spec.get("paths")
    if not isinstance(paths, dict):
        raise ParseError("Missing 'paths' object")
    return paths


def get_schemas(spec: dict[str, Any]) -> dict[str, Any]:
    """Extract component schemas from the spec."""
    components = spec.get("components")
    if not isinstance(components, dict):
        return {}
    schemas = components.get("schemas")
    return schemas if isinstance(schemas, dict) else {}


def parse_content(content: str) -> dict[str, Any]:
    """Parse document text as JSON, falling back to YAML."""
    try:
        data = json.loads(content)
    except json.JSONDecodeError:
        try:
            data = yaml.safe_load(content)
        except yaml.YAMLError as exc:
            raise ParseError("content is neither valid JSON nor YAML") from exc
    if not isinstance(data, dict):
        raise ParseError("OpenAPI document must be an object")
    return data


class OpenApiDocument:
    """A parsed OpenAPI 3.x or Swagger 2.0 document.

    The raw tree is kept as-is in ``json`` and never mutated by the
    generator.
    """

    def __init__(self, json: dict[str, Any]) -> None:
        self.json = json

    @classmethod
    def from_file_or_url(cls, location: str | Path) -> OpenApiDocument:
        location = str(location)
        if location.startswith(("http://", "https://")):
            return cls.from_url(location)
        return cls.from_file(location)

    @classmethod
    def from_file(cls, path: str | Path) -> OpenApiDocument:
        path = Path(path)
        try:
            content = path.read_text(encoding="utf-8")
        except OSError as exc:
            raise SpecLoadError(f"Failed to read OpenAPI spec at {path}: {exc}") from exc
        try:
            return cls(parse_content(content))
        except ParseError as exc:
            raise ParseError(f"Failed to parse OpenAPI spec at {path}: {exc}") from exc

    @classmethod
    def from_url(cls, url: str, client: httpx.Client | None = None) -> OpenApiDocument:
        """Fetch a document over HTTP. One request, no retries."""
        logger.debug("Fetching OpenAPI spec from %s", url)
        try:
            if client is None:
                response = httpx.get(url, follow_redirects=True, timeout=30.0)
            else:
                response = client.get(url)
        except httpx.HTTPError as exc:
            raise SpecLoadError(f"Failed to fetch OpenAPI spec from {url}: {exc}") from exc

        if not response.is_success:
            raise SpecLoadError(
                f"Failed to fetch OpenAPI spec from {url}: HTTP {response.status_code}"
            )

        with tempfile.TemporaryDirectory() as tmp:
            temp_file = Path(tmp) / "openapi_schema.json"
            temp_file.write_bytes(response.content)
            try:
                return cls.from_file(temp_file)
            except ParseError as exc:
                raise ParseError(f"Failed to parse OpenAPI spec from {url}: {exc}") from exc

    @property
    def title(self) -> str | None:
        info = self.json.get("info")
        title = info.get("title") if isinstance(info, dict) else None
        return title if isinstance(title, str) else None

    @property
    def version(self) -> str | None:
        info = self.json.get("info")
        version = info.get("version") if isinstance(info, dict) else None
        return version if isinstance(version, str) else None

    def get(self, pointer: str) -> Any:
        """Look up a ``#/a/b`` pointer, returning None when absent."""
        return resolve_ref(self.json, pointer, strict=False)

    def base_path(self) -> str | None:
        """Return the declared server URL.

        OpenAPI 3 uses ``servers[0].url``. Swagger 2 builds
        ``scheme://host + basePath``, preferring https, then the first
        declared scheme, then https. A Swagger 2 document with only a
        ``basePath`` yields that root-relative path.
        """
        servers = self.json.get("servers")
        if isinstance(servers, list) and servers:
            first = servers[0]
            if isinstance(first, dict) and isinstance(first.get("url"), str):
                return first["url"]

        host = self.json.get("host")
        if isinstance(host, str):
            base_path = self.json.get("basePath")
            if not isinstance(base_path, str):
                base_path = ""
            schemes = self.json.get("schemes")
            if isinstance(schemes, list) and schemes:
                if "https" in schemes:
                    scheme = "https"
                elif isinstance(schemes[0], str):
                    scheme = schemes[0]
                else:
                    scheme = "https"
            else:
                scheme = "https"
            return f"{scheme}://{host}{base_path}"

        # Swagger 2 without host: served from the documentation's host
        base_path = self.json.get("basePath")
        if isinstance(base_path, str) and base_path:
            return base_path

        return None


def load_spec(location: str | Path) -> OpenApiDocument:
    """Load the OpenAPI spec from a file path or URL."""
    return OpenApiDocument.from_file_or_url(location)
