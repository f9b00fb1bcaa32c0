"""Template manifest: which templates render to which output files.

A template directory may carry ``manifest.yaml`` (preferred) or
``manifest.toml``::

    name: rust_axum
    description: Rust MCP server
    version: 0.1.0
    language: rust
    files:
      - source: handlers/endpoint.rs.j2
        destination: src/handlers/{{endpoint}}.rs
        for_each: endpoint
      - source: Cargo.toml.j2
        destination: Cargo.toml
        context:
          edition: "2021"
    hooks:
      post_generate: cargo fmt

Without either file the directory is driven by an empty default manifest.
"""

from __future__ import annotations

import logging
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from .errors import ParseError, SpecLoadError

logger = logging.getLogger(__name__)

MANIFEST_FILES = ("manifest.yaml", "manifest.toml")


def _commands(value: Any, key: str) -> list[str]:
    """Accept either a single command or a list of commands."""
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, list) and all(isinstance(item, str) for item in value):
        return list(value)
    raise ParseError(f"hooks.{key}: expected string or array of strings")


@dataclass(frozen=True)
class TemplateHooks:
    pre_generate: list[str] = field(default_factory=list)
    post_generate: list[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Any) -> TemplateHooks:
        if data is None:
            return cls()
        if not isinstance(data, dict):
            raise ParseError("hooks: expected a mapping")
        return cls(
            pre_generate=_commands(data.get("pre_generate"), "pre_generate"),
            post_generate=_commands(data.get("post_generate"), "post_generate"),
        )


@dataclass(frozen=True)
class TemplateFile:
    """Describes a single file to be generated from a template."""

    source: str
    destination: str
    for_each: str | None = None
    context: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Any, index: int) -> TemplateFile:
        if not isinstance(data, dict):
            raise ParseError(f"files[{index}]: expected a mapping")
        source = data.get("source")
        destination = data.get("destination")
        if not isinstance(source, str) or not isinstance(destination, str):
            raise ParseError(f"files[{index}]: 'source' and 'destination' must be strings")
        for_each = data.get("for_each")
        if for_each is not None and not isinstance(for_each, str):
            raise ParseError(f"files[{index}]: 'for_each' must be a string")
        context = data.get("context")
        return cls(
            source=source,
            destination=destination,
            for_each=for_each,
            context=dict(context) if isinstance(context, dict) else {},
        )


@dataclass(frozen=True)
class TemplateManifest:
    name: str = "default"
    description: str = "Default template"
    version: str = "0.1.0"
    language: str = "rust"
    files: list[TemplateFile] = field(default_factory=list)
    hooks: TemplateHooks = field(default_factory=TemplateHooks)

    @classmethod
    def from_dict(cls, data: Any) -> TemplateManifest:
        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ParseError("manifest: expected a mapping at the top level")
        files = data.get("files") or []
        if not isinstance(files, list):
            raise ParseError("manifest: 'files' must be a list")
        defaults = cls()
        return cls(
            name=str(data.get("name", defaults.name)),
            description=str(data.get("description", defaults.description)),
            version=str(data.get("version", defaults.version)),
            language=str(data.get("language", defaults.language)),
            files=[TemplateFile.from_dict(item, i) for i, item in enumerate(files)],
            hooks=TemplateHooks.from_dict(data.get("hooks")),
        )

    @classmethod
    def load_from_dir(cls, template_dir: Path) -> TemplateManifest:
        """Load ``manifest.yaml`` or ``manifest.toml`` from a directory."""
        yaml_path = template_dir / "manifest.yaml"
        toml_path = template_dir / "manifest.toml"

        if yaml_path.exists():
            content = _read(yaml_path)
            try:
                data = yaml.safe_load(content)
            except yaml.YAMLError as exc:
                raise ParseError(f"Invalid YAML in template manifest at {yaml_path}: {exc}") from exc
            path = yaml_path
        elif toml_path.exists():
            content = _read(toml_path)
            try:
                data = tomllib.loads(content)
            except tomllib.TOMLDecodeError as exc:
                raise ParseError(f"Invalid TOML in template manifest at {toml_path}: {exc}") from exc
            path = toml_path
        else:
            logger.debug("No manifest in %s, using default manifest", template_dir)
            return cls()

        try:
            manifest = cls.from_dict(data)
        except ParseError as exc:
            raise ParseError(f"Invalid template manifest at {path}: {exc}") from exc
        logger.debug("Loaded manifest '%s' with %d files from %s", manifest.name, len(manifest.files), path)
        return manifest


def _read(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except OSError as exc:
        raise SpecLoadError(f"Failed to read template manifest at {path}: {exc}") from exc
