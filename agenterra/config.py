"""Configuration for a generation run.

Config holds what to generate and where; GenerationOptions holds how.
A Config can be saved to and loaded from YAML::

    project_name: petstore_server
    openapi_schema_path: openapi.yaml
    output_dir: out
    template_kind: rust_axum
    base_url: https://petstore.example.com
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any
from urllib.parse import urlparse

import yaml

from .errors import ConfigurationError, ParseError, SpecLoadError

DEFAULT_TEMPLATE_KIND = "rust_axum"
DEFAULT_SERVER_PORT = 8080
DEFAULT_LOG_FILE = "agenterra"


@dataclass
class Config:
    project_name: str
    openapi_schema_path: str
    output_dir: str
    template_kind: str = DEFAULT_TEMPLATE_KIND
    template_dir: str | None = None
    include_all: bool = False
    include_operations: list[str] = field(default_factory=list)
    exclude_operations: list[str] = field(default_factory=list)
    base_url: str | None = None

    def __post_init__(self) -> None:
        if self.base_url is not None:
            parsed = urlparse(self.base_url)
            if parsed.scheme not in ("http", "https") or not parsed.netloc:
                raise ConfigurationError(
                    f"Invalid base URL '{self.base_url}': expected an absolute http(s) URL"
                )

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Config:
        known = {f.name for f in dataclasses.fields(cls)}
        try:
            return cls(**{k: v for k, v in data.items() if k in known})
        except TypeError as exc:
            raise ParseError(f"Invalid configuration: {exc}") from exc

    @classmethod
    def from_file(cls, path: str | Path) -> Config:
        path = Path(path)
        try:
            content = path.read_text(encoding="utf-8")
        except OSError as exc:
            raise SpecLoadError(f"Failed to read config {path}: {exc}") from exc
        try:
            data = yaml.safe_load(content)
        except yaml.YAMLError as exc:
            raise ParseError(f"Invalid YAML in config {path}: {exc}") from exc
        if not isinstance(data, dict):
            raise ParseError(f"Config {path} must be a mapping")
        return cls.from_dict(data)

    def save(self, path: str | Path) -> None:
        Path(path).write_text(
            yaml.safe_dump(dataclasses.asdict(self), sort_keys=False),
            encoding="utf-8",
        )


@dataclass
class GenerationOptions:
    """Controls which operations are generated and server defaults."""

    all_operations: bool = False
    include_tests: bool = False
    overwrite: bool = True
    agent_instructions: Any = None
    include_operations: list[str] = field(default_factory=list)
    exclude_operations: list[str] = field(default_factory=list)
    server_port: int | None = None
    log_file: str | None = None

    def includes(self, operation_id: str) -> bool:
        """Apply the include/exclude filters to an operation ID.

        An explicit include list restricts generation to its IDs unless
        ``all_operations`` is set; the exclude list always applies.
        """
        included = (
            self.all_operations
            or not self.include_operations
            or operation_id in self.include_operations
        )
        return included and operation_id not in self.exclude_operations
