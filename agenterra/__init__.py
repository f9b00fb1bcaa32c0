"""Generate server skeletons from OpenAPI documents."""

from __future__ import annotations

from .codegen import TemplateManager, generate
from .config import Config, GenerationOptions
from .context_builder import TemplateLanguage
from .errors import (
    AgenterraError,
    ConfigurationError,
    HookError,
    ParseError,
    SchemaResolutionError,
    SpecLoadError,
    TemplateError,
)
from .loader import OpenApiDocument, load_spec
from .manifest import TemplateManifest
from .models import Operation, Parameter, Response
from .templates import TemplateKind

__version__ = "0.1.0"

__all__ = [
    "AgenterraError",
    "Config",
    "ConfigurationError",
    "GenerationOptions",
    "HookError",
    "OpenApiDocument",
    "Operation",
    "Parameter",
    "ParseError",
    "Response",
    "SchemaResolutionError",
    "SpecLoadError",
    "TemplateError",
    "TemplateKind",
    "TemplateLanguage",
    "TemplateManager",
    "TemplateManifest",
    "generate",
    "load_spec",
]
