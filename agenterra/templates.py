"""Template kinds, template directory discovery and the Jinja2 engine cache.

Template directories are searched in order:
  1. $AGENTERRA_TEMPLATE_DIR
  2. templates/ at the root of a development checkout
  3. templates/ in the current working directory
  4. templates bundled with the installed package
  5. ~/.agenterra/templates
The first base holding a <kind> subdirectory wins; the template directory
is <base>/<kind>.
"""

from __future__ import annotations

import enum
import logging
import os
import threading
from pathlib import Path

import jinja2

from .context_builder import TemplateLanguage
from .errors import ConfigurationError, TemplateError
from .manifest import MANIFEST_FILES
from .naming import (
    sanitize_endpoint_name,
    sanitize_filename,
    to_lower_camel_case,
    to_snake_case,
    to_upper_camel_case,
)
from .schema_parser import sanitize_markdown

logger = logging.getLogger(__name__)

TEMPLATE_DIR_ENV = "AGENTERRA_TEMPLATE_DIR"
PACKAGE_TEMPLATES = Path(__file__).parent / "templates"
CHECKOUT_TEMPLATES = Path(__file__).parent.parent / "templates"


class TemplateKind(enum.StrEnum):
    """Supported template kinds (language + framework)."""

    RUST_AXUM = "rust_axum"
    PYTHON_FASTAPI = "python_fastapi"
    TYPESCRIPT_EXPRESS = "typescript_express"
    CUSTOM = "custom"

    @classmethod
    def parse(cls, value: str) -> TemplateKind:
        try:
            return cls(value.lower())
        except ValueError:
            raise ConfigurationError(f"Unknown template kind: {value}") from None

    def language(self, manifest_language: str | None = None) -> TemplateLanguage:
        """Target language of this kind; custom templates name it in their manifest."""
        if self is TemplateKind.CUSTOM:
            try:
                return TemplateLanguage((manifest_language or "").lower())
            except ValueError:
                raise ConfigurationError(
                    f"Unknown template language in manifest: {manifest_language!r}"
                ) from None
        return _KIND_LANGUAGES[self]


_KIND_LANGUAGES = {
    TemplateKind.RUST_AXUM: TemplateLanguage.RUST,
    TemplateKind.PYTHON_FASTAPI: TemplateLanguage.PYTHON,
    TemplateKind.TYPESCRIPT_EXPRESS: TemplateLanguage.TYPESCRIPT,
}


def candidate_template_bases() -> list[Path]:
    candidates = []
    env_dir = os.environ.get(TEMPLATE_DIR_ENV)
    if env_dir:
        candidates.append(Path(env_dir))
    candidates.append(CHECKOUT_TEMPLATES)
    candidates.append(Path.cwd() / "templates")
    candidates.append(PACKAGE_TEMPLATES)
    candidates.append(Path.home() / ".agenterra" / "templates")
    return candidates


def find_template_base_dir(kind: TemplateKind | None = None) -> Path | None:
    """Return the first candidate base, or the first one with a ``kind`` subdirectory."""
    for candidate in candidate_template_bases():
        if not candidate.is_dir():
            continue
        if kind is None or (candidate / kind.value).is_dir():
            return candidate
        logger.debug("Skipping %s: no %s templates", candidate, kind.value)
    return None


def resolve_template_dir(kind: TemplateKind, template_dir: Path | None = None) -> Path:
    """Locate the directory holding the templates for ``kind``.

    An explicit ``template_dir`` is used as given and must exist.
    """
    if template_dir is not None:
        template_dir = Path(template_dir)
        if not template_dir.is_dir():
            raise ConfigurationError(f"Template directory not found: {template_dir}")
        return template_dir

    base = find_template_base_dir(kind)
    if base is None:
        searched = ", ".join(str(c) for c in candidate_template_bases())
        raise ConfigurationError(
            f"Could not find '{kind.value}' templates in any standard location ({searched})"
        )
    return base / kind.value


def _is_template(name: str) -> bool:
    if name in MANIFEST_FILES:
        return False
    return not any(part.startswith(".") for part in name.split("/"))


def create_environment(template_dir: Path) -> jinja2.Environment:
    """Create a Jinja2 environment and compile every template eagerly."""
    env = jinja2.Environment(
        loader=jinja2.FileSystemLoader(str(template_dir)),
        keep_trailing_newline=True,
        trim_blocks=True,
        lstrip_blocks=True,
        undefined=jinja2.StrictUndefined,
    )
    env.filters["snake_case"] = to_snake_case
    env.filters["upper_camel_case"] = to_upper_camel_case
    env.filters["lower_camel_case"] = to_lower_camel_case
    env.filters["sanitize_markdown"] = sanitize_markdown
    env.filters["sanitize_filename"] = sanitize_filename
    env.filters["sanitize_endpoint_name"] = sanitize_endpoint_name

    for name in env.list_templates(filter_func=_is_template):
        try:
            env.get_template(name)
        except jinja2.TemplateSyntaxError as exc:
            raise TemplateError(f"Failed to parse template '{name}': {exc}", template=name) from exc
        except UnicodeDecodeError as exc:
            raise TemplateError(f"Template '{name}' is not valid UTF-8", template=name) from exc
    return env


# Keyed by resolved template directory. Entries are never replaced, so
# tests that need a fresh engine must use a distinct directory.
_ENGINE_CACHE: dict[Path, jinja2.Environment] = {}
_ENGINE_LOCK = threading.Lock()


def get_engine(template_dir: Path) -> jinja2.Environment:
    key = Path(template_dir).resolve()
    with _ENGINE_LOCK:
        env = _ENGINE_CACHE.get(key)
        if env is None:
            logger.debug("Compiling templates in %s", key)
            env = create_environment(key)
            _ENGINE_CACHE[key] = env
    return env


def clear_engine_cache() -> None:
    with _ENGINE_LOCK:
        _ENGINE_CACHE.clear()
