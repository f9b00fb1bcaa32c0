"""Exception hierarchy for agenterra.

Every failure the generator surfaces to a caller is an AgenterraError.
Subclasses follow the stages of a run: loading the spec, resolving
references, rendering templates, configuring the run, executing hooks.
"""

from __future__ import annotations


class AgenterraError(Exception):
    """Base class for all agenterra errors."""


class SpecLoadError(AgenterraError):
    """An OpenAPI document (or other input file) could not be read or fetched."""


class ParseError(AgenterraError):
    """Input was read but is not valid JSON, YAML, TOML or HAR."""


class SchemaResolutionError(AgenterraError):
    """A $ref could not be resolved against the document."""


class ConfigurationError(AgenterraError):
    """The run is misconfigured (base URL, template directory, manifest)."""


class TemplateError(AgenterraError):
    """A template is missing, failed to compile, or failed to render."""

    def __init__(
        self,
        message: str,
        template: str | None = None,
        context_keys: list[str] | None = None,
    ) -> None:
        if context_keys is not None:
            message = f"{message}\nAvailable context keys: {', '.join(context_keys)}"
        super().__init__(message)
        self.template = template
        self.context_keys = context_keys or []


class HookError(AgenterraError):
    """A pre- or post-generation hook exited with a non-zero status."""

    def __init__(
        self,
        command: str,
        returncode: int,
        stdout: str = "",
        stderr: str = "",
    ) -> None:
        super().__init__(
            f"Hook '{command}' failed with exit code {returncode}\n{stderr}{stdout}"
        )
        self.command = command
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr
