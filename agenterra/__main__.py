"""Entry point: python -m agenterra

Scaffolds a server project from an OpenAPI document.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import click

from .codegen import TemplateManager
from .config import Config, GenerationOptions
from .errors import AgenterraError
from .har import HarContext
from .loader import OpenApiDocument
from .templates import TemplateKind

DEFAULT_PROJECT_NAME = "agenterra_mcp_server"


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
def main(verbose: bool):
    """Agenterra: generate server skeletons from OpenAPI documents."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


@main.command()
@click.option("--project-name", default=None, help=f"Project name (default: {DEFAULT_PROJECT_NAME}).")
@click.option("--schema-path", default=None, help="Path or http(s) URL of the OpenAPI schema (YAML or JSON).")
@click.option(
    "--template-kind",
    default=None,
    type=click.Choice([k.value for k in TemplateKind], case_sensitive=False),
    help="Template to generate with (default: rust_axum).",
)
@click.option("--template-dir", default=None, type=click.Path(path_type=Path), help="Custom template directory.")
@click.option("--output-dir", default=None, type=click.Path(path_type=Path), help="Output directory (default: project name).")
@click.option("--log-file", default=None, help="Log file name without extension.")
@click.option("--port", default=None, type=click.IntRange(1, 65535), help="Server port.")
@click.option("--base-url", default=None, help="Base URL for specs with a relative server URL.")
@click.option("--include-operation", "include_operations", multiple=True, help="Only generate this operation ID (repeatable).")
@click.option("--exclude-operation", "exclude_operations", multiple=True, help="Skip this operation ID (repeatable).")
@click.option("--agent-instructions", default=None, help="Instructions embedded in the generated project.")
@click.option("--include-tests", is_flag=True, help="Generate tests when the template supports it.")
@click.option("--overwrite/--no-overwrite", default=True, help="Overwrite existing files.")
@click.option("--config", "config_path", default=None, type=click.Path(exists=True, path_type=Path), help="YAML config file supplying defaults.")
def scaffold(
    project_name: str | None,
    schema_path: str | None,
    template_kind: str | None,
    template_dir: Path | None,
    output_dir: Path | None,
    log_file: str | None,
    port: int | None,
    base_url: str | None,
    include_operations: tuple[str, ...],
    exclude_operations: tuple[str, ...],
    agent_instructions: str | None,
    include_tests: bool,
    overwrite: bool,
    config_path: Path | None,
):
    """Scaffold a new server from an OpenAPI spec."""
    try:
        config = _build_config(
            config_path,
            project_name=project_name,
            schema_path=schema_path,
            template_kind=template_kind,
            template_dir=template_dir,
            output_dir=output_dir,
            base_url=base_url,
            include_operations=include_operations,
            exclude_operations=exclude_operations,
        )
        options = GenerationOptions(
            all_operations=config.include_all,
            include_tests=include_tests,
            overwrite=overwrite,
            agent_instructions=agent_instructions,
            include_operations=list(config.include_operations),
            exclude_operations=list(config.exclude_operations),
            server_port=port,
            log_file=log_file,
        )

        manager = TemplateManager(
            config.template_kind,
            Path(config.template_dir) if config.template_dir else None,
        )
        click.echo(f"Using templates from: {manager.template_dir}")
        click.echo(f"Loading OpenAPI schema from: {config.openapi_schema_path}")
        spec = OpenApiDocument.from_file_or_url(config.openapi_schema_path)
        written = manager.generate(spec, config, options)
    except AgenterraError as exc:
        click.echo(f"error: {exc}", err=True)
        sys.exit(1)

    click.echo(f"Generated {len(written)} files in {config.output_dir}")


def _build_config(
    config_path: Path | None,
    *,
    project_name: str | None,
    schema_path: str | None,
    template_kind: str | None,
    template_dir: Path | None,
    output_dir: Path | None,
    base_url: str | None,
    include_operations: tuple[str, ...],
    exclude_operations: tuple[str, ...],
) -> Config:
    """Command-line values override the config file, which overrides defaults."""
    data: dict = {}
    if config_path is not None:
        data = {
            k: v
            for k, v in vars(Config.from_file(config_path)).items()
            if v is not None
        }
    else:
        # Without a config file every operation is generated unless filtered
        data["include_all"] = not include_operations

    overrides = {
        "project_name": project_name,
        "openapi_schema_path": schema_path,
        "template_kind": template_kind.lower() if template_kind else None,
        "template_dir": str(template_dir) if template_dir else None,
        "output_dir": str(output_dir) if output_dir else None,
        "base_url": base_url,
        "include_operations": list(include_operations) or None,
        "exclude_operations": list(exclude_operations) or None,
    }
    data.update({k: v for k, v in overrides.items() if v is not None})
    if include_operations:
        data["include_all"] = False

    data.setdefault("project_name", DEFAULT_PROJECT_NAME)
    data.setdefault("output_dir", data["project_name"])
    if not data.get("openapi_schema_path"):
        raise click.UsageError("Missing option '--schema-path' (or 'openapi_schema_path' in --config).")
    return Config.from_dict(data)


@main.command()
@click.argument("har_path", type=click.Path(exists=True, path_type=Path))
def har(har_path: Path):
    """List unique METHOD path pairs recorded in a HAR file."""
    try:
        operations = HarContext.from_file(har_path).unique_operations()
    except AgenterraError as exc:
        click.echo(f"error: {exc}", err=True)
        sys.exit(1)

    for op in operations:
        click.echo(f"{op.method} {op.path}")


if __name__ == "__main__":
    main()
