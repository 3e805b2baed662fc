"""CLI entry point for auto-openapi."""

import logging
from pathlib import Path

import click

from auto_openapi.config import GeneratorConfig, apply_overrides, load_config
from auto_openapi.generator.document import DocumentAssembler
from auto_openapi.generator.writer import detect_format, normalize_format, render, write_document
from auto_openapi.loader import load_routes
from auto_openapi.routing.base import Operation
from auto_openapi.routing.resolver import RouteResolver


def _resolve(app: str, app_dir: Path) -> tuple[list[Operation], dict]:
    routes = load_routes(app, app_dir)
    click.echo(f"Loaded {len(routes)} routes from {app}.", err=True)
    resolver = RouteResolver()
    operations = resolver.resolve_all(routes)
    click.echo(f"Documented {len(operations)} operations.", err=True)
    return operations, resolver.schemas


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Log skipped routes and schema fallbacks.")
def main(verbose: bool):
    """auto-openapi: generate OpenAPI documents from annotated route tables."""
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


@main.command()
@click.argument("app")
@click.option("-o", "--output", default=None, type=click.Path(path_type=Path), help="Output file path. Prints to stdout when omitted.")
@click.option("--format", "fmt", default=None, help="Output format: json or yaml. Detected from the output suffix when omitted.")
@click.option("--config", "config_path", default=None, type=click.Path(exists=True, path_type=Path), help="YAML configuration file.")
@click.option("--title", default=None, help="API title.")
@click.option("--description", default=None, help="API description.")
@click.option("--api-version", default=None, help="API version.")
@click.option("--base-url", default=None, help="Base URL for the API server.")
@click.option("--bearer/--no-bearer", default=None, help="Toggle Bearer token authentication.")
@click.option("--oauth2/--no-oauth2", default=None, help="Toggle OAuth2 authentication.")
@click.option("--api-key/--no-api-key", default=None, help="Toggle API key authentication.")
@click.option("--always-bearer/--no-always-bearer", default=None, help="Require Bearer auth on every operation.")
@click.option("--app-dir", default=".", type=click.Path(file_okay=False, path_type=Path), help="Directory added to the import path.")
def generate(
    app: str,
    output: Path | None,
    fmt: str | None,
    config_path: Path | None,
    title: str | None,
    description: str | None,
    api_version: str | None,
    base_url: str | None,
    bearer: bool | None,
    oauth2: bool | None,
    api_key: bool | None,
    always_bearer: bool | None,
    app_dir: Path,
):
    """Generate the OpenAPI document for APP (``module:attribute``)."""
    try:
        if fmt:
            fmt = normalize_format(fmt)
        else:
            fmt = detect_format(output) if output else "json"

        config = load_config(config_path) if config_path else GeneratorConfig()
        config = apply_overrides(
            config,
            title=title,
            description=description,
            version=api_version,
            base_url=base_url,
            bearer=bearer,
            oauth2=oauth2,
            api_key=api_key,
            always_bearer=always_bearer,
        )

        operations, schemas = _resolve(app, app_dir)
        document = DocumentAssembler(config).assemble(operations, schemas)

        if output is None:
            click.echo(render(document, fmt), nl=False)
        else:
            write_document(document, output, fmt)
            click.echo(f"Documentation saved to {output}", err=True)
    except Exception as e:
        raise click.ClickException(f"Error generating documentation: {e}") from e


@main.command()
@click.argument("app")
@click.option("--app-dir", default=".", type=click.Path(file_okay=False, path_type=Path), help="Directory added to the import path.")
def routes(app: str, app_dir: Path):
    """List the operations documented for APP."""
    try:
        operations, _ = _resolve(app, app_dir)
    except Exception as e:
        raise click.ClickException(str(e)) from e

    for op in operations:
        tags = ", ".join(tag.name for tag in op.tags)
        click.echo(f"{op.method:<7} {op.path}  [{tags}]  {op.summary}")
