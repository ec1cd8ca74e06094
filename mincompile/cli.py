"""CLI entry point: mincompile.

Subcommands:
    mincompile create-project -o project.json   # Generate a project file template
    mincompile resolve 18822 --catalog URL      # Resolve the next available version
    mincompile verify project.json              # Compile against the minimum version
"""

from __future__ import annotations

import asyncio
import json
import sys
from pathlib import Path

import click
from pydantic import ValidationError

from mincompile.catalog.factory import index_from_settings
from mincompile.config import MinCompileSettings
from mincompile.core.logging import setup_logging
from mincompile.exceptions import ConfigurationError, ResolutionError
from mincompile.models.version import Version
from mincompile.project_file import PROJECT_TEMPLATE, build_project, read_project_file
from mincompile.wiring import install


def _settings(**overrides: object) -> MinCompileSettings:
    try:
        return MinCompileSettings.from_env(**overrides)
    except ValidationError as e:
        click.echo(f"Error: invalid settings: {e}", err=True)
        sys.exit(2)


_catalog_options = [
    click.option("--catalog", "catalog_url", default=None, help="URL of a JSON version listing"),
    click.option(
        "--probe", "probe_url_template", default=None, help="Download URL with a {version} placeholder"
    ),
    click.option("--fuzziness", type=int, default=None, help="Versions probed above the requested one"),
]


def catalog_options(fn):
    for option in reversed(_catalog_options):
        fn = option(fn)
    return fn


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Verbose logging")
def main(verbose: bool) -> None:
    """Check that a project compiles against its declared minimum platform version."""
    try:
        setup_logging("DEBUG" if verbose else None)
    except ConfigurationError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(2)


@main.command("create-project")
@click.option("-o", "--output", default="project.json", help="Output file path")
def create_project(output: str) -> None:
    """Generate a project file template."""
    Path(output).write_text(json.dumps(PROJECT_TEMPLATE, indent=2) + "\n")
    click.echo(f"Project template written to {output}")
    click.echo("Edit the file, then run: mincompile verify " + output)


@main.command("resolve")
@click.argument("version")
@catalog_options
def resolve(
    version: str, catalog_url: str | None, probe_url_template: str | None, fuzziness: int | None
) -> None:
    """Print the next available version >= VERSION."""
    settings = _settings(
        catalog_url=catalog_url, probe_url_template=probe_url_template, fuzziness=fuzziness
    )
    try:
        requested = Version.parse(version)
        index = index_from_settings(settings)
    except (ValueError, ConfigurationError) as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(2)

    async def _run() -> Version:
        async with index:
            return await index.resolve_next_available(requested)

    try:
        resolved = asyncio.run(_run())
    except ResolutionError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    click.echo(str(resolved))


@main.command("verify")
@click.argument("project_file", type=click.Path(exists=True))
@catalog_options
@click.option("--json", "as_json", is_flag=True, help="Print the state summary as JSON")
def verify(
    project_file: str,
    catalog_url: str | None,
    probe_url_template: str | None,
    fuzziness: int | None,
    as_json: bool,
) -> None:
    """Compile PROJECT_FILE's sources against its minimum platform version."""
    settings = _settings(
        catalog_url=catalog_url, probe_url_template=probe_url_template, fuzziness=fuzziness
    )
    try:
        loaded = build_project(read_project_file(project_file), settings)
        index = index_from_settings(settings)
        wire = install(loaded.project, loaded.manifest, index, settings)
        loaded.project.finalize()
    except ConfigurationError as e:
        click.echo(f"Configuration error: {e}", err=True)
        sys.exit(2)

    assert wire.mirror is not None and wire.mirror.classes_task is not None
    classes = wire.mirror.classes_task

    async def _run():
        async with index:
            return await loaded.project.run(classes)

    build = asyncio.run(_run())

    if as_json:
        click.echo(json.dumps(wire.progress.get_summary(), indent=2))
    for failure in build.failures:
        click.echo(f"\nTask '{failure.task.name}' failed:", err=True)
        click.echo(str(failure.error), err=True)
    for skipped in build.skipped:
        culprit = skipped.failed_dependency.name if skipped.failed_dependency else "?"
        click.echo(f"Task '{skipped.task.name}' not run: '{culprit}' failed", err=True)
    if not build.success:
        sys.exit(1)
    click.echo(f"{loaded.project.name} compiles against {wire.resolved}")
