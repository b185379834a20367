"""CLI for constellation builds.

Convention-based: discovers .constellation/ by walking up from cwd.

Usage:
    constellation init --name clinic                  # Initialize .constellation/ in cwd
    constellation resources                           # Resource types in creation order
    constellation describe form_fields                # Field schema of one resource type
    constellation variants step_event                 # Info shapes of a variant family
    constellation explain replaceObjectFields         # Guide to an easy-to-miss rule
    constellation check forms payload.json            # Validate a payload without dispatch
    constellation merge current.json patch.json       # Preview a merge/replace update
    constellation plan build.json                     # Run a build plan (dry run)
"""

from __future__ import annotations

from pathlib import Path

import click

from constellation import __version__
from constellation.cli_commands import build, catalog
from constellation.core import PROJECT_DIR_NAME, default_config, read_config, write_config


@click.group()
@click.version_option(version=__version__, prog_name="constellation")
def cli() -> None:
    """Constellation: validated builds of forms, journeys and automations."""


@cli.command()
@click.option("--name", default=None, help="Project name (default: directory name)")
@click.option(
    "--enduser-field",
    "enduser_fields",
    multiple=True,
    help="Custom enduser property usable in form conditions (repeatable)",
)
def init(name: str | None, enduser_fields: tuple[str, ...]) -> None:
    """Initialize .constellation/ in the current directory."""
    cwd = Path.cwd()
    project_dir = cwd / PROJECT_DIR_NAME

    if project_dir.exists():
        config = read_config(project_dir)
        click.echo(f"{PROJECT_DIR_NAME}/ already exists in {cwd} (project: {config.get('name')})")
        return

    project_dir.mkdir()
    config = default_config(name or cwd.name)
    config["enduser_fields"] = list(enduser_fields)
    write_config(project_dir, config)

    click.echo(f"Initialized {PROJECT_DIR_NAME}/ in {cwd}")
    click.echo(f"  Name: {config['name']}")
    click.echo(f"  Mode: {config['mode']}")
    click.echo("\nNext: constellation resources")


catalog.register(cli)
build.register(cli)


if __name__ == "__main__":
    cli()
