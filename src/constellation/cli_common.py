"""Shared CLI helpers.

Provides ``get_session()`` and the error printers so that ``cli.py`` and the
``cli_commands/*.py`` modules can use them without circular imports.
"""

from __future__ import annotations

import json as json_mod
import sys
from pathlib import Path
from typing import Any, NoReturn

import click

from constellation.core import PROJECT_DIR_NAME, BuildSession, find_project_root
from constellation.errors import ConstellationError
from constellation.logging import setup_logging


def get_session() -> BuildSession:
    """Discover .constellation/ and return a dry-run BuildSession for it."""
    try:
        project_dir = find_project_root()
    except FileNotFoundError:
        click.echo(f"No {PROJECT_DIR_NAME}/ found. Run 'constellation init' first.", err=True)
        sys.exit(1)
    setup_logging(project_dir)
    return BuildSession.from_project(project_dir.parent)


def read_json(path: Path) -> Any:
    """Load a JSON file argument, exiting with a usage error when it does not parse."""
    try:
        return json_mod.loads(path.read_text())
    except json_mod.JSONDecodeError as exc:
        raise click.BadParameter(f"{path} is not valid JSON ({exc})") from exc


def fail(exc: ConstellationError, as_json: bool) -> NoReturn:
    """Print a validation error in the requested format and exit 1."""
    if as_json:
        click.echo(json_mod.dumps(exc.to_dict(), indent=2))
    else:
        click.echo(f"Error: {exc}", err=True)
        if exc.path:
            click.echo(f"  at: {exc.path}", err=True)
        if exc.expected:
            click.echo(f"  expected: {exc.expected}", err=True)
    sys.exit(1)
