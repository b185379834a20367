"""CLI commands for checking payloads, previewing merges and running build plans."""

from __future__ import annotations

import json as json_mod
import sys
from pathlib import Path

import click

from constellation.cli_common import fail, get_session, read_json
from constellation.errors import ConstellationError
from constellation.merge import apply_update, lost_paths
from constellation.plans import load_plan, run_plan
from constellation.schema import SchemaRegistry
from constellation.triggers import validate_trigger

_FILE = click.Path(exists=True, dir_okay=False, path_type=Path)


@click.command("check")
@click.argument("resource")
@click.argument("file", type=_FILE)
@click.option("--update", "is_update", is_flag=True, help="Check FILE as an update patch instead of a create payload")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def check(resource: str, file: Path, is_update: bool, as_json: bool) -> None:
    """Validate a RESOURCE payload in FILE without dispatching it.

    Only checks that need no platform state run here; references to other
    records are checked when the payload is sent through a session or plan.
    """
    payload = read_json(file)
    registry = SchemaRegistry()
    try:
        if is_update:
            registry.validate_update(resource, payload)
        else:
            registry.validate_create(resource, payload)
            if resource == "automation_triggers":
                validate_trigger(payload)
    except ConstellationError as e:
        fail(e, as_json)
    kind = "update" if is_update else "create"
    if as_json:
        click.echo(json_mod.dumps({"valid": True, "resource": resource, "kind": kind}))
    else:
        click.echo(f"OK: {file} is a valid {resource} {kind} payload")


@click.command("merge")
@click.argument("current_file", type=_FILE)
@click.argument("patch_file", type=_FILE)
@click.option("--replace", is_flag=True, help="Apply with replaceObjectFields=true")
@click.option("--json", "as_json", is_flag=True, help="Output result and lost paths as JSON")
def merge(current_file: Path, patch_file: Path, replace: bool, as_json: bool) -> None:
    """Show what applying PATCH_FILE to CURRENT_FILE produces."""
    current = read_json(current_file)
    patch = read_json(patch_file)
    for path, value in ((current_file, current), (patch_file, patch)):
        if not isinstance(value, dict):
            raise click.BadParameter(f"{path} must contain a JSON object")
    result = apply_update(current, patch, replace=replace)
    lost = lost_paths(current, patch) if replace else []
    if as_json:
        click.echo(json_mod.dumps({"result": result, "replace": replace, "lost_paths": lost}, indent=2))
        return
    click.echo(json_mod.dumps(result, indent=2))
    for p in lost:
        click.echo(f"lost: {p}", err=True)


@click.command("plan")
@click.argument("plan_file", type=_FILE)
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def plan(plan_file: Path, as_json: bool) -> None:
    """Run the build plan in PLAN_FILE against the dry-run platform."""
    try:
        document = load_plan(plan_file)
    except ConstellationError as e:
        fail(e, as_json)
    with get_session() as session:
        result = run_plan(session, document)
    if as_json:
        click.echo(json_mod.dumps(result.to_dict(), indent=2, default=str))
    else:
        for step in result.steps:
            line = f"  [{step['index']}] {step['op']}"
            if step["resource"]:
                line += f" {step['resource']}"
            if step["id"]:
                line += f" -> {step['id']}"
            if step["ref"]:
                line += f" ({step['ref']})"
            click.echo(line)
        if result.error is None:
            click.echo(f"Plan complete: {len(result.steps)} operation(s)")
        else:
            err = result.error
            click.echo(f"Error at operations[{err['index']}] ({err['op']}): {err['error']}", err=True)
    if not result.ok:
        sys.exit(1)


def register(cli: click.Group) -> None:
    """Register build commands with the CLI group."""
    cli.add_command(check)
    cli.add_command(merge)
    cli.add_command(plan)
