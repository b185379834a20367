"""CLI commands for discovery: resource types, field schemas, variants, concepts."""

from __future__ import annotations

import json as json_mod

import click

from constellation.cli_common import fail
from constellation.concepts import explain
from constellation.errors import ConstellationError
from constellation.schema import SchemaRegistry
from constellation.variants import FAMILIES, family_dict


@click.command("resources")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def resources(as_json: bool) -> None:
    """List resource types in creation-dependency order."""
    registry = SchemaRegistry()
    schemas = [registry.get(name) for name in registry.resources_in_dependency_order()]
    if as_json:
        data = [
            {
                "resource": s.name,
                "display_name": s.display_name,
                "depends_on": list(s.depends_on),
                "creatable": s.creatable,
            }
            for s in schemas
        ]
        click.echo(json_mod.dumps(data, indent=2))
        return
    for s in schemas:
        deps = f"  (after {', '.join(s.depends_on)})" if s.depends_on else ""
        mode = "" if s.creatable else "  [update only]"
        click.echo(f"{s.name:<28} {s.display_name}{deps}{mode}")


@click.command("describe")
@click.argument("resource")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def describe(resource: str, as_json: bool) -> None:
    """Show the field schema of RESOURCE."""
    try:
        schema = SchemaRegistry().get(resource)
    except ConstellationError as e:
        fail(e, as_json)
    if as_json:
        click.echo(json_mod.dumps(schema.to_dict(), indent=2))
        return
    click.echo(f"{schema.display_name} ({schema.name})")
    click.echo(f"  {schema.description}")
    if schema.depends_on:
        click.echo(f"  Depends on: {', '.join(schema.depends_on)}")
    click.echo("  Fields:")
    for f in schema.fields:
        flags = [flag for flag, on in (("required", f.required), ("create-only", not f.updatable)) if on]
        kind = f"{f.type}<{f.variant}>" if f.variant else f.type
        suffix = f"  [{', '.join(flags)}]" if flags else ""
        click.echo(f"    {f.name:<28} {kind}{suffix}")
        if f.enum:
            click.echo(f"      one of: {', '.join(str(v) for v in f.enum)}")
    for type_name, keys in schema.required_options:
        click.echo(f"  type '{type_name}' requires options: {', '.join(keys)}")


@click.command("variants")
@click.argument("family", type=click.Choice(list(FAMILIES)))
@click.option("--type", "type_name", default=None, help="Show a single variant type")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def variants(family: str, type_name: str | None, as_json: bool) -> None:
    """Show the exact info shapes accepted by a variant FAMILY."""
    try:
        data = family_dict(family, type_name)
    except ConstellationError as e:
        fail(e, as_json)
    if as_json:
        click.echo(json_mod.dumps(data, indent=2))
        return
    click.echo(f"{family} ({data['field']})")
    for entry in data["types"]:
        marker = "  (deprecated)" if entry.get("deprecated") else ""
        click.echo(f"  {entry['shape']}{marker}")
        if entry.get("description"):
            click.echo(f"      {entry['description']}")
    for key, kind in data.get("envelope", {}).items():
        click.echo(f"  beside type/info: {key}: {kind}")


@click.command("explain")
@click.argument("concept")
def explain_cmd(concept: str) -> None:
    """Explain CONCEPT (replaceObjectFields, previousFields, journeyEntry, triggerPlacement)."""
    try:
        click.echo(explain(concept))
    except ConstellationError as e:
        fail(e, as_json=False)


def register(cli: click.Group) -> None:
    """Register discovery commands with the CLI group."""
    cli.add_command(resources)
    cli.add_command(describe)
    cli.add_command(variants)
    cli.add_command(explain_cmd)
