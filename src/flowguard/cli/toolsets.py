"""
CLI command listing GitHub toolsets and the permissions they need.
"""

import json

import click

from flowguard.policy.permissions import parse_permissions
from flowguard.policy.toolsets import DEFAULT_TOOLSETS, TOOLSET_PERMISSIONS, infer_compatible_toolsets

from .utils import load_frontmatter_or_exit


@click.command("toolsets")
@click.option(
    "--permissions-file",
    type=click.Path(exists=True, dir_okay=False),
    help="Workflow file whose permissions select the compatible toolsets",
)
@click.option("--read-only", is_flag=True, help="GitHub MCP server runs read-only")
@click.option("--all", "show_all", is_flag=True, help="Consider every toolset, not just the defaults")
@click.option("--json", "json_format", is_flag=True, help="Output as JSON")
def toolsets(permissions_file: str | None, read_only: bool, show_all: bool, json_format: bool) -> None:
    """List GitHub toolsets, or those a workflow's permissions allow."""
    candidates = list(TOOLSET_PERMISSIONS) if show_all else list(DEFAULT_TOOLSETS)

    if permissions_file:
        frontmatter = load_frontmatter_or_exit(permissions_file)
        permissions = parse_permissions(frontmatter.get("permissions"))
        names = infer_compatible_toolsets(permissions, read_only, candidates)
    else:
        names = candidates

    if json_format:
        click.echo(json.dumps([TOOLSET_PERMISSIONS[name].to_dict() for name in names], indent=2))
        return

    if not names:
        click.echo("No compatible toolsets.")
        return

    for name in names:
        entry = TOOLSET_PERMISSIONS[name]
        click.echo(f"{name}: {entry.description}")
        if entry.read:
            click.echo(f"  read:  {', '.join(entry.read)}")
        if entry.write and not read_only:
            click.echo(f"  write: {', '.join(entry.write)}")
