"""
CLI command validating a workflow without compiling its plan.
"""

import json

import click

from flowguard.compiler import WorkflowCompiler
from flowguard.errors import PolicyError, ValidationError

from .utils import get_config, load_frontmatter_or_exit


@click.command("check")
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
@click.option("--strict/--no-strict", default=None, help="Force strict mode on or off")
@click.option("--json", "json_format", is_flag=True, help="Output as JSON")
@click.pass_context
def check(ctx: click.Context, file: str, strict: bool | None, json_format: bool) -> None:
    """Validate a workflow file's security policy."""
    frontmatter = load_frontmatter_or_exit(file)

    try:
        WorkflowCompiler(get_config(ctx)).validate(frontmatter, strict=strict)
    except PolicyError as e:
        if json_format:
            result = {"valid": False, "error": str(e), "type": type(e).__name__}
            if isinstance(e, ValidationError):
                result["details"] = e.to_dict()
            click.echo(json.dumps(result, indent=2, default=str))
        else:
            click.echo("INVALID")
            click.echo(str(e))
        raise SystemExit(1) from e

    if json_format:
        click.echo(json.dumps({"valid": True}))
    else:
        click.echo("VALID")
