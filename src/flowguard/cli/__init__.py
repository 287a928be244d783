"""
flowguard CLI entry point.
"""

import click

from flowguard.config.app import load_config
from flowguard.utils.logging import setup_logging

from .check import check
from .compile import compile_workflow
from .toolsets import toolsets


@click.group()
@click.option(
    "--config",
    type=click.Path(exists=True),
    help="Path to custom configuration file",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx: click.Context, config: str | None, verbose: bool) -> None:
    """flowguard - security policy compiler for agentic workflows."""
    ctx.ensure_object(dict)
    try:
        loaded = load_config(config)
    except ValueError as e:
        click.echo(f"Error: {e}", err=True)
        raise SystemExit(1) from e

    setup_logging(loaded.logging, verbose=verbose)
    ctx.obj["config"] = loaded


cli.add_command(compile_workflow)
cli.add_command(check)
cli.add_command(toolsets)
