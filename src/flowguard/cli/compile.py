"""
CLI command compiling a workflow's security policy.
"""

import json
import logging

import click

from flowguard.compiler import CompiledPolicy, WorkflowCompiler
from flowguard.errors import PolicyError

from .utils import get_config, load_frontmatter_or_exit

logger = logging.getLogger(__name__)


def print_policy(policy: CompiledPolicy) -> None:
    data = policy.workflow
    click.echo(f"Workflow: {data.name or '<unnamed>'}")
    click.echo(f"Engine: {data.engine_id or '-'}")
    click.echo(f"Strict: {'yes' if data.strict else 'no'}")

    if data.network is not None:
        if data.network.is_deny_all:
            click.echo("Network: deny all")
        else:
            click.echo(f"Network: {', '.join(data.network.allowed)}")
            if data.network.blocked:
                click.echo(f"  Blocked: {', '.join(data.network.blocked)}")

    if policy.firewall_enabled:
        click.echo(f"Firewall: awf {policy.awf_image_tag}")
        if policy.ssl_bump_args:
            click.echo(f"  Args: {' '.join(policy.ssl_bump_args)}")
    else:
        click.echo("Firewall: off")

    plan = policy.safe_outputs
    handlers = [*plan.handler_config, *plan.project_handler_config]
    if handlers:
        click.echo(f"\nSafe outputs ({len(handlers)}):")
        for name in handlers:
            click.echo(f"  - {name}")
        if plan.staged:
            click.echo("  (staged)")
        click.echo("\nEnvironment:")
        for line in plan.render_env_lines(indent=2):
            click.echo(line)

    click.echo(f"\n{policy.concurrency.render().rstrip()}")
    if policy.job_concurrency is not None:
        click.echo(f"Agent job group: {policy.job_concurrency.group}")

    if policy.toolsets:
        click.echo(f"GitHub toolsets: {', '.join(policy.toolsets)}")


@click.command("compile")
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
@click.option("--strict/--no-strict", default=None, help="Force strict mode on or off")
@click.option("--trial", is_flag=True, help="Compile for a trial run")
@click.option("--trial-repo", help="Repository (owner/name) trial runs write to")
@click.option("--json", "json_format", is_flag=True, help="Output as JSON")
@click.pass_context
def compile_workflow(
    ctx: click.Context,
    file: str,
    strict: bool | None,
    trial: bool,
    trial_repo: str | None,
    json_format: bool,
) -> None:
    """Compile a workflow file's security policy."""
    config = get_config(ctx)
    if trial or trial_repo:
        config = config.model_copy(update={"trial_mode": True, "trial_repo": trial_repo})

    frontmatter = load_frontmatter_or_exit(file)

    try:
        policy = WorkflowCompiler(config).compile(frontmatter, strict=strict)
    except PolicyError as e:
        logger.debug(f"Compilation of {file} failed: {e}")
        click.echo(f"Error: {e}", err=True)
        raise SystemExit(1) from e

    if json_format:
        click.echo(json.dumps(policy.to_dict(), indent=2, default=str))
        return

    print_policy(policy)
