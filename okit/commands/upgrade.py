"""Upgrade command implementation."""

import click

from okit import setup_logging
from okit.commands.utils import load_registry_or_exit, resolve_steps, run_batch


@click.command()
@click.argument("names", nargs=-1)
@click.option("--all", "all_steps", is_flag=True, help="Upgrade every upgradable tool")
@click.option(
    "--yes", "-y", is_flag=True, help="Do not ask for confirmation on dependency cycles"
)
@click.pass_context
def upgrade(ctx, names: tuple[str, ...], all_steps: bool, yes: bool):
    """Upgrade tools to their latest versions."""
    setup_logging(ctx.obj.get("debug", False))
    if names and all_steps:
        raise click.UsageError("Pass tool names or --all, not both.")

    registry = load_registry_or_exit()
    if all_steps:
        steps = [s for s in registry.steps if s.upgrade]
        if not steps:
            click.echo("No upgradable tools.")
            return
        click.secho(f"\n⬆️  Upgrading all tools ({len(steps)})\n", fg="cyan")
    else:
        steps = resolve_steps(registry, names, "upgrade")
        if not steps:
            return

    run_batch(steps, "upgrade", registry, yes)
