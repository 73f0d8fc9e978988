"""Uninstall command implementation."""

import click

from okit import setup_logging
from okit.commands.utils import load_registry_or_exit, resolve_steps, run_batch
from okit.tui import confirm_uninstall


@click.command()
@click.argument("names", nargs=-1)
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation prompts")
@click.pass_context
def uninstall(ctx, names: tuple[str, ...], yes: bool):
    """Uninstall tools, dependents before their prerequisites.

    Installed packages outside the selection that depend on a selected tool
    are reported but never removed.
    """
    setup_logging(ctx.obj.get("debug", False))
    registry = load_registry_or_exit()

    steps = resolve_steps(registry, names, "uninstall")
    if not steps:
        return
    if not yes and not confirm_uninstall(steps):
        click.echo("Cancelled.")
        return

    run_batch(steps, "uninstall", registry, yes)
