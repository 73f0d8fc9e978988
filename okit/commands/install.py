"""Install command implementation."""

import logging

import click

from okit import setup_logging
from okit.commands.utils import load_registry_or_exit, resolve_steps, run_batch

_logging = logging.getLogger(__name__)


@click.command()
@click.argument("names", nargs=-1)
@click.option(
    "--yes", "-y", is_flag=True, help="Do not ask for confirmation on dependency cycles"
)
@click.pass_context
def install(ctx, names: tuple[str, ...], yes: bool):
    """Install tools, pulling in missing prerequisites first."""
    setup_logging(ctx.obj.get("debug", False))
    registry = load_registry_or_exit()

    steps = resolve_steps(registry, names, "install")
    if not steps:
        return
    _logging.debug(f"Installing: {', '.join(s.name for s in steps)}")
    run_batch(steps, "install", registry, yes)
