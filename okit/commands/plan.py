"""Plan command: show the execution order without running anything."""

import asyncio

import click

from okit import setup_logging
from okit.commands.utils import filter_steps_by_name, load_registry_or_exit
from okit.planner import build_plan, render_plan
from okit.registry import ACTIONS


@click.command()
@click.argument("action", type=click.Choice(ACTIONS))
@click.argument("names", nargs=-1, required=True)
@click.option(
    "--offline",
    is_flag=True,
    help="Do not query package managers for reverse dependencies",
)
@click.pass_context
def plan(ctx, action: str, names: tuple[str, ...], offline: bool):
    """Print the execution plan for ACTION on NAMES."""
    setup_logging(ctx.obj.get("debug", False))
    registry = load_registry_or_exit()
    steps = filter_steps_by_name(registry, names)

    providers = [] if offline else None
    result = asyncio.run(build_plan(steps, action, registry, providers))
    click.echo(render_plan(result))
