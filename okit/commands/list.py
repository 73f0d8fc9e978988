"""List command implementation."""

import asyncio

import click

from okit import setup_logging
from okit.commands.utils import load_registry_or_exit
from okit.registry import Step
from okit.runner import check_step


@click.command(name="list")
@click.option(
    "--verbose", "-v", is_flag=True, help="Show commands and dependencies"
)
@click.pass_context
def list_steps(ctx, verbose: bool):
    """List registered tools and whether they are present."""
    setup_logging(ctx.obj.get("debug", False))
    registry = load_registry_or_exit()

    if not registry.steps:
        click.echo("No tools registered.")
        return

    present = asyncio.run(_check_all(registry.steps))

    for step, is_present in zip(registry.steps, present):
        status = "installed" if is_present else "not installed"
        if not verbose:
            click.echo(f"{step.name}: {status}")
            continue

        click.echo(f"• {step.name}")
        click.echo(f"  Status: {status}")
        if step.dependencies:
            click.echo(f"  Depends on: {', '.join(step.dependencies)}")
        for action in ("install", "upgrade", "uninstall"):
            command = getattr(step, action)
            if command:
                click.echo(f"  {action.capitalize()}: {command}")
        click.echo("")


async def _check_all(steps: list[Step]) -> list[bool]:
    # Presence checks are read-only queries, so they may run concurrently.
    return list(await asyncio.gather(*[check_step(s) for s in steps]))
