"""CLI command definitions for okit."""

import click

from okit.commands.install import install
from okit.commands.list import list_steps
from okit.commands.plan import plan
from okit.commands.registry import registry
from okit.commands.uninstall import uninstall
from okit.commands.upgrade import upgrade


@click.group()
@click.option("--debug", is_flag=True, help="Enable debug output for troubleshooting")
@click.pass_context
def cli(ctx, debug):
    """Install, upgrade and remove developer tools in dependency order."""
    ctx.ensure_object(dict)
    ctx.obj["debug"] = debug


cli.add_command(install)
cli.add_command(upgrade)
cli.add_command(uninstall)
cli.add_command(plan)
cli.add_command(list_steps, name="list")
cli.add_command(registry)

__all__ = [
    "cli",
]


if __name__ == "__main__":
    cli()
