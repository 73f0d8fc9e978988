"""Registry management commands."""

import json
import sys

import click

from okit import ConfigError, format_error, get_registry_path
from okit.registry import get_default_registry, load_registry, reset_registry, save_registry


@click.group()
def registry():
    """Registry file management commands."""
    pass


@registry.command(name="path")
def registry_path():
    """Print the registry file location."""
    click.echo(str(get_registry_path()))


@registry.command(name="init")
@click.option(
    "--force",
    "-f",
    is_flag=True,
    help="Re-initialize, backing up the existing registry first",
)
def registry_init(force: bool):
    """Create the registry file from the built-in defaults."""
    path = get_registry_path()

    if path.exists() and not force:
        click.echo(f"Registry file already exists: {path}")
        click.echo("Use --force to re-initialize (creates backup first).")
        sys.exit(1)

    if path.exists():
        backup_path = path.with_suffix(".json.bak")
        click.echo(f"Backing up existing registry to {backup_path}...")
        path.rename(backup_path)

    save_registry(get_default_registry(), path)
    click.echo(f"✅ Registry initialized at {path}")


@registry.command(name="reset")
@click.confirmation_option(prompt="Overwrite the registry with the built-in defaults?")
def registry_reset():
    """Reset the registry file to the built-in defaults."""
    path = reset_registry()
    click.echo(f"✓ Registry reset to defaults: {path}")


@registry.command(name="show")
def registry_show():
    """Print the merged registry as JSON."""
    try:
        merged = load_registry()
    except ConfigError as e:
        click.echo(format_error(str(e)), err=True)
        sys.exit(1)
    click.echo(json.dumps(merged.to_dict(), indent=2, ensure_ascii=False))
