"""Shared helpers for batch commands."""

import asyncio
import sys

import click

from okit import ConfigError, format_error, format_suggestion, load_registry
from okit.registry import Registry, Step
from okit.report import print_results, write_latest_log
from okit.runner import execute_steps
from okit.tui import confirm_cycle, select_steps_interactive

# Exit codes
EXIT_SUCCESS = 0
EXIT_CONFIG_ERROR = 1
EXIT_INVALID_ARGS = 2
EXIT_STEPS_FAILED = 5


def load_registry_or_exit() -> Registry:
    try:
        return load_registry()
    except ConfigError as e:
        click.echo(format_error(str(e)), err=True)
        sys.exit(EXIT_CONFIG_ERROR)


def filter_steps_by_name(registry: Registry, names: tuple[str, ...]) -> list[Step]:
    """Look up steps by exact name, keeping the order given.

    Exits with EXIT_CONFIG_ERROR listing every unknown name.
    """
    unknown = [n for n in names if registry.get(n) is None]
    if unknown:
        click.echo(
            format_suggestion(
                f"unknown step(s): {', '.join(unknown)}",
                "run 'okit list' to see available steps",
            ),
            err=True,
        )
        sys.exit(EXIT_CONFIG_ERROR)
    return [registry.get(n) for n in dict.fromkeys(names)]


def resolve_steps(registry: Registry, names: tuple[str, ...], action: str) -> list[Step]:
    """Steps named on the command line, or picked interactively."""
    if names:
        return filter_steps_by_name(registry, names)

    if not sys.stdin.isatty():
        raise click.UsageError(
            f"No tools given. Pass tool names to {action}, or run in a terminal "
            "to pick them interactively."
        )

    selected = select_steps_interactive(registry.steps, action)
    if selected is None:
        click.echo("Cancelled.")
        return []
    if not selected:
        click.echo("Nothing selected.")
    return selected


def run_batch(steps: list[Step], action: str, registry: Registry, yes: bool) -> None:
    """Execute a batch, print the report and persist the latest-run log."""
    on_cycle = None if yes else confirm_cycle
    results = asyncio.run(execute_steps(steps, action, registry, on_cycle=on_cycle))
    if not results:
        # Nothing ran: the dependency cycle was not acknowledged.
        sys.exit(EXIT_CONFIG_ERROR)

    summary = print_results(results)
    write_latest_log(results)
    if not summary.ok:
        sys.exit(EXIT_STEPS_FAILED)
