"""Interactive prompts: step selection and confirmations.

questionary is used for the checkbox when a TTY is available; plain
confirmations go through click so they also work under CliRunner.
"""

import sys

import click
import questionary

from .planner import Plan
from .registry import Step

StepSelection = list[Step] | None


def _format_step_choice(step: Step, action: str) -> str:
    deps = f"  (needs: {', '.join(step.dependencies)})" if step.dependencies else ""
    return f"{step.name}{deps}" if action == "install" else step.name


def select_steps_interactive(steps: list[Step], action: str) -> StepSelection:
    """Checkbox selection of the steps that support `action`.

    Returns the chosen steps in registry order, an empty list when nothing
    was ticked, or None when the user cancels.

    Raises:
        RuntimeError: If not running in a TTY
    """
    if not sys.stdin.isatty():
        raise RuntimeError("Interactive step selector requires a TTY")

    candidates = [s for s in steps if s.command_for(action)]
    if not candidates:
        return []

    choices = [
        questionary.Choice(title=_format_step_choice(s, action), value=s.name)
        for s in candidates
    ]
    try:
        selected = questionary.checkbox(
            f"Select tools to {action}:",
            choices=choices,
            instruction="Space to toggle, Enter to confirm",
        ).ask()
    except KeyboardInterrupt:
        return None

    if selected is None:
        return None
    chosen = set(selected)
    return [s for s in candidates if s.name in chosen]


def confirm_uninstall(steps: list[Step]) -> bool:
    names = ", ".join(s.name for s in steps)
    return click.confirm(f"Uninstall {names}?", default=False)


def confirm_cycle(plan: Plan) -> bool:
    """Ask whether to continue in registry order despite a dependency cycle."""
    cycle = ", ".join(plan.cycle or [])
    return click.confirm(
        f"Dependency cycle among: {cycle}. Continue in registry order?",
        default=False,
    )


__all__ = [
    "StepSelection",
    "select_steps_interactive",
    "confirm_uninstall",
    "confirm_cycle",
]
