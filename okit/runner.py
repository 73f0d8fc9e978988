"""Step execution: presence checks, on-demand prerequisites, shell commands.

Execution is strictly sequential. Every result produced during a batch,
including dependency installs triggered at run time, is appended to
`Runner.results` in the order the steps actually ran.
"""

import logging
import re
import time
from collections import deque
from collections.abc import Callable
from dataclasses import dataclass

import click

from .execution import run_command_async, run_interactive_async
from .planner import Plan, build_plan, get_all_dependencies, render_plan
from .providers import DependencyProvider, default_providers
from .registry import Registry, Step

_logging = logging.getLogger(__name__)

DEPS_NOT_SATISFIED = "Dependencies not satisfied"
NOT_INSTALLED = "not installed"
ALREADY_EXISTS = "already exists"

_PRIVILEGED_MARKERS = ("brew install", "brew upgrade", "brew uninstall", "sudo npm")


@dataclass
class ExecuteResult:
    """Outcome of one step. `action` is "skip" for idempotent short-circuits."""

    step: Step
    action: str
    success: bool
    message: str | None = None
    duration: int | None = None
    dependency: bool = False


def is_dependency_refusal(message: str) -> bool:
    """Whether a package manager refused an uninstall because of dependents."""
    return bool(
        re.search(r"refusing to uninstall", message, re.IGNORECASE)
        and re.search(r"required by", message, re.IGNORECASE)
    )


def _may_need_password(command: str) -> bool:
    return any(marker in command for marker in _PRIVILEGED_MARKERS)


def _elapsed_ms(start: float) -> int:
    return int((time.monotonic() - start) * 1000)


async def check_step(step: Step) -> bool:
    """Run the step's presence check; a step without one is never present."""
    if not step.check:
        return False
    _, returncode = await run_command_async(step.check)
    return returncode == 0


class Runner:
    """Executes steps for one batch.

    `installed` holds names installed or verified present during this run;
    `failed` holds names whose install failed, which are not retried.
    """

    def __init__(
        self,
        registry: Registry | None = None,
        providers: list[DependencyProvider] | None = None,
    ):
        self.registry = registry
        self.providers = providers if providers is not None else default_providers()
        self.installed: set[str] = set()
        self.failed: set[str] = set()
        self.results: list[ExecuteResult] = []

    async def execute_plan(self, plan: Plan) -> list[ExecuteResult]:
        for step in plan.ordered:
            result = await self.execute_step(step, plan.action)
            if plan.action == "uninstall":
                if result.success:
                    self.installed.discard(step.name)
            elif result.success:
                self.installed.add(step.name)
            elif plan.action == "install":
                self.failed.add(step.name)
        return self.results

    async def execute_step(
        self, step: Step, action: str, is_dependency: bool = False
    ) -> ExecuteResult:
        """Run one step, installing missing prerequisites first.

        The result (and any dependency-install results) is recorded in
        `self.results` and returned.
        """
        command = step.command_for(action)
        if not command:
            return self._record(
                ExecuteResult(step, action, False, f"No {action} command", dependency=is_dependency)
            )

        if action in ("install", "upgrade") and self.registry is not None:
            if not await self._ensure_dependencies(step):
                if action == "install":
                    self.failed.add(step.name)
                return self._record(
                    ExecuteResult(
                        step, action, False, DEPS_NOT_SATISFIED, dependency=is_dependency
                    )
                )

        return self._record(await self._run(step, action, command, is_dependency))

    def _record(self, result: ExecuteResult) -> ExecuteResult:
        self.results.append(result)
        return result

    async def _ensure_dependencies(self, step: Step) -> bool:
        """Install the step's missing transitive prerequisites.

        The transitive list is prerequisite-first, so draining it as a FIFO
        worklist installs every dependency after its own prerequisites.
        Results are appended before the dependent step's result.
        """
        assert self.registry is not None
        queue: deque[Step] = deque()
        for dep in get_all_dependencies(step, self.registry):
            if dep.name == step.name or dep.name in self.installed:
                continue
            if dep.name in self.failed:
                click.secho(f"✗ {step.name}: dependency {dep.name} already failed", fg="red")
                return False
            if await check_step(dep):
                self.installed.add(dep.name)
                continue
            queue.append(dep)

        if not queue:
            return True

        click.secho(f"\n📦 {step.name} requires:", fg="cyan")
        for dep in queue:
            click.secho(f"   - {dep.name}", fg="bright_black")
        click.echo("")

        while queue:
            dep = queue.popleft()
            click.secho(f"⬆️  Installing dependency: {dep.name}", fg="yellow")
            command = dep.command_for("install")
            if command:
                result = await self._run(dep, "install", command, is_dependency=True)
            else:
                result = ExecuteResult(dep, "install", False, "No install command", dependency=True)
            self._record(result)

            if not result.success:
                self.failed.add(dep.name)
                click.secho(f"\n✗ Dependency install failed: {dep.name}", fg="red")
                return False
            self.installed.add(dep.name)

        return True

    async def _uninstall_skip_reason(self, step: Step) -> str | None:
        for provider in self.providers:
            info = provider.identify(step)
            if info is None:
                continue
            if not await provider.is_installed(info):
                return NOT_INSTALLED
            return None
        return None

    async def _run(
        self, step: Step, action: str, command: str, is_dependency: bool
    ) -> ExecuteResult:
        check_start = time.monotonic()

        if action == "uninstall":
            reason = await self._uninstall_skip_reason(step)
            if reason:
                click.secho(f"✓ {step.name} {reason}", fg="green")
                return ExecuteResult(
                    step, "skip", True, reason, _elapsed_ms(check_start), is_dependency
                )

        if action == "install" and step.check and await check_step(step):
            click.secho(f"✓ {step.name} {ALREADY_EXISTS}", fg="green")
            return ExecuteResult(
                step, "skip", True, ALREADY_EXISTS, _elapsed_ms(check_start), is_dependency
            )

        if not is_dependency:
            if _may_need_password(command):
                click.secho(f"\n⚠️  {step.name} may ask for your password", fg="yellow")
                click.secho("Enter it when prompted (input is hidden)\n", fg="bright_black")
            click.secho(f"> {command}", fg="bright_black")

        start = time.monotonic()
        try:
            returncode, stderr = await run_interactive_async(command)
        except Exception as e:
            _logging.error(f"{step.name} {action} could not be run: {type(e).__name__}: {e}")
            returncode, stderr = 1, f"{type(e).__name__}: {e}"
        duration = _elapsed_ms(start)

        if returncode == 0:
            if not is_dependency:
                click.secho(f"✓ {step.name} {action} succeeded", fg="green")
            return ExecuteResult(step, action, True, None, duration, is_dependency)

        message = f"Command failed with exit code {returncode}: {command}"
        if stderr:
            message = f"{message}\n{stderr}"
        _logging.debug(f"{step.name} {action} failed: {message}")
        if not is_dependency:
            click.secho(f"✗ {step.name} {action} failed: {message}", fg="red")
            if action == "uninstall" and is_dependency_refusal(message):
                click.secho(
                    "Hint: other installed packages depend on it; "
                    "uninstall those dependents first.",
                    fg="yellow",
                )
        return ExecuteResult(step, action, False, message, duration, is_dependency)


async def execute_steps(
    steps: list[Step],
    action: str,
    registry: Registry | None = None,
    providers: list[DependencyProvider] | None = None,
    on_cycle: Callable[[Plan], bool] | None = None,
) -> list[ExecuteResult]:
    """Plan and execute a batch.

    Without a registry the steps run in the given order with no planning
    and no dependency installs. When the plan reports a dependency cycle,
    `on_cycle` decides whether to continue; returning False aborts the
    batch before anything runs.
    """
    if providers is None:
        providers = default_providers()
    runner = Runner(registry, providers)

    if registry is None:
        for step in steps:
            await runner.execute_step(step, action)
        return runner.results

    click.secho("Preparing execution plan...", fg="bright_black")
    plan = await build_plan(steps, action, registry, providers)
    if plan.ordered:
        click.echo("")
        click.echo(render_plan(plan))
        click.echo("")

    if plan.cycle and on_cycle is not None and not on_cycle(plan):
        click.secho("Aborted: dependency cycle not acknowledged.", fg="red")
        return []

    return await runner.execute_plan(plan)


__all__ = [
    "ExecuteResult",
    "Runner",
    "check_step",
    "execute_steps",
    "is_dependency_refusal",
]
