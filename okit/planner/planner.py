"""Execution planning: expansion, edge construction and ordering."""

import logging

from ..providers import SYSTEM_PROVIDER_ID, DependencyProvider, PackageInfo, default_providers
from ..registry import ACTIONS, Registry, Step
from .deps import get_all_dependencies
from .models import Plan
from .sorter import CycleError, topological_sort

_logging = logging.getLogger(__name__)

Edges = dict[str, list[str]]


def _add_edge(edges: Edges, source: str, target: str) -> None:
    targets = edges.setdefault(source, [])
    if target not in targets:
        targets.append(target)


def _unique_by_name(steps: list[Step]) -> list[Step]:
    by_name: dict[str, Step] = {}
    for step in steps:
        by_name.setdefault(step.name, step)
    return list(by_name.values())


def expand_for_install(
    steps: list[Step], registry: Registry
) -> tuple[list[Step], set[str]]:
    """Add every transitive prerequisite of `steps` from the registry.

    Returns the working list in registry order (selected steps unknown to
    the registry are kept at the end) and the names that were added.
    """
    selected = {s.name for s in steps}
    all_names = set(selected)
    added: set[str] = set()
    visited: set[str] = set()

    for step in steps:
        for dep in get_all_dependencies(step, registry, visited):
            if dep.name not in all_names:
                added.add(dep.name)
                all_names.add(dep.name)

    registered = registry.names()
    expanded = [s for s in registry.steps if s.name in all_names]
    expanded.extend(s for s in steps if s.name not in registered)
    return expanded, added


def _install_edges(steps: list[Step]) -> tuple[Edges, dict[str, list[str]]]:
    in_plan = {s.name for s in steps}
    edges: Edges = {}
    missing: dict[str, list[str]] = {}

    for step in steps:
        for dep_name in step.dependencies:
            if dep_name in in_plan:
                _add_edge(edges, dep_name, step.name)
            else:
                missing.setdefault(step.name, []).append(dep_name)
    return edges, missing


def _uninstall_edges(steps: list[Step], registry: Registry) -> Edges:
    """Dependents are removed before their prerequisites.

    The registry's transitive closure is used, so a selected step that
    reaches another selected step through unselected ones still comes
    first. Dependencies outside the selection produce no edge.
    """
    in_plan = {s.name for s in steps}
    edges: Edges = {}

    for step in steps:
        direct = [d for d in step.dependencies if d in in_plan]
        transitive = [d.name for d in get_all_dependencies(step, registry)]
        for dep_name in dict.fromkeys(direct + transitive):
            if dep_name in in_plan and dep_name != step.name:
                _add_edge(edges, step.name, dep_name)
    return edges


async def _safe_reverse_dependents(
    provider: DependencyProvider, info: PackageInfo
) -> list[str]:
    try:
        return await provider.reverse_dependents(info)
    except Exception as e:
        _logging.warning(
            f"{provider.id} reverse dependency query failed for {info.name}: {e}"
        )
        return []


async def _apply_provider_edges(
    steps: list[Step],
    providers: list[DependencyProvider],
    edges: Edges,
    external_dependents: dict[str, list[str]],
) -> None:
    for provider in providers:
        info_by_step: dict[str, PackageInfo] = {}
        step_by_package: dict[str, str] = {}
        for step in steps:
            info = provider.identify(step)
            if info is None:
                continue
            info_by_step[step.name] = info
            step_by_package[info.name] = step.name

        for step_name, info in info_by_step.items():
            dependents = await _safe_reverse_dependents(provider, info)
            external = []
            for dependent in dependents:
                dependent_step = step_by_package.get(dependent)
                if dependent_step is None:
                    external.append(dependent)
                elif dependent_step != step_name:
                    _add_edge(edges, dependent_step, step_name)

            if external and provider.id == SYSTEM_PROVIDER_ID:
                external_dependents.setdefault(step_name, []).extend(external)


async def build_plan(
    steps: list[Step],
    action: str,
    registry: Registry,
    providers: list[DependencyProvider] | None = None,
) -> Plan:
    """Build the execution plan for `steps` and `action`.

    Install expands the selection with transitive prerequisites. Uninstall
    inverts the declared edges and consults the package-manager providers
    for reverse dependents. A dependency cycle does not fail the plan: the
    unsorted working list is used and the cycle is reported on the Plan.
    """
    if action not in ACTIONS:
        raise ValueError(f"Unknown action: {action}")

    working = _unique_by_name(steps)
    added_deps: set[str] = set()
    if action == "install":
        working, added_deps = expand_for_install(working, registry)

    external_dependents: dict[str, list[str]] = {}
    missing_deps: dict[str, list[str]] = {}
    if action != "uninstall":
        edges, missing_deps = _install_edges(working)
    else:
        edges = _uninstall_edges(working, registry)
        if providers is None:
            providers = default_providers()
        await _apply_provider_edges(working, providers, edges, external_dependents)

    by_name = {s.name: s for s in working}
    cycle = None
    try:
        ordered = [by_name[name] for name in topological_sort(by_name, edges)]
    except CycleError as e:
        _logging.warning(f"{e}; falling back to registry order")
        ordered = working
        cycle = e.nodes

    return Plan(
        action=action,
        ordered=ordered,
        added_deps=added_deps,
        external_dependents=external_dependents,
        missing_deps=missing_deps,
        edges=edges,
        cycle=cycle,
    )


def render_plan(plan: Plan) -> str:
    lines = [f"Execution plan ({plan.action}):"]
    for i, step in enumerate(plan.ordered, 1):
        mark = "  (dependency)" if step.name in plan.added_deps else ""
        lines.append(f"{i:>2}. {step.name}{mark}")

    if plan.cycle:
        lines.append("")
        lines.append(f"⚠️  Dependency cycle among: {', '.join(plan.cycle)}")
        lines.append("   Steps will run in registry order; fix the registry dependencies.")

    if plan.external_dependents:
        lines.append("")
        lines.append("⚠️  Installed packages outside this plan still depend on:")
        for name, dependents in plan.external_dependents.items():
            lines.append(f"   - {name}: {', '.join(dependents)}")
        lines.append("   Removing these may break the packages listed.")

    if plan.missing_deps:
        lines.append("")
        lines.append("⚠️  Dependencies not found in this plan:")
        for name, deps in plan.missing_deps.items():
            lines.append(f"   - {name}: {', '.join(deps)}")
        lines.append("   They are not managed here and must already be available.")

    return "\n".join(lines)


__all__ = [
    "expand_for_install",
    "build_plan",
    "render_plan",
]
