"""Transitive walk over declared step dependencies."""

from ..registry import Registry, Step


def get_all_dependencies(
    step: Step, registry: Registry, visited: set[str] | None = None
) -> list[Step]:
    """Return every registered step `step` transitively depends on.

    Depth-first, prerequisites before their dependents. Each dependency is
    resolved once; names missing from the registry are skipped. Passing a
    shared `visited` set across calls resolves a dependency only once for
    several roots.
    """
    if visited is None:
        visited = set()

    deps: list[Step] = []
    for dep_name in step.dependencies:
        if dep_name in visited:
            continue
        visited.add(dep_name)

        dep_step = registry.get(dep_name)
        if dep_step is not None:
            deps.extend(get_all_dependencies(dep_step, registry, visited))
            deps.append(dep_step)
    return deps
