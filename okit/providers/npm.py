"""npm provider (global Node.js packages)."""

import json
import logging
from typing import Any

from ..execution import run_command_async
from .base import DependencyProvider, PackageInfo

_logging = logging.getLogger(__name__)


def build_reverse_dependencies(tree: dict[str, Any]) -> dict[str, list[str]]:
    """Invert an `npm ls --json --all` tree into package -> dependents.

    The root of the tree (the global prefix itself) is never reported as
    a dependent.
    """
    root_name = tree.get("name")
    reverse: dict[str, dict[str, None]] = {}
    stack: list[tuple[dict[str, Any], str | None]] = [(tree, root_name)]

    while stack:
        node, parent_name = stack.pop()
        children = node.get("dependencies") or {}
        if not isinstance(children, dict):
            continue
        for dep_name, dep_node in children.items():
            if parent_name and parent_name != root_name:
                reverse.setdefault(dep_name, {})[parent_name] = None
            if isinstance(dep_node, dict):
                stack.append((dep_node, dep_name))

    return {name: list(dependents) for name, dependents in reverse.items()}


class NpmDependencyProvider(DependencyProvider):
    """Global npm packages.

    The reverse-dependency index is built from one full tree listing the
    first time it is needed and reused for the lifetime of this instance.
    """

    id = "npm"
    executable = "npm"
    subcommands = [{"uninstall", "remove"}]

    def __init__(self) -> None:
        self._dependents_cache: dict[str, list[str]] | None = None

    async def reverse_dependents(self, info: PackageInfo) -> list[str]:
        if self._dependents_cache is None:
            self._dependents_cache = await self._load_dependents()
        return list(self._dependents_cache.get(info.name, []))

    async def _load_dependents(self) -> dict[str, list[str]]:
        output, returncode = await run_command_async("npm ls -g --json --all")
        # npm ls exits non-zero on extraneous/missing packages but still
        # prints the tree, so the output is parsed regardless.
        try:
            tree = json.loads(output)
        except json.JSONDecodeError:
            _logging.debug(f"npm ls returned no usable tree (exit {returncode})")
            return {}
        if not isinstance(tree, dict):
            return {}
        return build_reverse_dependencies(tree)

    async def is_installed(self, info: PackageInfo) -> bool:
        output, _ = await run_command_async(f"npm ls -g --depth=0 --json {info.name}")
        try:
            data = json.loads(output)
        except json.JSONDecodeError:
            return False
        if not isinstance(data, dict):
            return False
        return info.name in (data.get("dependencies") or {})
