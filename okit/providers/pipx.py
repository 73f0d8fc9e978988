"""pipx provider (user-level Python applications)."""

import json

from ..execution import run_command_async
from .base import DependencyProvider, PackageInfo


class PipxDependencyProvider(DependencyProvider):
    id = "pipx"
    executable = "pipx"
    subcommands = [{"uninstall"}]

    async def reverse_dependents(self, info: PackageInfo) -> list[str]:
        # pipx venvs are isolated; nothing can depend on another app.
        return []

    async def is_installed(self, info: PackageInfo) -> bool:
        output, returncode = await run_command_async("pipx list --json")
        if returncode != 0:
            return False
        try:
            data = json.loads(output)
        except json.JSONDecodeError:
            return f'"{info.name}"' in output
        if isinstance(data, dict):
            for key in ("venvs", "packages"):
                if isinstance(data.get(key), dict):
                    return info.name in data[key]
        return f'"{info.name}"' in output
