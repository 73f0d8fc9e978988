"""uv tool provider (user-level tools installed with `uv tool install`)."""

from ..execution import run_command_async
from .base import DependencyProvider, PackageInfo


class UvToolDependencyProvider(DependencyProvider):
    id = "uv"
    executable = "uv"
    subcommands = [{"tool"}, {"uninstall"}]

    async def reverse_dependents(self, info: PackageInfo) -> list[str]:
        return []

    async def is_installed(self, info: PackageInfo) -> bool:
        output, returncode = await run_command_async("uv tool list")
        if returncode != 0:
            return False
        for line in output.splitlines():
            line = line.strip()
            if line == info.name or line.startswith(f"{info.name} "):
                return True
        return False
