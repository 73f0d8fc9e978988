"""Homebrew provider (system packages, formulae and casks)."""

import logging

from ..execution import run_command_async
from ..registry import PackageRef
from .base import DependencyProvider, PackageInfo

_logging = logging.getLogger(__name__)


class BrewDependencyProvider(DependencyProvider):
    id = "brew"
    executable = "brew"
    subcommands = [{"uninstall"}]

    def info_from_ref(self, ref: PackageRef) -> PackageInfo:
        return PackageInfo(name=ref.name, meta={"cask": ref.variant == "cask"})

    def info_from_tokens(self, name: str, flags: list[str]) -> PackageInfo:
        return PackageInfo(name=name, meta={"cask": "--cask" in flags})

    async def reverse_dependents(self, info: PackageInfo) -> list[str]:
        cask_flag = "--cask " if info.meta.get("cask") else ""
        output, returncode = await run_command_async(
            f"brew uses --installed {cask_flag}{info.name}"
        )
        if returncode != 0:
            _logging.debug(f"brew uses failed for {info.name}: {output}")
            return []
        return [line.strip() for line in output.splitlines() if line.strip()]

    async def is_installed(self, info: PackageInfo) -> bool:
        if info.meta.get("cask"):
            command = f"brew list --cask {info.name}"
        else:
            command = f"brew list --versions {info.name}"
        output, returncode = await run_command_async(command)
        return returncode == 0 and bool(output.strip())
