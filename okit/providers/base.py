"""Provider interface and shared uninstall-command parsing."""

import shlex
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

from ..registry import PackageRef, Step


@dataclass
class PackageInfo:
    """Package-manager-native identity of a step."""

    name: str
    meta: dict[str, Any] = field(default_factory=dict)


def parse_uninstall_target(
    command: str,
    executable: str,
    subcommands: list[set[str]],
) -> tuple[str, list[str]] | None:
    """Locate `<executable> <subcommand...> [flags] <package>` in a command.

    Only the first ``&&`` segment is examined. Each entry of `subcommands`
    is the set of tokens accepted at that position (searched in order after
    the previous match). Returns the first non-flag token after the last
    subcommand together with the flags seen before it, or None when the
    command does not have this shape.
    """
    segment = command.split("&&")[0].strip()
    try:
        tokens = shlex.split(segment)
    except ValueError:
        return None
    if executable not in tokens:
        return None

    index = tokens.index(executable)
    for accepted in subcommands:
        index = next(
            (i for i in range(index + 1, len(tokens)) if tokens[i] in accepted), -1
        )
        if index < 0:
            return None

    flags = []
    for token in tokens[index + 1 :]:
        if token.startswith("-"):
            flags.append(token)
            continue
        return token, flags
    return None


class DependencyProvider(ABC):
    """Probe for one package manager.

    Providers decide whether they own a step, ask the package manager for
    installed reverse dependents, and check whether a package is installed.
    Query methods never raise: a missing manager or failing query means
    "nothing known".
    """

    id: str = ""
    executable: str = ""
    subcommands: list[set[str]] = []

    def identify(self, step: Step) -> PackageInfo | None:
        if step.package is not None:
            if step.package.manager != self.id:
                return None
            return self.info_from_ref(step.package)
        if not step.uninstall:
            return None
        parsed = parse_uninstall_target(step.uninstall, self.executable, self.subcommands)
        if parsed is None:
            return None
        name, flags = parsed
        return self.info_from_tokens(name, flags)

    def info_from_ref(self, ref: PackageRef) -> PackageInfo:
        return PackageInfo(name=ref.name)

    def info_from_tokens(self, name: str, flags: list[str]) -> PackageInfo:
        return PackageInfo(name=name)

    @abstractmethod
    async def reverse_dependents(self, info: PackageInfo) -> list[str]:
        """Installed packages that declare a dependency on `info`."""

    @abstractmethod
    async def is_installed(self, info: PackageInfo) -> bool:
        """Whether the package is currently installed."""


__all__ = [
    "PackageInfo",
    "DependencyProvider",
    "parse_uninstall_target",
]
