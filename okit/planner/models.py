"""Data models for execution planning."""

from dataclasses import dataclass, field

from ..registry import Step


@dataclass
class Plan:
    """Ordered, dependency-resolved steps for one batch.

    `added_deps` is install-only. `external_dependents` is uninstall-only
    and advisory. `cycle` is set when the declared dependencies contain a
    cycle; `ordered` then falls back to the unsorted working list.
    """

    action: str
    ordered: list[Step]
    added_deps: set[str] = field(default_factory=set)
    external_dependents: dict[str, list[str]] = field(default_factory=dict)
    missing_deps: dict[str, list[str]] = field(default_factory=dict)
    edges: dict[str, list[str]] = field(default_factory=dict)
    cycle: list[str] | None = None

    @property
    def names(self) -> list[str]:
        return [s.name for s in self.ordered]

    def has_cycle(self) -> bool:
        return self.cycle is not None


__all__ = [
    "Plan",
]
