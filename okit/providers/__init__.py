"""Package-manager dependency providers."""

from .base import DependencyProvider, PackageInfo, parse_uninstall_target
from .brew import BrewDependencyProvider
from .npm import NpmDependencyProvider, build_reverse_dependencies
from .pipx import PipxDependencyProvider
from .uv import UvToolDependencyProvider

# Only this provider's out-of-plan dependents are reported to the user.
SYSTEM_PROVIDER_ID = "brew"


def default_providers() -> list[DependencyProvider]:
    """Fresh provider instances; caches live as long as the returned list."""
    return [
        BrewDependencyProvider(),
        NpmDependencyProvider(),
        PipxDependencyProvider(),
        UvToolDependencyProvider(),
    ]


__all__ = [
    "SYSTEM_PROVIDER_ID",
    "DependencyProvider",
    "PackageInfo",
    "parse_uninstall_target",
    "build_reverse_dependencies",
    "BrewDependencyProvider",
    "NpmDependencyProvider",
    "PipxDependencyProvider",
    "UvToolDependencyProvider",
    "default_providers",
]
