"""okit: install, upgrade and remove developer tools in dependency order."""

import logging

from .errors import format_error, format_suggestion
from .paths import get_config_dir, get_latest_log_path, get_registry_path
from .registry import (
    ConfigError,
    PackageRef,
    Registry,
    Step,
    load_registry,
    merge_registries,
    reset_registry,
    save_registry,
)

_debug_enabled = False


def set_debug(enabled: bool):
    """Enable or disable debug mode globally."""
    global _debug_enabled
    _debug_enabled = enabled


def is_debug() -> bool:
    """Check if debug mode is enabled."""
    return _debug_enabled


def setup_logging(debug: bool = False) -> None:
    """Configure root logging once per invocation.

    DEBUG when --debug is given, WARNING otherwise. User-facing output goes
    through click, not through logging.
    """
    set_debug(debug)
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        force=True,
    )


__all__ = [
    "ConfigError",
    "PackageRef",
    "Registry",
    "Step",
    "format_error",
    "format_suggestion",
    "get_config_dir",
    "get_latest_log_path",
    "get_registry_path",
    "is_debug",
    "load_registry",
    "merge_registries",
    "reset_registry",
    "save_registry",
    "set_debug",
    "setup_logging",
]
