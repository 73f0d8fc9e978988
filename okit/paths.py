"""Filesystem locations used by okit."""

import os
from pathlib import Path


def get_config_dir() -> Path:
    """Return the okit base directory.

    Priority:
    1. OKIT_HOME environment variable (if set)
    2. ~/.config/okit
    """
    if "OKIT_HOME" in os.environ:
        return Path(os.environ["OKIT_HOME"])
    return Path.home() / ".config" / "okit"


def get_registry_path() -> Path:
    """Return path to the user registry file.

    OKIT_REGISTRY wins over the default location inside the config dir.
    """
    if "OKIT_REGISTRY" in os.environ:
        return Path(os.environ["OKIT_REGISTRY"])
    return get_config_dir() / "registry.json"


def get_logs_dir() -> Path:
    return get_config_dir() / "logs"


def get_latest_log_path() -> Path:
    """Return path of the "latest run" report, overwritten by every batch."""
    return get_logs_dir() / "latest.json"
