"""
Common utilities shared across stacktodate modules.
"""

from __future__ import annotations

import os
from pathlib import Path

# Per-user state directory (cache files, credentials, settings)
CONFIG_DIR_NAME = ".stacktodate"


class StackToDateError(Exception):
    """Base class for errors surfaced to the user by the CLI."""
    pass


def get_env_or_default(key: str, default: str) -> str:
    """
    Read an environment variable, falling back to a default when unset or empty.

    Args:
        key: Environment variable name
        default: Value returned when the variable is missing

    Returns:
        Environment value or default
    """
    value = os.environ.get(key, "")
    return value if value else default


def get_config_dir() -> Path:
    """
    Get the per-user stacktodate directory.

    STD_CONFIG_DIR overrides the default ~/.stacktodate location.

    Returns:
        Path to the directory (not created)
    """
    override = os.environ.get("STD_CONFIG_DIR", "")
    if override:
        return Path(override).expanduser()
    try:
        return Path.home() / CONFIG_DIR_NAME
    except RuntimeError:
        # Home directory cannot be determined
        return Path(CONFIG_DIR_NAME)


def ensure_config_dir(mode: int = 0o700) -> Path:
    """
    Create the per-user stacktodate directory if missing.

    Args:
        mode: Permission bits for a newly created directory

    Returns:
        Path to the directory
    """
    config_dir = get_config_dir()
    config_dir.mkdir(mode=mode, parents=True, exist_ok=True)
    return config_dir


def resolve_config_path(path: str | None, default: str) -> Path:
    """Resolve a manifest path argument to an absolute path."""
    return Path(path or default).expanduser().resolve()


def is_debug_enabled() -> bool:
    """Check whether STD_DEBUG=1 asks for debug output."""
    return os.environ.get("STD_DEBUG", "0") == "1"
