"""
Settings and per-command options.

Settings come from ~/.stacktodate/config.yml (optional) with environment
overrides on top. Each command handler receives its own frozen options
object built from parsed CLI arguments.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any

import yaml

from .common import StackToDateError, get_config_dir

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://stacktodate.club"
DEFAULT_MANIFEST_FILE = "stacktodate.yml"
SETTINGS_FILE_NAME = "config.yml"


class SettingsError(StackToDateError):
    """Raised when the settings file is present but invalid."""
    pass


@dataclass(frozen=True)
class Settings:
    """
    User-level settings.

    Attributes:
        api_url: Base URL of the catalog service
        cache_ttl_hours: Freshness window of the local cache files
        version_check: Whether cached update notices are shown
        update_check_timeout: Deadline in seconds for the release lookup
        request_timeout: Deadline in seconds for catalog and API calls (0 = none)
    """
    api_url: str = DEFAULT_API_URL
    cache_ttl_hours: int = 24
    version_check: bool = True
    update_check_timeout: int = 10
    request_timeout: int = 0

    def __post_init__(self):
        if not self.api_url:
            raise ValueError("api_url must not be empty")

        if self.cache_ttl_hours < 1 or self.cache_ttl_hours > 24 * 30:
            raise ValueError(
                f"Invalid cache_ttl_hours: {self.cache_ttl_hours}. "
                "Must be between 1 and 720"
            )

        if self.update_check_timeout < 1 or self.update_check_timeout > 60:
            raise ValueError(
                f"Invalid update_check_timeout: {self.update_check_timeout}. "
                "Must be between 1 and 60"
            )

        if self.request_timeout < 0:
            raise ValueError(f"Invalid request_timeout: {self.request_timeout}")

    @staticmethod
    def from_dict(data: dict[str, Any]) -> Settings:
        """Create Settings from dictionary."""
        return Settings(
            api_url=str(data.get("api_url", DEFAULT_API_URL)).rstrip("/"),
            cache_ttl_hours=int(data.get("cache_ttl_hours", 24)),
            version_check=bool(data.get("version_check", True)),
            update_check_timeout=int(data.get("update_check_timeout", 10)),
            request_timeout=int(data.get("request_timeout", 0)),
        )

    def with_env_overrides(self) -> Settings:
        """Apply STD_API_URL and STD_DISABLE_VERSION_CHECK on top of file values."""
        settings = self
        api_url = os.environ.get("STD_API_URL", "")
        if api_url:
            settings = replace(settings, api_url=api_url.rstrip("/"))
        if os.environ.get("STD_DISABLE_VERSION_CHECK", "0") == "1":
            settings = replace(settings, version_check=False)
        return settings


def get_settings_path() -> Path:
    """Path of the optional user settings file."""
    return get_config_dir() / SETTINGS_FILE_NAME


def load_settings(path: Path | None = None) -> Settings:
    """
    Load settings from file and environment.

    Args:
        path: Optional settings file path (uses default if None)

    Returns:
        Settings (defaults when no file exists)

    Raises:
        SettingsError: If the file exists but cannot be parsed or validated
    """
    if path is None:
        path = get_settings_path()

    settings = Settings()
    if path.exists():
        logger.debug(f"Loading settings from: {path}")
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise SettingsError(f"failed to read settings file {path}: {e}") from e

        if not isinstance(data, dict):
            raise SettingsError(f"settings file {path} must contain a mapping")

        try:
            settings = Settings.from_dict(data)
        except (ValueError, TypeError) as e:
            raise SettingsError(f"invalid settings in {path}: {e}") from e

    return settings.with_env_overrides()


@dataclass(frozen=True)
class DetectOptions:
    """Options for the autodetect command."""
    path: str = "."


@dataclass(frozen=True)
class InitOptions:
    """Options for the init command."""
    path: str = "."
    uuid: str = ""
    name: str = ""
    skip_autodetect: bool = False
    no_interactive: bool = False


@dataclass(frozen=True)
class UpdateOptions:
    """Options for the update command."""
    config_file: str = DEFAULT_MANIFEST_FILE
    skip_autodetect: bool = False
    no_interactive: bool = False


@dataclass(frozen=True)
class CheckOptions:
    """Options for the check command."""
    config_file: str = DEFAULT_MANIFEST_FILE
    output_format: str = "text"

    def __post_init__(self):
        if self.output_format not in {"text", "json"}:
            raise ValueError(
                f"Invalid output format: {self.output_format}. Must be 'text' or 'json'"
            )


@dataclass(frozen=True)
class RemoteOptions:
    """Options for commands that address the remote tech stack (push, open)."""
    config_file: str = DEFAULT_MANIFEST_FILE


@dataclass(frozen=True)
class VersionOptions:
    """Options for the version command."""
    check_updates: bool = False
