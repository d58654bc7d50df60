"""
Check for newer stacktodate releases.

The latest release is looked up on GitHub at most once per TTL and remembered
in ~/.stacktodate/version-cache.json. Commands that only want to show a
notice read the cache and never touch the network.
"""

from __future__ import annotations

import datetime
import json
import logging
import time
import urllib.error
import urllib.request
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from . import versions
from .common import StackToDateError, get_config_dir

logger = logging.getLogger(__name__)

CACHE_FILE_NAME = "version-cache.json"
CACHE_TTL_HOURS = 24
GITHUB_RELEASES_URL = "https://api.github.com/repos/stacktodate/stacktodate-cli/releases/latest"
HTTP_TIMEOUT_SECONDS = 10
USER_AGENT = "stacktodate-cli"


class VersionCheckError(StackToDateError):
    """Raised when the latest release cannot be determined."""
    pass


@dataclass
class VersionCache:
    """Cached latest-release information."""

    timestamp: str = ""
    latest_version: str = ""
    release_url: str = ""

    def to_dict(self) -> dict[str, str]:
        return {
            "timestamp": self.timestamp,
            "latestVersion": self.latest_version,
            "releaseUrl": self.release_url,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "VersionCache":
        return cls(
            timestamp=str(data.get("timestamp") or ""),
            latest_version=str(data.get("latestVersion") or ""),
            release_url=str(data.get("releaseUrl") or ""),
        )


def get_cache_path() -> Path:
    return get_config_dir() / CACHE_FILE_NAME


def is_cache_valid(path: Path | None = None, ttl_hours: int = CACHE_TTL_HOURS) -> bool:
    """True if the version cache exists and its mtime is within the TTL."""
    if path is None:
        path = get_cache_path()
    try:
        mtime = path.stat().st_mtime
    except OSError:
        return False
    return (time.time() - mtime) < ttl_hours * 3600


def load_cache(path: Path | None = None) -> VersionCache:
    """Load the version cache.

    Raises:
        VersionCheckError: If the file is missing or malformed
    """
    if path is None:
        path = get_cache_path()
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise VersionCheckError(f"failed to read version cache: {e}") from e
    if not isinstance(data, dict):
        raise VersionCheckError("failed to read version cache: expected an object")
    return VersionCache.from_dict(data)


def save_cache(latest_version: str, release_url: str, path: Path | None = None) -> VersionCache:
    """Persist the latest release information."""
    if path is None:
        path = get_cache_path()

    cache = VersionCache(
        timestamp=datetime.datetime.now(datetime.timezone.utc)
        .replace(microsecond=0)
        .isoformat()
        .replace("+00:00", "Z"),
        latest_version=latest_version,
        release_url=release_url,
    )
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        temp_path = path.with_suffix(".tmp")
        with open(temp_path, "w", encoding="utf-8") as f:
            json.dump(cache.to_dict(), f)
        temp_path.replace(path)
    except OSError as e:
        raise VersionCheckError(f"failed to write version cache: {e}") from e
    return cache


def fetch_latest_release(url: str = GITHUB_RELEASES_URL, timeout: float = HTTP_TIMEOUT_SECONDS) -> tuple[str, str]:
    """Fetch the latest release tag and page URL from GitHub.

    Returns:
        (tag_name, html_url)

    Raises:
        VersionCheckError: On network failure, rate limiting or bad response
    """
    req = urllib.request.Request(url, headers={
        "User-Agent": USER_AGENT,
        "Accept": "application/vnd.github+json",
    })
    try:
        with urllib.request.urlopen(req, timeout=timeout) as response:
            data = json.loads(response.read())
    except urllib.error.HTTPError as e:
        if e.code == 403:
            raise VersionCheckError("rate limit exceeded") from e
        raise VersionCheckError(f"GitHub API error (status {e.code})") from e
    except (urllib.error.URLError, OSError) as e:
        raise VersionCheckError(f"fetching from GitHub: {e}") from e
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise VersionCheckError(f"parsing response: {e}") from e

    if not isinstance(data, dict) or not data.get("tag_name"):
        raise VersionCheckError("parsing response: missing tag_name")
    return str(data["tag_name"]), str(data.get("html_url") or "")


def compare_versions(current: str, latest: str) -> bool:
    """
    Check whether latest is newer than current.

    A "dev" build is always considered older than any release. A leading
    "v" is ignored on both sides.
    """
    if current == "dev":
        return True
    return versions.compare_versions(latest, current) > 0


def get_latest_version(path: Path | None = None, timeout: float = HTTP_TIMEOUT_SECONDS) -> tuple[str, str]:
    """
    Latest release, from a fresh cache or from GitHub.

    A stale cache is used when GitHub cannot be reached.

    Returns:
        (latest_version, release_url)

    Raises:
        VersionCheckError: If GitHub fails and there is no cache at all
    """
    if is_cache_valid(path):
        try:
            cache = load_cache(path)
            return cache.latest_version, cache.release_url
        except VersionCheckError as e:
            logger.debug(f"Ignoring unreadable version cache: {e}")

    try:
        latest, release_url = fetch_latest_release(timeout=timeout)
    except VersionCheckError as fetch_error:
        try:
            cache = load_cache(path)
        except VersionCheckError:
            raise VersionCheckError(f"failed to fetch version: {fetch_error}") from fetch_error
        return cache.latest_version, cache.release_url

    try:
        save_cache(latest, release_url, path)
    except VersionCheckError as e:
        logger.debug(f"Version cache not saved: {e}")
    return latest, release_url


def cached_update_notice(current: str, path: Path | None = None) -> str | None:
    """
    Short update notice based only on a fresh cache.

    Returns:
        Notice text, or None when there is nothing to report
    """
    if not is_cache_valid(path):
        return None
    try:
        cache = load_cache(path)
        if not cache.latest_version or not compare_versions(current, cache.latest_version):
            return None
    except VersionCheckError:
        return None
    return (
        f"A new version of stacktodate is available: {current} → {cache.latest_version}\n"
        "Run 'stacktodate version --check-updates' for upgrade instructions."
    )


def format_update_message(current: str, latest: str, release_url: str, instructions: str) -> str:
    return (
        "Update Available\n"
        "================\n\n"
        f"Current version: {current}\n"
        f"Latest version:  {latest}\n\n"
        f"{instructions}\n\n"
        f"Release notes: {release_url}\n"
    )
