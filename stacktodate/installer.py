"""
Detect how stacktodate itself was installed, for upgrade instructions.
"""

from __future__ import annotations

import enum
import os
import shutil
import subprocess
import sys

RELEASES_URL = "https://github.com/stacktodate/stacktodate-cli/releases"

HOMEBREW_PATH_PATTERNS = (
    "/Cellar/stacktodate/",
    "/opt/homebrew/Cellar/stacktodate",
    "/opt/homebrew/bin/stacktodate",
    "/usr/local/bin/stacktodate",
    "/usr/local/Cellar/stacktodate/",
)


class InstallMethod(enum.Enum):
    UNKNOWN = "unknown"
    HOMEBREW = "homebrew"
    PIP = "pip"
    BINARY = "binary"

    def __str__(self) -> str:
        return self.value


def is_homebrew_path(path: str) -> bool:
    return any(pattern in path for pattern in HOMEBREW_PATH_PATTERNS)


def is_brew_installed() -> bool:
    """True if `brew list stacktodate` succeeds."""
    if not shutil.which("brew"):
        return False
    try:
        proc = subprocess.run(
            ["brew", "list", "stacktodate"],
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
            stdin=subprocess.DEVNULL,
            timeout=5,
            check=False,
        )
    except (OSError, subprocess.TimeoutExpired):
        return False
    return proc.returncode == 0


def detect_install_method(executable: str | None = None) -> InstallMethod:
    """Classify the running installation.

    Args:
        executable: Path of the running command (defaults to argv[0])

    Returns:
        HOMEBREW for Homebrew paths or packages, PIP when running from a
        Python environment's scripts directory, otherwise BINARY
    """
    path = os.path.realpath(executable or sys.argv[0] or "")
    if is_homebrew_path(path):
        return InstallMethod.HOMEBREW
    if path.startswith(os.path.realpath(sys.prefix)):
        return InstallMethod.PIP
    if is_brew_installed():
        return InstallMethod.HOMEBREW
    return InstallMethod.BINARY


def get_upgrade_instructions(method: InstallMethod, version: str) -> str:
    if method is InstallMethod.HOMEBREW:
        return "Upgrade: brew upgrade stacktodate"
    if method is InstallMethod.PIP:
        return "Upgrade: pip install --upgrade stacktodate"
    if method is InstallMethod.BINARY:
        return f"Download: {RELEASES_URL}/tag/{version}"
    return f"Visit: {RELEASES_URL}/tag/{version}"
