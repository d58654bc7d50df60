"""
Tests for installation method detection (stacktodate/installer.py).
"""

import subprocess
import sys
from unittest.mock import MagicMock, patch

from stacktodate.installer import (
    InstallMethod,
    detect_install_method,
    get_upgrade_instructions,
    is_brew_installed,
    is_homebrew_path,
)


class TestHomebrewPaths:
    """Tests for is_homebrew_path()."""

    def test_homebrew_paths(self):
        """Test Cellar and Homebrew bin locations."""
        assert is_homebrew_path("/opt/homebrew/Cellar/stacktodate/0.4.0/bin/stacktodate")
        assert is_homebrew_path("/usr/local/Cellar/stacktodate/0.4.0/bin/stacktodate")
        assert is_homebrew_path("/opt/homebrew/bin/stacktodate")

    def test_other_paths(self):
        """Test unrelated locations."""
        assert not is_homebrew_path("/home/user/bin/stacktodate")


class TestIsBrewInstalled:
    """Tests for is_brew_installed()."""

    @patch("shutil.which")
    def test_no_brew(self, mock_which):
        """Test missing brew binary."""
        mock_which.return_value = None
        assert is_brew_installed() is False

    @patch("subprocess.run")
    @patch("shutil.which")
    def test_brew_list_success(self, mock_which, mock_run):
        """Test brew list exit status decides."""
        mock_which.return_value = "/opt/homebrew/bin/brew"
        mock_run.return_value = MagicMock(returncode=0)
        assert is_brew_installed() is True
        assert mock_run.call_args[0][0] == ["brew", "list", "stacktodate"]

    @patch("subprocess.run")
    @patch("shutil.which")
    def test_brew_list_timeout(self, mock_which, mock_run):
        """Test a hanging brew is treated as not installed."""
        mock_which.return_value = "/opt/homebrew/bin/brew"
        mock_run.side_effect = subprocess.TimeoutExpired(["brew"], 5)
        assert is_brew_installed() is False


class TestDetectInstallMethod:
    """Tests for detect_install_method()."""

    def test_homebrew(self):
        """Test Homebrew path wins."""
        assert detect_install_method("/opt/homebrew/bin/stacktodate") is InstallMethod.HOMEBREW

    def test_pip(self):
        """Test scripts inside the Python prefix."""
        path = f"{sys.prefix}/bin/stacktodate"
        with patch("stacktodate.installer.is_homebrew_path", return_value=False):
            assert detect_install_method(path) is InstallMethod.PIP

    @patch("stacktodate.installer.is_brew_installed", return_value=False)
    def test_binary(self, _mock_brew, tmp_path):
        """Test standalone binaries."""
        assert detect_install_method(str(tmp_path / "stacktodate")) is InstallMethod.BINARY


class TestUpgradeInstructions:
    """Tests for get_upgrade_instructions()."""

    def test_each_method(self):
        """Test instructions per install method."""
        assert get_upgrade_instructions(InstallMethod.HOMEBREW, "v1.0.0") == "Upgrade: brew upgrade stacktodate"
        assert "pip install --upgrade stacktodate" in get_upgrade_instructions(InstallMethod.PIP, "v1.0.0")
        assert get_upgrade_instructions(InstallMethod.BINARY, "v1.0.0").endswith("/releases/tag/v1.0.0")
        assert get_upgrade_instructions(InstallMethod.UNKNOWN, "v1.0.0").startswith("Visit: ")
