"""
Tests for API token storage (stacktodate/credentials.py).
"""

import stat
from unittest.mock import patch

import keyring.errors
import pytest

from stacktodate.credentials import (
    CredentialsError,
    EnvTokenProvider,
    FileTokenProvider,
    KeyringTokenProvider,
    TokenProvider,
    delete_token,
    get_token,
    get_token_source,
    get_token_with_source,
    set_token,
)


class MemoryProvider(TokenProvider):
    """In-memory provider for chain tests."""

    def __init__(self, name, token=None, secure=True, fail=False):
        self.name = name
        self.token = token
        self.secure = secure
        self.fail = fail

    def get(self):
        return self.token

    def set(self, token):
        if self.fail:
            raise CredentialsError(f"{self.name} unavailable")
        self.token = token

    def delete(self):
        if self.fail:
            raise CredentialsError(f"{self.name} unavailable")
        had_token = self.token is not None
        self.token = None
        return had_token


class TestEnvTokenProvider:
    """Tests for STD_TOKEN lookups."""

    def test_reads_env(self, monkeypatch):
        """Test token from environment."""
        monkeypatch.setenv("STD_TOKEN", "env-token")
        assert EnvTokenProvider().get() == "env-token"

    def test_read_only(self):
        """Test environment provider cannot store tokens."""
        provider = EnvTokenProvider()
        assert provider.writable is False
        with pytest.raises(CredentialsError, match="read-only"):
            provider.set("x")


class TestKeyringTokenProvider:
    """Tests for the OS keychain provider."""

    @patch("keyring.get_password")
    def test_get(self, mock_get):
        """Test lookup uses the stacktodate service."""
        mock_get.return_value = "kc-token"
        assert KeyringTokenProvider().get() == "kc-token"
        mock_get.assert_called_once_with("stacktodate", "token")

    @patch("keyring.get_password")
    def test_get_backend_error(self, mock_get):
        """Test keychain failures read as no token."""
        mock_get.side_effect = keyring.errors.NoKeyringError("no backend")
        assert KeyringTokenProvider().get() is None

    @patch("keyring.set_password")
    def test_set_error(self, mock_set):
        """Test storage failures raise CredentialsError."""
        mock_set.side_effect = keyring.errors.PasswordSetError("locked")
        with pytest.raises(CredentialsError, match="Keychain error"):
            KeyringTokenProvider().set("x")

    @patch("keyring.delete_password")
    def test_delete_missing(self, mock_delete):
        """Test deleting an absent entry reports nothing removed."""
        mock_delete.side_effect = keyring.errors.PasswordDeleteError("not found")
        assert KeyringTokenProvider().delete() is False


class TestFileTokenProvider:
    """Tests for the credentials.yaml provider."""

    def test_set_and_get(self, tmp_path):
        """Test token round-trips through an owner-only file."""
        path = tmp_path / "creds" / "credentials.yaml"
        provider = FileTokenProvider(path)
        provider.set("file-token")

        assert provider.get() == "file-token"
        assert stat.S_IMODE(path.stat().st_mode) == 0o600
        assert provider.secure is False

    def test_default_path(self, isolated_config_dir):
        """Test default location in the stacktodate directory."""
        provider = FileTokenProvider()
        provider.set("t")
        assert (isolated_config_dir / "credentials.yaml").exists()
        assert str(isolated_config_dir) in provider.name

    def test_missing_and_malformed(self, tmp_path):
        """Test unreadable files read as no token."""
        path = tmp_path / "credentials.yaml"
        assert FileTokenProvider(path).get() is None
        path.write_text("- not a mapping\n")
        assert FileTokenProvider(path).get() is None

    def test_delete(self, tmp_path):
        """Test delete removes the file once."""
        provider = FileTokenProvider(tmp_path / "credentials.yaml")
        provider.set("t")
        assert provider.delete() is True
        assert provider.delete() is False


class TestProviderChain:
    """Tests for the prioritized provider chain."""

    def test_first_provider_wins(self):
        """Test lookup order."""
        first = MemoryProvider("first", "a")
        second = MemoryProvider("second", "b")
        token, provider = get_token_with_source([first, second])
        assert token == "a"
        assert provider is first

    def test_falls_through(self):
        """Test empty providers are skipped."""
        assert get_token([MemoryProvider("empty"), MemoryProvider("file", "b")]) == "b"

    def test_no_token_help(self):
        """Test missing token explains how to configure one."""
        with pytest.raises(CredentialsError, match="stacktodate global-config set"):
            get_token([MemoryProvider("empty")])

    def test_token_source(self):
        """Test source description and security flag."""
        assert get_token_source([MemoryProvider("file", "t", secure=False)]) == ("file", False)
        assert get_token_source([MemoryProvider("empty")]) is None

    def test_env_has_priority(self, monkeypatch, tmp_path):
        """Test STD_TOKEN beats a stored token."""
        monkeypatch.setenv("STD_TOKEN", "env-token")
        file_provider = FileTokenProvider(tmp_path / "credentials.yaml")
        file_provider.set("file-token")
        assert get_token([EnvTokenProvider(), file_provider]) == "env-token"


class TestSetToken:
    """Tests for set_token()."""

    def test_stores_in_first_writable(self):
        """Test read-only providers are skipped."""
        keychain = MemoryProvider("keychain")
        provider = set_token("  tok  ", [EnvTokenProvider(), keychain, MemoryProvider("file")])
        assert provider is keychain
        assert keychain.token == "tok"

    def test_falls_back_to_file(self, caplog):
        """Test plain-text fallback logs a warning."""
        file_provider = MemoryProvider("file", secure=False)
        with caplog.at_level("WARNING", logger="stacktodate.credentials"):
            provider = set_token("tok", [MemoryProvider("keychain", fail=True), file_provider])
        assert provider is file_provider
        assert "plain text" in caplog.text

    def test_empty_token(self):
        """Test blank tokens are rejected."""
        with pytest.raises(CredentialsError, match="cannot be empty"):
            set_token("   ", [MemoryProvider("file")])

    def test_all_fail(self):
        """Test error when no provider accepts the token."""
        with pytest.raises(CredentialsError, match="STD_TOKEN"):
            set_token("tok", [MemoryProvider("keychain", fail=True), MemoryProvider("file", fail=True)])


class TestDeleteToken:
    """Tests for delete_token()."""

    def test_deletes_everywhere(self):
        """Test token is removed from every writable provider."""
        keychain = MemoryProvider("keychain", "a")
        file_provider = MemoryProvider("file", "b")
        assert delete_token([keychain, file_provider]) == 2
        assert keychain.token is None and file_provider.token is None

    def test_partial_failure_ok(self):
        """Test one failing provider is tolerated."""
        assert delete_token([MemoryProvider("keychain", fail=True), MemoryProvider("file", "b")]) == 1

    def test_all_fail(self):
        """Test failure when every provider errors."""
        with pytest.raises(CredentialsError, match="failed to delete token"):
            delete_token([MemoryProvider("keychain", fail=True), MemoryProvider("file", fail=True)])
