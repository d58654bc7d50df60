"""
Tests for settings and command options (stacktodate/config.py, stacktodate/common.py).
"""

import pytest

from stacktodate.common import (
    ensure_config_dir,
    get_config_dir,
    get_env_or_default,
    resolve_config_path,
)
from stacktodate.config import (
    DEFAULT_API_URL,
    CheckOptions,
    InitOptions,
    Settings,
    SettingsError,
    get_settings_path,
    load_settings,
)


class TestSettings:
    """Tests for Settings dataclass."""

    def test_defaults(self):
        """Test default values."""
        settings = Settings()
        assert settings.api_url == "https://stacktodate.club"
        assert settings.cache_ttl_hours == 24
        assert settings.version_check is True
        assert settings.update_check_timeout == 10
        assert settings.request_timeout == 0

    def test_invalid_ttl(self):
        """Test TTL bounds are validated."""
        with pytest.raises(ValueError, match="cache_ttl_hours"):
            Settings(cache_ttl_hours=0)

    def test_invalid_update_timeout(self):
        """Test update check timeout bounds."""
        with pytest.raises(ValueError, match="update_check_timeout"):
            Settings(update_check_timeout=120)

    def test_from_dict_strips_trailing_slash(self):
        """Test API URL normalization."""
        settings = Settings.from_dict({"api_url": "https://example.test/", "cache_ttl_hours": 6})
        assert settings.api_url == "https://example.test"
        assert settings.cache_ttl_hours == 6

    def test_env_overrides(self, monkeypatch):
        """Test STD_API_URL and STD_DISABLE_VERSION_CHECK win over file values."""
        monkeypatch.setenv("STD_API_URL", "http://localhost:3000/")
        monkeypatch.setenv("STD_DISABLE_VERSION_CHECK", "1")
        settings = Settings().with_env_overrides()
        assert settings.api_url == "http://localhost:3000"
        assert settings.version_check is False


class TestLoadSettings:
    """Tests for load_settings()."""

    def test_no_file(self):
        """Test defaults when no settings file exists."""
        assert load_settings() == Settings()

    def test_settings_file(self, isolated_config_dir):
        """Test values are read from config.yml."""
        isolated_config_dir.mkdir(parents=True)
        get_settings_path().write_text("api_url: https://staging.example\nversion_check: false\n")
        settings = load_settings()
        assert settings.api_url == "https://staging.example"
        assert settings.version_check is False

    def test_invalid_yaml(self, tmp_path):
        """Test malformed file raises SettingsError."""
        path = tmp_path / "config.yml"
        path.write_text("api_url: [oops\n")
        with pytest.raises(SettingsError, match="failed to read settings file"):
            load_settings(path)

    def test_invalid_value(self, tmp_path):
        """Test out-of-range value raises SettingsError."""
        path = tmp_path / "config.yml"
        path.write_text("cache_ttl_hours: -1\n")
        with pytest.raises(SettingsError, match="invalid settings"):
            load_settings(path)

    def test_non_mapping(self, tmp_path):
        """Test list content raises SettingsError."""
        path = tmp_path / "config.yml"
        path.write_text("- a\n")
        with pytest.raises(SettingsError, match="must contain a mapping"):
            load_settings(path)


class TestOptions:
    """Tests for per-command option dataclasses."""

    def test_check_format_validated(self):
        """Test only text and json are accepted."""
        assert CheckOptions(output_format="json").output_format == "json"
        with pytest.raises(ValueError, match="Invalid output format"):
            CheckOptions(output_format="xml")

    def test_options_are_frozen(self):
        """Test options cannot be mutated by handlers."""
        opts = InitOptions(path="app")
        with pytest.raises(AttributeError):
            opts.path = "other"


class TestCommon:
    """Tests for common helpers."""

    def test_config_dir_override(self, isolated_config_dir):
        """Test STD_CONFIG_DIR overrides ~/.stacktodate."""
        assert get_config_dir() == isolated_config_dir

    def test_config_dir_default(self, monkeypatch, tmp_path):
        """Test default location under the home directory."""
        monkeypatch.delenv("STD_CONFIG_DIR")
        monkeypatch.setenv("HOME", str(tmp_path))
        assert get_config_dir() == tmp_path / ".stacktodate"

    def test_ensure_config_dir(self, isolated_config_dir):
        """Test directory is created with owner-only permissions."""
        path = ensure_config_dir()
        assert path.is_dir()
        assert path.stat().st_mode & 0o777 == 0o700

    def test_env_helpers(self, monkeypatch):
        """Test environment lookups."""
        monkeypatch.setenv("STD_EXAMPLE", "value")
        assert get_env_or_default("STD_EXAMPLE", "x") == "value"
        assert get_env_or_default("STD_MISSING", "x") == "x"

    def test_resolve_config_path(self, tmp_path, monkeypatch):
        """Test relative manifest paths become absolute."""
        monkeypatch.chdir(tmp_path)
        assert resolve_config_path(None, "stacktodate.yml") == tmp_path.resolve() / "stacktodate.yml"
        assert resolve_config_path("sub/app.yml", "stacktodate.yml") == tmp_path.resolve() / "sub" / "app.yml"

    def test_default_api_url(self):
        """Test default API URL constant."""
        assert DEFAULT_API_URL == "https://stacktodate.club"
