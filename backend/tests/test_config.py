"""Tests for configuration validation."""

import os
import pytest
from unittest.mock import patch

from app.config import ConfigurationError, Settings, validate_config_on_startup


class TestSettingsValidation:
    """Test Settings.validate_required() method."""

    def test_default_settings_pass_in_development(self, tmp_path):
        """A writable database directory is all development needs."""
        settings = Settings(sqlite_db_path=str(tmp_path / "homelab.db"), environment="development")
        assert settings.validate_required() == []

    def test_in_memory_database_skips_directory_check(self):
        settings = Settings(sqlite_db_path=":memory:")
        assert settings.validate_required() == []

    def test_missing_db_path_fails(self):
        settings = Settings(sqlite_db_path="")
        errors = settings.validate_required()
        assert any("SQLITE_DB_PATH" in e for e in errors)

    def test_missing_db_directory_fails(self, tmp_path):
        settings = Settings(sqlite_db_path=str(tmp_path / "nowhere" / "homelab.db"))
        errors = settings.validate_required()
        assert any("not found" in e for e in errors)

    def test_unwritable_db_directory_fails(self, tmp_path):
        settings = Settings(sqlite_db_path=str(tmp_path / "homelab.db"))
        with patch.object(os, 'access', return_value=False):
            errors = settings.validate_required()
        assert any("not writable" in e for e in errors)

    def test_invalid_log_level_fails(self, tmp_path):
        settings = Settings(sqlite_db_path=str(tmp_path / "homelab.db"), log_level="chatty")
        errors = settings.validate_required()
        assert any("LOG_LEVEL" in e for e in errors)

    def test_log_level_is_case_insensitive(self, tmp_path):
        settings = Settings(sqlite_db_path=str(tmp_path / "homelab.db"), log_level="debug")
        assert settings.validate_required() == []

    def test_default_cors_fails_in_production(self, tmp_path):
        """Default CORS settings fail in production."""
        settings = Settings(
            sqlite_db_path=str(tmp_path / "homelab.db"),
            environment="production",
            cors_allowed_origins="http://localhost:5173,http://localhost:3000",
        )
        errors = settings.validate_required()
        assert any("CORS_ALLOWED_ORIGINS" in e for e in errors)

    def test_wildcard_cors_fails_in_production(self, tmp_path):
        """Wildcard CORS fails in production."""
        settings = Settings(
            sqlite_db_path=str(tmp_path / "homelab.db"),
            environment="production",
            cors_allowed_origins="*",
        )
        errors = settings.validate_required()
        assert any("*" in e for e in errors)

    def test_custom_cors_passes_in_production(self, tmp_path):
        """Custom CORS settings pass in production."""
        settings = Settings(
            sqlite_db_path=str(tmp_path / "homelab.db"),
            environment="production",
            cors_allowed_origins="https://inventory.home.arpa",
        )
        assert settings.validate_required() == []

    def test_export_filename_only_warns(self, tmp_path):
        settings = Settings(sqlite_db_path=str(tmp_path / "homelab.db"), export_filename="topology.txt")
        assert settings.validate_required() == []


class TestResolvedDbPath:
    def test_strips_sqlite_url_prefix(self, tmp_path):
        path = str(tmp_path / "homelab.db")
        assert Settings(sqlite_db_path=f"sqlite:///{path}").resolved_db_path == path

    def test_keeps_memory_marker(self):
        assert Settings(sqlite_db_path=":memory:").resolved_db_path == ":memory:"

    def test_expands_home(self):
        resolved = Settings(sqlite_db_path="~/homelab.db").resolved_db_path
        assert not resolved.startswith("~")


class TestConfigurationError:
    """Test ConfigurationError exception."""

    def test_configuration_error_is_runtime_error(self):
        """ConfigurationError inherits from RuntimeError."""
        exc = ConfigurationError("test error")
        assert isinstance(exc, RuntimeError)

    def test_configuration_error_stores_message(self):
        exc = ConfigurationError("my error message")
        assert "my error message" in str(exc)


class TestValidateConfigOnStartup:
    """Test validate_config_on_startup function."""

    def test_valid_config_does_not_raise(self, tmp_path):
        settings = Settings(sqlite_db_path=str(tmp_path / "homelab.db"))
        validate_config_on_startup(settings)

    def test_invalid_config_raises_configuration_error(self, tmp_path):
        """Invalid configuration raises ConfigurationError."""
        settings = Settings(sqlite_db_path=str(tmp_path / "missing" / "homelab.db"), log_level="loud")
        with pytest.raises(ConfigurationError) as exc_info:
            validate_config_on_startup(settings)
        assert "LOG_LEVEL" in str(exc_info.value)


class TestMockDataSetting:
    def test_mock_data_disabled_by_default(self, monkeypatch):
        monkeypatch.delenv("ENABLE_MOCK_DATA", raising=False)
        assert Settings(_env_file=None).enable_mock_data is False

    def test_mock_data_read_from_environment(self, monkeypatch):
        monkeypatch.setenv("ENABLE_MOCK_DATA", "true")
        assert Settings(_env_file=None).enable_mock_data is True
