"""Tests for environment-driven settings."""

import pytest
from pydantic import ValidationError as ModelValidationError

from finance_engine.config import (
    EngineSettings,
    StorageSettings,
    get_settings,
    validate_all_settings,
)


class TestEngineSettings:
    """Tests for EngineSettings."""

    def test_defaults(self):
        """Test the documented defaults."""
        settings = EngineSettings()
        assert settings.decimal_precision == 34
        assert settings.money_places == 2
        assert settings.payoff_max_periods == 1000
        assert settings.budget_warning_percent == 80

    def test_environment_override(self, monkeypatch):
        """Test prefixed environment variables win over defaults."""
        monkeypatch.setenv("FINANCE_ENGINE_MONEY_PLACES", "4")
        monkeypatch.setenv("FINANCE_ENGINE_PAYOFF_MAX_PERIODS", "50")
        settings = EngineSettings()
        assert settings.money_places == 4
        assert settings.payoff_max_periods == 50

    def test_precision_floor(self, monkeypatch):
        """Test precision cannot drop below the decimal default."""
        monkeypatch.setenv("FINANCE_ENGINE_DECIMAL_PRECISION", "10")
        with pytest.raises(ModelValidationError):
            EngineSettings()


class TestStorageSettings:
    """Tests for StorageSettings."""

    def test_defaults(self):
        """Test the retry defaults."""
        settings = StorageSettings()
        assert settings.retry_attempts == 3
        assert settings.retry_wait_min == 2.0
        assert settings.retry_wait_max == 10.0

    def test_wait_window_must_be_ordered(self):
        """Test the back-off window cannot be inverted."""
        with pytest.raises(ModelValidationError, match="retry_wait_max"):
            StorageSettings(retry_wait_min=5, retry_wait_max=1)


class TestRootSettings:
    """Tests for the cached root container."""

    def test_cached(self):
        """Test get_settings returns one instance until cleared."""
        assert get_settings() is get_settings()

    def test_sections_read_environment(self, monkeypatch):
        """Test sub-settings are read when accessed."""
        monkeypatch.setenv("FINANCE_STORAGE_RETRY_ATTEMPTS", "5")
        assert get_settings().storage.retry_attempts == 5

    def test_sections_are_read_once(self, monkeypatch):
        """Test a section is reused until the settings cache is cleared."""
        settings = get_settings()
        assert settings.engine is settings.engine

        monkeypatch.setenv("FINANCE_ENGINE_MONEY_PLACES", "4")
        assert get_settings().engine.money_places == 2

        get_settings.cache_clear()
        assert get_settings().engine.money_places == 4

    def test_validate_all_settings(self):
        """Test every section validates with defaults."""
        assert validate_all_settings() == {"engine": True, "storage": True}

    def test_validate_all_settings_reports_errors(self, monkeypatch):
        """Test a broken section is reported, not raised."""
        monkeypatch.setenv("FINANCE_STORAGE_RETRY_ATTEMPTS", "0")
        results = validate_all_settings()
        assert results["engine"] is True
        assert results["storage"] is False
        assert "retry_attempts" in results["storage_error"]
