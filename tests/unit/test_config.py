"""Tests for application configuration."""

import pytest

from src.config import Environment, Settings, get_settings, validate_startup_config
from src.constants import DEFAULT_SUBSCRIBER_QUEUE_SIZE


class TestEnvironmentEnum:
    def test_values(self):
        assert Environment.DEVELOPMENT.value == "development"
        assert Environment.TESTING.value == "testing"
        assert Environment.DEMO.value == "demo"
        assert Environment.PRODUCTION.value == "production"


class TestSettingsDefaults:
    def test_default_service_name(self):
        assert Settings().service_name == "drone-mission-control"

    def test_default_environment(self):
        assert Settings().environment == Environment.DEVELOPMENT

    def test_default_table_name(self):
        assert Settings().table_name == "drone-mission-control-development"

    def test_default_log_level(self):
        assert Settings().log_level == "INFO"

    def test_default_windows(self):
        settings = Settings()
        assert settings.upcoming_window_hours == 24
        assert settings.stats_window_hours == 24

    def test_default_telemetry_limits(self):
        settings = Settings()
        assert settings.telemetry_retention_days == 30
        assert settings.telemetry_history_limit == 100
        assert settings.subscriber_queue_size == DEFAULT_SUBSCRIBER_QUEUE_SIZE

    def test_iot_forwarding_disabled_by_default(self):
        settings = Settings()
        assert settings.enable_iot_forwarding is False
        assert settings.iot_endpoint == ""


class TestSettingsFromEnvironment:
    def test_custom_environment(self, monkeypatch):
        monkeypatch.setenv("ENVIRONMENT", "production")
        assert Settings().environment == Environment.PRODUCTION

    def test_custom_log_level(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "debug")
        assert Settings().log_level == "DEBUG"

    def test_custom_retention(self, monkeypatch):
        monkeypatch.setenv("TELEMETRY_RETENTION_DAYS", "7")
        assert Settings().telemetry_retention_days == 7

    def test_enable_iot_forwarding(self, monkeypatch):
        monkeypatch.setenv("ENABLE_IOT_FORWARDING", "true")
        monkeypatch.setenv("IOT_ENDPOINT", "abc-ats.iot.us-east-1.amazonaws.com")
        settings = Settings()
        assert settings.enable_iot_forwarding is True
        assert settings.iot_endpoint == "abc-ats.iot.us-east-1.amazonaws.com"

    def test_custom_subscriber_queue_size(self, monkeypatch):
        monkeypatch.setenv("SUBSCRIBER_QUEUE_SIZE", "50")
        assert Settings().subscriber_queue_size == 50


class TestSettingsValidation:
    def test_invalid_log_level_raises(self):
        with pytest.raises(ValueError, match="log_level must be one of"):
            Settings(log_level="INVALID")

    def test_log_level_case_insensitive(self):
        assert Settings(log_level="warning").log_level == "WARNING"

    def test_retention_minimum(self):
        with pytest.raises(ValueError):
            Settings(telemetry_retention_days=0)

    def test_upcoming_window_minimum(self):
        with pytest.raises(ValueError):
            Settings(upcoming_window_hours=0)

    def test_history_limit_maximum(self):
        with pytest.raises(ValueError):
            Settings(telemetry_history_limit=1001)

    def test_subscriber_queue_size_minimum(self):
        with pytest.raises(ValueError):
            Settings(subscriber_queue_size=0)


class TestSettingsProperties:
    def test_is_production(self):
        assert Settings(environment=Environment.PRODUCTION).is_production is True
        assert Settings(environment=Environment.DEVELOPMENT).is_production is False

    def test_is_development(self):
        assert Settings().is_development is True
        assert Settings(environment=Environment.PRODUCTION).is_development is False


class TestGetSettings:
    def test_cached_returns_same_instance(self):
        first = get_settings()
        assert isinstance(first, Settings)
        assert get_settings() is first


class TestValidateStartupConfig:
    def test_returns_settings(self):
        assert isinstance(validate_startup_config(), Settings)
