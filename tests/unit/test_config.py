"""
Unit Tests for Configuration
"""

import pytest
from pydantic import ValidationError

from studybuddy.config import Settings, get_settings


class TestSettings:
    """Test Settings defaults and environment loading."""

    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)

        config = Settings(_env_file=None)

        assert config.api_prefix == "/functions/v1"
        assert config.openai_api_key == ""
        assert config.openai_configured is False
        assert config.openai_realtime_open_timeout is None
        assert config.realtime_voice == "alloy"
        assert config.quiz_model == "gpt-4o-mini"

    def test_realtime_endpoint(self):
        config = Settings(_env_file=None)

        assert (
            config.realtime_endpoint
            == "wss://api.openai.com/v1/realtime?model=gpt-4o-realtime-preview-2024-10-01"
        )

    def test_api_key_from_env(self, monkeypatch):
        monkeypatch.setenv("OPENAI_API_KEY", "  sk-from-env  ")

        config = Settings(_env_file=None)

        assert config.openai_api_key == "sk-from-env"
        assert config.openai_configured is True

    def test_blank_api_key_not_configured(self, monkeypatch):
        monkeypatch.setenv("OPENAI_API_KEY", "   ")

        assert Settings(_env_file=None).openai_configured is False

    def test_open_timeout_from_env(self, monkeypatch):
        monkeypatch.setenv("OPENAI_REALTIME_OPEN_TIMEOUT", "7.5")

        assert Settings(_env_file=None).openai_realtime_open_timeout == 7.5

    def test_open_timeout_must_be_positive(self):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, openai_realtime_open_timeout=0)

    def test_temperature_bounds(self):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, realtime_temperature=2.0)

    def test_is_production(self):
        assert Settings(_env_file=None, app_env="production").is_production is True
        assert Settings(_env_file=None).is_production is False

    def test_get_settings_cached(self):
        assert get_settings() is get_settings()
