"""Tests for application settings."""

from kidneycalc.core.config import Settings


class TestSettings:
    """Test settings defaults and environment overrides."""

    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("DISPLAY_PRECISION", raising=False)
        monkeypatch.delenv("API_V1_PREFIX", raising=False)
        config = Settings(_env_file=None)
        assert config.app_name == "KidneyCalc"
        assert config.api_v1_prefix == "/api/v1"
        assert config.display_precision == 2
        assert config.debug is False

    def test_environment_override(self, monkeypatch):
        monkeypatch.setenv("DISPLAY_PRECISION", "3")
        monkeypatch.setenv("log_level", "DEBUG")
        config = Settings(_env_file=None)
        assert config.display_precision == 3
        assert config.log_level == "DEBUG"

    def test_cors_origins_from_json(self, monkeypatch):
        monkeypatch.setenv("CORS_ORIGINS", '["https://kidneycalc.example"]')
        config = Settings(_env_file=None)
        assert config.cors_origins == ["https://kidneycalc.example"]
