"""Tests for environment-driven settings."""

from __future__ import annotations

from shiftvitals.core.config.settings import Settings, get_settings


class TestSettings:
    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("SV_HOST", raising=False)
        monkeypatch.delenv("SV_PORT", raising=False)
        settings = Settings(_env_file=None)
        assert settings.sv_host == "127.0.0.1"
        assert settings.sv_port == 8011
        assert settings.sv_allow_insecure_bind is False
        assert settings.lookback_days == 14
        assert settings.default_window_days == 14

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("SV_PORT", "9100")
        monkeypatch.setenv("LOOKBACK_DAYS", "30")
        monkeypatch.setenv("SNAPSHOT_PATH", "/tmp/state.json")
        settings = get_settings()
        assert settings.sv_port == 9100
        assert settings.lookback_days == 30
        assert settings.snapshot_path == "/tmp/state.json"
