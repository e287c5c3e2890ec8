"""Application settings loaded from environment variables."""

from __future__ import annotations

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """ShiftVitals server configuration."""

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    # Server
    # Default to loopback; the server has no auth layer in front of health data.
    sv_host: str = "127.0.0.1"
    sv_port: int = 8011
    sv_log_level: str = "info"
    # Binding to a non-loopback host is refused unless this is set true.
    sv_allow_insecure_bind: bool = False

    # Snapshot source: exported host state (.json / .yaml). Empty uses demo data.
    snapshot_path: str = ""

    # Engine
    lookback_days: int = 14
    default_window_days: int = 14


def get_settings() -> Settings:
    """Create and return a Settings instance."""
    return Settings()
