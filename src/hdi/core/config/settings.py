"""Application settings loaded from environment variables."""

from __future__ import annotations

from typing import Literal

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Headache Diary Insights server configuration."""

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    # Server
    # Default to loopback so a personal health diary is never exposed to the LAN/WAN
    # by accident. Opt into `0.0.0.0` explicitly when you intend remote access.
    hdi_host: str = "127.0.0.1"
    hdi_port: int = 8001
    hdi_log_level: str = "info"
    # Additional explicit guard: if binding to non-loopback, refuse to start unless
    # this is set true (there is currently no auth layer).
    hdi_allow_insecure_bind: bool = False

    # Analysis
    forecast_horizon_days: int = 7
    confidence_threshold: float = 0.7
    # Most recent N events handed to an analysis pass.
    event_history_limit: int = 500
    observation_window_days: int = 180
    ensemble_confidence_mode: Literal["model_weight", "confidence_weight"] = "model_weight"
    # Empty means the bundled catalog under domains/headache/catalog.
    catalog_path: str = ""


def get_settings() -> Settings:
    """Create and return a Settings instance."""
    return Settings()
