"""Application settings via environment variables."""

from __future__ import annotations

from datetime import date

from pydantic_settings import BaseSettings, SettingsConfigDict

__all__ = ["Settings"]


class Settings(BaseSettings):
    """Central configuration, read from CLINICDASH_* environment variables."""

    model_config = SettingsConfigDict(env_prefix="CLINICDASH_")

    # Target environment
    environment: str = "dev"

    # PostgreSQL (empty → in-memory store)
    pg_dsn: str = ""

    # Logging
    log_level: str = "INFO"
    log_json: bool = True

    # Seed demo doctors into the in-memory store at startup
    seed_demo: bool = False

    # All-time charts start here; unset → September of the previous year
    all_time_start: date | None = None

    # Presentation
    carousel_interval_seconds: int = 3
    dashboard_refresh_seconds: int = 30
    default_weekly_target: int = 40
    performance_target: int = 30
