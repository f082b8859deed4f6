"""Application Configuration - environment-driven settings via pydantic-settings.

Invariants:
    - All secrets come from environment variables (never hardcoded)
    - get_settings() is cached (lru_cache) - single instance per process
    - facility_timezone is a valid pytz zone name

Design Decisions:
    - pydantic-settings over raw os.environ: validation, type coercion, .env file support
    - Defaults provided for all non-secret settings: works out-of-the-box with docker-compose
"""

from functools import lru_cache
from typing import Literal

import pytz
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # Database
    database_url: str = (
        "postgresql+asyncpg://nfcdesk:nfcdesk@db:5432/nfcdesk"
    )

    @field_validator("database_url", mode="before")
    @classmethod
    def convert_postgres_url(cls, v: str) -> str:
        """Hosting providers hand out postgresql:// but asyncpg needs postgresql+asyncpg://."""
        if isinstance(v, str) and v.startswith("postgresql://"):
            return v.replace("postgresql://", "postgresql+asyncpg://", 1)
        return v

    database_pool_size: int = 20
    database_max_overflow: int = 10

    # "migrate" runs alembic upgrade head, "create_all" uses ORM metadata (tests, demos)
    schema_strategy: Literal["migrate", "create_all", "none"] = "migrate"

    # Facility
    facility_timezone: str = "America/Argentina/Buenos_Aires"

    @field_validator("facility_timezone")
    @classmethod
    def check_timezone(cls, v: str) -> str:
        if v not in pytz.all_timezones_set:
            raise ValueError(f"unknown timezone: {v}")
        return v

    # Taps
    operation_timeout_seconds: float = 5.0

    # Appointments
    checkin_grace_minutes: int = 30
    checkin_completion_hours: int = 2
    sweep_interval_hours: int = 2

    # Reminders
    reminder_interval_minutes: int = 30
    loan_reminder_days: list[int] = [3, 1]
    appointment_reminder_lead_minutes: int = 15

    scheduler_enabled: bool = True

    # API
    cors_origins: list[str] = ["http://localhost:5173"]

    # Observability
    log_level: str = "INFO"
    log_format: str = "json"


@lru_cache
def get_settings() -> Settings:
    return Settings()
