"""Application settings loaded from environment variables."""

import os
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _env_file() -> str | None:
    if os.getenv("PYTEST_CURRENT_TEST"):
        return None
    return ".env"


class Settings(BaseSettings):
    """taskpulse configuration. All values come from environment variables."""

    # Scheduler
    scheduler_timezone: str = Field(default="Europe/Skopje")
    rollover_hour: int = Field(default=14, ge=0, le=23)
    rollover_minute: int = Field(default=0, ge=0, le=59)
    deadline_check_interval_minutes: int = Field(default=1, gt=0)
    rollover_check_interval_minutes: int = Field(default=5, gt=0)
    heartbeat_enabled: bool = Field(default=False)
    heartbeat_interval_minutes: int = Field(default=5, gt=0)

    # Database
    database_path: Path = Field(default=Path("data/taskpulse.db"))

    # Turso (hosted libSQL) — when set, overrides local database_path
    turso_database_url: str = Field(default="")
    turso_auth_token: str = Field(default="")

    # Push notifications
    push_transport: str = Field(default="fcm")
    fcm_project_id: str = Field(default="")
    fcm_credentials_path: str = Field(default="credentials.json")
    fcm_timeout_seconds: float = Field(default=10.0)

    # Logging
    log_level: str = Field(default="INFO")

    model_config = SettingsConfigDict(env_file=_env_file(), env_file_encoding="utf-8")

    @field_validator("scheduler_timezone")
    @classmethod
    def _known_timezone(cls, v: str) -> str:
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            msg = f"Unknown IANA timezone: {v!r}"
            raise ValueError(msg) from exc
        return v

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        if os.getenv("PYTEST_CURRENT_TEST"):
            return (init_settings,)
        return (init_settings, env_settings, dotenv_settings, file_secret_settings)

    def get_rollover_time(self) -> tuple[int, int]:
        """Return the daily rollover target as ``(hour, minute)``."""
        return self.rollover_hour, self.rollover_minute


settings = Settings()
