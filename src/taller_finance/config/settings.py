"""Configuration settings for the workshop finance package."""

from functools import lru_cache
from typing import Literal
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class FlatSettings(BaseSettings):
    """Flat settings read from environment variables or a ``.env`` file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Backend (PostgREST-style API of the hosted database)
    supabase_url: str = Field(
        default="http://localhost:54321", validation_alias="SUPABASE_URL"
    )
    supabase_key: SecretStr = Field(..., validation_alias="SUPABASE_KEY")
    supabase_access_token: SecretStr | None = Field(
        default=None, validation_alias="SUPABASE_ACCESS_TOKEN"
    )
    supabase_timeout: float = Field(default=30.0, validation_alias="SUPABASE_TIMEOUT")
    supabase_max_retries: int = Field(default=3, validation_alias="SUPABASE_MAX_RETRIES")
    supabase_page_size: int = Field(default=1000, validation_alias="SUPABASE_PAGE_SIZE")

    # Workshop
    workshop_id: str | None = Field(default=None, validation_alias="TALLER_ID")
    timezone: str | None = Field(default=None, validation_alias="TALLER_TIMEZONE")

    # Reporting
    history_months: int = Field(default=6, validation_alias="HISTORY_MONTHS")

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO", validation_alias="LOG_LEVEL"
    )
    log_format: Literal["json", "console"] = Field(
        default="console", validation_alias="LOG_FORMAT"
    )

    @field_validator("timezone")
    @classmethod
    def _check_timezone(cls, value: str | None) -> str | None:
        if value:
            try:
                ZoneInfo(value)
            except (ZoneInfoNotFoundError, ValueError):
                raise ValueError(f"unknown timezone {value!r}") from None
        return value or None

    @field_validator("history_months", "supabase_page_size")
    @classmethod
    def _check_positive(cls, value: int) -> int:
        if value < 1:
            raise ValueError("must be at least 1")
        return value

    def tzinfo(self) -> ZoneInfo | None:
        """Return the configured workshop timezone, or None for system local time."""
        return ZoneInfo(self.timezone) if self.timezone else None


@lru_cache
def get_settings() -> FlatSettings:
    """Get cached settings instance."""
    return FlatSettings()
