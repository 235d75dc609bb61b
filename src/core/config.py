"""Configuration management for choreweek."""

from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # SQLite Configuration
    sqlite_db_path: str = Field(default="data/choreweek.db", description="Path to the SQLite database file")

    # Pydantic Logfire Configuration (optional)
    logfire_token: str | None = Field(default=None, description="Pydantic Logfire token for observability")
    environment: str = Field(default="development", description="Deployment environment name")

    # Household Configuration
    household_timezone: str = Field(
        default="UTC", description="IANA timezone used to place scheduled task times on the clock"
    )

    # Notification Configuration
    enable_notifications: bool = Field(default=True, description="Enable/disable schedule change notifications")
    notification_webhook_url: str | None = Field(
        default=None, description="Endpoint receiving schedule notification events (optional)"
    )
    notification_webhook_token: str | None = Field(
        default=None, description="Bearer token sent to the notification endpoint (optional)"
    )
    notification_timeout_seconds: float = Field(
        default=5.0, description="Upper bound for a single notification delivery attempt"
    )

    @field_validator("household_timezone")
    @classmethod
    def validate_household_timezone(cls, v: str) -> str:
        """Require a timezone name the zoneinfo database knows."""
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError) as e:
            msg = f"Unknown timezone: {v}"
            raise ValueError(msg) from e
        return v

    @property
    def is_production(self) -> bool:
        """Whether the app runs in production."""
        return self.environment.lower() == "production"


# Application Constants
class Constants:
    """Application-wide constants."""

    # API Configuration
    API_TIMEOUT_SECONDS: int = 30

    # Calendar
    DAYS_PER_WEEK: int = 7
    MAX_TASK_DURATION_MINUTES: int = 1440  # One full day

    # Pagination Defaults
    DEFAULT_PER_PAGE_LIMIT: int = 500  # Page size of paged reads


def get_settings() -> Settings:
    """Get application settings (singleton pattern)."""
    return Settings()


# Global settings instance
settings = get_settings()
constants = Constants()
