"""Application settings using Pydantic."""
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Database
    database_url: str = Field(
        default="sqlite:///jobtrackr.db",
        description="SQLAlchemy database URL",
    )

    # Gmail
    gmail_credentials_file: str = Field(
        default="credentials.json",
        description="Path to Gmail OAuth credentials file",
    )
    gmail_token_file: str = Field(
        default="token.json",
        description="Path to Gmail OAuth token file",
    )
    gmail_max_results: int = Field(
        default=500,
        ge=1,
        description="Maximum candidate messages fetched per sync",
    )
    gmail_fetch_timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        description="Timeout for fetching a single message",
    )
    gmail_fetch_concurrency: int = Field(
        default=1,
        ge=1,
        le=5,
        description="Parallel message fetches (keep low for Gmail rate limits)",
    )

    # Auto-sync
    sync_user_id: Optional[str] = Field(
        default=None,
        description="User whose mailbox the scheduler syncs",
    )
    auto_sync_default: bool = Field(
        default=True,
        description="Auto-sync toggle for a user with no stored preference",
    )
    auto_sync_interval_hours: int = Field(
        default=24,
        description="Minimum hours between automatic syncs",
    )
    sync_check_interval_minutes: int = Field(
        default=60,
        description="How often the scheduler checks whether a sync is due (minutes)",
    )

    # Logging
    log_level: str = Field(default="INFO", description="Root log level")
    app_log_level: Optional[str] = Field(
        default=None,
        description="Level for jobtrackr loggers (defaults to log_level)",
    )
    log_file: Optional[str] = Field(
        default="logs/jobtrackr.log",
        description="Rotating log file path (empty to disable)",
    )


# Global settings instance
settings = Settings()
