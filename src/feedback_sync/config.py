"""Configuration settings for Feedback Sync."""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from feedback_sync.schemas.enums import SubscriptionTier


class HttpConfig(BaseModel):
    """Configuration for outbound provider HTTP calls.

    Every provider client shares these bounds so a slow third party
    cannot hold a push request or a bulk loop indefinitely.
    """

    timeout_seconds: float = Field(
        default=15.0,
        ge=1.0,
        le=60.0,
        description="Timeout applied to every provider round-trip",
    )
    user_agent: str = Field(
        default="feedback-sync-engine",
        description="User-Agent header sent to providers",
    )


class SyncConfig(BaseModel):
    """Configuration for push and fan-out behavior."""

    source_name: str = Field(
        default="Feedback Kit",
        description="Product name used in work item footers",
    )

    bulk_concurrency: int = Field(
        default=1,
        ge=1,
        le=8,
        description="Concurrent provider calls during bulk push (1 = sequential)",
    )

    comment_notification_tier: SubscriptionTier = Field(
        default=SubscriptionTier.PRO,
        description="Minimum member tier that receives comment emails",
    )

    record_failures: bool = Field(
        default=True,
        description="Persist swallowed fan-out failures to the sync_failures table",
    )


class LoggingConfig(BaseModel):
    """Optional rotating log file, set via ``LOGGING__FILE`` and friends.

    The console sink is always on; its level comes from ``log_level`` and
    the ``--verbose``/``--quiet`` flags.
    """

    file: Path | None = Field(
        default=None,
        description="Write a DEBUG-level log here in addition to stderr",
    )
    rotation: str = Field(
        default="10 MB",
        description="loguru rotation rule, a size ('10 MB') or an interval ('1 day')",
    )
    retention: str = Field(
        default="7 days",
        description="loguru retention rule for rotated files",
    )
    json_lines: bool = Field(
        default=False,
        description="Write the log file as one JSON record per line",
    )


class Settings(BaseSettings):
    """Process-wide settings read from the environment and an optional .env file.

    Per-project provider credentials live in the integration_configs table,
    not here; only app-level keys shared by every project are settings.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    # --------------------------------------------------------------------------
    # Database
    # --------------------------------------------------------------------------
    database_url: str = Field(
        default="sqlite+aiosqlite:///./feedback_sync.db",
        description="Async SQLAlchemy database connection string",
    )

    # --------------------------------------------------------------------------
    # Provider app credentials
    # --------------------------------------------------------------------------
    trello_api_key: str = Field(
        default="",
        description="Trello application key (paired with each project's user token)",
    )

    # --------------------------------------------------------------------------
    # Email
    # --------------------------------------------------------------------------
    resend_api_key: str = Field(
        default="",
        description="Resend API key; email notifications are skipped when empty",
    )
    email_from: str = Field(
        default="Feedback Kit <noreply@example.com>",
        description="Sender address for notification emails",
    )

    # --------------------------------------------------------------------------
    # Application
    # --------------------------------------------------------------------------
    environment: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Application environment",
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level",
    )

    # --------------------------------------------------------------------------
    # Nested configuration
    # --------------------------------------------------------------------------
    http: HttpConfig = Field(
        default_factory=HttpConfig,
        description="Provider HTTP configuration",
    )
    sync: SyncConfig = Field(
        default_factory=SyncConfig,
        description="Push and fan-out configuration",
    )
    logging: LoggingConfig = Field(
        default_factory=LoggingConfig,
        description="Optional log file",
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
