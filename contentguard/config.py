"""Runtime settings for the moderation service.

Values come from the environment (prefix ``CONTENTGUARD_``) or a ``.env``
file.  The Anthropic key uses the SDK's standard ``ANTHROPIC_API_KEY``
variable so the external classifier is enabled without extra wiring.
"""

from __future__ import annotations

from functools import lru_cache

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_NEWS_FEED_URL = "https://saurav.tech/NewsAPI/top-headlines/category/technology/us.json"


class Settings(BaseSettings):
    """Typed settings model loaded from env / .env."""

    model_config = SettingsConfigDict(
        env_prefix="CONTENTGUARD_",
        env_file=".env",
        extra="ignore",
        populate_by_name=True,
    )

    ENV: str = Field(default="dev", description="Deployment environment, e.g. dev/staging/prod")
    LOG_LEVEL: str = Field(default="INFO", description="Root log level")

    # Storage
    DATA_DIR: str = Field(
        default="",
        description="Directory for the JSON file store; empty keeps records in memory",
    )
    RULES_FILE: str = Field(default="", description="Optional YAML file with seed rules")

    # Classifier
    ANTHROPIC_API_KEY: str = Field(
        default="",
        validation_alias=AliasChoices("ANTHROPIC_API_KEY", "CONTENTGUARD_ANTHROPIC_API_KEY"),
        description="Enables the external classifier when set",
    )
    CLASSIFIER_MODEL: str = Field(default="claude-sonnet-4-5-20250929")
    CLASSIFIER_TIMEOUT: float = Field(default=20.0, gt=0, description="Seconds per external call")
    HONOR_FLAGGED_HINT: bool = Field(
        default=False,
        description="Flag content for review when no active rule exists but the classifier flagged it",
    )

    # Message bus
    BUS_HANDLER_TIMEOUT: float = Field(default=60.0, gt=0)
    BUS_HISTORY_LIMIT: int = Field(default=1000, ge=0)
    UNDELIVERED_LIMIT: int = Field(default=1000, ge=1, description="Content ids kept for publish retry")

    # Notification fan-out
    HEARTBEAT_INTERVAL: float = Field(default=30.0, gt=0)
    HEARTBEAT_MAX_MISSED: int = Field(default=1, ge=1)
    CONNECTION_QUEUE_SIZE: int = Field(default=100, ge=1)
    PENDING_PAGE_SIZE: int = Field(default=5, ge=1)

    # News ingestion
    NEWS_FEED_URL: str = Field(default=DEFAULT_NEWS_FEED_URL)
    NEWS_DELAY: float = Field(default=1.0, ge=0, description="Pause between ingested articles")
    NEWS_SETTLE_TIMEOUT: float = Field(
        default=30.0, gt=0, description="Longest wait for queued articles before the stats push"
    )


@lru_cache()
def get_settings() -> Settings:
    """Return a cached singleton `Settings` instance."""
    return Settings()
