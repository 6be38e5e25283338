"""Configuration models for remindr."""

from __future__ import annotations

import os
from typing import Literal

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from remindr.db.engine import DATABASE_URL_ENV


class SchedulerConfig(BaseModel):
    """Sweep sizing and cadence."""

    batch_size: int = Field(default=20, ge=1, le=500)
    interval_seconds: int = Field(default=300, ge=1, description="Timer cadence; informational for the external trigger.")


class UsageConfig(BaseModel):
    """Daily AI call caps."""

    user_daily_ai_cap: int = Field(default=1, ge=0)
    global_daily_ai_cap: int = Field(default=100, ge=0)


class LLMSettings(BaseModel):
    """LLM integration defaults."""

    model: str = Field(default="gpt-4.1-mini")
    timeout_seconds: float = Field(default=15.0, gt=0.0, le=120.0)
    max_output_tokens: int = Field(default=500, ge=1)
    temperature: float = Field(default=0.7, ge=0.0, le=2.0)
    mock_mode: bool = Field(default=False)
    mock_response: str = Field(default="This is a mock draft.")


class IntegrationsConfig(BaseModel):
    """External integrations configuration."""

    llm: LLMSettings = Field(default_factory=LLMSettings)


class StorageConfig(BaseModel):
    """Document store backend."""

    backend: Literal["sql", "memory"] = Field(default="sql")
    database_url: str | None = Field(default=None)

    def resolved_database_url(self) -> str | None:
        """Configured URL, else the ``REMINDR_DATABASE_URL`` environment variable."""
        if self.database_url and self.database_url.strip():
            return self.database_url.strip()
        return os.environ.get(DATABASE_URL_ENV, "").strip() or None


class RetentionConfig(BaseModel):
    """How long execution records are kept."""

    execution_ttl_days: int = Field(default=30, ge=1)


class LoggingConfig(BaseModel):
    """Root logger configuration used by the CLI."""

    level: str = Field(default="INFO")


class RemindrConfig(BaseSettings):
    """Root configuration model for remindr."""

    scheduler: SchedulerConfig = Field(default_factory=SchedulerConfig)
    usage: UsageConfig = Field(default_factory=UsageConfig)
    integrations: IntegrationsConfig = Field(default_factory=IntegrationsConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    retention: RetentionConfig = Field(default_factory=RetentionConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = SettingsConfigDict(
        env_prefix="REMINDR_",
        env_nested_delimiter="__",
        extra="ignore",
    )
