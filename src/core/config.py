"""Configuration management for the task tracker."""

from typing import Literal

from pydantic import Field
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
    sqlite_db_path: str = Field(default="data/tasks.db", description="Path to the SQLite database file")
    persistence_timeout_seconds: float = Field(
        default=10.0, description="Upper bound on any single persistence call before it is treated as failed"
    )

    # Pydantic Logfire Configuration (optional)
    logfire_token: str | None = Field(default=None, description="Pydantic Logfire token for observability")
    environment: str = Field(default="development", description="Deployment environment name")

    # Task lifecycle policies
    task_number_strategy: Literal["atomic", "read_max"] = Field(
        default="atomic",
        description="atomic uses the sequences table; read_max is the degraded read-then-insert fallback",
    )
    archive_requires_done: bool = Field(
        default=False, description="Only allow archiving tasks that are marked done"
    )
    undone_status_policy: Literal["reset", "derive"] = Field(
        default="reset",
        description="Status applied when a task is marked not done: reset to Not Started, or derive from dates",
    )

    @property
    def is_production(self) -> bool:
        """Whether the app runs in production."""
        return self.environment.lower() == "production"


# Application Constants
class Constants:
    """Application-wide constants."""

    # Pagination
    DEFAULT_PER_PAGE_LIMIT: int = 500  # Page size used when draining list queries

    # Task numbering
    TASK_NUMBER_SEQUENCE_PREFIX: str = "task_no:"
    TASK_NUMBER_LABEL_WIDTH: int = 3  # PROJ-001

    # Notifications
    URGENT_DAYS_HIGH_PRIORITY: int = 2
    URGENT_DAYS_MEDIUM: int = 3


def get_settings() -> Settings:
    """Get application settings (singleton pattern)."""
    return Settings()


# Global settings instance
settings = get_settings()
constants = Constants()
