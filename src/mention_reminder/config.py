"""Application configuration via pydantic-settings."""

from functools import lru_cache

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Slack
    slack_signing_secret: str = ""
    slack_client_id: str = ""
    slack_client_secret: str = ""
    oauth_redirect_url: str = ""
    secret_token_prefix: str = "slack_token_"

    # Store
    database_url: str = "sqlite+aiosqlite:///./mention_reminder.db"
    create_tables: bool = True

    # Google Cloud (Cloud Tasks, Secret Manager)
    gcp_project: str = ""
    region: str = ""
    tasks_queue_remind: str = "remind-queue"
    tasks_queue_escalate: str = "escalate-queue"
    tasks_audience: str = ""  # base URL of this service, also the OIDC audience
    tasks_service_account: str = ""

    # Scheduler callbacks
    scheduler_secret: str = ""

    # Reminder windows (seconds after the mention)
    remind_after_seconds: int = 600
    escalate_after_seconds: int = 1800
    check_timeout_seconds: float = 30.0

    # App
    environment: str = "development"
    log_level: str = "INFO"
    port: int = 8080

    @model_validator(mode="after")
    def _check_windows(self) -> "Settings":
        """Escalation must fire strictly after the reminder."""
        if self.remind_after_seconds <= 0:
            raise ValueError("remind_after_seconds must be positive")
        if self.escalate_after_seconds <= self.remind_after_seconds:
            raise ValueError(
                "escalate_after_seconds must be greater than remind_after_seconds"
            )
        return self


@lru_cache
def get_settings() -> Settings:
    """Return cached application settings. Lazy initialization to avoid import-time errors."""
    return Settings()
