"""Tests for settings loading and reminder window validation."""

import pytest
from pydantic import ValidationError

from mention_reminder.config import Settings, get_settings


def test_defaults():
    settings = Settings(_env_file=None)
    assert settings.remind_after_seconds == 600
    assert settings.escalate_after_seconds == 1800
    assert settings.secret_token_prefix == "slack_token_"
    assert settings.tasks_queue_remind == "remind-queue"
    assert settings.tasks_queue_escalate == "escalate-queue"


def test_reads_environment(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("REMIND_AFTER_SECONDS", "60")
    monkeypatch.setenv("ESCALATE_AFTER_SECONDS", "120")
    monkeypatch.setenv("SCHEDULER_SECRET", "s3cret")

    settings = Settings(_env_file=None)

    assert settings.remind_after_seconds == 60
    assert settings.escalate_after_seconds == 120
    assert settings.scheduler_secret == "s3cret"


def test_escalate_must_follow_remind():
    """Equal windows would fire the escalation together with the reminder."""
    with pytest.raises(ValidationError, match="escalate_after_seconds"):
        Settings(_env_file=None, remind_after_seconds=600, escalate_after_seconds=600)


def test_remind_window_must_be_positive():
    with pytest.raises(ValidationError, match="remind_after_seconds"):
        Settings(_env_file=None, remind_after_seconds=0, escalate_after_seconds=10)


def test_get_settings_is_cached():
    assert get_settings() is get_settings()
