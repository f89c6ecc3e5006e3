"""Tests for configuration loading and validation."""

import pytest
from pydantic import ValidationError

from src.core.config import Settings


def test_defaults(monkeypatch) -> None:
    """Defaults keep the permissive archive policy and the atomic counter."""
    for key in ("TASK_NUMBER_STRATEGY", "ARCHIVE_REQUIRES_DONE", "UNDONE_STATUS_POLICY", "ENVIRONMENT"):
        monkeypatch.delenv(key, raising=False)

    settings = Settings(_env_file=None)

    assert settings.task_number_strategy == "atomic"
    assert settings.archive_requires_done is False
    assert settings.undone_status_policy == "reset"
    assert settings.persistence_timeout_seconds == 10.0
    assert settings.is_production is False


def test_environment_variables_override(monkeypatch) -> None:
    """Settings are read from the environment, case-insensitively."""
    monkeypatch.setenv("archive_requires_done", "true")
    monkeypatch.setenv("TASK_NUMBER_STRATEGY", "read_max")
    monkeypatch.setenv("ENVIRONMENT", "Production")

    settings = Settings(_env_file=None)

    assert settings.archive_requires_done is True
    assert settings.task_number_strategy == "read_max"
    assert settings.is_production is True


def test_unknown_strategy_rejected() -> None:
    """Only the supported numbering strategies are accepted."""
    with pytest.raises(ValidationError):
        Settings(_env_file=None, task_number_strategy="random")


def test_unknown_undone_policy_rejected() -> None:
    """Only reset and derive are valid undone policies."""
    with pytest.raises(ValidationError):
        Settings(_env_file=None, undone_status_policy="keep")
