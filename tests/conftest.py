"""Pytest configuration and shared fixtures."""

from collections.abc import AsyncIterator, Generator
from pathlib import Path
from typing import Any

import pytest
from fastapi.testclient import TestClient

from src.core import db_client
from src.core.config import settings


def make_task_payload(**overrides: Any) -> dict[str, Any]:
    """Minimal valid create payload; any field can be overridden."""
    payload: dict[str, Any] = {
        "project": "OPS",
        "task_description": "Reconcile vendor invoices",
        "start_date": "2024-01-08",
        "due_date": "2024-01-12",
        "priority": "Medium",
        "frequency": "Weekly",
        "assigned_to": "Dana",
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def task_payload():
    """Factory for create payloads.

    Usage:
        payload = task_payload(project="FIN", due_date="2024-02-01")
    """
    return make_task_payload


@pytest.fixture
def db_path(tmp_path: Path, monkeypatch) -> str:
    """Point the application at a throwaway SQLite file."""
    path = str(tmp_path / "tasks.db")
    monkeypatch.setattr(settings, "sqlite_db_path", path)
    return path


@pytest.fixture
async def sqlite_db(db_path: str) -> AsyncIterator[str]:
    """Initialized SQLite database; the connection is closed after the test."""
    await db_client.init_db()
    yield db_path
    await db_client.close_connection()


@pytest.fixture
def test_client(db_path: str) -> Generator[TestClient]:
    """FastAPI test client running the app lifespan against a fresh database."""
    from src.main import app

    with TestClient(app) as client:
        yield client
