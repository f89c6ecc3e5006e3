"""Pytest configuration and fixtures for unit tests."""

import pytest

from src.core.config import settings
from tests.unit.mocks import InMemoryDBClient


@pytest.fixture
def in_memory_db():
    """Provides a fresh InMemoryDBClient for each test."""
    return InMemoryDBClient()


@pytest.fixture
def patched_db(monkeypatch, in_memory_db):
    """Patches src.core.db_client functions to use InMemoryDBClient."""
    monkeypatch.setattr("src.core.db_client.create_record", in_memory_db.create_record)
    monkeypatch.setattr("src.core.db_client.get_record", in_memory_db.get_record)
    monkeypatch.setattr("src.core.db_client.update_record", in_memory_db.update_record)
    monkeypatch.setattr("src.core.db_client.update_record_if", in_memory_db.update_record_if)
    monkeypatch.setattr("src.core.db_client.delete_record", in_memory_db.delete_record)
    monkeypatch.setattr("src.core.db_client.delete_records", in_memory_db.delete_records)
    monkeypatch.setattr("src.core.db_client.list_records", in_memory_db.list_records)
    monkeypatch.setattr("src.core.db_client.get_first_record", in_memory_db.get_first_record)
    monkeypatch.setattr("src.core.db_client.get_max_value", in_memory_db.get_max_value)
    monkeypatch.setattr("src.core.db_client.increment_sequence", in_memory_db.increment_sequence)

    return in_memory_db


@pytest.fixture
def strict_archive(monkeypatch):
    """Only completed tasks may be archived."""
    monkeypatch.setattr(settings, "archive_requires_done", True)


@pytest.fixture
def read_max_numbering(monkeypatch):
    """Use the degraded read-then-insert task number strategy."""
    monkeypatch.setattr(settings, "task_number_strategy", "read_max")
