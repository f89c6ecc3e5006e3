"""Pytest configuration and fixtures for integration tests."""

import pytest

import src.modules.tasks.service as task_service


@pytest.fixture
def create_task(sqlite_db, task_payload):
    """Create a task in the real database.

    Usage:
        task = await create_task(project="FIN")
    """

    async def _create(**overrides):
        return await task_service.create_task(task_payload(**overrides))

    return _create
