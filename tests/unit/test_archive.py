"""Unit tests for archiving, restoring and permanently deleting tasks."""

import logging

import pytest

import src.modules.tasks.service as task_service
from src.core.errors import NotFoundError, ValidationError


@pytest.fixture
async def task(patched_db, task_payload):
    return await task_service.create_task(task_payload())


@pytest.mark.unit
class TestArchiveTask:
    """Tests for archive_task."""

    async def test_archive_sets_flag_and_timestamp(self, task):
        archived = await task_service.archive_task(task.id)

        assert archived.is_archived is True
        assert archived.archived_at is not None

    async def test_archived_task_leaves_active_list(self, task):
        await task_service.archive_task(task.id)

        assert await task_service.list_active_tasks() == []
        assert [t.id for t in await task_service.list_archived_tasks()] == [task.id]

    async def test_double_archive_rejected(self, task):
        archived = await task_service.archive_task(task.id)

        with pytest.raises(NotFoundError, match="not found among active tasks"):
            await task_service.archive_task(task.id)

        again = await task_service.get_task(task.id)
        assert again.archived_at == archived.archived_at

    async def test_archive_missing_task(self, patched_db):
        with pytest.raises(NotFoundError):
            await task_service.archive_task("9999")

    async def test_strict_policy_requires_done(self, task, strict_archive):
        with pytest.raises(ValidationError, match="mark the task as done"):
            await task_service.archive_task(task.id)

        await task_service.toggle_task_done(task.id)
        archived = await task_service.archive_task(task.id)
        assert archived.is_archived is True


@pytest.mark.unit
class TestRestoreTask:
    """Tests for restore_task."""

    async def test_round_trip_restores_original_fields(self, task):
        await task_service.archive_task(task.id)
        restored = await task_service.restore_task(task.id)

        assert restored.is_archived is False
        assert restored.archived_at is None
        unchanged = {"is_archived", "archived_at", "updated_at"}
        assert restored.model_dump(exclude=unchanged) == task.model_dump(exclude=unchanged)

    async def test_restore_active_task_rejected(self, task):
        with pytest.raises(NotFoundError, match="not found among archived tasks"):
            await task_service.restore_task(task.id)


@pytest.mark.unit
class TestPermanentlyDeleteTask:
    """Tests for permanently_delete_task."""

    async def test_deletes_archived_task(self, task):
        await task_service.archive_task(task.id)

        result = await task_service.permanently_delete_task(task.id)

        assert result == {"deleted_count": 1}
        with pytest.raises(NotFoundError):
            await task_service.get_task(task.id)

    async def test_active_task_is_left_alone(self, task):
        result = await task_service.permanently_delete_task(task.id)

        assert result == {"deleted_count": 0}
        assert (await task_service.get_task(task.id)).is_archived is False

    async def test_deleted_numbers_are_not_reused(self, task, task_payload):
        await task_service.archive_task(task.id)
        await task_service.permanently_delete_task(task.id)

        replacement = await task_service.create_task(task_payload())
        assert replacement.task_no == task.task_no + 1


@pytest.mark.unit
class TestListArchivedTasks:
    """Tests for list_archived_tasks."""

    async def test_corrupt_rows_are_filtered_and_logged(self, task, patched_db, monkeypatch, caplog):
        await task_service.archive_task(task.id)
        patched_db.seed(
            "tasks",
            {**task.model_dump(mode="json"), "id": "5000", "is_archived": True, "archived_at": None},
        )

        real_list = patched_db.list_records

        async def list_ignoring_filter(**kwargs):
            """A store that fails to apply the archived_at predicate."""
            kwargs["filter_query"] = "is_archived = true"
            return await real_list(**kwargs)

        monkeypatch.setattr("src.core.db_client.list_records", list_ignoring_filter)

        with caplog.at_level(logging.WARNING):
            archived = await task_service.list_archived_tasks()

        assert [t.id for t in archived] == [task.id]
        assert all(t.archived_at is not None for t in archived)
        assert "archived_query_integrity_violation" in caplog.text

    async def test_default_order_is_most_recent_first(self, patched_db, task_payload):
        first = await task_service.create_task(task_payload())
        second = await task_service.create_task(task_payload())
        await task_service.archive_task(first.id)
        await task_service.archive_task(second.id)

        archived = await task_service.list_archived_tasks()

        assert [t.id for t in archived] == [second.id, first.id]

    async def test_invalid_sort_field_rejected(self, patched_db):
        with pytest.raises(ValidationError):
            await task_service.list_archived_tasks(sort_by="password")
