"""Tests for InMemoryDBClient implementation."""

import pytest

from src.core.db_client import DatabaseError, RecordNotFoundError


@pytest.mark.unit
class TestInMemoryDBClient:
    """Test suite for InMemoryDBClient."""

    async def test_create_record(self, in_memory_db):
        """Test creating a record."""
        record = await in_memory_db.create_record(collection="tasks", data={"project": "OPS"})

        assert record["id"] is not None
        assert record["project"] == "OPS"
        assert "created_at" in record
        assert "updated_at" in record

    async def test_get_missing_record(self, in_memory_db):
        """Test getting a record that doesn't exist raises RecordNotFoundError."""
        with pytest.raises(RecordNotFoundError):
            await in_memory_db.get_record(collection="tasks", record_id="nonexistent")

    async def test_conditional_update(self, in_memory_db):
        """Test update_record_if only writes when the filter matches."""
        record = await in_memory_db.create_record(collection="tasks", data={"is_archived": False})

        missed = await in_memory_db.update_record_if(
            collection="tasks", record_id=record["id"], data={"is_archived": True}, filter_query="is_archived = true"
        )
        hit = await in_memory_db.update_record_if(
            collection="tasks", record_id=record["id"], data={"is_archived": True}, filter_query="is_archived = false"
        )

        assert missed is None
        assert hit["is_archived"] is True

    async def test_null_filters(self, in_memory_db):
        """Test = null and != null filters."""
        await in_memory_db.create_record(collection="tasks", data={"archived_at": None})
        stamped = await in_memory_db.create_record(collection="tasks", data={"archived_at": "2024-01-01"})

        records = await in_memory_db.list_records(collection="tasks", filter_query="archived_at != null")

        assert [r["id"] for r in records] == [stamped["id"]]

    async def test_delete_records_requires_filter(self, in_memory_db):
        """Test delete_records refuses an empty filter."""
        with pytest.raises(ValueError, match="without a filter"):
            await in_memory_db.delete_records(collection="tasks", filter_query="")

    async def test_invalid_filter(self, in_memory_db):
        """Test unparseable filters raise DatabaseError."""
        await in_memory_db.create_record(collection="tasks", data={"project": "OPS"})

        with pytest.raises(DatabaseError):
            await in_memory_db.list_records(collection="tasks", filter_query="project OPS")

    async def test_sequence_respects_floor(self, in_memory_db):
        """Test increment_sequence never goes below the floor."""
        assert await in_memory_db.increment_sequence(name="task_no:OPS") == 1
        assert await in_memory_db.increment_sequence(name="task_no:OPS", floor=10) == 11
        assert await in_memory_db.increment_sequence(name="task_no:OPS") == 12
