"""Archive state machine: Active <-> Archived, and permanent deletion of archived tasks.

Every transition is a single conditional write on is_archived, so a task
that is not in the required state is reported as not found rather than
modified.
"""

import logging
from collections.abc import Iterable
from typing import Any

from src.core import db_client
from src.core.config import settings
from src.core.db_client import sanitize_param, utc_now
from src.core.errors import NotFoundError, ValidationError
from src.core.logging import log_with_task_context, span
from src.modules.tasks.storage import TASKS, guarded, list_all_tasks


logger = logging.getLogger(__name__)


ACTIVE_FILTER = "is_archived = false"
ARCHIVED_FILTER = "is_archived = true"


def _active_precondition() -> str:
    if settings.archive_requires_done:
        return f"{ACTIVE_FILTER} && done = true"
    return ACTIVE_FILTER


def is_authoritative_archived(record: dict[str, Any]) -> bool:
    """True if a row really is archived: the flag is set and it has an archive timestamp."""
    if record.get("is_archived") not in (True, 1):
        return False
    if not record.get("archived_at"):
        return False
    return not (settings.archive_requires_done and record.get("done") not in (True, 1))


def drop_integrity_violations(records: Iterable[dict[str, Any]]) -> list[dict[str, Any]]:
    """Keep only authoritative archived rows; log the rest as data-integrity violations."""
    kept = []
    for record in records:
        if is_authoritative_archived(record):
            kept.append(record)
            continue
        log_with_task_context(
            logger,
            "warning",
            "archived_query_integrity_violation",
            task_id=record.get("id"),
            is_archived=record.get("is_archived"),
            archived_at=record.get("archived_at"),
        )
    return kept


async def archive(*, task_id: str) -> dict[str, Any]:
    """Move an active task to the archive (soft delete).

    Raises:
        NotFoundError: No active task with this id (missing or already archived)
        ValidationError: Completion is required before archiving and the task is not done
    """
    with span("task_archive.archive"):
        record = await guarded(
            "archive_task",
            db_client.update_record_if(
                collection=TASKS,
                record_id=task_id,
                data={"is_archived": True, "archived_at": utc_now()},
                filter_query=_active_precondition(),
            ),
            task_id=task_id,
        )

        if record is None:
            if settings.archive_requires_done:
                await _raise_if_not_done(task_id)
            msg = f"Task {task_id} not found among active tasks"
            raise NotFoundError(msg, task_id=task_id)

        logger.info("Archived task %s", task_id)
        return record


async def _raise_if_not_done(task_id: str) -> None:
    try:
        existing = await guarded("get_task", db_client.get_record(collection=TASKS, record_id=task_id), task_id=task_id)
    except NotFoundError:
        return
    if not existing.get("is_archived") and not existing.get("done"):
        msg = "Only completed tasks can be archived. Please mark the task as done first."
        raise ValidationError(msg)


async def restore(*, task_id: str) -> dict[str, Any]:
    """Bring an archived task back to the active list.

    Raises:
        NotFoundError: No archived task with this id
    """
    with span("task_archive.restore"):
        record = await guarded(
            "restore_task",
            db_client.update_record_if(
                collection=TASKS,
                record_id=task_id,
                data={"is_archived": False, "archived_at": None},
                filter_query=ARCHIVED_FILTER,
            ),
            task_id=task_id,
        )

        if record is None:
            msg = f"Task {task_id} not found among archived tasks"
            raise NotFoundError(msg, task_id=task_id)

        logger.info("Restored task %s", task_id)
        return record


async def permanently_delete(*, task_id: str) -> int:
    """Physically remove an archived task. Active tasks are never deleted.

    Returns:
        Number of rows deleted (0 when the task is active or missing)
    """
    with span("task_archive.permanently_delete"):
        deleted = await guarded(
            "permanently_delete_task",
            db_client.delete_records(
                collection=TASKS,
                filter_query=f'id = "{sanitize_param(task_id)}" && {ARCHIVED_FILTER}',
            ),
            task_id=task_id,
        )

        if deleted:
            logger.info("Permanently deleted task %s", task_id)
        else:
            logger.info("Permanent delete matched no archived task", extra={"task_id": task_id})
        return deleted


async def list_archived(*, sort: str = "-archived_at") -> list[dict[str, Any]]:
    """Archived tasks, guaranteed to have is_archived set and a non-null archived_at."""
    with span("task_archive.list_archived"):
        filter_query = f"{ARCHIVED_FILTER} && archived_at != null"
        if settings.archive_requires_done:
            filter_query = f"{filter_query} && done = true"

        records = await list_all_tasks(filter_query=filter_query, sort=sort)
        return drop_integrity_violations(records)
