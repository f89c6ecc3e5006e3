"""Task lifecycle service: create, update, complete, archive, restore and list tasks."""

import logging
from datetime import date
from typing import Any

import pydantic
from pydantic import BaseModel, Field

from src.core import db_client
from src.core.config import settings
from src.core.db_client import sanitize_param, utc_now
from src.core.errors import TaskTrackerError, ValidationError
from src.core.logging import span
from src.domain.create_models import RecurringTaskCreate, TaskCreate
from src.domain.task import Cadence, Frequency, Task, TaskFilters
from src.domain.update_models import TaskUpdate
from src.modules.tasks import archive, recurrence
from src.modules.tasks.notifications import TaskNotification, build_notifications
from src.modules.tasks.numbering import next_task_number
from src.modules.tasks.status import STATUS_TRIGGER_FIELDS, derive_status, done_transition, toggle_done
from src.modules.tasks.storage import TASKS, guarded, list_all_tasks


logger = logging.getLogger(__name__)


SORTABLE_FIELDS = frozenset(
    {
        "task_no",
        "project",
        "task_description",
        "stage_gates",
        "task_type",
        "frequency",
        "priority",
        "assigned_to",
        "start_date",
        "due_date",
        "status",
        "percent_complete",
        "created_at",
        "updated_at",
        "completed_at",
        "archived_at",
    }
)


class RecurringFailure(BaseModel):
    """An occurrence that could not be created."""

    start_date: date
    error: str


class RecurringCreateResult(BaseModel):
    """Outcome of a recurring creation; failures do not stop the batch."""

    created: list[Task] = Field(default_factory=list)
    requested: int
    succeeded: int
    failed: list[RecurringFailure] = Field(default_factory=list)


def _today(today: date | None) -> date:
    return today or date.today()


def _validation_message(error: pydantic.ValidationError) -> str:
    parts = []
    for item in error.errors():
        location = ".".join(str(part) for part in item["loc"]) or "payload"
        parts.append(f"{location}: {item['msg']}")
    return "; ".join(parts)


def _parse(model: type[BaseModel], data: Any) -> Any:
    if isinstance(data, model):
        return data
    try:
        return model.model_validate(data)
    except pydantic.ValidationError as e:
        raise ValidationError(_validation_message(e)) from e


def build_sort(sort_by: str, sort_order: str) -> str:
    """Validate a sort request and turn it into a "-field" / "+field" sort string."""
    if sort_by not in SORTABLE_FIELDS:
        msg = f"Cannot sort by {sort_by}"
        raise ValidationError(msg)
    order = sort_order.lower()
    if order not in ("asc", "desc"):
        msg = f"Sort order must be asc or desc, got {sort_order}"
        raise ValidationError(msg)
    return f"{'-' if order == 'desc' else '+'}{sort_by}"


def _to_task(record: dict[str, Any]) -> Task:
    return Task.model_validate(record)


async def create_task(data: TaskCreate | dict[str, Any], *, today: date | None = None) -> Task:
    """Create a task with a freshly allocated number and a derived status.

    Args:
        data: Task fields; project, task_description, start_date and due_date are required
        today: Reference day for the initial status (defaults to the local date)

    Returns:
        The stored task, including its id and task_no

    Raises:
        ValidationError: A required field is missing or invalid
        TaskNumberAllocationError: No number could be allocated; nothing was created
        PersistenceError: The insert failed
    """
    with span("task_service.create_task"):
        payload: TaskCreate = _parse(TaskCreate, data)
        record = payload.model_dump(mode="json")
        explicit_status = record.pop("status")

        now = utc_now()
        if payload.done:
            record.update(done_transition(record, done=True, now=now, today=_today(today)))
        if explicit_status is not None or not payload.done:
            record["status"] = derive_status(record, _today(today), explicit_status)
        record["is_archived"] = False
        record["archived_at"] = None

        record["task_no"] = await next_task_number(payload.project)

        created = await guarded("create_task", db_client.create_record(collection=TASKS, data=record))
        task = _to_task(created)

        logger.info(
            "Created task %s-%s",
            task.project,
            task.task_no,
            extra={"task_id": task.id, "status": task.status},
        )
        return task


async def get_task(task_id: str) -> Task:
    """Fetch a task by id.

    Raises:
        NotFoundError: No task with this id
    """
    record = await guarded("get_task", db_client.get_record(collection=TASKS, record_id=task_id), task_id=task_id)
    return _to_task(record)


async def update_task(
    task_id: str,
    patch: TaskUpdate | dict[str, Any],
    *,
    today: date | None = None,
) -> Task:
    """Apply a partial update to a task.

    Status is re-derived only when start_date, due_date or done is part of
    the patch. An explicit status in the patch always wins. Changing done
    completes or reopens the task.

    Raises:
        ValidationError: The patch is empty or invalid
        NotFoundError: No task with this id
    """
    with span("task_service.update_task"):
        update: TaskUpdate = _parse(TaskUpdate, patch)
        changes = update.to_patch()
        if not changes:
            msg = "Update must change at least one field"
            raise ValidationError(msg)

        current = await get_task(task_id)
        current_data = current.model_dump(mode="json")
        explicit_status = changes.pop("status", None)
        merged = {**current_data, **changes}

        if "done" in changes and changes["done"] != current.done:
            transition = done_transition(
                current_data if changes["done"] else merged,
                done=changes["done"],
                now=utc_now(),
                today=_today(today),
                undone_policy=settings.undone_status_policy,
            )
            changes = {**transition, **changes}
        elif STATUS_TRIGGER_FIELDS & changes.keys():
            changes["status"] = derive_status(merged, _today(today))

        if explicit_status is not None:
            changes["status"] = explicit_status

        record = await guarded(
            "update_task",
            db_client.update_record(collection=TASKS, record_id=task_id, data=changes),
            task_id=task_id,
        )

        logger.info("Updated task %s", task_id, extra={"fields": sorted(changes)})
        return _to_task(record)


async def toggle_task_done(task_id: str, *, today: date | None = None) -> Task:
    """Flip a task between done and not done.

    Raises:
        NotFoundError: No task with this id
    """
    with span("task_service.toggle_task_done"):
        current = await get_task(task_id)
        changes = toggle_done(
            current.model_dump(mode="json"),
            now=utc_now(),
            today=_today(today),
            undone_policy=settings.undone_status_policy,
        )

        record = await guarded(
            "toggle_task_done",
            db_client.update_record(collection=TASKS, record_id=task_id, data=changes),
            task_id=task_id,
        )

        logger.info("Marked task %s %s", task_id, "done" if changes["done"] else "not done")
        return _to_task(record)


async def archive_task(task_id: str) -> Task:
    """Soft-delete an active task.

    Raises:
        NotFoundError: No active task with this id (it may already be archived)
    """
    return _to_task(await archive.archive(task_id=task_id))


async def restore_task(task_id: str) -> Task:
    """Move an archived task back to the active list.

    Raises:
        NotFoundError: No archived task with this id
    """
    return _to_task(await archive.restore(task_id=task_id))


async def permanently_delete_task(task_id: str) -> dict[str, int]:
    """Delete an archived task for good. Active tasks are left untouched."""
    deleted = await archive.permanently_delete(task_id=task_id)
    return {"deleted_count": deleted}


async def list_archived_tasks(sort_by: str = "archived_at", sort_order: str = "desc") -> list[Task]:
    """Archived tasks; every one has is_archived set and a non-null archived_at."""
    records = await archive.list_archived(sort=build_sort(sort_by, sort_order))
    return [_to_task(record) for record in records]


def _matches_search(task: Task, search: str) -> bool:
    needle = search.lower()
    haystacks = (task.task_description, task.assigned_to, task.notes or "")
    return any(needle in haystack.lower() for haystack in haystacks)


async def list_active_tasks(
    filters: TaskFilters | dict[str, Any] | None = None,
    sort_by: str = "due_date",
    sort_order: str = "asc",
) -> list[Task]:
    """Active (non-archived) tasks matching every given filter."""
    with span("task_service.list_active_tasks"):
        criteria: TaskFilters = _parse(TaskFilters, filters or {})
        sort = build_sort(sort_by, sort_order)

        conditions = [archive.ACTIVE_FILTER]
        conditions.extend(
            f'{field} = "{sanitize_param(value)}"' for field, value in criteria.equality_filters().items()
        )
        filter_query = " && ".join(conditions)

        records = await list_all_tasks(filter_query=filter_query, sort=sort)
        tasks = [_to_task(record) for record in records if not record.get("is_archived")]

        if criteria.search and criteria.search.strip():
            tasks = [task for task in tasks if _matches_search(task, criteria.search.strip())]

        logger.debug("Listed %d active tasks", len(tasks), extra={"filter_query": filter_query})
        return tasks


async def create_recurring_tasks(
    template: TaskCreate | dict[str, Any],
    cadence: Cadence | Frequency | str,
    range_start: date,
    range_end: date,
    *,
    today: date | None = None,
) -> RecurringCreateResult:
    """Expand a template over a date range and create every occurrence.

    Occurrences are created one at a time. A failed occurrence is recorded
    and the rest are still attempted.

    Raises:
        ValidationError: The template is invalid or the cadence does not recur
    """
    with span("task_service.create_recurring_tasks"):
        base: TaskCreate = _parse(TaskCreate, template)
        instances = recurrence.expand(base, cadence, range_start, range_end)

        result = RecurringCreateResult(requested=len(instances), succeeded=0)
        for instance in instances:
            try:
                task = await create_task(instance, today=today)
            except TaskTrackerError as e:
                logger.warning(
                    "recurring_occurrence_failed",
                    extra={"start_date": instance.start_date.isoformat(), "error": str(e)},
                )
                result.failed.append(RecurringFailure(start_date=instance.start_date, error=str(e)))
                continue
            result.created.append(task)
            result.succeeded += 1

        logger.info(
            "Created %d of %d recurring tasks",
            result.succeeded,
            result.requested,
            extra={"cadence": str(cadence), "project": base.project},
        )
        return result


async def create_recurring_from_request(request: RecurringTaskCreate | dict[str, Any]) -> RecurringCreateResult:
    """Recurring creation from a single request payload."""
    parsed: RecurringTaskCreate = _parse(RecurringTaskCreate, request)
    return await create_recurring_tasks(parsed.template, parsed.cadence, parsed.range_start, parsed.range_end)


async def refresh_statuses(*, today: date | None = None) -> list[Task]:
    """Re-derive the status of open tasks whose dates have moved them on.

    Only active tasks that are not done are touched, and only when the
    derived status differs from the stored one.

    Returns:
        The tasks whose status changed
    """
    with span("task_service.refresh_statuses"):
        day = _today(today)
        open_filter = f"{archive.ACTIVE_FILTER} && done = false"
        records = await list_all_tasks(filter_query=open_filter, sort="+due_date")

        changed: list[Task] = []
        for record in records:
            task = _to_task(record)
            status = derive_status(task.model_dump(mode="json"), day)
            if status == task.status:
                continue

            updated = await guarded(
                "refresh_status",
                db_client.update_record_if(
                    collection=TASKS,
                    record_id=task.id,
                    data={"status": status},
                    filter_query=open_filter,
                ),
                task_id=task.id,
            )
            # Archived or completed since it was listed
            if updated is None:
                continue
            changed.append(_to_task(updated))

        logger.info("Refreshed task statuses", extra={"checked": len(records), "changed": len(changed)})
        return changed


async def get_notifications(*, today: date | None = None) -> list[TaskNotification]:
    """Reminders for open tasks due today or later this week."""
    tasks = await list_active_tasks()
    return build_notifications(tasks, _today(today))


def preview_occurrences(
    cadence: Cadence | Frequency | str,
    range_start: date,
    range_end: date,
) -> int:
    """How many tasks a recurring creation over this range would produce."""
    return recurrence.occurrence_count(cadence, range_start, range_end)


__all__ = [
    "SORTABLE_FIELDS",
    "RecurringCreateResult",
    "RecurringFailure",
    "archive_task",
    "build_sort",
    "create_recurring_from_request",
    "create_recurring_tasks",
    "create_task",
    "get_notifications",
    "get_task",
    "list_active_tasks",
    "list_archived_tasks",
    "permanently_delete_task",
    "preview_occurrences",
    "refresh_statuses",
    "restore_task",
    "toggle_task_done",
    "update_task",
]
