"""REST endpoints for active tasks."""

import logging
from datetime import date
from typing import Any

from fastapi import APIRouter, Body, Query, status
from fastapi.responses import JSONResponse

from src.domain.options import FIELD_CONFIGS
from src.domain.task import Cadence, Frequency, Priority, TaskFilters, TaskStatus
from src.modules.tasks import service


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/tasks", tags=["tasks"])
fields_router = APIRouter(prefix="/api/task-fields", tags=["tasks"])


@router.get("")
async def list_tasks(
    priority: Priority | None = None,
    task_status: TaskStatus | None = Query(default=None, alias="status"),
    frequency: Frequency | None = None,
    stage_gates: str | None = None,
    task_type: str | None = None,
    assigned_to: str | None = None,
    search: str | None = None,
    sort_by: str = Query(default="due_date", alias="sortBy"),
    sort_order: str = Query(default="asc", alias="sortOrder"),
) -> JSONResponse:
    """Active tasks matching every given filter."""
    filters = TaskFilters(
        priority=priority,
        status=task_status,
        frequency=frequency,
        stage_gates=stage_gates,
        task_type=task_type,
        assigned_to=assigned_to,
        search=search,
    )
    tasks = await service.list_active_tasks(filters, sort_by=sort_by, sort_order=sort_order)
    return JSONResponse(content=[task.model_dump(mode="json") for task in tasks])


@router.post("")
async def create_task(payload: dict[str, Any] = Body(...)) -> JSONResponse:
    """Create a task."""
    task = await service.create_task(payload)
    return JSONResponse(content=task.model_dump(mode="json"), status_code=status.HTTP_201_CREATED)


@router.post("/recurring")
async def create_recurring_tasks(payload: dict[str, Any] = Body(...)) -> JSONResponse:
    """Create one task per occurrence of a cadence over a date range.

    Responds 201 when every occurrence was created, 207 when some failed.
    """
    result = await service.create_recurring_from_request(payload)
    code = status.HTTP_201_CREATED if not result.failed else status.HTTP_207_MULTI_STATUS
    return JSONResponse(content=result.model_dump(mode="json"), status_code=code)


@router.get("/recurring/preview")
async def preview_recurring_tasks(cadence: Cadence, range_start: date, range_end: date) -> JSONResponse:
    """How many tasks a recurring creation over the range would produce."""
    count = service.preview_occurrences(cadence, range_start, range_end)
    return JSONResponse(content={"cadence": cadence.value, "count": count})


@router.get("/notifications")
async def get_notifications() -> JSONResponse:
    """Open tasks due today or later this week."""
    notifications = await service.get_notifications()
    return JSONResponse(content=[notification.model_dump(mode="json") for notification in notifications])


@router.post("/refresh-status")
async def refresh_statuses() -> JSONResponse:
    """Re-derive statuses of open tasks against today's date."""
    changed = await service.refresh_statuses()
    return JSONResponse(content={"updated": len(changed), "tasks": [task.model_dump(mode="json") for task in changed]})


@router.get("/{task_id}")
async def get_task(task_id: str) -> JSONResponse:
    """Fetch a single task."""
    task = await service.get_task(task_id)
    return JSONResponse(content=task.model_dump(mode="json"))


@router.put("/{task_id}")
async def update_task(task_id: str, payload: dict[str, Any] = Body(...)) -> JSONResponse:
    """Apply a partial update to a task."""
    task = await service.update_task(task_id, payload)
    return JSONResponse(content=task.model_dump(mode="json"))


@router.post("/{task_id}/toggle-done")
async def toggle_task_done(task_id: str) -> JSONResponse:
    """Flip a task between done and not done."""
    task = await service.toggle_task_done(task_id)
    return JSONResponse(content=task.model_dump(mode="json"))


@router.delete("/{task_id}")
async def archive_task(task_id: str) -> JSONResponse:
    """Soft-delete a task by moving it to the archive."""
    task = await service.archive_task(task_id)
    return JSONResponse(content={"success": True, "task": task.model_dump(mode="json")})


@fields_router.get("")
async def list_task_fields() -> JSONResponse:
    """Labels and allowed options for task fields."""
    return JSONResponse(content=[config.model_dump(mode="json") for config in FIELD_CONFIGS.values()])
