"""REST endpoints for archived tasks."""

import logging
from typing import Any

from fastapi import APIRouter, Body, Query
from fastapi.responses import JSONResponse

from src.core.errors import ValidationError
from src.modules.tasks import service


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/archive", tags=["archive"])


def _task_id(payload: dict[str, Any]) -> str:
    task_id = payload.get("taskId")
    if task_id is None or not str(task_id).strip():
        msg = "taskId is required"
        raise ValidationError(msg)
    return str(task_id)


@router.get("")
async def list_archived_tasks(
    sort_by: str = Query(default="archived_at", alias="sortBy"),
    sort_order: str = Query(default="desc", alias="sortOrder"),
) -> JSONResponse:
    """Archived tasks, most recently archived first by default."""
    tasks = await service.list_archived_tasks(sort_by=sort_by, sort_order=sort_order)
    return JSONResponse(content=[task.model_dump(mode="json") for task in tasks])


@router.post("")
async def archive_task(payload: dict[str, Any] = Body(...)) -> JSONResponse:
    """Move an active task to the archive."""
    task = await service.archive_task(_task_id(payload))
    return JSONResponse(content={"success": True, "task": task.model_dump(mode="json")})


@router.put("")
async def restore_task(payload: dict[str, Any] = Body(...)) -> JSONResponse:
    """Bring an archived task back to the active list."""
    task = await service.restore_task(_task_id(payload))
    return JSONResponse(content={"success": True, "task": task.model_dump(mode="json")})


@router.delete("")
async def permanently_delete_task(payload: dict[str, Any] = Body(...)) -> JSONResponse:
    """Delete an archived task for good. Active tasks are not touched."""
    result = await service.permanently_delete_task(_task_id(payload))
    deleted = result["deleted_count"]
    return JSONResponse(content={"success": deleted > 0, "deletedCount": deleted})
