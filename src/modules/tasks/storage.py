"""Bounded, error-translating access to the persistence collaborator."""

import asyncio
import logging
from collections.abc import Awaitable
from typing import Any, TypeVar

from src.core import db_client
from src.core.config import constants, settings
from src.core.db_client import DatabaseError, RecordNotFoundError
from src.core.errors import NotFoundError, OperationTimeoutError, PersistenceError


logger = logging.getLogger(__name__)

T = TypeVar("T")

TASKS = "tasks"


async def guarded(operation: str, awaitable: Awaitable[T], *, task_id: str | None = None) -> T:
    """Await a persistence call under the configured time bound.

    Raises:
        OperationTimeoutError: The call did not finish in time; its outcome is unknown
        NotFoundError: The record does not exist
        PersistenceError: Any other storage failure
    """
    timeout = settings.persistence_timeout_seconds
    try:
        async with asyncio.timeout(timeout):
            return await awaitable
    except TimeoutError as e:
        logger.error("persistence_timeout", extra={"operation": operation, "task_id": task_id, "timeout": timeout})
        msg = f"{operation} did not complete within {timeout:g}s; its outcome is unknown"
        raise OperationTimeoutError(msg) from e
    except RecordNotFoundError as e:
        msg = f"Task {task_id} not found" if task_id else str(e)
        raise NotFoundError(msg, task_id=task_id) from e
    except DatabaseError as e:
        logger.error("persistence_failed", extra={"operation": operation, "task_id": task_id, "error": str(e)})
        raise PersistenceError(str(e)) from e


async def list_all_tasks(*, filter_query: str, sort: str) -> list[dict[str, Any]]:
    """Drain every page of a task query."""
    per_page = constants.DEFAULT_PER_PAGE_LIMIT
    records: list[dict[str, Any]] = []
    page = 1
    while True:
        batch = await guarded(
            "list_tasks",
            db_client.list_records(
                collection=TASKS,
                page=page,
                per_page=per_page,
                filter_query=filter_query,
                sort=sort,
            ),
        )
        records.extend(batch)
        if len(batch) < per_page:
            return records
        page += 1
