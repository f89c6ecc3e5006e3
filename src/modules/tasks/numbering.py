"""Project-scoped task number allocation."""

import logging

from src.core import db_client
from src.core.config import constants, settings
from src.core.db_client import sanitize_param
from src.core.errors import PersistenceError, TaskNumberAllocationError
from src.core.logging import span
from src.modules.tasks.storage import TASKS, guarded


logger = logging.getLogger(__name__)


def sequence_name(project: str) -> str:
    """Name of the counter that issues numbers for a project."""
    return f"{constants.TASK_NUMBER_SEQUENCE_PREFIX}{project}"


def format_task_number(project: str, task_no: int) -> str:
    """Display label for a task, e.g. ("OPS", 7) -> "OPS-007"."""
    return f"{project}-{task_no:0{constants.TASK_NUMBER_LABEL_WIDTH}d}"


async def get_max_task_no(project: str) -> int | None:
    """Highest task number stored for a project, archived tasks included."""
    return await guarded(
        "get_max_task_no",
        db_client.get_max_value(
            collection=TASKS,
            field="task_no",
            filter_query=f'project = "{sanitize_param(project)}"',
        ),
    )


async def next_task_number(project: str) -> int:
    """Allocate the next task number for a project.

    The atomic strategy advances a per-project counter in a single upsert, so
    concurrent creations never share a number and numbers of deleted tasks
    are never issued again. The read_max strategy is a degraded fallback:
    two creations that interleave between the read and the insert get the
    same number, and the highest number is reused once its task is deleted.

    Raises:
        TaskNumberAllocationError: The counter failed; the create must be aborted
        OperationTimeoutError: The counter did not answer in time
    """
    with span("task_numbering.next_task_number"):
        try:
            current_max = await get_max_task_no(project)
            if settings.task_number_strategy == "read_max":
                number = (current_max or 0) + 1
                logger.info(
                    "Allocated task number with read-max fallback",
                    extra={"project": project, "task_no": number},
                )
            else:
                number = await guarded(
                    "increment_sequence",
                    db_client.increment_sequence(name=sequence_name(project), floor=current_max or 0),
                )
        except TaskNumberAllocationError:
            raise
        except PersistenceError as e:
            msg = f"Could not allocate a task number for project {project}: {e}"
            raise TaskNumberAllocationError(msg) from e

        if number < 1:
            msg = f"Counter for project {project} returned invalid task number {number}"
            raise TaskNumberAllocationError(msg)

        logger.debug("Allocated task number", extra={"project": project, "task_no": number})
        return number
