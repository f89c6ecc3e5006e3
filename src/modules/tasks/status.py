"""Pure status derivation and the done-toggle transition."""

from collections.abc import Mapping
from datetime import date, datetime
from typing import Any, Literal

from dateutil import parser as dateutil_parser

from src.domain.task import TaskStatus


# Fields whose presence in an update triggers status re-derivation
STATUS_TRIGGER_FIELDS = frozenset({"start_date", "due_date", "done"})


def to_calendar_day(value: date | datetime | str) -> date:
    """Normalize a date, datetime or ISO string to its calendar day."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return dateutil_parser.isoparse(value).date()


def derive_status(
    current: Mapping[str, Any],
    today: date | datetime,
    explicit_status: TaskStatus | str | None = None,
) -> TaskStatus:
    """Compute a task's status from its dates and completion flag.

    An explicit status wins. A done task keeps its stored status. Otherwise
    the due date is checked first (Overdue), then the start date
    (Not Started), and anything else is In Progress.

    Args:
        current: Mapping with start_date, due_date, done and status
        today: Reference day; a datetime is truncated to its date
        explicit_status: Status supplied by the user in the same write

    Returns:
        The status to store
    """
    if explicit_status is not None:
        return TaskStatus(explicit_status)

    if current.get("done"):
        return TaskStatus(current.get("status") or TaskStatus.COMPLETE)

    day = to_calendar_day(today)
    if to_calendar_day(current["due_date"]) < day:
        return TaskStatus.OVERDUE
    if to_calendar_day(current["start_date"]) > day:
        return TaskStatus.NOT_STARTED
    return TaskStatus.IN_PROGRESS


def done_transition(
    current: Mapping[str, Any],
    *,
    done: bool,
    now: str,
    today: date | datetime,
    undone_policy: Literal["reset", "derive"] = "reset",
) -> dict[str, Any]:
    """Fields to write when a task's done flag is set to `done`.

    Marking done completes the task at `now`. Marking not done clears the
    completion and either resets the status to Not Started or, with the
    "derive" policy, re-derives it from the task's dates.
    """
    if done:
        return {
            "done": True,
            "status": TaskStatus.COMPLETE,
            "percent_complete": 100,
            "completed_at": now,
        }

    if undone_policy == "derive":
        status = derive_status({**current, "done": False}, today)
    else:
        status = TaskStatus.NOT_STARTED

    return {
        "done": False,
        "status": status,
        "percent_complete": 0,
        "completed_at": None,
    }


def toggle_done(
    current: Mapping[str, Any],
    *,
    now: str,
    today: date | datetime,
    undone_policy: Literal["reset", "derive"] = "reset",
) -> dict[str, Any]:
    """Flip a task's done flag and return the resulting field changes."""
    return done_transition(
        current,
        done=not current.get("done"),
        now=now,
        today=today,
        undone_policy=undone_policy,
    )
