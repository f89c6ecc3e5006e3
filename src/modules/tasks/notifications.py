"""Due-today and due-this-week reminders for open tasks."""

from collections.abc import Iterable
from datetime import date, timedelta
from enum import StrEnum

from pydantic import BaseModel

from src.core.config import constants
from src.domain.task import Priority, Task, TaskStatus
from src.modules.tasks.numbering import format_task_number
from src.modules.tasks.status import to_calendar_day


class NotificationType(StrEnum):
    """When the task falls due."""

    TODAY = "today"
    THIS_WEEK = "this_week"


class Urgency(StrEnum):
    """How pressing a reminder is."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


URGENCY_RANK = {Urgency.HIGH: 3, Urgency.MEDIUM: 2, Urgency.LOW: 1}


class TaskNotification(BaseModel):
    """A reminder about one task."""

    task: Task
    type: NotificationType
    urgency: Urgency
    days_until_due: int
    label: str
    message: str


def week_bounds(today: date) -> tuple[date, date]:
    """Sunday and Saturday of the week containing `today`."""
    start = today - timedelta(days=(today.weekday() + 1) % 7)
    return start, start + timedelta(days=6)


def urgency_level(days_until_due: int, priority: Priority | str) -> Urgency:
    """Overdue, due today, or high priority within two days is high; within three days is medium."""
    if days_until_due <= 0:
        return Urgency.HIGH
    if days_until_due <= constants.URGENT_DAYS_HIGH_PRIORITY and priority == Priority.HIGH:
        return Urgency.HIGH
    if days_until_due <= constants.URGENT_DAYS_MEDIUM:
        return Urgency.MEDIUM
    return Urgency.LOW


def due_message(days_until_due: int) -> str:
    """Short phrase describing when a task is due."""
    if days_until_due < 0:
        days = abs(days_until_due)
        return f"Overdue by {days} day{'s' if days != 1 else ''}"
    if days_until_due == 0:
        return "Due Today"
    return f"Due in {days_until_due} day{'s' if days_until_due != 1 else ''}"


def build_notifications(tasks: Iterable[Task], today: date) -> list[TaskNotification]:
    """Reminders for open tasks due today or later this week, most urgent first."""
    week_start, week_end = week_bounds(today)
    notifications: list[TaskNotification] = []

    for task in tasks:
        if task.is_archived or task.done or task.status == TaskStatus.COMPLETE:
            continue

        due = to_calendar_day(task.due_date)
        days_until_due = (due - today).days

        if days_until_due == 0:
            kind = NotificationType.TODAY
        elif week_start <= due <= week_end and days_until_due > 0:
            kind = NotificationType.THIS_WEEK
        else:
            continue

        label = format_task_number(task.project, task.task_no)
        notifications.append(
            TaskNotification(
                task=task,
                type=kind,
                urgency=urgency_level(days_until_due, task.priority),
                days_until_due=days_until_due,
                label=label,
                message=f"{label}: {task.task_description} ({due_message(days_until_due)})",
            )
        )

    notifications.sort(key=lambda n: (-URGENCY_RANK[n.urgency], n.days_until_due))
    return notifications
