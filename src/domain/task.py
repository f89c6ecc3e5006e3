"""Task domain models and enums."""

from datetime import date
from enum import StrEnum

from pydantic import BaseModel, Field


class Frequency(StrEnum):
    """How often a task recurs."""

    DAILY = "Daily"
    WEEKLY = "Weekly"
    MONTHLY = "Monthly"
    YEARLY = "Yearly"
    ADHOC = "Adhoc"


class Cadence(StrEnum):
    """Periodic recurrence interval used to expand a task template."""

    DAILY = "Daily"
    WEEKLY = "Weekly"
    MONTHLY = "Monthly"
    YEARLY = "Yearly"


class Priority(StrEnum):
    """Task priority."""

    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"


class TaskStatus(StrEnum):
    """Task progress status."""

    NOT_STARTED = "Not Started"
    IN_PROGRESS = "In Progress"
    COMPLETE = "Complete"
    OVERDUE = "Overdue"


class Task(BaseModel):
    """Task data transfer object."""

    id: str = Field(..., description="Unique task ID from database")
    project: str = Field(..., description="Project key; task numbers are sequential within it")
    task_no: int = Field(..., ge=1, description="Project-scoped task number")
    stage_gates: str = Field(default="", description="Stage gate label")
    task_type: str = Field(default="", description="Task type label")
    frequency: Frequency = Field(default=Frequency.DAILY, description="Recurrence frequency")
    priority: Priority = Field(default=Priority.MEDIUM, description="Task priority")
    task_description: str = Field(..., description="What needs to be done")
    assigned_to: str = Field(default="none", description="Assignee name, 'none' when unassigned")
    notes: str | None = Field(default=None, description="Free-form notes")
    est_hours: float | None = Field(default=None, description="Estimated effort in hours")
    start_date: date = Field(..., description="Start date")
    due_date: date = Field(..., description="Due date")
    status: TaskStatus = Field(default=TaskStatus.NOT_STARTED, description="Progress status")
    percent_complete: int = Field(default=0, ge=0, le=100, description="Completion percentage")
    done: bool = Field(default=False, description="Whether the task is complete")
    completed_at: str | None = Field(default=None, description="When the task was marked done (ISO format)")
    is_archived: bool = Field(default=False, description="Soft-delete flag")
    archived_at: str | None = Field(default=None, description="When the task was archived (ISO format)")
    created_at: str = Field(..., description="Creation timestamp (ISO format)")
    updated_at: str = Field(..., description="Last update timestamp (ISO format)")


class TaskFilters(BaseModel):
    """Exact-match filters for listing tasks, AND-combined. Unset fields do not filter."""

    priority: Priority | None = None
    status: TaskStatus | None = None
    frequency: Frequency | None = None
    stage_gates: str | None = None
    task_type: str | None = None
    assigned_to: str | None = None
    search: str | None = Field(
        default=None, description="Case-insensitive substring of description, assignee or notes"
    )

    def equality_filters(self) -> dict[str, str]:
        """Set fields other than search, as field -> value."""
        return {
            key: str(value)
            for key, value in self.model_dump(exclude={"search"}, mode="json").items()
            if value not in (None, "")
        }
