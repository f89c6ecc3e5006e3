"""Update models for database operations."""

from datetime import date

from pydantic import BaseModel, ConfigDict, Field, field_validator

from src.domain.task import Frequency, Priority, TaskStatus


class TaskUpdate(BaseModel):
    """Partial update for a task. Only fields explicitly sent are applied.

    project and task_no are identity and cannot be patched.
    """

    model_config = ConfigDict(extra="forbid")

    stage_gates: str | None = None
    task_type: str | None = None
    frequency: Frequency | None = None
    priority: Priority | None = None
    task_description: str | None = None
    assigned_to: str | None = None
    notes: str | None = None
    est_hours: float | None = Field(default=None, ge=0)
    start_date: date | None = None
    due_date: date | None = None
    status: TaskStatus | None = None
    percent_complete: int | None = Field(default=None, ge=0, le=100)
    done: bool | None = None

    @field_validator("task_description")
    @classmethod
    def validate_description(cls, v: str | None) -> str | None:
        """A description may be changed but not blanked."""
        if v is not None and not v.strip():
            msg = "task_description must not be empty"
            raise ValueError(msg)
        return v.strip() if v is not None else v

    def to_patch(self) -> dict:
        """Fields explicitly set by the caller, JSON-ready, with nulls only where allowed."""
        patch = self.model_dump(exclude_unset=True, mode="json")
        nullable = {"notes", "est_hours"}
        return {key: value for key, value in patch.items() if value is not None or key in nullable}
