"""Pydantic models for creating records in database."""

from datetime import date

from pydantic import BaseModel, Field, field_validator, model_validator

from src.domain.task import Cadence, Frequency, Priority, TaskStatus


class TaskCreate(BaseModel):
    """Payload for creating a task. Status and task number are computed by the service."""

    project: str = Field(..., description="Project key")
    task_description: str = Field(..., description="What needs to be done")
    start_date: date = Field(..., description="Start date")
    due_date: date = Field(..., description="Due date")
    stage_gates: str = Field(default="", description="Stage gate label")
    task_type: str = Field(default="", description="Task type label")
    frequency: Frequency = Field(default=Frequency.DAILY, description="Recurrence frequency")
    priority: Priority = Field(default=Priority.MEDIUM, description="Task priority")
    assigned_to: str = Field(default="none", description="Assignee name, 'none' when unassigned")
    notes: str | None = Field(default=None, description="Free-form notes")
    est_hours: float | None = Field(default=None, ge=0, description="Estimated effort in hours")
    status: TaskStatus | None = Field(default=None, description="Explicit status; derived from dates when omitted")
    percent_complete: int = Field(default=0, ge=0, le=100, description="Completion percentage")
    done: bool = Field(default=False, description="Create the task already completed")

    @field_validator("project", "task_description")
    @classmethod
    def validate_not_blank(cls, v: str) -> str:
        """Reject empty or whitespace-only values."""
        v = v.strip()
        if not v:
            msg = "must not be empty"
            raise ValueError(msg)
        return v

    @field_validator("assigned_to")
    @classmethod
    def default_unassigned(cls, v: str) -> str:
        """Blank assignee means unassigned."""
        return v.strip() or "none"


class RecurringTaskCreate(BaseModel):
    """Payload for expanding a template into a series of tasks."""

    template: TaskCreate = Field(..., description="Fields copied to every occurrence; its dates are ignored")
    cadence: Cadence = Field(..., description="Step between occurrences")
    range_start: date = Field(..., description="First occurrence date")
    range_end: date = Field(..., description="Last possible occurrence date (inclusive)")

    @model_validator(mode="before")
    @classmethod
    def fill_template_dates(cls, data: object) -> object:
        """Templates may omit their dates; default them to the range start."""
        if isinstance(data, dict) and isinstance(data.get("template"), dict):
            template = dict(data["template"])
            for key in ("start_date", "due_date"):
                template.setdefault(key, data.get("range_start"))
            return {**data, "template": template}
        return data
