"""Typed lookup of task field labels and their allowed options.

Fields backed by a closed enumeration list its values; configurable
free-text fields carry no option set.
"""

from enum import StrEnum

from pydantic import BaseModel, Field

from src.domain.task import Frequency, Priority, TaskStatus


class TaskField(StrEnum):
    """Task fields that can be filtered on or shown as table columns."""

    STAGE_GATES = "stage_gates"
    TASK_TYPE = "task_type"
    FREQUENCY = "frequency"
    PRIORITY = "priority"
    STATUS = "status"
    ASSIGNED_TO = "assigned_to"


class FieldOption(BaseModel):
    """A selectable value for a field."""

    value: str
    label: str


class FieldConfig(BaseModel):
    """Label and options for one task field."""

    field_name: TaskField
    label: str
    options: list[FieldOption] = Field(default_factory=list)
    filterable: bool = True


def _options(enum_cls: type[StrEnum]) -> list[FieldOption]:
    return [FieldOption(value=member.value, label=member.value) for member in enum_cls]


FIELD_CONFIGS: dict[TaskField, FieldConfig] = {
    TaskField.STAGE_GATES: FieldConfig(field_name=TaskField.STAGE_GATES, label="Stage Gates"),
    TaskField.TASK_TYPE: FieldConfig(field_name=TaskField.TASK_TYPE, label="Task Type"),
    TaskField.FREQUENCY: FieldConfig(field_name=TaskField.FREQUENCY, label="Frequency", options=_options(Frequency)),
    TaskField.PRIORITY: FieldConfig(field_name=TaskField.PRIORITY, label="Priority", options=_options(Priority)),
    TaskField.STATUS: FieldConfig(field_name=TaskField.STATUS, label="Status", options=_options(TaskStatus)),
    TaskField.ASSIGNED_TO: FieldConfig(field_name=TaskField.ASSIGNED_TO, label="Assigned To"),
}


def get_field_config(field_name: str) -> FieldConfig | None:
    """Look up a field by name, or None when the field is unknown."""
    try:
        return FIELD_CONFIGS[TaskField(field_name)]
    except ValueError:
        return None


def field_label(field_name: str) -> str:
    """Display label for a field; unknown fields fall back to a title-cased name."""
    config = get_field_config(field_name)
    return config.label if config else field_name.replace("_", " ").title()
