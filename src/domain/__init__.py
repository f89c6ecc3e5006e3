"""Domain models and DTOs."""

from src.domain.create_models import RecurringTaskCreate, TaskCreate
from src.domain.options import FIELD_CONFIGS, FieldConfig, TaskField
from src.domain.task import Cadence, Frequency, Priority, Task, TaskFilters, TaskStatus
from src.domain.update_models import TaskUpdate


__all__ = [
    "FIELD_CONFIGS",
    "Cadence",
    "FieldConfig",
    "Frequency",
    "Priority",
    "RecurringTaskCreate",
    "Task",
    "TaskCreate",
    "TaskField",
    "TaskFilters",
    "TaskStatus",
    "TaskUpdate",
]
