"""Feature modules."""

from src.core.module_registry import ensure_registered
from src.modules.tasks import TasksModule


def register_default_modules() -> None:
    """Register the built-in modules. Safe to call more than once."""
    ensure_registered(TasksModule())
