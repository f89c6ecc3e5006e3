"""Tasks module for project task tracking."""

from fastapi import APIRouter

from src.core.module import ConfigField


class TasksModule:
    """Tasks module for project-scoped task tracking.

    Provides:
    - Task CRUD with project-scoped task numbers
    - Date-derived status and done toggling
    - Archive, restore and permanent deletion
    - Recurring task expansion
    - Due-soon notifications
    """

    @property
    def name(self) -> str:
        """Module name (unique identifier)."""
        return "tasks"

    @property
    def description(self) -> str:
        """Module description (human-readable)."""
        return "Project task tracking with numbering, status derivation, archiving and recurrence"

    def get_table_schemas(self) -> dict[str, str]:
        """Return table schemas for this module."""
        return {
            "tasks": """CREATE TABLE IF NOT EXISTS tasks (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        created_at TEXT NOT NULL DEFAULT (datetime('now')),
        updated_at TEXT NOT NULL DEFAULT (datetime('now')),
        project TEXT NOT NULL,
        task_no INTEGER NOT NULL CHECK (task_no > 0),
        stage_gates TEXT NOT NULL DEFAULT '',
        task_type TEXT NOT NULL DEFAULT '',
        frequency TEXT NOT NULL DEFAULT 'Daily'
            CHECK (frequency IN ('Daily', 'Weekly', 'Monthly', 'Yearly', 'Adhoc')),
        priority TEXT NOT NULL DEFAULT 'Medium' CHECK (priority IN ('High', 'Medium', 'Low')),
        task_description TEXT NOT NULL,
        assigned_to TEXT NOT NULL DEFAULT 'none',
        notes TEXT,
        est_hours REAL,
        start_date TEXT NOT NULL,
        due_date TEXT NOT NULL,
        status TEXT NOT NULL DEFAULT 'Not Started'
            CHECK (status IN ('Not Started', 'In Progress', 'Complete', 'Overdue')),
        percent_complete INTEGER NOT NULL DEFAULT 0 CHECK (percent_complete BETWEEN 0 AND 100),
        done INTEGER NOT NULL DEFAULT 0,
        completed_at TEXT,
        is_archived INTEGER NOT NULL DEFAULT 0,
        archived_at TEXT,
        UNIQUE(project, task_no),
        CHECK ((is_archived = 0 AND archived_at IS NULL) OR (is_archived = 1 AND archived_at IS NOT NULL))
    )""",
        }

    def get_indexes(self) -> list[str]:
        """Return indexes for this module's tables."""
        return [
            "CREATE INDEX IF NOT EXISTS idx_tasks_is_archived ON tasks (is_archived)",
            "CREATE INDEX IF NOT EXISTS idx_tasks_due_date ON tasks (due_date)",
            "CREATE INDEX IF NOT EXISTS idx_tasks_status ON tasks (status)",
            "CREATE INDEX IF NOT EXISTS idx_tasks_assigned_to ON tasks (assigned_to)",
        ]

    def get_routers(self) -> list[APIRouter]:
        """Return the task and archive routers."""
        from src.interface.archive_router import router as archive_router
        from src.interface.tasks_router import fields_router, router as tasks_router

        return [tasks_router, fields_router, archive_router]

    def get_config_fields(self) -> list[ConfigField]:
        """Return configuration fields for this module."""
        return [
            ConfigField(
                name="task_number_strategy",
                type="str",
                required=False,
                default="atomic",
                description="atomic or read_max task number allocation",
            ),
            ConfigField(
                name="archive_requires_done",
                type="bool",
                required=False,
                default="false",
                description="Only completed tasks may be archived",
            ),
            ConfigField(
                name="undone_status_policy",
                type="str",
                required=False,
                default="reset",
                description="Status when a task is marked not done: reset or derive",
            ),
        ]
