"""Module Protocol defining the plugin interface for modular architecture."""

from typing import Protocol

from fastapi import APIRouter
from pydantic import BaseModel


class ConfigField(BaseModel):
    """Configuration field definition."""

    name: str
    type: str
    required: bool
    default: str | None = None
    description: str


class Module(Protocol):
    """Protocol defining the interface for feature modules. Self-contained plugins with schemas, routes, and config."""

    @property
    def name(self) -> str:
        """Module name (unique identifier)."""
        ...

    @property
    def description(self) -> str:
        """Module description (human-readable)."""
        ...

    def get_table_schemas(self) -> dict[str, str]:
        """Return table schemas for this module.

        Returns:
            Dictionary mapping table names to CREATE TABLE SQL statements
        """
        ...

    def get_indexes(self) -> list[str]:
        """Return indexes for this module's tables.

        Returns:
            List of CREATE INDEX SQL statements
        """
        ...

    def get_routers(self) -> list[APIRouter]:
        """Return the HTTP routers this module exposes."""
        ...

    def get_config_fields(self) -> list[ConfigField]:
        """Return configuration fields for this module.

        Returns:
            List of ConfigField definitions
        """
        ...
