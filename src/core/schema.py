"""SQLite schema management (code-first approach).

Core tables live here; feature tables are contributed by modules through
the module registry.
"""

import logging

from src.core import db_client
from src.core.module_registry import get_all_indexes, get_all_table_schemas


logger = logging.getLogger(__name__)


CORE_TABLE_SCHEMAS: dict[str, str] = {
    "sequences": """CREATE TABLE IF NOT EXISTS sequences (
        name TEXT PRIMARY KEY,
        value INTEGER NOT NULL CHECK (value > 0),
        created_at TEXT NOT NULL DEFAULT (datetime('now')),
        updated_at TEXT NOT NULL DEFAULT (datetime('now'))
    )""",
}


def get_schemas() -> dict[str, str]:
    """All CREATE TABLE statements: core tables first, then module tables."""
    from src.modules import register_default_modules

    register_default_modules()

    schemas = dict(CORE_TABLE_SCHEMAS)
    for table_name, sql in get_all_table_schemas().items():
        if table_name in schemas:
            msg = f"Module table '{table_name}' collides with a core table"
            raise ValueError(msg)
        schemas[table_name] = sql
    return schemas


async def init_db(*, db_path: str | None = None) -> None:
    """Create all tables and indexes if they do not exist. Safe to call repeatedly."""
    conn = await db_client.get_connection(db_path=db_path)

    schemas = get_schemas()
    for table_name, sql in schemas.items():
        await conn.execute(sql)
        logger.debug("Ensured table", extra={"table": table_name})

    for index_sql in get_all_indexes():
        await conn.execute(index_sql)

    await conn.commit()
    logger.info("Database schema initialized", extra={"tables": list(schemas)})
