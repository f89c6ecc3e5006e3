"""SQLite database client wrapper with CRUD operations."""

import asyncio
import json
import logging
import re
import threading
from datetime import UTC, date, datetime
from enum import Enum
from pathlib import Path
from typing import Any

import aiosqlite

from src.core.config import settings


logger = logging.getLogger(__name__)


class DatabaseError(RuntimeError):
    """Storage failure (connectivity, constraint violation, bad query)."""


class RecordNotFoundError(KeyError):
    """No record matched the requested id."""

    def __str__(self) -> str:
        return str(self.args[0]) if self.args else "Record not found"


_IDENTIFIER = re.compile(r"^[a-zA-Z_][a-zA-Z0-9_]*$")


def _validate_collection_name(collection: str) -> None:
    """Validate that a collection name contains only alphanumeric characters and underscores."""
    if not _IDENTIFIER.match(collection):
        msg = f"Invalid collection name: {collection}. Only alphanumeric characters and underscores are allowed."
        raise ValueError(msg)


def _validate_field_name(field: str) -> None:
    if not _IDENTIFIER.match(field):
        msg = f"Invalid field name: {field}"
        raise ValueError(msg)


def sanitize_param(value: str | int | float | bool | None) -> str:
    """Escape a value for safe embedding in filter queries via json.dumps."""
    return json.dumps(str(value))[1:-1]


def utc_now() -> str:
    """Current UTC timestamp in ISO format."""
    return datetime.now(UTC).isoformat()


def _convert_record_ids(record: dict[str, Any]) -> dict[str, Any]:
    """Convert integer ID and foreign key fields to strings for Pydantic compatibility."""
    converted = record.copy()
    for key, value in converted.items():
        if isinstance(value, int) and not isinstance(value, bool) and (key == "id" or key.endswith("_id")):
            converted[key] = str(value)
    return converted


def _to_db_value(val: Any) -> Any:
    if isinstance(val, Enum):
        return val.value
    if isinstance(val, date):
        return val.isoformat()
    if isinstance(val, dict | list):
        return json.dumps(val)
    return val


def _to_row_id(record_id: str, collection: str) -> int:
    try:
        return int(record_id)
    except (TypeError, ValueError) as e:
        msg = f"Record not found in {collection}: {record_id}"
        raise RecordNotFoundError(msg) from e


def get_db_path(db_path: str | None = None) -> Path:
    """Get the resolved SQLite database file path."""
    path_str = db_path or settings.sqlite_db_path
    return Path(path_str).resolve()


def _parse_literal(token: str) -> int | float | bool:
    """Parse an unquoted literal. Quoted values are always strings."""
    if token == "true":
        return True
    if token == "false":
        return False
    if "." in token:
        return float(token)
    return int(token)


def _get_sql_operator(op: str) -> str:
    """Map filter operator to SQL operator."""
    op_map = {
        "=": "=",
        "!=": "!=",
        ">": ">",
        "<": "<",
        ">=": ">=",
        "<=": "<=",
        "~": "LIKE",
    }
    sql_op = op_map.get(op)
    if not sql_op:
        msg = f"Unsupported operator: {op}"
        raise ValueError(msg)
    return sql_op


def _parse_single_comparison(comparison: str) -> tuple[str, list[str | int | float | None]]:
    """Parse a single comparison expression into a SQL condition and its parameters."""
    null_match = re.match(r"^(\w+)\s*(=|!=)\s*null$", comparison)
    if null_match:
        field, op = null_match.group(1), null_match.group(2)
        return f"{field} IS {'NOT ' if op == '!=' else ''}NULL", []

    # Double-quoted values carry the JSON escapes produced by sanitize_param; bare true/false/numbers are typed
    match = re.fullmatch(
        r"""(\w+)\s*(!=|>=|<=|=|>|<|~)\s*(?:"((?:[^"\\]|\\.)*)"|'((?:[^'\\]|\\.)*)'|(true|false|-?\d+(?:\.\d+)?))""",
        comparison,
    )
    if not match:
        msg = f"Invalid filter syntax: {comparison}"
        raise ValueError(msg)

    field = match.group(1)
    op = match.group(2)
    sql_op = _get_sql_operator(op)
    value: str
    if match.group(5) is not None:
        if sql_op == "LIKE":
            msg = f"LIKE needs a quoted value: {comparison}"
            raise ValueError(msg)
        return f"{field} {sql_op} ?", [_parse_literal(match.group(5))]

    if match.group(3) is not None:
        value = json.loads(f'"{match.group(3)}"')
    else:
        value = re.sub(r"\\(.)", r"\1", match.group(4))

    if sql_op == "LIKE":
        pattern = "%" + value.replace("%", "\\%").replace("_", "\\_") + "%"
        return f"{field} LIKE ? ESCAPE '\\'", [pattern]
    return f"{field} {sql_op} ?", [value]


def _parse_or_group(or_group: str) -> tuple[str, list[str | int | float | None]]:
    """Parse a parenthesized OR group into a SQL condition and parameters."""
    inner = or_group[1:-1]  # Remove parentheses
    or_parts = _split_top_level(inner, "||")
    or_conditions = []
    or_params: list[str | int | float | None] = []

    for part in or_parts:
        cond, values = _parse_single_comparison(part)
        or_conditions.append(cond)
        or_params.extend(values)

    return f"({' OR '.join(or_conditions)})", or_params


def _split_top_level(filter_query: str, separator: str) -> list[str]:
    """Split on separator outside quoted values and parenthesized groups."""
    parts = []
    current = ""
    paren_depth = 0
    quote: str | None = None
    escaped = False

    for char in filter_query:
        current += char

        if quote:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == quote:
                quote = None
            continue

        if char in ("'", '"'):
            quote = char
        elif char == "(":
            paren_depth += 1
        elif char == ")":
            paren_depth -= 1
        elif paren_depth == 0 and current.endswith(separator):
            parts.append(current[: -len(separator)].strip())
            current = ""

    if current.strip():
        parts.append(current.strip())

    return parts


def parse_filter(filter_query: str) -> tuple[str, list[str | int | float | None]]:
    """Parse filter syntax into a SQL WHERE clause and parameter list."""
    if not filter_query:
        return "", []

    parts = _split_top_level(filter_query, "&&")
    conditions = []
    params: list[str | int | float | None] = []

    for raw_part in parts:
        part = raw_part.strip()

        if part.startswith("(") and part.endswith(")"):
            cond, cond_params = _parse_or_group(part)
        else:
            cond, cond_params = _parse_single_comparison(part)
        conditions.append(cond)
        params.extend(cond_params)

    return " AND ".join(conditions), params


def parse_sort(sort: str) -> str:
    """Translate "-field", "+field" or "field [ASC|DESC]" into an ORDER BY clause.

    Invalid sort strings fall back to "id ASC".
    """
    safe_sort = "id ASC"
    if not sort:
        return safe_sort

    sort = sort.strip()
    prefixed = re.match(r"^([+-])([A-Za-z_][A-Za-z0-9_]*)$", sort)
    if prefixed:
        direction = "DESC" if prefixed.group(1) == "-" else "ASC"
        return f"{prefixed.group(2)} {direction}, id ASC"

    plain = re.match(r"^([A-Za-z_][A-Za-z0-9_]*)\s*(ASC|DESC)?$", sort, re.IGNORECASE)
    if plain:
        direction = (plain.group(2) or "ASC").upper()
        return f"{plain.group(1)} {direction}, id ASC"

    logger.warning("Invalid sort parameter, using default", extra={"sort": sort})
    return safe_sort


_db_connections: dict[tuple[int, int, str], aiosqlite.Connection] = {}
_db_lock = asyncio.Lock()


async def get_connection(*, db_path: str | None = None) -> aiosqlite.Connection:
    """Get or create a cached connection for the current thread, loop, and db path."""
    thread_id = threading.get_ident()
    loop = asyncio.get_running_loop()
    loop_id = id(loop)
    path = get_db_path(db_path)
    cache_key = (thread_id, loop_id, str(path))

    if cache_key in _db_connections:
        return _db_connections[cache_key]

    async with _db_lock:
        # Double-check after acquiring lock
        if cache_key in _db_connections:
            return _db_connections[cache_key]

        path.parent.mkdir(parents=True, exist_ok=True)

        conn = await aiosqlite.connect(str(path))
        await conn.execute("PRAGMA foreign_keys = ON")
        await conn.execute("PRAGMA journal_mode = WAL")

        _db_connections[cache_key] = conn

        logger.info(
            "Created new SQLite connection",
            extra={"db_path": str(path), "thread_id": thread_id, "loop_id": loop_id},
        )
        return conn


async def close_connection(*, db_path: str | None = None) -> None:
    """Close the cached SQLite connection for the current thread, loop, and db path."""
    thread_id = threading.get_ident()
    loop_id = id(asyncio.get_running_loop())
    path = get_db_path(db_path)
    cache_key = (thread_id, loop_id, str(path))

    conn = _db_connections.pop(cache_key, None)
    if conn is None:
        return

    try:
        await conn.close()
        logger.info(
            "Closed SQLite connection",
            extra={"thread_id": thread_id, "loop_id": loop_id, "db_path": str(path)},
        )
    except (aiosqlite.Error, ValueError) as e:
        logger.warning(
            "Error closing SQLite connection",
            extra={"error": str(e), "thread_id": thread_id, "loop_id": loop_id},
        )


async def init_db(*, db_path: str | None = None) -> None:
    """Initialize the database schema by delegating to schema.init_db()."""
    from src.core import schema

    await schema.init_db(db_path=db_path)


def _db_failure(operation: str, collection: str, e: Exception, **context: object) -> DatabaseError:
    logger.error(f"{operation}_failed", extra={"collection": collection, "error": str(e), **context})
    if isinstance(e, aiosqlite.OperationalError) and "no such table" in str(e):
        return DatabaseError(f"Table '{collection}' does not exist. Call init_db() first.")
    return DatabaseError(f"Failed to {operation.replace('_', ' ')} in {collection}: {e}")


async def create_record(*, collection: str, data: dict[str, Any]) -> dict[str, Any]:
    """Insert a new record and return it with its assigned id and audit timestamps."""
    try:
        _validate_collection_name(collection)
        conn = await get_connection()

        now = utc_now()
        payload = {"created_at": now, "updated_at": now, **data}
        columns = list(payload.keys())
        for column in columns:
            _validate_field_name(column)
        columns_str = ", ".join(columns)
        placeholders_str = ", ".join("?" for _ in columns)
        values = [_to_db_value(payload[key]) for key in columns]

        query = f"INSERT INTO {collection} ({columns_str}) VALUES ({placeholders_str})"  # noqa: S608 - names are validated
        cursor = await conn.execute(query, values)
        await conn.commit()

        record_id = cursor.lastrowid
        logger.info("Created record", extra={"collection": collection, "record_id": record_id})
        return await get_record(collection=collection, record_id=str(record_id))
    except (RecordNotFoundError, DatabaseError):
        raise
    except Exception as e:
        raise _db_failure("create_record", collection, e) from e


async def get_record(*, collection: str, record_id: str) -> dict[str, Any]:
    """Fetch a single record by ID, raising RecordNotFoundError if not found."""
    row_id = _to_row_id(record_id, collection)
    try:
        _validate_collection_name(collection)
        conn = await get_connection()

        query = f"SELECT * FROM {collection} WHERE id = ?"  # noqa: S608 - collection is validated
        cursor = await conn.execute(query, (row_id,))
        row = await cursor.fetchone()

        if row is None:
            msg = f"Record not found in {collection}: {record_id}"
            raise RecordNotFoundError(msg)

        columns = [description[0] for description in cursor.description]
        record = dict(zip(columns, row, strict=True))

        logger.debug("Retrieved record", extra={"collection": collection, "record_id": record_id})
        return _convert_record_ids(record)
    except RecordNotFoundError:
        raise
    except Exception as e:
        raise _db_failure("get_record", collection, e, record_id=record_id) from e


async def update_record(*, collection: str, record_id: str, data: dict[str, Any]) -> dict[str, Any]:
    """Update a record by ID and return the updated record."""
    updated = await update_record_if(collection=collection, record_id=record_id, data=data)
    if updated is None:
        msg = f"Record not found in {collection}: {record_id}"
        raise RecordNotFoundError(msg)
    return updated


async def update_record_if(
    *,
    collection: str,
    record_id: str,
    data: dict[str, Any],
    filter_query: str = "",
) -> dict[str, Any] | None:
    """Update a record by ID only if it also matches filter_query.

    Returns the updated record, or None when no row matched. The check and
    the write happen in a single UPDATE statement.
    """
    if not data:
        msg = "Empty update payload"
        raise ValueError(msg)

    row_id = _to_row_id(record_id, collection)
    try:
        _validate_collection_name(collection)
        conn = await get_connection()

        payload = {**data, "updated_at": utc_now()}
        for key in payload:
            _validate_field_name(key)
        set_clause = ", ".join(f"{key} = ?" for key in payload)
        values = [_to_db_value(val) for val in payload.values()]

        where_clause = "id = ?"
        values.append(row_id)
        if filter_query:
            extra_clause, extra_params = parse_filter(filter_query)
            where_clause = f"{where_clause} AND {extra_clause}"
            values.extend(extra_params)

        query = f"UPDATE {collection} SET {set_clause} WHERE {where_clause}"  # noqa: S608 - names are validated
        cursor = await conn.execute(query, values)
        await conn.commit()

        if cursor.rowcount == 0:
            logger.info(
                "Conditional update matched no rows",
                extra={"collection": collection, "record_id": record_id, "filter_query": filter_query},
            )
            return None

        logger.info("Updated record", extra={"collection": collection, "record_id": record_id})
        return await get_record(collection=collection, record_id=record_id)
    except RecordNotFoundError:
        raise
    except Exception as e:
        raise _db_failure("update_record", collection, e, record_id=record_id) from e


async def delete_record(*, collection: str, record_id: str) -> None:
    """Delete a record by ID, raising RecordNotFoundError if not found."""
    deleted = await delete_records(collection=collection, filter_query=f'id = "{sanitize_param(record_id)}"')
    if deleted == 0:
        msg = f"Record not found in {collection}: {record_id}"
        raise RecordNotFoundError(msg)


async def delete_records(*, collection: str, filter_query: str) -> int:
    """Delete every record matching filter_query and return the number of rows removed."""
    if not filter_query:
        msg = "Refusing to delete without a filter"
        raise ValueError(msg)

    try:
        _validate_collection_name(collection)
        conn = await get_connection()

        where_clause, params = parse_filter(filter_query)
        query = f"DELETE FROM {collection} WHERE {where_clause}"  # noqa: S608 - collection is validated
        cursor = await conn.execute(query, params)
        await conn.commit()

        logger.info("Deleted records", extra={"collection": collection, "count": cursor.rowcount})
        return cursor.rowcount
    except Exception as e:
        raise _db_failure("delete_records", collection, e, filter_query=filter_query) from e


async def list_records(
    *,
    collection: str,
    page: int = 1,
    per_page: int = 50,
    filter_query: str = "",
    sort: str = "",
) -> list[dict[str, Any]]:
    """List records with optional filtering, sorting, and pagination."""
    try:
        _validate_collection_name(collection)
        conn = await get_connection()

        where_clause = ""
        params: list[Any] = []
        if filter_query:
            where_clause, params = parse_filter(filter_query)
            where_clause = f"WHERE {where_clause}"

        order_by = parse_sort(sort)
        offset = (page - 1) * per_page

        query = f"SELECT * FROM {collection} {where_clause} ORDER BY {order_by} LIMIT ? OFFSET ?"  # noqa: S608 - collection is validated
        params.extend([per_page, offset])

        cursor = await conn.execute(query, params)
        rows = await cursor.fetchall()

        columns = [description[0] for description in cursor.description]
        records = [_convert_record_ids(dict(zip(columns, row, strict=True))) for row in rows]

        logger.debug("Listed records", extra={"collection": collection, "count": len(records)})
        return records
    except Exception as e:
        raise _db_failure("list_records", collection, e) from e


async def get_first_record(*, collection: str, filter_query: str) -> dict[str, Any] | None:
    """Return the first record matching the filter, or None."""
    records = await list_records(collection=collection, filter_query=filter_query, per_page=1)
    return records[0] if records else None


async def get_max_value(*, collection: str, field: str, filter_query: str = "") -> int | None:
    """Return MAX(field) over the matching records, or None if there are none."""
    try:
        _validate_collection_name(collection)
        _validate_field_name(field)
        conn = await get_connection()

        where_clause, params = parse_filter(filter_query)
        query = f"SELECT MAX({field}) FROM {collection}"  # noqa: S608 - names are validated
        if where_clause:
            query = f"{query} WHERE {where_clause}"

        cursor = await conn.execute(query, params)
        row = await cursor.fetchone()
        return None if row is None or row[0] is None else int(row[0])
    except Exception as e:
        raise _db_failure("get_max_value", collection, e, field=field) from e


async def increment_sequence(*, name: str, floor: int = 0) -> int:
    """Atomically advance the named counter and return its new value.

    The new value is max(current, floor) + 1. The read and the write are a
    single upsert, so concurrent callers never observe the same value.
    """
    try:
        conn = await get_connection()
        now = utc_now()
        cursor = await conn.execute(
            """
            INSERT INTO sequences (name, value, created_at, updated_at) VALUES (?, ? + 1, ?, ?)
            ON CONFLICT(name) DO UPDATE SET
                value = MAX(sequences.value, ?) + 1,
                updated_at = excluded.updated_at
            RETURNING value
            """,
            (name, floor, now, now, floor),
        )
        row = await cursor.fetchone()
        await conn.commit()

        if row is None:
            msg = f"Sequence {name} did not return a value"
            raise DatabaseError(msg)

        logger.debug("Advanced sequence", extra={"sequence": name, "value": row[0]})
        return int(row[0])
    except DatabaseError:
        raise
    except Exception as e:
        raise _db_failure("increment_sequence", "sequences", e, sequence=name) from e
