"""Document store client: JSON documents in SQLite with structured filters.

Each collection is a table of ``(id, data)`` rows where ``data`` is a JSON
document. Callers never write query text. Filters are plain dictionaries:

    {"status": "pending"}                              equality (null-safe)
    {"dueDate": {"$lt": "2026-01-01T00:00:00.000Z"}}   comparison operators
    {"$or": [{"title": {"$icontains": "report"}}, ...]}  boolean groups

They are compiled into ``json_extract`` predicates where both the JSON path
and the value are bound parameters, so user input is always data.
"""

import asyncio
import json
import logging
import re
import sqlite3
import threading
import uuid
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any

import aiosqlite

from taskapi.core import schema
from taskapi.core.config import settings
from taskapi.core.errors import DatabaseError, DuplicateKeyError, RecordNotFoundError
from taskapi.core.timestamps import now_iso, to_iso


logger = logging.getLogger(__name__)

ASCENDING = 1
DESCENDING = -1

Filter = dict[str, Any]
Sort = list[tuple[str, int]]

_FIELD_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*(\.[A-Za-z_][A-Za-z0-9_]*)*$")
_UNIQUE_FAILURE_PATTERN = re.compile(r"index '([A-Za-z0-9_]+)'")


def _validate_collection_name(collection: str) -> None:
    """Validate that a collection name contains only alphanumeric characters and underscores."""
    if not re.match(r"^[a-zA-Z_][a-zA-Z0-9_]*$", collection):
        msg = f"Invalid collection name: {collection}. Only alphanumeric characters and underscores are allowed."
        raise ValueError(msg)


def _json_path(field: str) -> str:
    """Turn a (possibly dotted) document field name into a JSON path."""
    if not _FIELD_PATTERN.match(field):
        msg = f"Invalid field name: {field}"
        raise ValueError(msg)
    return f"$.{field}"


def _to_param(value: Any) -> Any:
    """Convert a filter value to something sqlite3 binds natively."""
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        return to_iso(value)
    if value is None or isinstance(value, bool | int | float | str):
        return value
    msg = f"Unsupported filter value type: {type(value).__name__}"
    raise ValueError(msg)


def _json_default(value: Any) -> Any:
    if isinstance(value, datetime):
        return to_iso(value)
    if isinstance(value, Enum):
        return value.value
    msg = f"Object of type {type(value).__name__} is not JSON serializable"
    raise TypeError(msg)


def _column(field: str) -> tuple[str, list[Any]]:
    """SQL expression and parameters addressing a document field.

    ``id`` lives in its own column; every other field is read from the JSON document.
    """
    if field == "id":
        return "id", []
    return "json_extract(data, ?)", [_json_path(field)]


def _compile_operator(field: str, op: str, value: Any, params: list[Any]) -> str:
    """Compile a single ``{"$op": value}`` entry for one field."""
    column, column_params = _column(field)

    if op == "$ne":
        params.extend([*column_params, _to_param(value)])
        return f"{column} IS NOT ?"

    comparisons = {"$lt": "<", "$lte": "<=", "$gt": ">", "$gte": ">="}
    if op in comparisons:
        params.extend([*column_params, _to_param(value)])
        return f"{column} {comparisons[op]} ?"

    if op == "$in":
        if not isinstance(value, list | tuple):
            msg = "$in expects a list"
            raise ValueError(msg)
        if not value:
            return "0"
        params.extend(column_params)
        params.extend(_to_param(v) for v in value)
        placeholders = ", ".join("?" for _ in value)
        return f"{column} IN ({placeholders})"

    if op == "$icontains":
        params.extend([*column_params, _to_param(value)])
        return f"instr(casefold({column}), casefold(?)) > 0"

    if op == "$contains" and field != "id":
        params.extend([_json_path(field), _to_param(value)])
        return "EXISTS (SELECT 1 FROM json_each(data, ?) WHERE json_each.value = ?)"

    msg = f"Unsupported operator {op} for field {field}"
    raise ValueError(msg)


def _compile_group(op: str, clauses: Any, params: list[Any]) -> str:
    if not isinstance(clauses, list | tuple) or not clauses:
        msg = f"{op} expects a non-empty list"
        raise ValueError(msg)
    joiner = " OR " if op == "$or" else " AND "
    parts = []
    for clause in clauses:
        sql, clause_params = compile_filter(clause)
        parts.append(f"({sql})" if sql else "1")
        params.extend(clause_params)
    return f"({joiner.join(parts)})"


def compile_filter(query_filter: Filter | None) -> tuple[str, list[Any]]:
    """Compile a structured filter into a SQL condition and its parameter list.

    Returns an empty condition for an empty filter.

    Raises:
        ValueError: For unknown operators, invalid field names or value types
    """
    if not query_filter:
        return "", []

    conditions = []
    params: list[Any] = []

    for key, condition in query_filter.items():
        if key in ("$or", "$and"):
            conditions.append(_compile_group(key, condition, params))
            continue

        if isinstance(condition, dict):
            if not condition:
                msg = f"Empty operator document for field {key}"
                raise ValueError(msg)
            for op, value in condition.items():
                conditions.append(_compile_operator(key, op, value, params))
        else:
            column, column_params = _column(key)
            params.extend([*column_params, _to_param(condition)])
            conditions.append(f"{column} IS ?")

    return " AND ".join(conditions), params


def compile_sort(sort: Sort | None) -> tuple[str, list[Any]]:
    """Compile sort keys into an ORDER BY clause. ``id`` always breaks ties."""
    parts = []
    params: list[Any] = []
    for field, direction in sort or []:
        if field == "id":
            continue
        params.append(_json_path(field))
        parts.append(f"json_extract(data, ?) {'DESC' if direction == DESCENDING else 'ASC'}")
    parts.append("id ASC")
    return ", ".join(parts), params


def get_db_path(db_path: str | None = None) -> Path:
    """Get the resolved SQLite database file path."""
    path_str = db_path or settings.sqlite_db_path
    return Path(path_str).resolve()


def _casefold(value: Any) -> Any:
    return value.casefold() if isinstance(value, str) else value


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
        await conn.execute("PRAGMA journal_mode = WAL")
        # SQLite lower() only folds ASCII
        await conn.create_function("casefold", 1, _casefold, deterministic=True)

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

    async with _db_lock:
        conn = _db_connections.pop(cache_key, None)
        if conn is None:
            return
        try:
            await conn.close()
            logger.info("Closed SQLite connection", extra={"db_path": str(path)})
        except sqlite3.Error as e:
            logger.warning("Error closing SQLite connection", extra={"error": str(e), "db_path": str(path)})


async def init_db(*, db_path: str | None = None) -> None:
    """Create every collection table and unique index."""
    conn = await get_connection(db_path=db_path)
    await schema.sync_schema(conn)


def _duplicate_key_error(error: sqlite3.IntegrityError, data: dict[str, Any]) -> DuplicateKeyError | None:
    """Translate a unique index violation into a DuplicateKeyError naming the field."""
    match = _UNIQUE_FAILURE_PATTERN.search(str(error))
    field = schema.field_for_index(match.group(1)) if match else None
    if field is None:
        return None
    return DuplicateKeyError(field, data.get(field))


def _row_to_record(record_id: str, data: str) -> dict[str, Any]:
    return {"id": record_id, **json.loads(data)}


async def create_record(*, collection: str, data: dict[str, Any]) -> dict[str, Any]:
    """Insert a new document and return it with its assigned id and timestamps."""
    _validate_collection_name(collection)
    record_id = uuid.uuid4().hex
    now = now_iso()
    document = {key: value for key, value in data.items() if key != "id"}
    document["createdAt"] = now
    document["updatedAt"] = now

    try:
        conn = await get_connection()
        query = f"INSERT INTO {collection} (id, data) VALUES (?, ?)"  # noqa: S608 - collection is validated
        await conn.execute(query, (record_id, json.dumps(document, default=_json_default)))
        await conn.commit()
    except sqlite3.IntegrityError as e:
        duplicate = _duplicate_key_error(e, document)
        if duplicate is None:
            logger.error("create_record_failed", extra={"collection": collection, "error": str(e)})
            msg = f"Failed to create record in {collection}: {e}"
            raise DatabaseError(msg) from e
        logger.info("Duplicate key rejected", extra={"collection": collection, "field": duplicate.field})
        raise duplicate from e
    except Exception as e:
        logger.error("create_record_failed", extra={"collection": collection, "error": str(e)})
        msg = f"Failed to create record in {collection}: {e}"
        raise DatabaseError(msg) from e

    logger.info("Created record", extra={"collection": collection, "record_id": record_id})
    return {"id": record_id, **document}


async def get_record(*, collection: str, record_id: str) -> dict[str, Any]:
    """Fetch a single document by id, raising RecordNotFoundError if absent."""
    _validate_collection_name(collection)
    try:
        conn = await get_connection()
        query = f"SELECT id, data FROM {collection} WHERE id = ?"  # noqa: S608 - collection is validated
        cursor = await conn.execute(query, (record_id,))
        row = await cursor.fetchone()
    except Exception as e:
        logger.error("get_record_failed", extra={"collection": collection, "record_id": record_id, "error": str(e)})
        msg = f"Failed to get record from {collection}: {e}"
        raise DatabaseError(msg) from e

    if row is None:
        msg = f"Record not found in {collection}: {record_id}"
        raise RecordNotFoundError(msg)

    return _row_to_record(row[0], row[1])


async def update_record(*, collection: str, record_id: str, data: dict[str, Any]) -> dict[str, Any]:
    """Merge ``data`` into a document and return the updated document.

    Keys mapped to None are stored as null, which clears the field.
    """
    existing = await get_record(collection=collection, record_id=record_id)
    document = {key: value for key, value in existing.items() if key != "id"}
    document.update({key: value for key, value in data.items() if key not in ("id", "createdAt")})
    document["updatedAt"] = now_iso()

    try:
        conn = await get_connection()
        query = f"UPDATE {collection} SET data = ? WHERE id = ?"  # noqa: S608 - collection is validated
        cursor = await conn.execute(query, (json.dumps(document, default=_json_default), record_id))
        await conn.commit()
    except sqlite3.IntegrityError as e:
        duplicate = _duplicate_key_error(e, document)
        if duplicate is None:
            logger.error("update_record_failed", extra={"collection": collection, "error": str(e)})
            msg = f"Failed to update record in {collection}: {e}"
            raise DatabaseError(msg) from e
        raise duplicate from e
    except Exception as e:
        logger.error("update_record_failed", extra={"collection": collection, "record_id": record_id, "error": str(e)})
        msg = f"Failed to update record in {collection}: {e}"
        raise DatabaseError(msg) from e

    if cursor.rowcount == 0:
        msg = f"Record not found in {collection}: {record_id}"
        raise RecordNotFoundError(msg)

    logger.info("Updated record", extra={"collection": collection, "record_id": record_id})
    return {"id": record_id, **document}


async def delete_record(*, collection: str, record_id: str) -> None:
    """Delete a document by id, raising RecordNotFoundError if absent."""
    _validate_collection_name(collection)
    try:
        conn = await get_connection()
        query = f"DELETE FROM {collection} WHERE id = ?"  # noqa: S608 - collection is validated
        cursor = await conn.execute(query, (record_id,))
        await conn.commit()
    except Exception as e:
        logger.error("delete_record_failed", extra={"collection": collection, "record_id": record_id, "error": str(e)})
        msg = f"Failed to delete record from {collection}: {e}"
        raise DatabaseError(msg) from e

    if cursor.rowcount == 0:
        msg = f"Record not found in {collection}: {record_id}"
        raise RecordNotFoundError(msg)

    logger.info("Deleted record", extra={"collection": collection, "record_id": record_id})


async def delete_records(*, collection: str, query_filter: Filter) -> int:
    """Delete every document matching a non-empty filter and return how many were removed."""
    _validate_collection_name(collection)
    where_clause, params = compile_filter(query_filter)
    if not where_clause:
        msg = "Refusing to bulk delete without a filter"
        raise ValueError(msg)

    try:
        conn = await get_connection()
        query = f"DELETE FROM {collection} WHERE {where_clause}"  # noqa: S608 - clause is parameterised
        cursor = await conn.execute(query, params)
        await conn.commit()
    except Exception as e:
        logger.error("delete_records_failed", extra={"collection": collection, "error": str(e)})
        msg = f"Failed to delete records from {collection}: {e}"
        raise DatabaseError(msg) from e

    logger.info("Deleted records", extra={"collection": collection, "count": cursor.rowcount})
    return cursor.rowcount


async def list_records(
    *,
    collection: str,
    query_filter: Filter | None = None,
    sort: Sort | None = None,
    skip: int = 0,
    limit: int | None = None,
) -> list[dict[str, Any]]:
    """List documents with optional filtering, sorting, and skip/limit pagination."""
    _validate_collection_name(collection)
    where_clause, params = compile_filter(query_filter)
    order_clause, sort_params = compile_sort(sort)
    where_sql = f"WHERE {where_clause}" if where_clause else ""

    query = f"SELECT id, data FROM {collection} {where_sql} ORDER BY {order_clause} LIMIT ? OFFSET ?"  # noqa: S608 - clauses are parameterised
    all_params = [*params, *sort_params, -1 if limit is None else limit, skip]

    try:
        conn = await get_connection()
        cursor = await conn.execute(query, all_params)
        rows = await cursor.fetchall()
    except Exception as e:
        logger.error("list_records_failed", extra={"collection": collection, "error": str(e)})
        msg = f"Failed to list records from {collection}: {e}"
        raise DatabaseError(msg) from e

    records = [_row_to_record(row[0], row[1]) for row in rows]
    logger.info("Listed records", extra={"collection": collection, "count": len(records)})
    return records


async def count_records(*, collection: str, query_filter: Filter | None = None) -> int:
    """Count documents matching a filter."""
    _validate_collection_name(collection)
    where_clause, params = compile_filter(query_filter)
    where_sql = f"WHERE {where_clause}" if where_clause else ""

    try:
        conn = await get_connection()
        cursor = await conn.execute(f"SELECT COUNT(*) FROM {collection} {where_sql}", params)  # noqa: S608 - clause is parameterised
        row = await cursor.fetchone()
    except Exception as e:
        logger.error("count_records_failed", extra={"collection": collection, "error": str(e)})
        msg = f"Failed to count records in {collection}: {e}"
        raise DatabaseError(msg) from e

    return int(row[0]) if row else 0


async def count_by(*, collection: str, field: str, query_filter: Filter | None = None) -> dict[Any, int]:
    """Group matching documents by a field and count each bucket."""
    _validate_collection_name(collection)
    path = _json_path(field)
    where_clause, params = compile_filter(query_filter)
    where_sql = f"WHERE {where_clause}" if where_clause else ""

    query = f"SELECT json_extract(data, ?) AS bucket, COUNT(*) FROM {collection} {where_sql} GROUP BY bucket"  # noqa: S608 - clause is parameterised

    try:
        conn = await get_connection()
        cursor = await conn.execute(query, [path, *params])
        rows = await cursor.fetchall()
    except Exception as e:
        logger.error("count_by_failed", extra={"collection": collection, "field": field, "error": str(e)})
        msg = f"Failed to aggregate records in {collection}: {e}"
        raise DatabaseError(msg) from e

    return {row[0]: int(row[1]) for row in rows}

