"""Document store schema management (code-first approach)."""

import logging

import aiosqlite


logger = logging.getLogger(__name__)


# Central list of all collections and the document fields that must be unique
COLLECTIONS: dict[str, tuple[str, ...]] = {
    "users": ("email",),
    "tasks": (),
    "categories": ("name",),
    "projects": (),
}


def unique_index_name(collection: str, field: str) -> str:
    """Return the name of the unique index backing a document field."""
    return f"idx_{collection}_{field}_unique"


def field_for_index(index_name: str) -> str | None:
    """Map a unique index name back to the document field it guards."""
    for collection, fields in COLLECTIONS.items():
        for field in fields:
            if unique_index_name(collection, field) == index_name:
                return field
    return None


def _create_statements(collection: str, unique_fields: tuple[str, ...]) -> list[str]:
    """Build the DDL for one collection table and its unique expression indexes."""
    statements = [
        f"CREATE TABLE IF NOT EXISTS {collection} (id TEXT PRIMARY KEY, data TEXT NOT NULL)",
    ]
    for field in unique_fields:
        # Expression indexes need a literal JSON path; field names come from COLLECTIONS only
        statements.append(
            f"CREATE UNIQUE INDEX IF NOT EXISTS {unique_index_name(collection, field)} "
            f"ON {collection} (json_extract(data, '$.{field}'))"
        )
    return statements


async def sync_schema(conn: aiosqlite.Connection) -> None:
    """Create every collection table and unique index that does not exist yet."""
    for collection, unique_fields in COLLECTIONS.items():
        for statement in _create_statements(collection, unique_fields):
            await conn.execute(statement)
    await conn.commit()
    logger.info("Schema synchronized", extra={"collections": list(COLLECTIONS)})
