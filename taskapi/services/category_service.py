"""Category service."""

import logging
from typing import Any

from taskapi.core import db_client
from taskapi.core.errors import NotFoundError
from taskapi.core.logging import span
from taskapi.core.query_builder import ListQuery
from taskapi.domain.category import Category


logger = logging.getLogger(__name__)

COLLECTION = "categories"


async def list_categories(*, query: ListQuery) -> tuple[list[Category], int]:
    """Return one page of categories and the total number of matches."""
    with span("category_service.list_categories"):
        records = await db_client.list_records(
            collection=COLLECTION,
            query_filter=query.filter,
            sort=query.sort,
            skip=query.skip,
            limit=query.limit,
        )
        total = await db_client.count_records(collection=COLLECTION, query_filter=query.filter)
        return [Category.model_validate(record) for record in records], total


async def get_category(*, category_id: str) -> Category:
    with span("category_service.get_category"):
        try:
            record = await db_client.get_record(collection=COLLECTION, record_id=category_id)
        except db_client.RecordNotFoundError as e:
            raise NotFoundError("Category not found") from e
        return Category.model_validate(record)


async def create_category(*, data: dict[str, Any]) -> Category:
    """Create a category.

    Raises:
        DuplicateKeyError: If the name is taken
    """
    with span("category_service.create_category"):
        created = await db_client.create_record(collection=COLLECTION, data=data)
        logger.info("Created category", extra={"category_id": created["id"]})
        return Category.model_validate(created)


async def update_category(*, category_id: str, data: dict[str, Any]) -> Category:
    with span("category_service.update_category"):
        try:
            updated = await db_client.update_record(collection=COLLECTION, record_id=category_id, data=data)
        except db_client.RecordNotFoundError as e:
            raise NotFoundError("Category not found") from e
        logger.info("Updated category", extra={"category_id": category_id, "fields": sorted(data)})
        return Category.model_validate(updated)


async def delete_category(*, category_id: str) -> None:
    with span("category_service.delete_category"):
        try:
            await db_client.delete_record(collection=COLLECTION, record_id=category_id)
        except db_client.RecordNotFoundError as e:
            raise NotFoundError("Category not found") from e
        logger.info("Deleted category", extra={"category_id": category_id})
