"""Project service."""

import logging
from typing import Any

from taskapi.core import db_client
from taskapi.core.errors import FieldError, NotFoundError, ValidationError
from taskapi.core.logging import span
from taskapi.core.query_builder import ListQuery
from taskapi.domain.project import Project
from taskapi.domain.rules import end_not_before_start
from taskapi.services.references import ensure_tasks_exist, ensure_user_exists


logger = logging.getLogger(__name__)

COLLECTION = "projects"


async def _get_project_record(project_id: str) -> dict[str, Any]:
    try:
        return await db_client.get_record(collection=COLLECTION, record_id=project_id)
    except db_client.RecordNotFoundError as e:
        raise NotFoundError("Project not found") from e


async def _check_references(data: dict[str, Any]) -> None:
    if "userId" in data:
        await ensure_user_exists(user_id=data["userId"], field="userId")
    if "tasks" in data:
        await ensure_tasks_exist(task_ids=data["tasks"])


async def list_projects(*, query: ListQuery) -> tuple[list[Project], int]:
    """Return one page of projects and the total number of matches."""
    with span("project_service.list_projects"):
        records = await db_client.list_records(
            collection=COLLECTION,
            query_filter=query.filter,
            sort=query.sort,
            skip=query.skip,
            limit=query.limit,
        )
        total = await db_client.count_records(collection=COLLECTION, query_filter=query.filter)
        return [Project.model_validate(record) for record in records], total


async def get_project(*, project_id: str) -> Project:
    with span("project_service.get_project"):
        return Project.model_validate(await _get_project_record(project_id))


async def create_project(*, data: dict[str, Any]) -> Project:
    """Create a project after checking its owner and task references.

    Raises:
        InvalidReferenceError: If ``userId`` or a ``tasks`` entry does not resolve
    """
    with span("project_service.create_project"):
        await _check_references(data)
        created = await db_client.create_record(collection=COLLECTION, data=data)
        logger.info("Created project", extra={"project_id": created["id"], "user_id": created["userId"]})
        return Project.model_validate(created)


async def update_project(*, project_id: str, data: dict[str, Any]) -> Project:
    """Apply a validated partial update.

    The date range is checked against the stored dates when only one side changes.

    Raises:
        NotFoundError: If the project does not exist
        InvalidReferenceError: If ``userId`` or a ``tasks`` entry does not resolve
        ValidationError: If the resulting end date precedes the start date
    """
    with span("project_service.update_project"):
        existing = await _get_project_record(project_id)

        if "startDate" in data or "endDate" in data:
            merged = {**existing, **data}
            if not end_not_before_start(merged):
                raise ValidationError(
                    "Validation failed",
                    errors=[
                        FieldError(
                            field="endDate",
                            message="End date must not be before the start date",
                            value=merged.get("endDate"),
                        )
                    ],
                )

        await _check_references(data)

        try:
            updated = await db_client.update_record(collection=COLLECTION, record_id=project_id, data=data)
        except db_client.RecordNotFoundError as e:
            raise NotFoundError("Project not found") from e

        logger.info("Updated project", extra={"project_id": project_id, "fields": sorted(data)})
        return Project.model_validate(updated)


async def delete_project(*, project_id: str) -> None:
    with span("project_service.delete_project"):
        try:
            await db_client.delete_record(collection=COLLECTION, record_id=project_id)
        except db_client.RecordNotFoundError as e:
            raise NotFoundError("Project not found") from e
        logger.info("Deleted project", extra={"project_id": project_id})
