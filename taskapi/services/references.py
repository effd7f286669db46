"""Cross-entity reference checks and clean-up shared by the services."""

import logging

from taskapi.core import db_client
from taskapi.core.errors import DatabaseError, InvalidReferenceError


logger = logging.getLogger(__name__)


async def ensure_user_exists(*, user_id: str | None, field: str, message: str = "User not found") -> None:
    """Raise InvalidReferenceError unless ``user_id`` is unset or names an existing user."""
    if user_id is None:
        return
    try:
        await db_client.get_record(collection="users", record_id=user_id)
    except db_client.RecordNotFoundError as e:
        logger.info("Dangling user reference", extra={"field": field, "user_id": user_id})
        raise InvalidReferenceError(message, field=field, value=user_id) from e


async def ensure_tasks_exist(*, task_ids: list[str], field: str = "tasks") -> None:
    """Raise InvalidReferenceError naming the first task id that does not resolve."""
    if not task_ids:
        return
    found = await db_client.list_records(collection="tasks", query_filter={"id": {"$in": task_ids}})
    found_ids = {record["id"] for record in found}
    for index, task_id in enumerate(task_ids):
        if task_id not in found_ids:
            logger.info("Dangling task reference", extra={"field": field, "task_id": task_id})
            raise InvalidReferenceError("Task not found", field=f"{field}[{index}]", value=task_id)


async def detach_tasks_from_projects(*, task_ids: list[str]) -> int:
    """Remove task ids from every project that lists them. Returns the number of projects changed.

    Best-effort: a project that fails to update is logged and skipped.
    """
    if not task_ids:
        return 0

    removed = set(task_ids)
    projects = await db_client.list_records(
        collection="projects",
        query_filter={"$or": [{"tasks": {"$contains": task_id}} for task_id in task_ids]},
    )

    updated = 0
    for project in projects:
        remaining = [task_id for task_id in project.get("tasks", []) if task_id not in removed]
        try:
            await db_client.update_record(collection="projects", record_id=project["id"], data={"tasks": remaining})
            updated += 1
        except DatabaseError as e:
            logger.error(
                "Failed to detach tasks from project",
                extra={"project_id": project["id"], "error": str(e)},
            )
    return updated
