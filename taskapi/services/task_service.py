"""Task service: CRUD, status transitions and aggregate statistics."""

import logging
from typing import Any

from taskapi.core import db_client
from taskapi.core.errors import NotFoundError
from taskapi.core.logging import span
from taskapi.core.query_builder import ListQuery
from taskapi.domain.queries import overdue_filter
from taskapi.domain.task import Task, TaskStats, resolve_completed_at
from taskapi.services.references import detach_tasks_from_projects, ensure_user_exists


logger = logging.getLogger(__name__)

COLLECTION = "tasks"


async def _get_task_record(task_id: str) -> dict[str, Any]:
    try:
        return await db_client.get_record(collection=COLLECTION, record_id=task_id)
    except db_client.RecordNotFoundError as e:
        raise NotFoundError("Task not found") from e


async def _check_references(data: dict[str, Any]) -> None:
    if "assignedTo" in data:
        await ensure_user_exists(user_id=data["assignedTo"], field="assignedTo", message="Assigned user not found")
    if "userId" in data:
        await ensure_user_exists(user_id=data["userId"], field="userId")


async def list_tasks(*, query: ListQuery) -> tuple[list[Task], int]:
    """Return one page of tasks and the total number of matches."""
    with span("task_service.list_tasks"):
        records = await db_client.list_records(
            collection=COLLECTION,
            query_filter=query.filter,
            sort=query.sort,
            skip=query.skip,
            limit=query.limit,
        )
        total = await db_client.count_records(collection=COLLECTION, query_filter=query.filter)
        return [Task.model_validate(record) for record in records], total


async def get_task(*, task_id: str) -> Task:
    """Fetch a task by id.

    Raises:
        NotFoundError: If the task does not exist
    """
    with span("task_service.get_task"):
        return Task.model_validate(await _get_task_record(task_id))


async def create_task(*, data: dict[str, Any]) -> Task:
    """Create a task from a validated record.

    ``completedAt`` is set when the task is created already completed.

    Raises:
        InvalidReferenceError: If ``assignedTo`` or ``userId`` names no user
    """
    with span("task_service.create_task"):
        await _check_references(data)

        record = {**data, "completedAt": resolve_completed_at(status=data["status"])}
        created = await db_client.create_record(collection=COLLECTION, data=record)

        logger.info("Created task", extra={"task_id": created["id"], "status": created["status"]})
        return Task.model_validate(created)


async def update_task(*, task_id: str, data: dict[str, Any]) -> Task:
    """Apply a validated partial update.

    Supplying ``status`` re-derives ``completedAt``.

    Raises:
        NotFoundError: If the task does not exist
        InvalidReferenceError: If ``assignedTo`` or ``userId`` names no user
    """
    with span("task_service.update_task"):
        existing = await _get_task_record(task_id)
        await _check_references(data)

        changes = dict(data)
        if "status" in changes:
            changes["completedAt"] = resolve_completed_at(
                status=changes["status"],
                previous_status=existing.get("status"),
                previous_completed_at=existing.get("completedAt"),
            )

        try:
            updated = await db_client.update_record(collection=COLLECTION, record_id=task_id, data=changes)
        except db_client.RecordNotFoundError as e:
            raise NotFoundError("Task not found") from e

        logger.info("Updated task", extra={"task_id": task_id, "fields": sorted(changes)})
        return Task.model_validate(updated)


async def update_task_status(*, task_id: str, status: str) -> Task:
    """Move a task to a new status, maintaining ``completedAt``.

    Raises:
        NotFoundError: If the task does not exist
    """
    with span("task_service.update_task_status"):
        existing = await _get_task_record(task_id)
        changes = {
            "status": status,
            "completedAt": resolve_completed_at(
                status=status,
                previous_status=existing.get("status"),
                previous_completed_at=existing.get("completedAt"),
            ),
        }

        try:
            updated = await db_client.update_record(collection=COLLECTION, record_id=task_id, data=changes)
        except db_client.RecordNotFoundError as e:
            raise NotFoundError("Task not found") from e

        logger.info(
            "Task status changed",
            extra={"task_id": task_id, "from_status": existing.get("status"), "to_status": status},
        )
        return Task.model_validate(updated)


async def delete_task(*, task_id: str) -> Task:
    """Delete a task and drop it from every project that lists it.

    Returns the deleted task.

    Raises:
        NotFoundError: If the task does not exist
    """
    with span("task_service.delete_task"):
        existing = await _get_task_record(task_id)
        try:
            await db_client.delete_record(collection=COLLECTION, record_id=task_id)
        except db_client.RecordNotFoundError as e:
            raise NotFoundError("Task not found") from e

        try:
            projects_updated = await detach_tasks_from_projects(task_ids=[task_id])
        except db_client.DatabaseError as e:
            projects_updated = 0
            logger.error("Failed to detach deleted task from projects", extra={"task_id": task_id, "error": str(e)})

        logger.info("Deleted task", extra={"task_id": task_id, "projects_updated": projects_updated})
        return Task.model_validate(existing)


async def get_task_stats() -> TaskStats:
    """Counts by status, priority and category plus the overdue total."""
    with span("task_service.get_task_stats"):
        stats = TaskStats()
        stats.total = await db_client.count_records(collection=COLLECTION)
        stats.overdue = await db_client.count_records(collection=COLLECTION, query_filter=overdue_filter())

        for field, buckets in (
            ("status", stats.by_status),
            ("priority", stats.by_priority),
            ("category", stats.by_category),
        ):
            counts = await db_client.count_by(collection=COLLECTION, field=field)
            for value, count in counts.items():
                if value is not None:
                    buckets[value] = buckets.get(value, 0) + count

        return stats
