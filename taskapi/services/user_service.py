"""User service: CRUD, cascading delete and statistics."""

import logging
from dataclasses import dataclass, field
from typing import Any

from taskapi.core import db_client
from taskapi.core.errors import NotFoundError
from taskapi.core.logging import span
from taskapi.core.passwords import hash_password
from taskapi.core.query_builder import ListQuery
from taskapi.domain.user import User, UserStats
from taskapi.services.references import detach_tasks_from_projects


logger = logging.getLogger(__name__)

COLLECTION = "users"


@dataclass
class CascadeResult:
    """What a user delete removed or changed besides the user itself."""

    tasks_deleted: int = 0
    projects_deleted: int = 0
    tasks_unassigned: int = 0
    projects_detached: int = 0
    failures: list[str] = field(default_factory=list)

    def to_public(self) -> dict[str, Any]:
        return {
            "tasksDeleted": self.tasks_deleted,
            "projectsDeleted": self.projects_deleted,
            "tasksUnassigned": self.tasks_unassigned,
            "projectsDetached": self.projects_detached,
            "failures": self.failures,
        }


async def _get_user_record(user_id: str) -> dict[str, Any]:
    try:
        return await db_client.get_record(collection=COLLECTION, record_id=user_id)
    except db_client.RecordNotFoundError as e:
        raise NotFoundError("User not found") from e


def _merge_preferences(current: dict[str, Any], changes: dict[str, Any]) -> dict[str, Any]:
    merged = dict(current)
    for key, value in changes.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge_preferences(merged[key], value)
        else:
            merged[key] = value
    return merged


async def list_users(*, query: ListQuery) -> tuple[list[User], int]:
    """Return one page of users and the total number of matches."""
    with span("user_service.list_users"):
        records = await db_client.list_records(
            collection=COLLECTION,
            query_filter=query.filter,
            sort=query.sort,
            skip=query.skip,
            limit=query.limit,
        )
        total = await db_client.count_records(collection=COLLECTION, query_filter=query.filter)
        return [User.model_validate(record) for record in records], total


async def get_user(*, user_id: str) -> User:
    """Fetch a user by id.

    Raises:
        NotFoundError: If the user does not exist
    """
    with span("user_service.get_user"):
        return User.model_validate(await _get_user_record(user_id))


async def create_user(*, data: dict[str, Any]) -> User:
    """Create a user from a validated record. The password is stored hashed.

    Raises:
        DuplicateKeyError: If the email is already registered
    """
    with span("user_service.create_user"):
        record = {**data, "password": hash_password(data["password"]), "lastLogin": None}
        created = await db_client.create_record(collection=COLLECTION, data=record)
        logger.info("Created user", extra={"user_id": created["id"], "role": created.get("role")})
        return User.model_validate(created)


async def update_user(*, user_id: str, data: dict[str, Any]) -> User:
    """Apply a validated partial update.

    Preferences are merged key by key so a partial object keeps the rest.

    Raises:
        NotFoundError: If the user does not exist
        DuplicateKeyError: If the new email is already registered
    """
    with span("user_service.update_user"):
        existing = await _get_user_record(user_id)

        changes = dict(data)
        if "password" in changes:
            changes["password"] = hash_password(changes["password"])
        if "preferences" in changes:
            changes["preferences"] = _merge_preferences(existing.get("preferences") or {}, changes["preferences"])

        try:
            updated = await db_client.update_record(collection=COLLECTION, record_id=user_id, data=changes)
        except db_client.RecordNotFoundError as e:
            raise NotFoundError("User not found") from e

        logger.info("Updated user", extra={"user_id": user_id, "fields": sorted(changes)})
        return User.model_validate(updated)


async def delete_user(*, user_id: str) -> CascadeResult:
    """Delete a user, their tasks and projects, and unassign tasks assigned to them.

    The user delete is not rolled back when a later step fails. Each failed
    step is logged and listed in the result.

    Raises:
        NotFoundError: If the user does not exist
    """
    with span("user_service.delete_user"):
        try:
            await db_client.delete_record(collection=COLLECTION, record_id=user_id)
        except db_client.RecordNotFoundError as e:
            raise NotFoundError("User not found") from e

        result = CascadeResult()
        owned = {"userId": user_id}

        try:
            owned_tasks = await db_client.list_records(collection="tasks", query_filter=owned)
            result.tasks_deleted = await db_client.delete_records(collection="tasks", query_filter=owned)
            result.projects_detached = await detach_tasks_from_projects(
                task_ids=[task["id"] for task in owned_tasks],
            )
        except db_client.DatabaseError as e:
            result.failures.append("tasks")
            logger.error("User cascade failed to delete tasks", extra={"user_id": user_id, "error": str(e)})

        try:
            result.projects_deleted = await db_client.delete_records(collection="projects", query_filter=owned)
        except db_client.DatabaseError as e:
            result.failures.append("projects")
            logger.error("User cascade failed to delete projects", extra={"user_id": user_id, "error": str(e)})

        try:
            assigned = await db_client.list_records(collection="tasks", query_filter={"assignedTo": user_id})
            for task in assigned:
                await db_client.update_record(collection="tasks", record_id=task["id"], data={"assignedTo": None})
                result.tasks_unassigned += 1
        except db_client.DatabaseError as e:
            result.failures.append("assignments")
            logger.error("User cascade failed to clear assignments", extra={"user_id": user_id, "error": str(e)})

        logger.info(
            "Deleted user",
            extra={
                "user_id": user_id,
                "tasks_deleted": result.tasks_deleted,
                "projects_deleted": result.projects_deleted,
                "tasks_unassigned": result.tasks_unassigned,
                "failures": result.failures,
            },
        )
        return result


async def get_user_stats() -> UserStats:
    """Totals, active/inactive split, and counts by role and department."""
    with span("user_service.get_user_stats"):
        stats = UserStats()
        stats.total = await db_client.count_records(collection=COLLECTION)
        stats.active = await db_client.count_records(collection=COLLECTION, query_filter={"isActive": True})
        stats.inactive = stats.total - stats.active

        for role, count in (await db_client.count_by(collection=COLLECTION, field="role")).items():
            if role is not None:
                stats.by_role[role] = stats.by_role.get(role, 0) + count

        departments = await db_client.count_by(collection=COLLECTION, field="department")
        stats.by_department = {department: count for department, count in departments.items() if department}
        return stats
