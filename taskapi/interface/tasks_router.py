"""Task endpoints."""

from typing import Any

from fastapi import APIRouter, Body, Request
from fastapi.responses import JSONResponse

from taskapi.core.config import constants
from taskapi.core.query_builder import build_list_query
from taskapi.core.validation import Operation, ensure_valid_id
from taskapi.domain.queries import TASK_QUERY
from taskapi.domain.rules import TASK_RULES, TASK_STATUS_RULES
from taskapi.interface.responses import created, paginated, success
from taskapi.services import task_service


router = APIRouter(prefix=f"{constants.API_PREFIX}/tasks", tags=["tasks"])


@router.get("")
async def list_tasks(request: Request) -> JSONResponse:
    """List tasks with filtering, search, sorting and pagination."""
    query = build_list_query(request.query_params, TASK_QUERY)
    tasks, total = await task_service.list_tasks(query=query)
    return paginated(tasks, total, query)


@router.get("/stats/summary")
async def get_task_stats() -> JSONResponse:
    stats = await task_service.get_task_stats()
    return success(stats.model_dump(mode="json", by_alias=True))


@router.get("/{task_id}")
async def get_task(task_id: str) -> JSONResponse:
    task = await task_service.get_task(task_id=ensure_valid_id(task_id, label="Task ID"))
    return success(task.to_public())


@router.post("")
async def create_task(body: dict[str, Any] = Body(...)) -> JSONResponse:
    data = TASK_RULES.validate(body, Operation.CREATE)
    task = await task_service.create_task(data=data)
    return created(task.to_public(), message="Task created successfully")


@router.put("/{task_id}")
async def update_task(task_id: str, body: dict[str, Any] = Body(...)) -> JSONResponse:
    ensure_valid_id(task_id, label="Task ID")
    data = TASK_RULES.validate(body, Operation.UPDATE)
    task = await task_service.update_task(task_id=task_id, data=data)
    return success(task.to_public(), message="Task updated successfully")


@router.patch("/{task_id}/status")
async def update_task_status(task_id: str, body: dict[str, Any] = Body(...)) -> JSONResponse:
    """Status-only transition. ``completedAt`` follows the new status."""
    ensure_valid_id(task_id, label="Task ID")
    data = TASK_STATUS_RULES.validate(body, Operation.CREATE)
    task = await task_service.update_task_status(task_id=task_id, status=data["status"])
    return success(task.to_public(), message="Task status updated successfully")


@router.delete("/{task_id}")
async def delete_task(task_id: str) -> JSONResponse:
    task = await task_service.delete_task(task_id=ensure_valid_id(task_id, label="Task ID"))
    return success(task.to_public(), message="Task deleted successfully")
