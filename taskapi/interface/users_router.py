"""User endpoints."""

from typing import Any

from fastapi import APIRouter, Body, Request
from fastapi.responses import JSONResponse

from taskapi.core.config import constants
from taskapi.core.query_builder import build_list_query
from taskapi.core.validation import Operation, ensure_valid_id
from taskapi.domain.queries import USER_QUERY
from taskapi.domain.rules import USER_RULES
from taskapi.interface.responses import created, paginated, success
from taskapi.services import user_service


router = APIRouter(prefix=f"{constants.API_PREFIX}/users", tags=["users"])


@router.get("")
async def list_users(request: Request) -> JSONResponse:
    query = build_list_query(request.query_params, USER_QUERY)
    users, total = await user_service.list_users(query=query)
    return paginated(users, total, query)


@router.get("/stats/summary")
async def get_user_stats() -> JSONResponse:
    stats = await user_service.get_user_stats()
    return success(stats.model_dump(mode="json", by_alias=True))


@router.get("/{user_id}")
async def get_user(user_id: str) -> JSONResponse:
    user = await user_service.get_user(user_id=ensure_valid_id(user_id, label="User ID"))
    return success(user.to_public())


@router.post("")
async def create_user(body: dict[str, Any] = Body(...)) -> JSONResponse:
    data = USER_RULES.validate(body, Operation.CREATE)
    user = await user_service.create_user(data=data)
    return created(user.to_public(), message="User created successfully")


@router.put("/{user_id}")
async def update_user(user_id: str, body: dict[str, Any] = Body(...)) -> JSONResponse:
    ensure_valid_id(user_id, label="User ID")
    data = USER_RULES.validate(body, Operation.UPDATE)
    user = await user_service.update_user(user_id=user_id, data=data)
    return success(user.to_public(), message="User updated successfully")


@router.delete("/{user_id}")
async def delete_user(user_id: str) -> JSONResponse:
    """Delete a user together with their tasks and projects."""
    result = await user_service.delete_user(user_id=ensure_valid_id(user_id, label="User ID"))
    return success(result.to_public(), message="User deleted successfully")
