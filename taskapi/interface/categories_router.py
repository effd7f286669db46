"""Category endpoints."""

from typing import Any

from fastapi import APIRouter, Body, Request
from fastapi.responses import JSONResponse

from taskapi.core.config import constants
from taskapi.core.query_builder import build_list_query
from taskapi.core.validation import Operation, ensure_valid_id
from taskapi.domain.queries import CATEGORY_QUERY
from taskapi.domain.rules import CATEGORY_RULES
from taskapi.interface.responses import created, paginated, success
from taskapi.services import category_service


router = APIRouter(prefix=f"{constants.API_PREFIX}/categories", tags=["categories"])


@router.get("")
async def list_categories(request: Request) -> JSONResponse:
    query = build_list_query(request.query_params, CATEGORY_QUERY)
    categories, total = await category_service.list_categories(query=query)
    return paginated(categories, total, query)


@router.get("/{category_id}")
async def get_category(category_id: str) -> JSONResponse:
    category = await category_service.get_category(category_id=ensure_valid_id(category_id, label="Category ID"))
    return success(category.to_public())


@router.post("")
async def create_category(body: dict[str, Any] = Body(...)) -> JSONResponse:
    data = CATEGORY_RULES.validate(body, Operation.CREATE)
    category = await category_service.create_category(data=data)
    return created(category.to_public(), message="Category created successfully")


@router.put("/{category_id}")
async def update_category(category_id: str, body: dict[str, Any] = Body(...)) -> JSONResponse:
    ensure_valid_id(category_id, label="Category ID")
    data = CATEGORY_RULES.validate(body, Operation.UPDATE)
    category = await category_service.update_category(category_id=category_id, data=data)
    return success(category.to_public(), message="Category updated successfully")


@router.delete("/{category_id}")
async def delete_category(category_id: str) -> JSONResponse:
    await category_service.delete_category(category_id=ensure_valid_id(category_id, label="Category ID"))
    return success(message="Category deleted successfully")
