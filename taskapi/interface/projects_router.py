"""Project endpoints."""

from typing import Any

from fastapi import APIRouter, Body, Request
from fastapi.responses import JSONResponse

from taskapi.core.config import constants
from taskapi.core.query_builder import build_list_query
from taskapi.core.validation import Operation, ensure_valid_id
from taskapi.domain.queries import PROJECT_QUERY
from taskapi.domain.rules import PROJECT_RULES
from taskapi.interface.responses import created, paginated, success
from taskapi.services import project_service


router = APIRouter(prefix=f"{constants.API_PREFIX}/projects", tags=["projects"])


@router.get("")
async def list_projects(request: Request) -> JSONResponse:
    query = build_list_query(request.query_params, PROJECT_QUERY)
    projects, total = await project_service.list_projects(query=query)
    return paginated(projects, total, query)


@router.get("/{project_id}")
async def get_project(project_id: str) -> JSONResponse:
    project = await project_service.get_project(project_id=ensure_valid_id(project_id, label="Project ID"))
    return success(project.to_public())


@router.post("")
async def create_project(body: dict[str, Any] = Body(...)) -> JSONResponse:
    data = PROJECT_RULES.validate(body, Operation.CREATE)
    project = await project_service.create_project(data=data)
    return created(project.to_public(), message="Project created successfully")


@router.put("/{project_id}")
async def update_project(project_id: str, body: dict[str, Any] = Body(...)) -> JSONResponse:
    ensure_valid_id(project_id, label="Project ID")
    data = PROJECT_RULES.validate(body, Operation.UPDATE)
    project = await project_service.update_project(project_id=project_id, data=data)
    return success(project.to_public(), message="Project updated successfully")


@router.delete("/{project_id}")
async def delete_project(project_id: str) -> JSONResponse:
    await project_service.delete_project(project_id=ensure_valid_id(project_id, label="Project ID"))
    return success(message="Project deleted successfully")
