"""Static endpoint catalog."""

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from taskapi.core.config import constants


router = APIRouter(prefix=constants.API_PREFIX, tags=["docs"])

ENDPOINTS: dict[str, dict[str, str]] = {
    "users": {
        "GET /users": "List users with filtering, search and pagination",
        "GET /users/stats/summary": "User counts by role, department and activity",
        "GET /users/:id": "Get a user by ID",
        "POST /users": "Create a new user",
        "PUT /users/:id": "Update a user by ID",
        "DELETE /users/:id": "Delete a user by ID with their tasks and projects",
    },
    "tasks": {
        "GET /tasks": "List tasks with filtering, search, sorting and pagination",
        "GET /tasks/stats/summary": "Task counts by status, priority and category",
        "GET /tasks/:id": "Get a task by ID",
        "POST /tasks": "Create a new task",
        "PUT /tasks/:id": "Update a task by ID",
        "PATCH /tasks/:id/status": "Change the status of a task",
        "DELETE /tasks/:id": "Delete a task by ID",
    },
    "categories": {
        "GET /categories": "List categories",
        "GET /categories/:id": "Get a category by ID",
        "POST /categories": "Create a new category",
        "PUT /categories/:id": "Update a category by ID",
        "DELETE /categories/:id": "Delete a category by ID",
    },
    "projects": {
        "GET /projects": "List projects with filtering options",
        "GET /projects/:id": "Get a project by ID",
        "POST /projects": "Create a new project",
        "PUT /projects/:id": "Update a project by ID",
        "DELETE /projects/:id": "Delete a project by ID",
    },
}


@router.get("/docs")
async def get_docs() -> JSONResponse:
    return JSONResponse(
        content={
            "title": f"{constants.API_TITLE} Documentation",
            "version": constants.API_VERSION,
            "description": "RESTful API for managing tasks, users, categories, and projects",
            "baseURL": constants.API_PREFIX,
            "endpoints": ENDPOINTS,
        }
    )
