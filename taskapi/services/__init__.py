from taskapi.services import (
    category_service,
    project_service,
    task_service,
    user_service,
)


__all__ = [
    "category_service",
    "project_service",
    "task_service",
    "user_service",
]
