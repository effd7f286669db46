"""Response envelope helpers.

Every endpoint answers ``{"success": true, "data": ...}`` on success and
``{"success": false, "message": ..., "errors": [...]}`` on failure.
"""

import math
from collections.abc import Sequence
from typing import Any

from fastapi import status
from fastapi.responses import JSONResponse

from taskapi.core.errors import FieldError
from taskapi.core.query_builder import ListQuery
from taskapi.domain.base import Document


def build_pagination(*, page: int, limit: int, total: int) -> dict[str, Any]:
    """Pagination block for list responses. ``totalPages`` is ``ceil(total / limit)``."""
    total_pages = math.ceil(total / limit) if limit else 0
    return {
        "currentPage": page,
        "totalPages": total_pages,
        "totalItems": total,
        "hasNextPage": page < total_pages,
        "hasPrevPage": page > 1,
    }


def success(
    data: Any = None,
    *,
    message: str | None = None,
    status_code: int = status.HTTP_200_OK,
    **extra: Any,
) -> JSONResponse:
    content: dict[str, Any] = {"success": True}
    if message is not None:
        content["message"] = message
    if data is not None:
        content["data"] = data
    content.update(extra)
    return JSONResponse(content=content, status_code=status_code)


def created(data: Any, *, message: str) -> JSONResponse:
    return success(data, message=message, status_code=status.HTTP_201_CREATED)


def paginated(items: Sequence[Document], total: int, query: ListQuery) -> JSONResponse:
    """Page of documents with ``count`` and ``pagination``."""
    return success(
        [item.to_public() for item in items],
        count=len(items),
        pagination=build_pagination(page=query.page, limit=query.limit, total=total),
    )


def error(message: str, *, status_code: int, errors: Sequence[FieldError] | None = None) -> JSONResponse:
    content: dict[str, Any] = {"success": False, "message": message}
    if errors:
        content["errors"] = [e.model_dump(mode="json") for e in errors]
    return JSONResponse(content=content, status_code=status_code)
