"""Task Management API - REST service for users, tasks, categories and projects."""

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from taskapi.core.config import constants
from taskapi.core.db_client import close_connection, init_db
from taskapi.core.errors import ApiError, FieldError, StoreError
from taskapi.core.logging import configure_logfire, instrument_fastapi
from taskapi.core.timestamps import now_iso
from taskapi.interface.categories_router import router as categories_router
from taskapi.interface.docs_router import router as docs_router
from taskapi.interface.projects_router import router as projects_router
from taskapi.interface.responses import error
from taskapi.interface.tasks_router import router as tasks_router
from taskapi.interface.users_router import router as users_router


logger = logging.getLogger(__name__)

STARTED_AT = time.monotonic()


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan context manager."""
    # Startup
    configure_logfire()

    await init_db()
    logger.info("Database initialized")

    yield
    # Shutdown
    await close_connection()


app = FastAPI(
    title=constants.API_TITLE,
    description="RESTful API for managing tasks, users, categories, and projects",
    version=constants.API_VERSION,
    lifespan=lifespan,
)

# Instrument FastAPI with Logfire
instrument_fastapi(app)

# Register routers
app.include_router(users_router)
app.include_router(tasks_router)
app.include_router(categories_router)
app.include_router(projects_router)
app.include_router(docs_router)


@app.exception_handler(ApiError)
async def handle_api_error(request: Request, exc: ApiError) -> JSONResponse:
    if isinstance(exc, StoreError):
        logger.error("store_error", extra={"path": request.url.path, "error": exc.message})
        return error(StoreError.default_message, status_code=exc.status_code)
    logger.info(
        "request_rejected",
        extra={"path": request.url.path, "status_code": exc.status_code, "error": exc.message},
    )
    return error(exc.message, status_code=exc.status_code, errors=exc.errors)


@app.exception_handler(RequestValidationError)
async def handle_request_validation_error(_request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = [
        FieldError(
            field=".".join(str(part) for part in e.get("loc", ()) if part != "body") or "body",
            message=e.get("msg", "Invalid value"),
        )
        for e in exc.errors()
    ]
    return error("Invalid request body", status_code=status.HTTP_400_BAD_REQUEST, errors=errors)


@app.exception_handler(StarletteHTTPException)
async def handle_http_exception(_request: Request, exc: StarletteHTTPException) -> JSONResponse:
    if exc.status_code == status.HTTP_404_NOT_FOUND:
        return error("Route not found", status_code=exc.status_code)
    return error(str(exc.detail), status_code=exc.status_code)


@app.exception_handler(Exception)
async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("unhandled_error", extra={"path": request.url.path, "error": str(exc)})
    return error("Internal Server Error", status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)


@app.get("/health")
async def health_check() -> JSONResponse:
    """Health check endpoint."""
    return JSONResponse(
        content={
            "status": "healthy",
            "timestamp": now_iso(),
            "uptime": round(time.monotonic() - STARTED_AT, 3),
        },
        status_code=200,
    )
