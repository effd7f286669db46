"""Error taxonomy shared by the validation layer, services and route handlers."""

import math
from typing import Any

from pydantic import BaseModel, field_serializer


def _json_safe(value: Any) -> Any:
    """Replace NaN and infinities, which JSON cannot carry, with None."""
    if isinstance(value, float) and not math.isfinite(value):
        return None
    if isinstance(value, dict):
        return {k: _json_safe(v) for k, v in value.items()}
    if isinstance(value, list | tuple):
        return [_json_safe(v) for v in value]
    return value


class FieldError(BaseModel):
    """A single field-level problem reported back to the client."""

    field: str
    message: str
    value: Any = None

    @field_serializer("value")
    def _serialize_value(self, value: Any) -> Any:
        return _json_safe(value)


class ApiError(Exception):
    """Base class for errors that map onto an HTTP response."""

    status_code: int = 500
    default_message: str = "Internal Server Error"

    def __init__(self, message: str | None = None, *, errors: list[FieldError] | None = None) -> None:
        self.message = message or self.default_message
        self.errors = errors or []
        super().__init__(self.message)


class ValidationError(ApiError):
    """Malformed or out-of-range input."""

    status_code = 400
    default_message = "Validation failed"


class InvalidReferenceError(ApiError):
    """A cross-entity reference points at a record that does not exist."""

    status_code = 400
    default_message = "Referenced record not found"

    def __init__(self, message: str | None = None, *, field: str | None = None, value: Any = None) -> None:
        errors = [FieldError(field=field, message=message or self.default_message, value=value)] if field else None
        super().__init__(message, errors=errors)
        self.field = field


class NotFoundError(ApiError):
    """The addressed record does not exist."""

    status_code = 404
    default_message = "Resource not found"


class DuplicateKeyError(ApiError):
    """A unique field already holds the submitted value."""

    status_code = 409
    default_message = "Duplicate value"

    def __init__(self, field: str, value: Any = None) -> None:
        message = f"{field} already exists"
        super().__init__(message, errors=[FieldError(field=field, message=message, value=value)])
        self.field = field
        self.value = value


class StoreError(ApiError):
    """Unexpected persistence failure. Detail is logged, never returned."""

    status_code = 500
    default_message = "Internal Server Error"


class DatabaseError(StoreError):
    """Raised by the store client when an operation fails."""


class RecordNotFoundError(DatabaseError):
    """Raised by the store client when a record id does not resolve."""
