"""
HTTP exceptions with a stable machine-readable ``kind``.

Raised from routers and services alike; ``app.main`` renders them as
``{"kind": ..., "message": ...}``.
"""
from typing import Any, Optional, Sequence

from fastapi import HTTPException, status


def describe_validation_errors(errors: Sequence[Any]) -> str:
    """Flatten pydantic/FastAPI validation errors into one human-readable line."""
    parts = []
    for error in errors:
        location = ".".join(
            str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")
        )
        parts.append(f"{location}: {error.get('msg')}" if location else str(error.get("msg")))
    return "; ".join(parts) or "Invalid input"


class AppException(HTTPException):
    """Base class for all application errors."""

    status_code_default: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    kind: str = "internal_error"
    default_message: str = "Internal server error"

    def __init__(self, message: Optional[str] = None, headers: Optional[dict[str, str]] = None):
        self.message = message or self.default_message
        super().__init__(
            status_code=self.status_code_default,
            detail=self.message,
            headers=headers,
        )


class BadRequestException(AppException):
    status_code_default = status.HTTP_400_BAD_REQUEST
    kind = "bad_request"
    default_message = "Bad request"


class ValidationException(BadRequestException):
    kind = "validation_error"
    default_message = "Invalid input"


class UnauthorizedException(AppException):
    status_code_default = status.HTTP_401_UNAUTHORIZED
    kind = "unauthorized"
    default_message = "Could not validate credentials"

    def __init__(self, message: Optional[str] = None):
        super().__init__(message, headers={"WWW-Authenticate": "Bearer"})


class ForbiddenException(AppException):
    status_code_default = status.HTTP_403_FORBIDDEN
    kind = "forbidden"
    default_message = "Not authorized to perform this action"


class NotFoundException(AppException):
    status_code_default = status.HTTP_404_NOT_FOUND
    kind = "not_found"
    default_message = "Resource not found"


class UploadError(AppException):
    """Image host rejected or timed out on an upload."""

    status_code_default = status.HTTP_400_BAD_REQUEST
    kind = "upload_failed"
    default_message = "Failed to upload images"


class DeleteError(AppException):
    """Image host rejected or timed out on a delete."""

    status_code_default = status.HTTP_502_BAD_GATEWAY
    kind = "delete_failed"
    default_message = "Failed to delete images"
