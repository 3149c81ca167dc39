"""
Custom exception hierarchy for the vitality service.

Rule: every HTTP error has a machine-readable `code` string so clients
can branch on it without parsing English messages.

Invariant violations found mid-computation (a negative count persisted by a
bug, health outside 0-100) are NOT exceptions: the engine clamps the value
and logs a warning instead. Absence (no ledger entry, empty checklist) is
ordinary input and never raises either.
"""
from __future__ import annotations

import logging
from typing import Any

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette import status

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Exception classes
# ---------------------------------------------------------------------------

class AppException(Exception):
    """Base class for all application-level errors."""
    http_status: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    code: str = "INTERNAL_ERROR"

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict:
        payload: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.details:
            payload["details"] = self.details
        return payload


class ValidationFailedError(AppException):
    """A boundary rule the request schema cannot express on its own."""
    http_status = status.HTTP_422_UNPROCESSABLE_ENTITY
    code = "VALIDATION_FAILED"

    def __init__(self, field: str, message: str):
        super().__init__(message=message, details={"field": field})


class MissingUserError(AppException):
    http_status = status.HTTP_401_UNAUTHORIZED
    code = "USER_REQUIRED"

    def __init__(self):
        super().__init__(message="X-User-Id header is required.")


class NotFoundError(AppException):
    http_status = status.HTTP_404_NOT_FOUND
    code = "NOT_FOUND"
    resource: str = "resource"

    def __init__(self, resource_id: int):
        super().__init__(
            message=f"{self.resource.capitalize()} {resource_id} not found.",
            details={"id": resource_id},
        )


class UserNotFoundError(NotFoundError):
    code = "USER_NOT_FOUND"
    resource = "user"


class HabitNotFoundError(NotFoundError):
    code = "HABIT_NOT_FOUND"
    resource = "habit"


class GoalNotFoundError(NotFoundError):
    code = "GOAL_NOT_FOUND"
    resource = "goal"


class ChecklistStepNotFoundError(NotFoundError):
    code = "CHECKLIST_STEP_NOT_FOUND"
    resource = "checklist step"


class ParentNotFoundError(AppException):
    http_status = status.HTTP_404_NOT_FOUND
    code = "PARENT_NOT_FOUND"

    def __init__(self, parent_type: str, parent_id: int):
        super().__init__(
            message=f"No {parent_type} {parent_id} to attach checklist steps to.",
            details={"parent_type": parent_type, "parent_id": parent_id},
        )


class GoalTypeMismatchError(AppException):
    http_status = status.HTTP_409_CONFLICT
    code = "GOAL_TYPE_MISMATCH"

    def __init__(self, goal_id: int, goal_type: str, operation: str):
        super().__init__(
            message=f"Goal {goal_id} is '{goal_type}'; {operation} applies to counted goals only.",
            details={"goal_id": goal_id, "goal_type": goal_type, "operation": operation},
        )


# ---------------------------------------------------------------------------
# FastAPI exception handlers
# ---------------------------------------------------------------------------

async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.http_status,
        content=exc.to_dict(),
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Return structured 422 with machine-readable field errors."""
    field_errors = []
    for error in exc.errors():
        field_errors.append({
            "field": ".".join(str(loc) for loc in error["loc"] if loc != "body"),
            "message": error["msg"],
            "type": error["type"],
        })
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "code": "VALIDATION_ERROR",
            "message": "Request validation failed.",
            "details": {"errors": field_errors},
        },
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "code": "INTERNAL_ERROR",
            "message": "An unexpected error occurred.",
        },
    )
