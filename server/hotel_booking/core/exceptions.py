"""Custom exceptions following RFC 9457 Problem Details for HTTP APIs."""

import logging
import uuid
from datetime import date, datetime, timezone
from typing import Any, Dict, Iterable, Optional

from fastapi import HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)

PROBLEM_BASE_URI = "https://hotel-booking.example.com/problems"


class ProblemDetailsException(HTTPException):
    """
    Base exception class following RFC 9457 Problem Details for HTTP APIs.

    https://tools.ietf.org/rfc/rfc9457.txt
    """

    def __init__(
        self,
        status_code: int,
        title: str,
        detail: Optional[str] = None,
        type_uri: Optional[str] = None,
        instance: Optional[str] = None,
        extensions: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ):
        """
        Initialize Problem Details exception.

        Args:
            status_code: HTTP status code
            title: Short, human-readable summary of the problem type
            detail: Human-readable explanation specific to this occurrence
            type_uri: URI reference that identifies the problem type
            instance: URI reference that identifies the specific occurrence
            extensions: Additional problem-specific information
            headers: HTTP headers to include in response
        """
        self.status_code = status_code
        self.title = title
        self.type_uri = type_uri or f"about:blank#{status_code}"
        self.instance = instance
        self.extensions = extensions or {}

        self.problem_details = {
            "type": self.type_uri,
            "title": self.title,
            "status": self.status_code,
        }

        if detail:
            self.problem_details["detail"] = detail

        if self.instance:
            self.problem_details["instance"] = self.instance

        self.problem_details.update(self.extensions)

        super().__init__(
            status_code=status_code,
            detail=detail,
            headers=headers
        )

    @property
    def code(self) -> Optional[str]:
        """Application-specific error code, if any."""
        return self.problem_details.get("code")


class ValidationError(ProblemDetailsException):
    """Exception for request validation errors."""

    def __init__(
        self,
        detail: str = "The request data failed validation",
        violations: Optional[list[dict[str, str]]] = None,
        instance: Optional[str] = None,
    ):
        extensions: Dict[str, Any] = {"code": "VALIDATION_ERROR", "retryable": False}
        if violations:
            extensions["violations"] = violations

        super().__init__(
            status_code=400,
            title="Validation Error",
            detail=detail,
            type_uri=f"{PROBLEM_BASE_URI}/validation-error",
            instance=instance,
            extensions=extensions,
        )


class AuthenticationError(ProblemDetailsException):
    """Exception for authentication errors."""

    def __init__(
        self,
        detail: str = "Authentication credentials are required",
        instance: Optional[str] = None,
    ):
        super().__init__(
            status_code=401,
            title="Authentication Required",
            detail=detail,
            type_uri=f"{PROBLEM_BASE_URI}/authentication-required",
            instance=instance,
            extensions={"code": "UNAUTHENTICATED"},
            headers={"WWW-Authenticate": "Bearer"},
        )


class AuthorizationError(ProblemDetailsException):
    """Exception for authorization errors (Forbidden)."""

    def __init__(
        self,
        detail: str = "Insufficient permissions to access this resource",
        required_permissions: Optional[list] = None,
        instance: Optional[str] = None,
    ):
        extensions: Dict[str, Any] = {"code": "FORBIDDEN", "retryable": False}
        if required_permissions:
            extensions["required_permissions"] = required_permissions

        super().__init__(
            status_code=403,
            title="Access Forbidden",
            detail=detail,
            type_uri=f"{PROBLEM_BASE_URI}/access-forbidden",
            instance=instance,
            extensions=extensions,
        )


class NotFoundError(ProblemDetailsException):
    """Exception for resource not found errors."""

    def __init__(
        self,
        resource_type: str = "resource",
        resource_id: Optional[str] = None,
        detail: Optional[str] = None,
        instance: Optional[str] = None,
    ):
        if not detail:
            detail = f"The requested {resource_type}"
            if resource_id:
                detail += f" with ID '{resource_id}'"
            detail += " could not be found"

        extensions = {
            "code": "NOT_FOUND",
            "retryable": False,
            "resource_type": resource_type,
        }
        if resource_id:
            extensions["resource_id"] = resource_id

        super().__init__(
            status_code=404,
            title="Resource Not Found",
            detail=detail,
            type_uri=f"{PROBLEM_BASE_URI}/resource-not-found",
            instance=instance,
            extensions=extensions,
        )


class ConflictError(ProblemDetailsException):
    """Exception for resource conflict errors."""

    def __init__(
        self,
        detail: str = "The request conflicts with the current state of the resource",
        conflicting_resource: Optional[Dict[str, Any]] = None,
        instance: Optional[str] = None,
    ):
        extensions: Dict[str, Any] = {}
        if conflicting_resource:
            extensions["conflicting_resource"] = conflicting_resource

        super().__init__(
            status_code=409,
            title="Resource Conflict",
            detail=detail,
            type_uri=f"{PROBLEM_BASE_URI}/resource-conflict",
            instance=instance,
            extensions=extensions,
        )


# Business logic exceptions

class RoomUnavailableError(ConflictError):
    """Exception when a room-number already has reservations inside the requested stay."""

    def __init__(
        self,
        room_id: str,
        room_number: int,
        conflicting_dates: Iterable[date] = (),
        detail: Optional[str] = None,
    ):
        days = sorted(conflicting_dates)
        if not detail:
            detail = f"Room {room_number} is not available for the selected dates"
            if days:
                detail += f" (already reserved: {', '.join(d.isoformat() for d in days)})"

        super().__init__(
            detail=detail,
            conflicting_resource={
                "room_id": room_id,
                "room_number": room_number,
                "dates": [d.isoformat() for d in days],
            },
        )
        self.problem_details.update({
            "title": "Room Unavailable",
            "type": f"{PROBLEM_BASE_URI}/room-unavailable",
            "code": "ROOM_UNAVAILABLE",
            "retryable": False,
        })


class InvalidStateError(ProblemDetailsException):
    """Exception when an operation targets a booking in a terminal status."""

    def __init__(
        self,
        booking_id: str,
        current_status: str,
        detail: Optional[str] = None,
    ):
        if not detail:
            detail = f"Booking cannot be cancelled (current status: {current_status})"

        super().__init__(
            status_code=409,
            title="Invalid Booking State",
            detail=detail,
            type_uri=f"{PROBLEM_BASE_URI}/invalid-state",
            extensions={
                "code": "INVALID_STATE",
                "retryable": False,
                "booking_id": booking_id,
                "status": current_status,
            },
        )


class InconsistencyError(ProblemDetailsException):
    """Exception when bookings and the availability ledger disagree."""

    def __init__(self, detail: str, booking_id: Optional[str] = None):
        extensions: Dict[str, Any] = {
            "code": "INCONSISTENCY",
            "retryable": False,
            "error_id": str(uuid.uuid4()),
        }
        if booking_id:
            extensions["booking_id"] = booking_id

        super().__init__(
            status_code=500,
            title="Booking Inconsistency",
            detail=detail,
            type_uri=f"{PROBLEM_BASE_URI}/inconsistency",
            extensions=extensions,
        )


def _utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


async def problem_details_handler(request: Request, exc: ProblemDetailsException) -> JSONResponse:
    """
    Exception handler for Problem Details exceptions.

    Args:
        request: FastAPI request object
        exc: Problem Details exception

    Returns:
        JSONResponse: Problem Details formatted response
    """
    content = dict(exc.problem_details)
    content.setdefault("instance", request.url.path)
    return JSONResponse(
        status_code=exc.status_code,
        content=content,
        headers=exc.headers,
        media_type="application/problem+json",
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """
    Convert FastAPI request validation failures to Problem Details with violations.

    Args:
        request: FastAPI request object
        exc: Request validation error raised by FastAPI

    Returns:
        JSONResponse: Problem Details formatted response
    """
    violations = [
        {
            "path": ".".join(str(part) for part in error.get("loc", ())),
            "message": error.get("msg", "Invalid value"),
        }
        for error in exc.errors()
    ]

    return JSONResponse(
        status_code=422,
        content={
            "type": f"{PROBLEM_BASE_URI}/validation-error",
            "title": "Validation Error",
            "status": 422,
            "detail": "The request data failed validation",
            "instance": request.url.path,
            "code": "VALIDATION_ERROR",
            "retryable": False,
            "violations": violations,
        },
        media_type="application/problem+json",
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Generic exception handler that converts unhandled exceptions to Problem Details format.

    Args:
        request: FastAPI request object
        exc: Unhandled exception

    Returns:
        JSONResponse: Problem Details formatted response
    """
    error_id = str(uuid.uuid4())

    logger.error(
        "Unhandled exception",
        extra={"error_id": error_id, "path": request.url.path, "error": str(exc)},
        exc_info=exc,
    )

    problem_details = {
        "type": f"{PROBLEM_BASE_URI}/internal-server-error",
        "title": "Internal Server Error",
        "status": 500,
        "detail": "An unexpected error occurred while processing the request",
        "instance": str(request.url),
        "error_id": error_id,
        "timestamp": _utc_timestamp(),
    }

    return JSONResponse(
        status_code=500,
        content=problem_details,
        media_type="application/problem+json",
    )
