"""Custom exceptions following RFC 9457 Problem Details for HTTP APIs."""

import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fastapi import HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

PROBLEM_BASE_URI = "https://resort.example.com/problems"


class ProblemDetailsException(HTTPException):
    """
    Base exception class following RFC 9457 Problem Details for HTTP APIs.

    https://tools.ietf.org/rfc/rfc9457.txt

    Every problem carries a machine-readable ``code`` so callers can branch
    on the failure class without parsing the human-readable detail.
    """

    def __init__(
        self,
        status_code: int,
        title: str,
        code: str,
        detail: Optional[str] = None,
        type_uri: Optional[str] = None,
        instance: Optional[str] = None,
        retryable: bool = False,
        extensions: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ):
        """
        Initialize Problem Details exception.

        Args:
            status_code: HTTP status code
            title: Short, human-readable summary of the problem type
            code: Machine-readable error code
            detail: Human-readable explanation specific to this occurrence
            type_uri: URI reference that identifies the problem type
            instance: URI reference that identifies the specific occurrence
            retryable: Whether repeating the same request may succeed
            extensions: Additional problem-specific information
            headers: HTTP headers to include in response
        """
        self.status_code = status_code
        self.title = title
        self.code = code
        self.type_uri = type_uri or f"about:blank#{status_code}"
        self.instance = instance
        self.retryable = retryable
        self.extensions = extensions or {}

        self.problem_details: Dict[str, Any] = {
            "type": self.type_uri,
            "title": self.title,
            "status": self.status_code,
            "code": self.code,
            "retryable": self.retryable,
        }

        if detail:
            self.problem_details["detail"] = detail

        if self.instance:
            self.problem_details["instance"] = self.instance

        self.problem_details.update(self.extensions)

        super().__init__(
            status_code=status_code,
            detail=self.problem_details,
            headers=headers
        )

    @property
    def message(self) -> str:
        """Human-readable detail, or the title when no detail was given."""
        return self.problem_details.get("detail", self.title)


class DomainValidationError(ProblemDetailsException):
    """Exception for input that violates an engine invariant."""

    def __init__(
        self,
        code: str,
        detail: str,
        field: Optional[str] = None,
        instance: Optional[str] = None,
    ):
        extensions = {}
        if field:
            extensions["field"] = field

        super().__init__(
            status_code=400,
            title="Validation Error",
            code=code,
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
            code="AUTHENTICATION_REQUIRED",
            detail=detail,
            type_uri=f"{PROBLEM_BASE_URI}/authentication-required",
            instance=instance,
            headers={"WWW-Authenticate": "Bearer"},
        )


class AuthorizationError(ProblemDetailsException):
    """Exception for authorization errors."""

    def __init__(
        self,
        detail: str = "Insufficient permissions to access this resource",
        required_permissions: Optional[list] = None,
        instance: Optional[str] = None,
    ):
        extensions = {}
        if required_permissions:
            extensions["required_permissions"] = required_permissions

        super().__init__(
            status_code=403,
            title="Access Forbidden",
            code="FORBIDDEN",
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
        code: str = "NOT_FOUND",
        detail: Optional[str] = None,
        instance: Optional[str] = None,
    ):
        if not detail:
            detail = f"The requested {resource_type}"
            if resource_id:
                detail += f" with ID '{resource_id}'"
            detail += " could not be found"

        extensions = {
            "resource_type": resource_type,
        }
        if resource_id:
            extensions["resource_id"] = resource_id

        super().__init__(
            status_code=404,
            title="Resource Not Found",
            code=code,
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
        code: str = "CONFLICT",
        conflicting_resource: Optional[Dict[str, Any]] = None,
        retryable: bool = False,
        instance: Optional[str] = None,
    ):
        extensions = {}
        if conflicting_resource:
            extensions["conflicting_resource"] = conflicting_resource

        super().__init__(
            status_code=409,
            title="Resource Conflict",
            code=code,
            detail=detail,
            type_uri=f"{PROBLEM_BASE_URI}/resource-conflict",
            instance=instance,
            retryable=retryable,
            extensions=extensions,
        )


# Engine-specific exceptions

class AllocationConflictError(ConflictError):
    """Raised when a requested interval overlaps a live allocation on the same resource."""

    def __init__(self, resource_id: str, conflicting_ids: list[str]):
        super().__init__(
            detail=f"Resource {resource_id} is not available for the requested interval",
            code="CONFLICT",
            conflicting_resource={
                "resource_id": resource_id,
                "allocation_ids": conflicting_ids,
            },
        )
        self.resource_id = resource_id
        self.conflicting_ids = conflicting_ids


class InvalidStatusTransitionError(ConflictError):
    """Raised when an allocation status change is not an enumerated transition."""

    def __init__(self, allocation_id: str, current_status: str, target_status: str):
        super().__init__(
            detail=f"Allocation {allocation_id} cannot move from '{current_status}' to '{target_status}'",
            code="INVALID_STATUS_TRANSITION",
            conflicting_resource={
                "allocation_id": allocation_id,
                "current_status": current_status,
                "target_status": target_status,
            },
        )


class NoApplicableRateError(ProblemDetailsException):
    """Raised in strict pricing mode when no rate rule matches a quote request."""

    def __init__(self, item_type: str, item_id: Optional[str], on_date: str, nights: int):
        super().__init__(
            status_code=422,
            title="No Applicable Rate",
            code="NO_APPLICABLE_RATE",
            detail=f"No active rate applies to {item_type} {item_id or '*'} on {on_date} for {nights} night(s)",
            type_uri=f"{PROBLEM_BASE_URI}/no-applicable-rate",
            extensions={
                "item_type": item_type,
                "item_id": item_id,
                "date": on_date,
                "nights": nights,
            },
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


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Render request body validation failures as a 422 problem with violations."""
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
            "type": f"{PROBLEM_BASE_URI}/request-validation-error",
            "title": "Request Validation Error",
            "status": 422,
            "code": "REQUEST_VALIDATION_ERROR",
            "retryable": False,
            "instance": request.url.path,
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
    problem_details = {
        "type": f"{PROBLEM_BASE_URI}/internal-server-error",
        "title": "Internal Server Error",
        "status": 500,
        "code": "INTERNAL_ERROR",
        "retryable": True,
        "detail": "An unexpected error occurred while processing the request",
        "instance": str(request.url),
        "error_id": str(uuid.uuid4()),
        "timestamp": _utc_timestamp(),
    }

    return JSONResponse(
        status_code=500,
        content=problem_details,
        media_type="application/problem+json",
    )
