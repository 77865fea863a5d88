"""
SkillSwap Backend — Custom Exception Hierarchy
================================================

What:  Defines application-specific exceptions for different error scenarios.
Why:   Custom exceptions enable targeted error handling with appropriate HTTP
       status codes and user-friendly messages.
How:   Each exception class carries a message and optional context dict.
       Global exception handlers (registered in main.py) catch these and
       return structured JSON error responses with correct HTTP status codes.
Who:   Raised by services and dependencies; caught by global handlers.

Exception Hierarchy:
    SkillSwapError (base)
    ├── ValidationError          → 400 Bad Request (client can fix)
    ├── ConflictError            → 400 Bad Request (resource already exists)
    ├── InvalidStateError        → 400 Bad Request (transition not allowed now)
    ├── AuthenticationError      → 401 Unauthorized
    ├── ForbiddenError           → 403 Forbidden
    ├── NotFoundError            → 404 Not Found
    ├── RateLimitExceededError   → 429 Too Many Requests
    └── ExternalServiceError     → 502 Bad Gateway (OAuth provider failed)

Conflict and InvalidState share 400 with Validation; clients tell them apart
by the machine-readable `error` code in the body.
"""

from typing import Any, Dict, Optional


class SkillSwapError(Exception):
    """
    Base exception for all SkillSwap application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(SkillSwapError):
    """
    Raised when client input fails a business rule.

    When:    Blank skill name, self-referential connection, empty skill list.
    HTTP:    400 Bad Request

    Schema-level problems (wrong types, malformed UUIDs) are still answered
    by FastAPI with 422 before any service runs.
    """

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class ConflictError(SkillSwapError):
    """
    Raised when a resource would duplicate an existing one.

    When:    Connection already exists for a user pair (any status, either
             direction), skill name collision, email already registered.
    HTTP:    400 Bad Request, error code "conflict"

    `status` carries the existing record's status when there is one, so the
    client can tell "already pending" from "already connected".
    """

    def __init__(
        self,
        message: str = "Resource already exists",
        status: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if status:
            ctx["status"] = status
        super().__init__(message=message, context=ctx)
        self.status = status


class InvalidStateError(SkillSwapError):
    """
    Raised when a transition is attempted from a status that does not permit it.

    Example: accepting a connection that is already accepted.
    HTTP:    400 Bad Request, error code "invalid_state"
    """

    def __init__(
        self,
        message: str = "Operation not allowed in the current state",
        status: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if status:
            ctx["status"] = status
        super().__init__(message=message, context=ctx)
        self.status = status


class AuthenticationError(SkillSwapError):
    """
    Raised when the caller cannot be identified.

    When:    Missing/expired/invalid bearer token, bad credentials,
             password login attempted on an OAuth-only account.
    HTTP:    401 Unauthorized (with WWW-Authenticate: Bearer)
    """

    def __init__(
        self,
        message: str = "Not authenticated",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class ForbiddenError(SkillSwapError):
    """
    Raised when the authenticated user lacks the role an operation requires.

    Example: a user who is not the recipient tries to accept a request.
    HTTP:    403 Forbidden
    """

    def __init__(
        self,
        message: str = "You are not allowed to perform this action",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class NotFoundError(SkillSwapError):
    """
    Raised when a requested resource does not exist.

    HTTP:    404 Not Found

    SQLAlchemy returns None for missing records; services convert that into
    this exception so routes never check for None themselves.
    """

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"The requested {resource} was not found"
        if resource_id:
            message = f"{resource} with ID '{resource_id}' was not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class ExternalServiceError(SkillSwapError):
    """
    Raised when an OAuth provider cannot be reached or returns garbage.

    HTTP:    502 Bad Gateway
    """

    def __init__(
        self,
        message: str = "An external service is temporarily unavailable",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class RateLimitExceededError(SkillSwapError):
    """
    Raised when a client exceeds the per-IP request rate limit.

    HTTP:    429 Too Many Requests
    """

    def __init__(
        self,
        retry_after: int = 60,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = (
            f"Rate limit exceeded. Please wait {retry_after} seconds before making more requests."
        )
        ctx = context or {}
        ctx["retry_after"] = retry_after
        super().__init__(message=message, context=ctx)
        self.retry_after = retry_after
