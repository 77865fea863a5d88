"""
SkillSwap Backend — Shared Pydantic Schemas
=============================================

What:  Base model for the camelCase API contract plus the error and health shapes.
Why:   The frontend speaks camelCase (`photoUrl`, `recipientId`); Python code
       stays snake_case. An alias generator bridges the two in one place.
How:   Every request/response schema inherits from ApiModel. FastAPI serializes
       response models by alias, and populate_by_name lets services build
       schemas with snake_case keyword arguments.

Design Decision:
    Schemas are separate from SQLAlchemy models because:
    1. API contracts change independently of database schema
    2. We control exactly what data is exposed (password hashes never leave)
    3. Validation rules differ from DB constraints
"""

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ApiModel(BaseModel):
    """Base for every schema exchanged with clients (camelCase on the wire)."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class MessageResponse(ApiModel):
    """Plain acknowledgement, e.g. after cancelling a request."""
    message: str


class ErrorResponse(BaseModel):
    """
    What:  Standard error response format for all error scenarios.
    Who:   Returned by global exception handlers (see main.py).

    Why consistent format:
        - Frontend can use a single error handler for all API errors
        - `error` is machine-readable (validation_error, conflict, invalid_state...)
        - `message` is human-readable (displayed to the user)
        - `request_id` enables support correlation
    """
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[Dict[str, Any]] = Field(default=None)
    status: Optional[str] = Field(
        default=None,
        description="Current status of the record involved (conflict / invalid_state only)",
    )
    request_id: Optional[str] = Field(default=None)


class HealthResponse(ApiModel):
    """
    What:  Health check response for monitoring and load balancer probes.

    Status values:
        - healthy:   Database reachable (HTTP 200)
        - unhealthy: Database unreachable (HTTP 503)
    """
    status: str = Field(description="Overall health: healthy or unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database status: connected or disconnected")
    online_users: int = Field(description="Users with an open chat socket on this node")
    uptime_seconds: float = Field(description="Seconds since service started")
