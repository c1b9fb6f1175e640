"""
NoteTree Backend: Shared Pydantic Schemas
===========================================

What:  The camelCase base model, the flat user/note records every other
       schema builds on, and the error/health envelopes.
How:   FastAPI uses these models to validate request bodies, serialize
       responses (by alias, so `user_id` goes out as `userId`), and
       generate the OpenAPI documentation.

Schemas are separate from SQLAlchemy models: they decide exactly which
fields leave the server. No schema declares a password field.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

# Largest value an INTEGER id column holds (PostgreSQL int4)
MAX_ID = 2**31 - 1


class APIModel(BaseModel):
    """
    Base for all API schemas.

    - Fields are exposed under camelCase aliases (createdAt, parentId, ...)
    - Requests may use either the alias or the Python field name
    - Instances can be built straight from ORM objects
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# ══════════════════════════════════════════════════════════════════════════
# Flat records
# ══════════════════════════════════════════════════════════════════════════


class UserPublic(APIModel):
    """A user account as clients see it: everything except the password hash."""

    id: int = Field(description="User identifier")
    username: str = Field(description="Unique username")
    created_at: datetime = Field(description="Account creation time (UTC)")
    updated_at: datetime = Field(description="Last profile change (UTC)")


class NoteSummary(APIModel):
    """A note's own columns, without any related records attached."""

    id: int = Field(description="Note identifier")
    titre: str = Field(description="Title")
    contenu: str = Field(description="Body text")
    user_id: int = Field(description="Owner's user id")
    parent_id: Optional[int] = Field(
        default=None,
        description="Id of the note this one replies to (null for root notes)",
    )
    created_at: datetime = Field(description="Creation time (UTC)")
    updated_at: datetime = Field(description="Last edit time (UTC)")


# ══════════════════════════════════════════════════════════════════════════
# Error & health responses
# ══════════════════════════════════════════════════════════════════════════


class ErrorResponse(BaseModel):
    """
    Standardized error response format for all API errors.

    Example:
        {
            "error": "unauthorized",
            "message": "Access token required",
            "request_id": "1a2b3c4d"
        }
    """
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    """Returned by GET /health for monitoring and load balancer checks."""
    status: str = Field(description="Overall service status: healthy, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    uptime_seconds: float = Field(description="Seconds since service started")
