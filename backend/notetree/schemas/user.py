"""
NoteTree Backend: User & Login Schemas
========================================

Request bodies for account management and login, and the user-shaped
responses. Passwords only ever appear in request models.
"""

from typing import List, Optional

from pydantic import Field

from notetree.schemas.common import APIModel, NoteSummary, UserPublic


# ══════════════════════════════════════════════════════════════════════════
# Request Models
# ══════════════════════════════════════════════════════════════════════════


class UserCreate(APIModel):
    """Body of POST /api/users."""
    username: str = Field(min_length=1, max_length=255, examples=["alice"])
    # bcrypt only looks at the first 72 bytes
    password: str = Field(min_length=1, max_length=72, examples=["s3cret"])


class UserUpdate(APIModel):
    """
    Body of PUT /api/users/{id}.

    Partial update: omitted (or null) fields keep their current value.
    """
    username: Optional[str] = Field(default=None, min_length=1, max_length=255)
    password: Optional[str] = Field(default=None, min_length=1, max_length=72)


class LoginRequest(APIModel):
    """Body of POST /api/users/login."""
    username: str = Field(min_length=1)
    password: str = Field(min_length=1)


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class UserWithNotes(UserPublic):
    """A user together with every note they own (flat, no reply trees)."""
    notes: List[NoteSummary] = Field(default_factory=list)


class LoginResponse(APIModel):
    """Successful login: the account and a bearer token valid for 24 hours."""
    user: UserPublic
    token: str = Field(description="Signed session token for the Authorization header")
