"""
NoteTree Backend: Custom Exception Hierarchy
==============================================

What:  Defines application-specific exceptions for different error scenarios.
How:   Each exception class carries a client-safe message, an optional
       context dict (logged, never returned), and the HTTP status and
       machine-readable error code it maps to. Global exception handlers
       (registered in main.py) turn them into JSON error responses.
Who:   Raised by services and the authorization guard; caught by handlers.

Exception Hierarchy:
    NoteTreeError (base)                  → 500
    ├── MissingCredentialError            → 401 (no bearer token)
    ├── InvalidCredentialError            → 401 (bad or expired token)
    ├── InvalidCredentialsError           → 401 (login failed)
    ├── ForbiddenError                    → 403 (not the owner)
    ├── NotFoundError                     → 404
    │   └── ParentNotFoundError           → 404 (reply to a missing note)
    ├── DuplicateUsernameError            → 409 Conflict
    ├── RateLimitExceededError            → 429 Too Many Requests
    └── DatabaseError                     → 500

    TokenError (credential service only, never sent to clients)
    ├── InvalidTokenError
    └── ExpiredTokenError
"""

from typing import Any, Dict, Optional


class NoteTreeError(Exception):
    """
    Base exception for all NoteTree application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged but NOT returned to client)
    """

    status_code: int = 500
    error_code: str = "server_error"

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


# ══════════════════════════════════════════════════════════════════════════
# Authentication & Authorization
# ══════════════════════════════════════════════════════════════════════════


class MissingCredentialError(NoteTreeError):
    """The request carries no `Authorization: Bearer <token>` header."""

    status_code = 401
    error_code = "unauthorized"

    def __init__(self, context: Optional[Dict[str, Any]] = None):
        super().__init__(message="Access token required", context=context)


class InvalidCredentialError(NoteTreeError):
    """
    The bearer token did not verify.

    Bad signatures, malformed payloads and expired tokens all produce this
    same message so the caller cannot tell which check failed.
    """

    status_code = 401
    error_code = "unauthorized"

    def __init__(self, context: Optional[Dict[str, Any]] = None):
        super().__init__(message="Invalid or expired token", context=context)


class InvalidCredentialsError(NoteTreeError):
    """
    Login failed.

    Raised identically for an unknown username and for a wrong password,
    so the response does not reveal whether an account exists.
    """

    status_code = 401
    error_code = "invalid_credentials"

    def __init__(self, context: Optional[Dict[str, Any]] = None):
        super().__init__(message="Invalid username or password", context=context)


class ForbiddenError(NoteTreeError):
    """The authenticated caller does not own the resource it tries to change."""

    status_code = 403
    error_code = "forbidden"

    def __init__(
        self,
        message: str = "Access denied",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


# ══════════════════════════════════════════════════════════════════════════
# Resources
# ══════════════════════════════════════════════════════════════════════════


class NotFoundError(NoteTreeError):
    """
    Raised when a requested resource does not exist.

    SQLAlchemy returns None for missing records; services convert that
    into this exception so routes never deal with None.

    Example:
        NotFoundError("User")  →  "User not found"
    """

    status_code = 404
    error_code = "not_found"

    def __init__(
        self,
        resource: str = "Resource",
        resource_id: Optional[Any] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id is not None:
            ctx["resource_id"] = resource_id
        super().__init__(message=f"{resource} not found", context=ctx)
        self.resource = resource
        self.resource_id = resource_id


class ParentNotFoundError(NotFoundError):
    """A reply was created with a parentId that references no note."""

    def __init__(
        self,
        parent_id: Optional[Any] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(resource="Parent note", resource_id=parent_id, context=context)


class DuplicateUsernameError(NoteTreeError):
    """Another account already uses the requested username."""

    status_code = 409
    error_code = "duplicate_username"

    def __init__(
        self,
        username: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if username:
            ctx["username"] = username
        super().__init__(message="Username already exists", context=ctx)
        self.username = username


# ══════════════════════════════════════════════════════════════════════════
# Infrastructure
# ══════════════════════════════════════════════════════════════════════════


class DatabaseError(NoteTreeError):
    """
    Raised when database operations fail unexpectedly.

    The message returned to the client is always generic. Detailed error
    info is logged server-side only.
    """

    status_code = 500
    error_code = "server_error"

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class RateLimitExceededError(NoteTreeError):
    """
    Raised when a client exceeds the per-IP request rate limit.

    Response includes a Retry-After header with the seconds to wait.
    """

    status_code = 429
    error_code = "rate_limit_exceeded"

    def __init__(
        self,
        retry_after: int = 60,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = (
            f"Too many requests. Please wait {retry_after} seconds before retrying."
        )
        ctx = context or {}
        ctx["retry_after"] = retry_after
        super().__init__(message=message, context=ctx)
        self.retry_after = retry_after


# ══════════════════════════════════════════════════════════════════════════
# Token verification (internal)
# ══════════════════════════════════════════════════════════════════════════


class TokenError(Exception):
    """Base for session token verification failures."""


class InvalidTokenError(TokenError):
    """Signature mismatch, undecodable token, or payload without identity."""


class ExpiredTokenError(TokenError):
    """Token signature is valid but its expiry time has passed."""
