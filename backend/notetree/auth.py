"""
NoteTree Backend: Authorization Guard
=======================================

What:  Resolves the caller's identity from the bearer token and checks
       resource ownership.
How:   `get_current_identity` is a FastAPI dependency placed on every
       mutating route. `authorize_ownership` is a plain function used by
       the services wherever a resource-owner check is required.

Failure modes:
    No header / not "Bearer <token>"  → MissingCredentialError  (401)
    Token fails verification          → InvalidCredentialError  (401)
    Caller is not the resource owner  → ForbiddenError          (403)
"""

import logging
from typing import Optional, Union

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from notetree.exceptions import (
    ForbiddenError,
    InvalidCredentialError,
    MissingCredentialError,
    TokenError,
)
from notetree.schemas.auth import TokenIdentity
from notetree.services.credential_service import credential_service

logger = logging.getLogger(__name__)

# auto_error=False: a missing or non-Bearer header yields None here and is
# reported through MissingCredentialError instead of FastAPI's own 403.
bearer_scheme = HTTPBearer(auto_error=False)


async def get_current_identity(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> TokenIdentity:
    """
    FastAPI dependency returning the authenticated caller.

    The identity is also stored on `request.state.identity` for code that
    only has the request at hand.
    """
    if credentials is None or not credentials.credentials:
        raise MissingCredentialError()

    try:
        identity = credential_service.verify_token(credentials.credentials)
    except TokenError as e:
        # Expired and forged tokens get the same response
        logger.info("Rejected bearer token: %s", type(e).__name__)
        raise InvalidCredentialError(context={"reason": type(e).__name__}) from e

    request.state.identity = identity
    return identity


def authorize_ownership(
    requester: Union[TokenIdentity, int],
    owner_id: int,
    message: str = "Access denied",
) -> None:
    """
    Raises ForbiddenError unless the requester owns the resource.

    Args:
        requester: The caller's identity, or their user id
        owner_id: User id that owns the resource
        message: Client-facing explanation for the denial
    """
    requester_id = requester.user_id if isinstance(requester, TokenIdentity) else requester
    if requester_id != owner_id:
        logger.warning(
            "Ownership check failed: user %s on resource owned by %s",
            requester_id,
            owner_id,
        )
        raise ForbiddenError(
            message=message,
            context={"requester_id": requester_id, "owner_id": owner_id},
        )
