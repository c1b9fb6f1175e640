"""
NoteTree Backend: Users Route Handlers
========================================

What:  The /api/users endpoints: registration, lookup, profile changes,
       account deletion and login.
How:   Thin handlers over UserService.

Authentication:
    PUT and DELETE require a bearer token, and the token's user must be
    the account being changed. Everything else is public.
"""

import logging
from typing import List

from fastapi import APIRouter, Depends, Path, status
from sqlalchemy.ext.asyncio import AsyncSession

from notetree.auth import authorize_ownership, get_current_identity
from notetree.database import get_db_session
from notetree.schemas.auth import TokenIdentity
from notetree.schemas.common import MAX_ID, ErrorResponse, UserPublic
from notetree.schemas.user import (
    LoginRequest,
    LoginResponse,
    UserCreate,
    UserUpdate,
    UserWithNotes,
)
from notetree.services.user_service import user_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/users", tags=["Users"])

_SELF_ONLY = "Access denied: you can only modify your own account"

_SELF_ERRORS = {
    401: {"description": "Missing, invalid or expired token", "model": ErrorResponse},
    403: {"description": "Token belongs to another account", "model": ErrorResponse},
    404: {"description": "User not found", "model": ErrorResponse},
}


@router.post(
    "",
    response_model=UserPublic,
    status_code=status.HTTP_201_CREATED,
    responses={409: {"description": "Username already exists", "model": ErrorResponse}},
    summary="Register a new user",
)
async def create_user(
    data: UserCreate,
    db: AsyncSession = Depends(get_db_session),
) -> UserPublic:
    return await user_service.create_user(db, data)


@router.get(
    "",
    response_model=List[UserWithNotes],
    summary="List all users with their notes",
)
async def list_users(db: AsyncSession = Depends(get_db_session)) -> List[UserWithNotes]:
    return await user_service.list_users(db)


@router.post(
    "/login",
    response_model=LoginResponse,
    responses={401: {"description": "Invalid username or password", "model": ErrorResponse}},
    summary="Log in and receive a bearer token",
)
async def login(
    data: LoginRequest,
    db: AsyncSession = Depends(get_db_session),
) -> LoginResponse:
    """
    Returns the account (without password) and a token valid for 24 hours.
    Send it back as `Authorization: Bearer <token>`.
    """
    return await user_service.login(db, data)


@router.get(
    "/username/{username}",
    response_model=UserWithNotes,
    responses={404: {"description": "User not found", "model": ErrorResponse}},
    summary="Get a user by username",
)
async def get_user_by_username(
    username: str = Path(min_length=1),
    db: AsyncSession = Depends(get_db_session),
) -> UserWithNotes:
    return await user_service.get_user_by_username(db, username)


@router.get(
    "/{user_id}",
    response_model=UserWithNotes,
    responses={404: {"description": "User not found", "model": ErrorResponse}},
    summary="Get a user by id",
)
async def get_user(
    user_id: int = Path(ge=1, le=MAX_ID, description="User id"),
    db: AsyncSession = Depends(get_db_session),
) -> UserWithNotes:
    return await user_service.get_user(db, user_id)


@router.put(
    "/{user_id}",
    response_model=UserPublic,
    responses={
        **_SELF_ERRORS,
        409: {"description": "Username already exists", "model": ErrorResponse},
    },
    summary="Update your username and/or password",
)
async def update_user(
    data: UserUpdate,
    user_id: int = Path(ge=1, le=MAX_ID, description="User id"),
    identity: TokenIdentity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db_session),
) -> UserPublic:
    authorize_ownership(identity, user_id, message=_SELF_ONLY)
    return await user_service.update_user(db, user_id, data)


@router.delete(
    "/{user_id}",
    response_model=UserPublic,
    responses=_SELF_ERRORS,
    summary="Delete your account and all of your notes",
)
async def delete_user(
    user_id: int = Path(ge=1, le=MAX_ID, description="User id"),
    identity: TokenIdentity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db_session),
) -> UserPublic:
    authorize_ownership(identity, user_id, message=_SELF_ONLY)
    return await user_service.delete_user(db, user_id)
