"""
NoteTree Backend: Notes Route Handlers
========================================

What:  The /api/notes endpoints: threads, single notes, replies, and the
       owner-only mutations.
How:   Path/body parsing and status codes here; everything else is
       delegated to NoteService.

Authentication:
    POST, PUT and DELETE depend on get_current_identity; the note's owner
    is always the authenticated caller. Reads are public.

Route order matters: /notes/user/{user_id} is declared before
/notes/{note_id} so "user" is never parsed as a note id.
"""

import logging
from typing import List

from fastapi import APIRouter, Depends, Path, status
from sqlalchemy.ext.asyncio import AsyncSession

from notetree.auth import get_current_identity
from notetree.database import get_db_session
from notetree.schemas.auth import TokenIdentity
from notetree.schemas.common import MAX_ID, ErrorResponse, NoteSummary
from notetree.schemas.note import (
    NoteCreate,
    NoteCreated,
    NoteDetail,
    NoteThread,
    NoteUpdate,
    NoteWithOwner,
)
from notetree.services.note_service import note_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/notes", tags=["Notes"])

_AUTH_ERRORS = {
    401: {"description": "Missing, invalid or expired token", "model": ErrorResponse},
}
_OWNER_ERRORS = {
    **_AUTH_ERRORS,
    403: {"description": "Caller does not own the note", "model": ErrorResponse},
    404: {"description": "Note not found", "model": ErrorResponse},
}


@router.get(
    "",
    response_model=List[NoteThread],
    summary="List root notes",
    description="Root notes (no parent), newest first, each with its author and direct replies.",
)
async def list_notes(db: AsyncSession = Depends(get_db_session)) -> List[NoteThread]:
    return await note_service.list_roots(db)


@router.post(
    "",
    response_model=NoteCreated,
    status_code=status.HTTP_201_CREATED,
    responses={
        **_AUTH_ERRORS,
        404: {"description": "Parent note not found", "model": ErrorResponse},
    },
    summary="Create a note or reply to an existing note",
)
async def create_note(
    data: NoteCreate,
    identity: TokenIdentity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db_session),
) -> NoteCreated:
    """
    Creates a note owned by the caller. With `parentId` the note becomes a
    reply, and the response carries the parent (with its author).
    """
    return await note_service.create_note(db, author_id=identity.user_id, data=data)


@router.get(
    "/user/{user_id}",
    response_model=List[NoteThread],
    summary="List a user's root notes",
)
async def list_user_notes(
    user_id: int = Path(ge=1, le=MAX_ID, description="Author's user id"),
    db: AsyncSession = Depends(get_db_session),
) -> List[NoteThread]:
    return await note_service.list_by_user(db, user_id)


@router.get(
    "/{note_id}",
    response_model=NoteDetail,
    responses={404: {"description": "Note not found", "model": ErrorResponse}},
    summary="Get a note with its replies and parent",
)
async def get_note(
    note_id: int = Path(ge=1, le=MAX_ID, description="Note id"),
    db: AsyncSession = Depends(get_db_session),
) -> NoteDetail:
    return await note_service.get_note(db, note_id)


@router.get(
    "/{note_id}/replies",
    response_model=List[NoteWithOwner],
    summary="List the direct replies of a note",
    description="Oldest first. An unknown note id yields an empty list.",
)
async def list_replies(
    note_id: int = Path(ge=1, le=MAX_ID, description="Note id"),
    db: AsyncSession = Depends(get_db_session),
) -> List[NoteWithOwner]:
    return await note_service.list_replies(db, note_id)


@router.put(
    "/{note_id}",
    response_model=NoteWithOwner,
    responses=_OWNER_ERRORS,
    summary="Update a note's title and/or body (owner only)",
)
async def update_note(
    data: NoteUpdate,
    note_id: int = Path(ge=1, le=MAX_ID, description="Note id"),
    identity: TokenIdentity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db_session),
) -> NoteWithOwner:
    return await note_service.update_note(
        db, requester_id=identity.user_id, note_id=note_id, data=data
    )


@router.delete(
    "/{note_id}",
    response_model=NoteSummary,
    responses=_OWNER_ERRORS,
    summary="Delete a note and all of its replies (owner only)",
)
async def delete_note(
    note_id: int = Path(ge=1, le=MAX_ID, description="Note id"),
    identity: TokenIdentity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db_session),
) -> NoteSummary:
    return await note_service.delete_note(db, requester_id=identity.user_id, note_id=note_id)
