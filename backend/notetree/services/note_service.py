"""
NoteTree Backend: Note Service (Note Tree Manager)
====================================================

What:  CRUD over notes and their reply trees, with ownership enforcement.
How:   Async SQLAlchemy queries against the flat `notes` table; related
       records are attached with selectinload() and the results are turned
       into response schemas before leaving the service.
Who:   Called by the note route handlers (and by UserService when an
       account is deleted).

Ordering:
    Root listings    created_at DESC, id DESC  (newest thread first)
    Replies          created_at ASC,  id ASC   (conversation order)
    The id tie-break keeps results stable when timestamps are equal.

Delete policy:
    Deleting a note deletes its entire reply subtree, whoever wrote the
    replies. The subtree is collected breadth-first through parent_id and
    removed in one statement; the ON DELETE CASCADE foreign key gives the
    same result on databases that enforce it.

Design:
    NoteService is stateless. It receives the request's session for each
    call, so every operation runs inside that request's transaction.
"""

import logging
from typing import Iterable, List, Optional, Set

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload
from sqlalchemy.sql import Select

from notetree.auth import authorize_ownership
from notetree.exceptions import (
    DatabaseError,
    InvalidCredentialError,
    NoteTreeError,
    NotFoundError,
    ParentNotFoundError,
)
from notetree.models.note import Note
from notetree.models.user import User
from notetree.schemas.common import NoteSummary
from notetree.schemas.note import (
    NoteCreate,
    NoteCreated,
    NoteDetail,
    NoteThread,
    NoteUpdate,
    NoteWithOwner,
)

logger = logging.getLogger(__name__)


def _select_notes() -> Select:
    """
    Base query for notes.

    populate_existing refreshes notes already in the session's identity
    map, so a reply added earlier in the same transaction shows up in its
    parent's `replies`.
    """
    return select(Note).execution_options(populate_existing=True)


# Loader options, one per response shape
_WITH_OWNER = (selectinload(Note.user),)
_WITH_PARENT = (selectinload(Note.parent).selectinload(Note.user),)
_WITH_REPLIES = (selectinload(Note.replies).selectinload(Note.user),)

_NEWEST_FIRST = (Note.created_at.desc(), Note.id.desc())
_OLDEST_FIRST = (Note.created_at.asc(), Note.id.asc())


class NoteService:
    """
    Business logic layer for notes.

    Error Handling Strategy:
        Domain errors (NotFoundError, ForbiddenError, ...) propagate as-is.
        Anything SQLAlchemy raises is logged and wrapped in DatabaseError,
        which the global handler reports as a generic 500.
    """

    # ── Create ────────────────────────────────────────────────────────────

    async def create_note(
        self,
        db: AsyncSession,
        author_id: int,
        data: NoteCreate,
    ) -> NoteCreated:
        """
        Creates a root note, or a reply when `data.parent_id` is set.

        Raises:
            InvalidCredentialError: The author's account no longer exists (→ 401)
            ParentNotFoundError: parent_id references no note (→ 404)
        """
        try:
            # A token outlives the account it was issued for
            if await db.get(User, author_id) is None:
                raise InvalidCredentialError(context={"user_id": author_id})

            if data.parent_id is not None:
                parent = await db.get(Note, data.parent_id)
                if parent is None:
                    raise ParentNotFoundError(parent_id=data.parent_id)

            note = Note(
                titre=data.titre,
                contenu=data.contenu,
                user_id=author_id,
                parent_id=data.parent_id,
            )
            db.add(note)
            await db.flush()  # Assigns the id without committing
            logger.info(
                "Note %s created by user %s (parent=%s)",
                note.id, author_id, data.parent_id,
            )

            created = await self._fetch_note(db, note.id, *_WITH_OWNER, *_WITH_PARENT)
            return NoteCreated.model_validate(created)

        except NoteTreeError:
            raise
        except SQLAlchemyError as e:
            logger.error("Database error creating note: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Could not create the note. Please try again.",
                context={"author_id": author_id, "parent_id": data.parent_id},
            ) from e

    # ── Read ──────────────────────────────────────────────────────────────

    async def list_roots(self, db: AsyncSession) -> List[NoteThread]:
        """All root notes, newest first, each with owner and direct replies."""
        try:
            result = await db.execute(
                _select_notes()
                .where(Note.parent_id.is_(None))
                .options(*_WITH_OWNER, *_WITH_REPLIES)
                .order_by(*_NEWEST_FIRST)
            )
            return [NoteThread.model_validate(n) for n in result.scalars().all()]
        except SQLAlchemyError as e:
            logger.error("Database error listing notes: %s", str(e), exc_info=True)
            raise DatabaseError(message="Could not retrieve notes. Please try again.") from e

    async def get_note(self, db: AsyncSession, note_id: int) -> NoteDetail:
        """
        A note with its owner, direct replies (oldest first) and, for a
        reply, its parent with the parent's owner.

        Raises:
            NotFoundError: Note with given ID does not exist (→ 404)
        """
        try:
            note = await self._fetch_note(
                db, note_id, *_WITH_OWNER, *_WITH_REPLIES, *_WITH_PARENT
            )
            return NoteDetail.model_validate(note)
        except NoteTreeError:
            raise
        except SQLAlchemyError as e:
            logger.error("Database error fetching note %s: %s", note_id, str(e))
            raise DatabaseError(
                message="Could not retrieve the note. Please try again.",
                context={"note_id": note_id},
            ) from e

    async def list_by_user(self, db: AsyncSession, user_id: int) -> List[NoteThread]:
        """A user's root notes, same shape and order as list_roots()."""
        try:
            result = await db.execute(
                _select_notes()
                .where(Note.user_id == user_id, Note.parent_id.is_(None))
                .options(*_WITH_OWNER, *_WITH_REPLIES)
                .order_by(*_NEWEST_FIRST)
            )
            return [NoteThread.model_validate(n) for n in result.scalars().all()]
        except SQLAlchemyError as e:
            logger.error("Database error listing notes of user %s: %s", user_id, str(e))
            raise DatabaseError(
                message="Could not retrieve notes. Please try again.",
                context={"user_id": user_id},
            ) from e

    async def list_replies(self, db: AsyncSession, note_id: int) -> List[NoteWithOwner]:
        """
        Direct replies of a note, oldest first.

        The note itself is not looked up: an unknown id simply has no
        replies.
        """
        try:
            result = await db.execute(
                _select_notes()
                .where(Note.parent_id == note_id)
                .options(*_WITH_OWNER)
                .order_by(*_OLDEST_FIRST)
            )
            return [NoteWithOwner.model_validate(n) for n in result.scalars().all()]
        except SQLAlchemyError as e:
            logger.error("Database error listing replies of %s: %s", note_id, str(e))
            raise DatabaseError(
                message="Could not retrieve replies. Please try again.",
                context={"note_id": note_id},
            ) from e

    # ── Update ────────────────────────────────────────────────────────────

    async def update_note(
        self,
        db: AsyncSession,
        requester_id: int,
        note_id: int,
        data: NoteUpdate,
    ) -> NoteWithOwner:
        """
        Changes titre and/or contenu. Owner and parent never change.

        Raises:
            NotFoundError: No such note (→ 404)
            ForbiddenError: Requester is not the owner (→ 403)
        """
        try:
            note = await self._fetch_note(db, note_id)
            authorize_ownership(
                requester_id,
                note.user_id,
                message="Access denied: you can only modify your own notes",
            )

            changes = data.model_dump(exclude_unset=True, exclude_none=True)
            for field in ("titre", "contenu"):
                if field in changes:
                    setattr(note, field, changes[field])
            await db.flush()
            logger.info("Note %s updated by user %s (%s)", note_id, requester_id, sorted(changes))

            updated = await self._fetch_note(db, note_id, *_WITH_OWNER)
            return NoteWithOwner.model_validate(updated)

        except NoteTreeError:
            raise
        except SQLAlchemyError as e:
            logger.error("Database error updating note %s: %s", note_id, str(e), exc_info=True)
            raise DatabaseError(
                message="Could not update the note. Please try again.",
                context={"note_id": note_id},
            ) from e

    # ── Delete ────────────────────────────────────────────────────────────

    async def delete_note(
        self,
        db: AsyncSession,
        requester_id: int,
        note_id: int,
    ) -> NoteSummary:
        """
        Deletes a note and every reply beneath it.

        Returns:
            The deleted note as it was just before deletion

        Raises:
            NotFoundError: No such note (→ 404)
            ForbiddenError: Requester is not the owner (→ 403)
        """
        try:
            note = await self._fetch_note(db, note_id)
            authorize_ownership(
                requester_id,
                note.user_id,
                message="Access denied: you can only delete your own notes",
            )

            snapshot = NoteSummary.model_validate(note)
            removed = await self.delete_subtrees(db, [note_id])
            logger.info(
                "Note %s deleted by user %s (%d notes removed)",
                note_id, requester_id, removed,
            )
            return snapshot

        except NoteTreeError:
            raise
        except SQLAlchemyError as e:
            logger.error("Database error deleting note %s: %s", note_id, str(e), exc_info=True)
            raise DatabaseError(
                message="Could not delete the note. Please try again.",
                context={"note_id": note_id},
            ) from e

    async def delete_subtrees(self, db: AsyncSession, root_ids: Iterable[int]) -> int:
        """
        Deletes the given notes and all of their descendants.

        Returns the number of notes removed. Callers handle SQLAlchemy
        errors.
        """
        doomed = await self._collect_subtree_ids(db, root_ids)
        if not doomed:
            return 0
        await db.execute(
            delete(Note)
            .where(Note.id.in_(doomed))
            .execution_options(synchronize_session="fetch")
        )
        return len(doomed)

    # ── Helpers ───────────────────────────────────────────────────────────

    async def _fetch_note(self, db: AsyncSession, note_id: int, *options) -> Note:
        result = await db.execute(
            _select_notes().where(Note.id == note_id).options(*options)
        )
        note: Optional[Note] = result.scalar_one_or_none()
        if note is None:
            raise NotFoundError(resource="Note", resource_id=note_id)
        return note

    async def _collect_subtree_ids(self, db: AsyncSession, root_ids: Iterable[int]) -> Set[int]:
        """Breadth-first walk down parent_id, one query per tree level."""
        collected: Set[int] = set()
        frontier = set(root_ids)
        while frontier:
            collected |= frontier
            result = await db.execute(
                select(Note.id).where(Note.parent_id.in_(frontier))
            )
            frontier = set(result.scalars().all()) - collected
        return collected


# ── Singleton Instance ────────────────────────────────────────────────────
note_service = NoteService()
