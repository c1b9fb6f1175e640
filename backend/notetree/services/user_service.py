"""
NoteTree Backend: User Service (User Manager)
===============================================

What:  Account CRUD, unique-username enforcement, and login.
How:   Async SQLAlchemy against the `users` table; passwords go through
       CredentialService and are stored only as bcrypt hashes.
Who:   Called by the user route handlers.

Returned records never include the password hash: every method returns
a response schema (UserPublic / UserWithNotes / LoginResponse), none of
which declares a password field.

Username uniqueness is checked before writing and enforced by the unique
constraint on `users.username`; a constraint violation from a concurrent
registration is reported the same way (DuplicateUsernameError).
"""

import logging
from typing import List, Optional

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from notetree.exceptions import (
    DatabaseError,
    DuplicateUsernameError,
    InvalidCredentialsError,
    NoteTreeError,
    NotFoundError,
)
from notetree.models.note import Note
from notetree.models.user import User
from notetree.schemas.common import UserPublic
from notetree.schemas.user import (
    LoginRequest,
    LoginResponse,
    UserCreate,
    UserUpdate,
    UserWithNotes,
)
from notetree.services.credential_service import credential_service
from notetree.services.note_service import note_service

logger = logging.getLogger(__name__)


class UserService:
    """Business logic layer for user accounts."""

    # ── Create ────────────────────────────────────────────────────────────

    async def create_user(self, db: AsyncSession, data: UserCreate) -> UserPublic:
        """
        Registers a new account.

        Raises:
            DuplicateUsernameError: Username already taken (→ 409)
        """
        try:
            if await self._find_by_username(db, data.username) is not None:
                raise DuplicateUsernameError(username=data.username)

            user = User(
                username=data.username,
                password_hash=credential_service.hash_password(data.password),
            )
            db.add(user)
            await db.flush()
            logger.info("User %s created (%s)", user.id, user.username)
            return UserPublic.model_validate(user)

        except NoteTreeError:
            raise
        except IntegrityError as e:
            # Lost a race against a concurrent registration
            raise DuplicateUsernameError(username=data.username) from e
        except SQLAlchemyError as e:
            logger.error("Database error creating user: %s", str(e), exc_info=True)
            raise DatabaseError(message="Could not create the user. Please try again.") from e

    # ── Read ──────────────────────────────────────────────────────────────

    async def list_users(self, db: AsyncSession) -> List[UserWithNotes]:
        """All accounts ordered by id, each with the notes it owns."""
        try:
            result = await db.execute(
                select(User)
                .options(selectinload(User.notes))
                .order_by(User.id)
                .execution_options(populate_existing=True)
            )
            return [UserWithNotes.model_validate(u) for u in result.scalars().all()]
        except SQLAlchemyError as e:
            logger.error("Database error listing users: %s", str(e), exc_info=True)
            raise DatabaseError(message="Could not retrieve users. Please try again.") from e

    async def get_user(self, db: AsyncSession, user_id: int) -> UserWithNotes:
        """
        Raises:
            NotFoundError: No user with this id (→ 404)
        """
        user = await self._load_with_notes(db, User.id == user_id, ref=user_id)
        return UserWithNotes.model_validate(user)

    async def get_user_by_username(self, db: AsyncSession, username: str) -> UserWithNotes:
        """
        Raises:
            NotFoundError: No user with this username (→ 404)
        """
        user = await self._load_with_notes(db, User.username == username, ref=username)
        return UserWithNotes.model_validate(user)

    # ── Update ────────────────────────────────────────────────────────────

    async def update_user(
        self,
        db: AsyncSession,
        user_id: int,
        data: UserUpdate,
    ) -> UserPublic:
        """
        Partial profile update. A new password is re-hashed.

        Ownership is checked by the caller (the route) before this runs.

        Raises:
            NotFoundError: No user with this id (→ 404)
            DuplicateUsernameError: New username belongs to another account (→ 409)
        """
        try:
            user = await self._get_or_404(db, user_id)

            if data.username is not None and data.username != user.username:
                if await self._find_by_username(db, data.username) is not None:
                    raise DuplicateUsernameError(username=data.username)
                user.username = data.username

            if data.password is not None:
                user.password_hash = credential_service.hash_password(data.password)

            await db.flush()
            logger.info("User %s updated", user_id)
            return UserPublic.model_validate(user)

        except NoteTreeError:
            raise
        except IntegrityError as e:
            raise DuplicateUsernameError(username=data.username) from e
        except SQLAlchemyError as e:
            logger.error("Database error updating user %s: %s", user_id, str(e), exc_info=True)
            raise DatabaseError(
                message="Could not update the user. Please try again.",
                context={"user_id": user_id},
            ) from e

    # ── Delete ────────────────────────────────────────────────────────────

    async def delete_user(self, db: AsyncSession, user_id: int) -> UserPublic:
        """
        Removes an account, its notes, and the reply trees under those notes.

        Raises:
            NotFoundError: No user with this id (→ 404)
        """
        try:
            user = await self._get_or_404(db, user_id)
            snapshot = UserPublic.model_validate(user)

            result = await db.execute(select(Note.id).where(Note.user_id == user_id))
            removed = await note_service.delete_subtrees(db, result.scalars().all())

            await db.execute(
                delete(User)
                .where(User.id == user_id)
                .execution_options(synchronize_session="fetch")
            )
            logger.info("User %s deleted (%d notes removed)", user_id, removed)
            return snapshot

        except NoteTreeError:
            raise
        except SQLAlchemyError as e:
            logger.error("Database error deleting user %s: %s", user_id, str(e), exc_info=True)
            raise DatabaseError(
                message="Could not delete the user. Please try again.",
                context={"user_id": user_id},
            ) from e

    # ── Login ─────────────────────────────────────────────────────────────

    async def login(self, db: AsyncSession, data: LoginRequest) -> LoginResponse:
        """
        Checks credentials and issues a session token.

        Unknown username and wrong password raise the same error, and an
        unknown username still pays for one hash verification, so neither
        the response nor its timing reveals whether the account exists.

        Raises:
            InvalidCredentialsError: Authentication failed (→ 401)
        """
        try:
            user = await self._find_by_username(db, data.username)
        except SQLAlchemyError as e:
            logger.error("Database error during login: %s", str(e), exc_info=True)
            raise DatabaseError(message="Could not log in. Please try again.") from e

        if user is None:
            credential_service.dummy_verify()
            logger.info("Login failed: unknown username")
            raise InvalidCredentialsError()

        if not credential_service.verify_password(data.password, user.password_hash):
            logger.info("Login failed for user %s: wrong password", user.id)
            raise InvalidCredentialsError()

        token = credential_service.issue_token(user.id, user.username)
        logger.info("User %s logged in", user.id)
        return LoginResponse(user=UserPublic.model_validate(user), token=token)

    # ── Helpers ───────────────────────────────────────────────────────────

    async def _find_by_username(self, db: AsyncSession, username: str) -> Optional[User]:
        result = await db.execute(select(User).where(User.username == username))
        return result.scalar_one_or_none()

    async def _get_or_404(self, db: AsyncSession, user_id: int) -> User:
        result = await db.execute(select(User).where(User.id == user_id))
        user = result.scalar_one_or_none()
        if user is None:
            raise NotFoundError(resource="User", resource_id=user_id)
        return user

    async def _load_with_notes(self, db: AsyncSession, criterion, ref) -> User:
        try:
            result = await db.execute(
                select(User)
                .where(criterion)
                .options(selectinload(User.notes))
                .execution_options(populate_existing=True)
            )
            user = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error("Database error fetching user %s: %s", ref, str(e))
            raise DatabaseError(
                message="Could not retrieve the user. Please try again.",
                context={"user": ref},
            ) from e
        if user is None:
            raise NotFoundError(resource="User", resource_id=ref)
        return user


# ── Singleton Instance ────────────────────────────────────────────────────
user_service = UserService()
