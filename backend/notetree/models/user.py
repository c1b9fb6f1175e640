"""
NoteTree Backend: User SQLAlchemy Model
=========================================

What:  ORM model representing the `users` table.
Who:   Used by UserService and by Alembic for schema management.

The password column only ever holds a bcrypt hash. Response schemas have
no password field, so the hash cannot reach a client.
"""

from datetime import datetime, timezone
from typing import List, TYPE_CHECKING

from sqlalchemy import DateTime, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from notetree.database import Base

if TYPE_CHECKING:
    from notetree.models.note import Note


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class User(Base):
    """A registered account. Owns zero or more notes."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    # Uniqueness is checked by UserService and enforced here as a backstop
    # for concurrent registrations
    username: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        unique=True,
        index=True,
    )

    password_hash: Mapped[str] = mapped_column("password", String(255), nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        server_default=func.now(),
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        onupdate=_utcnow,
        server_default=func.now(),
    )

    # Every note the user wrote, roots and replies alike
    notes: Mapped[List["Note"]] = relationship(
        back_populates="user",
        order_by="Note.created_at, Note.id",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, username='{self.username}')>"
