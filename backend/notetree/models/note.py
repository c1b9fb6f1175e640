"""
NoteTree Backend: Note SQLAlchemy Model
=========================================

What:  ORM model representing the `notes` table.
How:   A flat table keyed by id with a nullable self-referencing `parent_id`.
       The reply tree is rebuilt from parent_id lookups, never stored as a
       pointer graph.
Who:   Used by NoteService for CRUD operations and by Alembic for schema management.

Table Design:
    - Integer primary key, assigned by the database in insertion order
    - user_id: owning user, required, immutable after creation
    - parent_id: NULL for root notes; immutable after creation, so a note
      can never become its own ancestor
    - ON DELETE CASCADE on both foreign keys: removing a note removes its
      reply subtree, removing a user removes their notes

    Indexes on user_id, parent_id and created_at back the three listing
    queries (by user, replies of a note, newest roots first).
"""

from datetime import datetime, timezone
from typing import List, Optional, TYPE_CHECKING

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from notetree.database import Base

if TYPE_CHECKING:
    from notetree.models.user import User


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Note(Base):
    """
    A note or a reply to another note.

    Lifecycle:
        1. Created by an authenticated user, as a root (parent_id NULL)
           or as a reply to an existing note
        2. Owner may change titre/contenu; nothing else is mutable
        3. Deleted by its owner together with every reply beneath it

    Relationships are never lazy loaded (async sessions cannot); queries
    request what they need with selectinload().
    """

    __tablename__ = "notes"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    titre: Mapped[str] = mapped_column(String(255), nullable=False)

    contenu: Mapped[str] = mapped_column(Text, nullable=False, default="")

    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    parent_id: Mapped[Optional[int]] = mapped_column(
        Integer,
        ForeignKey("notes.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )

    # ── Timestamps ────────────────────────────────────────────────────────
    # UTC; conversion to local time happens in the frontend
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

    # ── Relationships ─────────────────────────────────────────────────────
    user: Mapped["User"] = relationship(back_populates="notes")

    parent: Mapped[Optional["Note"]] = relationship(
        back_populates="replies",
        remote_side=lambda: [Note.id],
    )

    # Oldest reply first; id breaks timestamp ties
    replies: Mapped[List["Note"]] = relationship(
        back_populates="parent",
        order_by=lambda: [Note.created_at, Note.id],
        passive_deletes=True,
    )

    __table_args__ = (
        Index("idx_notes_created_at", "created_at"),
    )

    def __repr__(self) -> str:
        return (
            f"<Note(id={self.id}, user_id={self.user_id}, "
            f"parent_id={self.parent_id}, titre='{self.titre}')>"
        )
