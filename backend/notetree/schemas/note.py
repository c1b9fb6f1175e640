"""
NoteTree Backend: Note Schemas
================================

What:  Request bodies for creating/editing notes and the nested response
       shapes returned by the note endpoints.
How:   Each response shape only declares the relationships its query
       eagerly loads, so building it from an ORM object never touches an
       unloaded attribute.

Response shapes:
    NoteWithOwner   note + its user                 (PUT, replies listing)
    NoteCreated     NoteWithOwner + parent          (POST)
    NoteThread      NoteWithOwner + direct replies  (root listings)
    NoteDetail      NoteThread + parent             (GET /api/notes/{id})
"""

from typing import List, Optional

from pydantic import Field

from notetree.schemas.common import MAX_ID, APIModel, NoteSummary, UserPublic


# ══════════════════════════════════════════════════════════════════════════
# Request Models
# ══════════════════════════════════════════════════════════════════════════


class NoteCreate(APIModel):
    """
    Body of POST /api/notes.

    The owner is always the authenticated caller; any userId sent by the
    client is ignored.
    """
    titre: str = Field(min_length=1, max_length=255, examples=["Meeting Notes"])
    contenu: str = Field(default="", examples=["Discuss project timeline"])
    parent_id: Optional[int] = Field(
        default=None,
        ge=1,
        le=MAX_ID,
        description="Id of the note being replied to; omit for a root note",
    )


class NoteUpdate(APIModel):
    """Body of PUT /api/notes/{id}. Only titre and contenu can change."""
    titre: Optional[str] = Field(default=None, min_length=1, max_length=255)
    contenu: Optional[str] = Field(default=None)


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class NoteWithOwner(NoteSummary):
    user: UserPublic


class NoteCreated(NoteWithOwner):
    parent: Optional[NoteWithOwner] = None


class NoteThread(NoteWithOwner):
    replies: List[NoteWithOwner] = Field(default_factory=list)


class NoteDetail(NoteThread):
    """A note with its owner, direct replies (oldest first) and parent."""
    parent: Optional[NoteWithOwner] = None
