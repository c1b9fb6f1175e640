"""
ORM models. Both are imported here so the mapper registry can resolve the
string references between them ("User" ↔ "Note").
"""

from notetree.models.user import User
from notetree.models.note import Note

__all__ = ["User", "Note"]
