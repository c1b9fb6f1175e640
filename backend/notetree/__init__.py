"""
NoteTree Backend: Application Package
=======================================

A note-taking REST API: user accounts, notes that can reply to other
notes (forming trees), and JWT bearer authentication.

Layers:

    ┌─────────────────────────────────────┐
    │   Routes + Authorization Guard      │  ← HTTP concerns, identity
    ├─────────────────────────────────────┤
    │   Services                          │  ← User / Note Tree managers,
    │                                     │    credential service
    ├─────────────────────────────────────┤
    │   Models & Schemas                  │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │   Database                          │  ← Async SQLAlchemy sessions
    └─────────────────────────────────────┘
"""

__version__ = "1.0.0"
