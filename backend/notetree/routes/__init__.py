# Routes package init
"""
NoteTree Backend: API Routes Package
======================================

Route Inventory:
    - users.py:   /api/users            (registration, lookup, profile, login)
    - notes.py:   /api/notes            (threads, notes, replies)
    - health.py:  GET /health           (service health check)

Routes stay thin: they parse the request, resolve the caller's identity
where required, call a service, and pick the status code. Business rules
live in the services.
"""
