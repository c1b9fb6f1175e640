# Services package init
"""
NoteTree Backend: Services Layer
==================================

Service Inventory:
    - CredentialService: password hashing, session token issue/verify
    - UserService: account CRUD and login (User Manager)
    - NoteService: notes and reply trees (Note Tree Manager)

Services receive the request's AsyncSession on every call and keep no
per-request state, so each is a module-level singleton.
"""
