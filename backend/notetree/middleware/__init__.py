# Middleware package init
"""
NoteTree Backend: Middleware Package
======================================

Cross-cutting concerns applied to every request.

Middleware Chain (request direction):
    Request → [Request ID] → [Logging] → [Rate Limit] → [GZip] → [CORS] → Route

Responses travel back through the same chain in reverse, which is when
the request ID header is added and the access log line is written.
"""
