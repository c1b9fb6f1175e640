"""
NoteTree Backend: Request ID Middleware
=========================================

What:  Assigns a correlation ID to each request and returns it in the response.
How:   Reuses the client's X-Request-ID header or generates a short UUID,
       stores it in a ContextVar and on request.state, and echoes it back.
Who:   Applied to every request via Starlette middleware.

The same ID appears in the access log line and in every JSON error body,
so a client-reported error can be matched to the server logs.
"""

import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

# Coroutine-local: concurrent requests on one thread each see their own ID
request_id_var: ContextVar[str] = ContextVar("request_id", default="")

REQUEST_ID_HEADER = "X-Request-ID"


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Attaches a request ID to the request context and the response headers."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        # 8 hex chars are enough to correlate log lines
        rid = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex[:8]

        request_id_var.set(rid)
        request.state.request_id = rid

        response = await call_next(request)
        response.headers[REQUEST_ID_HEADER] = rid
        return response
