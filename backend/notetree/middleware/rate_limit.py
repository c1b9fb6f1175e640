"""
NoteTree Backend: Rate Limiting Middleware
============================================

What:  Per-IP sliding window rate limiter.
How:   Keeps each IP's recent request timestamps in memory; a request is
       rejected with 429 once the window already holds the configured
       maximum.
Who:   Applied to every request via Starlette middleware.

Algorithm: Sliding Window Log
    1. Each IP gets a list of request timestamps
    2. On each request, drop timestamps older than the window
    3. If remaining count >= limit, reject with 429 and Retry-After
    4. Otherwise, record the current timestamp and continue

Scope:
    State lives in the process. With several workers each one enforces
    its own limit; a shared store (e.g. Redis) is needed for a global one.
"""

import logging
import time
from collections import defaultdict
from typing import Dict, List

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from notetree.config import settings
from notetree.exceptions import RateLimitExceededError
from notetree.middleware.request_id import request_id_var

logger = logging.getLogger(__name__)


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    In-memory sliding window rate limiter.

    Configuration (from settings):
        rate_limit_requests: Max requests per window (default: 300)
        rate_limit_window: Window duration in seconds (default: 60)

    Health checks and API documentation are never limited.
    """

    EXCLUDED_PATHS = {"/health", "/docs", "/openapi.json", "/redoc"}

    # Inactive IPs are swept after this many recorded requests
    CLEANUP_EVERY = 1000

    def __init__(self, app, **kwargs):
        super().__init__(app, **kwargs)
        self._requests: Dict[str, List[float]] = defaultdict(list)
        self._recorded = 0

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.url.path in self.EXCLUDED_PATHS:
            return await call_next(request)

        # Behind a proxy this is the proxy's address
        client_ip = request.client.host if request.client else "unknown"

        now = time.time()
        window = settings.rate_limit_window
        window_start = now - window

        history = [ts for ts in self._requests[client_ip] if ts > window_start]
        self._requests[client_ip] = history

        if len(history) >= settings.rate_limit_requests:
            retry_after = int(history[0] + window - now) + 1
            exc = RateLimitExceededError(retry_after=retry_after)

            logger.warning(
                "Rate limit exceeded for IP %s: %d requests in %ds window",
                client_ip,
                len(history),
                window,
            )

            return JSONResponse(
                status_code=exc.status_code,
                content={
                    "error": exc.error_code,
                    "message": exc.message,
                    "details": exc.context,
                    "request_id": request_id_var.get(""),
                },
                headers={"Retry-After": str(retry_after)},
            )

        history.append(now)
        self._recorded += 1
        if self._recorded % self.CLEANUP_EVERY == 0:
            self._cleanup_inactive_ips(window_start)

        return await call_next(request)

    def _cleanup_inactive_ips(self, window_start: float) -> None:
        """Removes IPs that have no requests within the current window."""
        inactive_ips = [
            ip for ip, timestamps in self._requests.items()
            if not timestamps or timestamps[-1] <= window_start
        ]
        for ip in inactive_ips:
            del self._requests[ip]

        if inactive_ips:
            logger.debug("Cleaned up %d inactive IP entries", len(inactive_ips))
