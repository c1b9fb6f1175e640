"""
NoteTree Backend: FastAPI Application Factory
===============================================

What:  Creates and configures the FastAPI application instance.
How:   Factory pattern: create_app() returns a configured FastAPI instance.
Who:   Called by uvicorn to start the server (uvicorn notetree.main:app).

Application Architecture:
    ┌──────────────────────────────────────────────────────┐
    │                   FastAPI App                        │
    │                                                      │
    │  Middleware Chain:                                   │
    │  ┌──────────────┐ ┌──────────┐ ┌─────────────────┐   │
    │  │  Rate Limit  │→│ Req ID   │→│  Logging        │   │
    │  └──────────────┘ └──────────┘ └─────────────────┘   │
    │                                                      │
    │  Routes:                                             │
    │  ┌──────────────┐ ┌────────────┐ ┌───────────────┐   │
    │  │ /api/users   │ │ /api/notes │ │ GET /health   │   │
    │  └──────────────┘ └────────────┘ └───────────────┘   │
    │                                                      │
    │  Exception Handlers:                                 │
    │  ┌────────────────────────────────────────────────┐  │
    │  │ NoteTreeError→own status │ 422→400 │ other→500 │  │
    │  └────────────────────────────────────────────────┘  │
    └──────────────────────────────────────────────────────┘

Lifecycle:
    Startup:  logging, configuration check, optional table creation
    Shutdown: dispose database engine
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from notetree import __version__
from notetree.config import settings
from notetree.database import create_tables, dispose_engine
from notetree.exceptions import DatabaseError, NoteTreeError
from notetree.middleware.logging import RequestLoggingMiddleware
from notetree.middleware.rate_limit import RateLimitMiddleware
from notetree.middleware.request_id import RequestIDMiddleware, request_id_var
from notetree.routes import health, notes, users

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure logging for the entire application.

    Called once during app startup, before any other initialization.
    Format: 2024-01-15T12:00:00 [INFO] notetree.services.note_service: Note 3 created ...
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,  # Override any existing logging config
    )

    # Reduce noise from third-party libraries
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("passlib").setLevel(logging.ERROR)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Runs initialization on startup and cleanup on shutdown."""
    # ── Startup ───────────────────────────────────────────────────────────
    setup_logging()
    logger.info("NoteTree Backend %s starting up...", __version__)

    try:
        settings.validate_required_for_production()
    except ValueError as e:
        # Keep serving: a development setup is still usable
        logger.error("Configuration error: %s", str(e))

    if settings.db_create_tables:
        await create_tables()
        logger.info("Database tables created (DB_CREATE_TABLES=true)")

    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)
    logger.info("API docs: http://%s:%d/docs", settings.backend_host, settings.backend_port)

    yield

    # ── Shutdown ──────────────────────────────────────────────────────────
    logger.info("NoteTree Backend shutting down...")
    await dispose_engine()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def _error_body(error: str, message: str, **extra) -> dict:
    body = {"error": error, "message": message, "request_id": request_id_var.get("")}
    body.update(extra)
    return body


def register_exception_handlers(app: FastAPI) -> None:
    """
    Register global exception handlers for consistent error responses.

    Handler hierarchy:
        DatabaseError           → 500, generic message, context logged
        NoteTreeError (base)    → the exception's own status_code/error_code
        RequestValidationError  → 400 validation_error
        Exception (fallback)    → 500 internal_server_error

    Every body has `error`, `message` and `request_id`. Internal details
    (stack traces, SQL) never appear in a response.
    """

    @app.exception_handler(DatabaseError)
    async def handle_database_error(request: Request, exc: DatabaseError):
        """Database error: generic message to user, details logged server-side."""
        rid = request_id_var.get("")
        logger.error("[%s] Database error: %s | Context: %s", rid, exc.message, exc.context)
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body(
                exc.error_code, "An internal error occurred. Please try again later."
            ),
        )

    @app.exception_handler(NoteTreeError)
    async def handle_app_error(request: Request, exc: NoteTreeError):
        """Domain errors carry their own HTTP status and client-safe message."""
        rid = request_id_var.get("")
        if exc.status_code >= 500:
            logger.error("[%s] %s: %s | Context: %s",
                         rid, type(exc).__name__, exc.message, exc.context)
        else:
            logger.info("[%s] %s: %s", rid, type(exc).__name__, exc.message)

        headers = {}
        if exc.status_code == 401:
            headers["WWW-Authenticate"] = "Bearer"
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body(exc.error_code, exc.message),
            headers=headers or None,
        )

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        """Malformed body, non-numeric id, empty title, ..."""
        errors = jsonable_encoder(exc.errors())
        first = errors[0] if errors else {}
        location = ".".join(str(part) for part in first.get("loc", ()))
        message = f"{location}: {first.get('msg', 'invalid value')}" if location else "Invalid request"
        logger.info("[%s] Validation error: %s", request_id_var.get(""), message)
        return JSONResponse(
            status_code=400,
            content=_error_body("validation_error", message, details={"errors": errors}),
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        """Catch-all: generic 500, stack trace logged server-side only."""
        rid = request_id_var.get("")
        logger.error("[%s] Unexpected error: %s", rid, str(exc), exc_info=True)
        return JSONResponse(
            status_code=500,
            content=_error_body(
                "internal_server_error",
                "An unexpected error occurred. Please try again or contact support.",
            ),
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Each call returns an independent app (fresh middleware state), which
    the test suite relies on.
    """
    app = FastAPI(
        title="NoteTree API",
        description=(
            "Note-taking API: user accounts, threaded notes (notes replying to notes) "
            "and JWT bearer authentication."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # ── Register Middleware ───────────────────────────────────────────────
    # Middleware executes in REVERSE order of addition:
    # RequestID → Logging → RateLimit → GZip → CORS → route
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "Retry-After"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RateLimitMiddleware)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    # ── Register Exception Handlers ───────────────────────────────────────
    register_exception_handlers(app)

    # ── Register Routes ───────────────────────────────────────────────────
    app.include_router(users.router)
    app.include_router(notes.router)
    app.include_router(health.router)

    return app


# uvicorn expects `notetree.main:app` to be importable
app = create_app()
