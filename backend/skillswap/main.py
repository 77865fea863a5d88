"""
SkillSwap Backend — FastAPI Application Factory
=================================================

What:  Creates and configures the FastAPI application instance.
Why:   Centralizes app configuration, middleware registration, route mounting,
       and lifecycle management in one place.
How:   Factory pattern: create_app() returns a configured FastAPI instance.
Who:   Called by uvicorn to start the server (uvicorn skillswap.main:app).
When:  Once at server startup; the returned app handles all subsequent requests.

Application Architecture:
    ┌──────────────────────────────────────────────────────────┐
    │                      FastAPI App                         │
    │                                                          │
    │  Middleware Chain:                                       │
    │  ┌────────────┐ ┌────────┐ ┌─────────┐ ┌──────┐ ┌──────┐ │
    │  │ Rate Limit │→│ Req ID │→│ Logging │→│ GZip │→│ CORS │ │
    │  └────────────┘ └────────┘ └─────────┘ └──────┘ └──────┘ │
    │                                                          │
    │  Routes:                                                 │
    │  /api/users  /api/skills  /api/connections  /api/chat    │
    │  /ws/chat    /health                                     │
    │                                                          │
    │  Exception Handlers:                                     │
    │  Validation/Conflict/InvalidState→400  Auth→401          │
    │  Forbidden→403  NotFound→404  RateLimit→429              │
    │  ExternalService→502  Database→500                       │
    └──────────────────────────────────────────────────────────┘

Lifecycle:
    Startup:
    1. Initialize logging
    2. Validate configuration (logged, not fatal)
    3. Create tables when AUTO_CREATE_TABLES is set
    Shutdown:
    1. Dispose database engine (close all connections)
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from skillswap import __version__
from skillswap.config import settings
from skillswap.database import dispose_engine, init_models
from skillswap.exceptions import (
    AuthenticationError,
    ConflictError,
    ExternalServiceError,
    ForbiddenError,
    InvalidStateError,
    NotFoundError,
    RateLimitExceededError,
    SkillSwapError,
    ValidationError,
)
from skillswap.middleware.logging import RequestLoggingMiddleware
from skillswap.middleware.rate_limit import RateLimitMiddleware
from skillswap.middleware.request_id import RequestIDMiddleware, request_id_var
from skillswap.routes import chat, connections, health, skills, users

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure logging for the entire application.

    When:    Called once during app startup (before any other initialization).
    Format:  %(asctime)s [%(levelname)s] %(name)s: %(message)s
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[
            logging.StreamHandler(sys.stdout),  # Docker captures stdout
        ],
        force=True,
    )

    # Reduce noise from third-party libraries
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("aiosqlite").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    # ── Startup ───────────────────────────────────────────────────────────
    setup_logging()
    logger.info("=" * 60)
    logger.info("SkillSwap Backend %s starting up...", __version__)

    try:
        settings.validate_required_for_production()
    except ValueError as e:
        # Not fatal: local development runs with the default secret
        logger.error("Configuration error: %s", str(e))

    if settings.auto_create_tables:
        await init_models()
        logger.info("Database tables ensured (AUTO_CREATE_TABLES)")

    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)
    logger.info("API docs: http://%s:%d/docs", settings.backend_host, settings.backend_port)
    logger.info("=" * 60)

    yield  # Application runs here

    # ── Shutdown ──────────────────────────────────────────────────────────
    logger.info("SkillSwap Backend shutting down...")
    await dispose_engine()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def error_body(
    error: str,
    message: str,
    details: Optional[Dict[str, Any]] = None,
    status: Optional[str] = None,
) -> Dict[str, Any]:
    """Shape shared by every error response (see schemas.common.ErrorResponse)."""
    body: Dict[str, Any] = {"error": error, "message": message}
    if details:
        body["details"] = details
    if status is not None:
        body["status"] = status
    body["request_id"] = request_id_var.get("")
    return body


def register_exception_handlers(app: FastAPI) -> None:
    """
    Register global exception handlers for consistent error responses.

    Handler hierarchy:
        ValidationError         → 400 validation_error
        ConflictError           → 400 conflict (+ status of the existing record)
        InvalidStateError       → 400 invalid_state (+ current status)
        AuthenticationError     → 401 unauthorized
        ForbiddenError          → 403 forbidden
        NotFoundError           → 404 not_found
        RateLimitExceededError  → 429 rate_limit_exceeded
        ExternalServiceError    → 502 external_service_error
        IntegrityError (stray)  → 400 conflict
        SQLAlchemyError         → 500 server_error
        SkillSwapError (base)   → 500 server_error
        Exception (fallback)    → 500 internal_server_error

    Security: handlers never expose stack traces or SQL in the response.
    """

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        """Client sent invalid input — tell them what's wrong."""
        logger.warning("[%s] Validation error: %s", request_id_var.get(""), exc.message)
        return JSONResponse(
            status_code=400,
            content=error_body("validation_error", exc.message, exc.context),
        )

    @app.exception_handler(ConflictError)
    async def handle_conflict(request: Request, exc: ConflictError):
        return JSONResponse(
            status_code=400,
            content=error_body("conflict", exc.message, exc.context, status=exc.status),
        )

    @app.exception_handler(InvalidStateError)
    async def handle_invalid_state(request: Request, exc: InvalidStateError):
        return JSONResponse(
            status_code=400,
            content=error_body("invalid_state", exc.message, exc.context, status=exc.status),
        )

    @app.exception_handler(AuthenticationError)
    async def handle_authentication_error(request: Request, exc: AuthenticationError):
        return JSONResponse(
            status_code=401,
            content=error_body("unauthorized", exc.message),
            headers={"WWW-Authenticate": "Bearer"},
        )

    @app.exception_handler(ForbiddenError)
    async def handle_forbidden(request: Request, exc: ForbiddenError):
        logger.warning("[%s] Forbidden: %s", request_id_var.get(""), exc.message)
        return JSONResponse(status_code=403, content=error_body("forbidden", exc.message))

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        """Requested resource doesn't exist."""
        return JSONResponse(status_code=404, content=error_body("not_found", exc.message))

    @app.exception_handler(RateLimitExceededError)
    async def handle_rate_limit(request: Request, exc: RateLimitExceededError):
        return JSONResponse(
            status_code=429,
            content=error_body("rate_limit_exceeded", exc.message, exc.context),
            headers={"Retry-After": str(exc.retry_after)},
        )

    @app.exception_handler(ExternalServiceError)
    async def handle_external_service(request: Request, exc: ExternalServiceError):
        logger.error("[%s] External service error: %s", request_id_var.get(""), exc.message)
        return JSONResponse(
            status_code=502,
            content=error_body("external_service_error", exc.message, exc.context),
        )

    @app.exception_handler(IntegrityError)
    async def handle_integrity_error(request: Request, exc: IntegrityError):
        """A constraint violation no service anticipated: still the client's duplicate."""
        logger.warning("[%s] Unhandled constraint violation: %s", request_id_var.get(""), exc.orig)
        return JSONResponse(
            status_code=400,
            content=error_body("conflict", "The request conflicts with existing data"),
        )

    @app.exception_handler(SQLAlchemyError)
    async def handle_sqlalchemy_error(request: Request, exc: SQLAlchemyError):
        logger.error("[%s] Database failure: %s", request_id_var.get(""), str(exc), exc_info=True)
        return JSONResponse(
            status_code=500,
            content=error_body("server_error", "An internal error occurred. Please try again later."),
        )

    @app.exception_handler(SkillSwapError)
    async def handle_skillswap_error(request: Request, exc: SkillSwapError):
        logger.error("[%s] Unclassified application error: %s", request_id_var.get(""), exc.message)
        return JSONResponse(status_code=500, content=error_body("server_error", exc.message))

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        """
        Catch-all for truly unexpected errors.

        Stack trace is logged server-side only; the client gets the request ID.
        """
        logger.error(
            "[%s] Unexpected error: %s",
            request_id_var.get(""),
            str(exc),
            exc_info=True,
        )
        return JSONResponse(
            status_code=500,
            content=error_body(
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

    Why factory (not module-level app):
        1. Testability: Create fresh app instances for each test
        2. Import safety: No side effects on import
    """
    app = FastAPI(
        title="SkillSwap API",
        description=(
            "Skill-exchange platform backend: accounts, a shared skill taxonomy, "
            "connection requests between users, and direct messaging."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # ── Register Middleware ───────────────────────────────────────────────
    # Middleware executes in REVERSE order of addition:
    # RateLimit → RequestID → Logging → GZip → CORS

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=[
            "X-Request-ID",
            "Retry-After",
        ],
    )

    # Don't compress small responses (overhead > savings)
    app.add_middleware(GZipMiddleware, minimum_size=500)

    app.add_middleware(RequestLoggingMiddleware)

    app.add_middleware(RequestIDMiddleware)

    # First to execute = last added
    app.add_middleware(RateLimitMiddleware)

    # ── Register Exception Handlers ───────────────────────────────────────
    register_exception_handlers(app)

    # ── Register Routes ───────────────────────────────────────────────────
    app.include_router(users.router)
    app.include_router(skills.router)
    app.include_router(connections.router)
    app.include_router(chat.router)
    app.include_router(health.router)

    return app


# ── Application Instance ─────────────────────────────────────────────────
# uvicorn expects `skillswap.main:app` to be importable
app = create_app()
