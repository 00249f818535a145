"""
Potluck Backend: FastAPI Application Factory
=============================================

What:  Creates and configures the FastAPI application instance.
How:   create_app() builds the process-wide components once (settings,
       engine, session factory, object storage, token codec), stores them on
       app.state, and wires middleware, exception handlers and routers.
Who:   uvicorn (potluck.main:app), the `potluck` console script, and tests
       (create_app(test_settings, storage=...)).

Application Architecture:
    ┌──────────────────────────────────────────────────────────┐
    │                       FastAPI App                        │
    │                                                          │
    │  Middleware:  Request ID → Logging → GZip → CORS         │
    │                                                          │
    │  Routes:                                                 │
    │    /signup /login /me       /posts                       │
    │    /api/recipes             /api/meal-plans              │
    │    /api/media               /health                      │
    │                                                          │
    │  Exception Handlers:                                     │
    │    Validation→400  Auth→401  Forbidden→403               │
    │    NotFound→404    Upstream/Config→500                   │
    └──────────────────────────────────────────────────────────┘
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from potluck import __version__
from potluck.config import Settings
from potluck.database import build_engine, build_session_factory, dispose_engine, init_models
from potluck.exceptions import (
    AuthenticationError,
    AuthorizationError,
    ConfigurationError,
    NotFoundError,
    PotluckError,
    UnsupportedMediaTypeError,
    UpstreamError,
    ValidationError,
)
from potluck.middleware.logging import RequestLoggingMiddleware
from potluck.middleware.request_id import RequestIDMiddleware, request_id_var
from potluck.routes import auth, health, meal_plans, media, posts, recipes
from potluck.services.storage import ObjectStorage, build_storage
from potluck.services.tokens import TokenCodec

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging(level: str = "INFO") -> None:
    """
    Configure the root logger once for the whole process.

    Format: 2024-01-15T12:00:00 [INFO] potluck.services.post_service: Post ... created
    """
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Third-party libraries that log every operation at DEBUG/INFO
    for noisy in ("uvicorn.access", "sqlalchemy.engine", "botocore", "boto3", "httpcore", "httpx"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    settings: Settings = app.state.settings

    setup_logging(settings.log_level)
    logger.info("=" * 60)
    logger.info("Potluck Backend %s starting up...", __version__)

    # Logged, not fatal: /health stays reachable while the deployment is fixed
    try:
        settings.validate_required_for_production()
    except ValueError as e:
        logger.error("Configuration error: %s", e)

    if settings.db_create_all:
        logger.info("Creating database tables from ORM metadata")
        await init_models(app.state.engine)

    logger.info("Storage backend: %s", settings.storage_backend)
    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)
    logger.info("=" * 60)

    yield

    logger.info("Potluck Backend shutting down...")
    await dispose_engine(app.state.engine)
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def _error_response(
    status_code: int,
    error: str,
    message: str,
    details: Optional[dict] = None,
    headers: Optional[dict] = None,
) -> JSONResponse:
    content = {"error": error, "message": message, "request_id": request_id_var.get("")}
    if details:
        content["details"] = details
    return JSONResponse(status_code=status_code, content=content, headers=headers)


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map exception types to HTTP status codes and the common error body.

    Handler hierarchy:
        UnsupportedMediaTypeError → 400 unsupported_media_type
        ValidationError           → 400 validation_error
        RequestValidationError    → 400 validation_error
        AuthenticationError       → 401 unauthorized
        AuthorizationError        → 403 forbidden
        NotFoundError             → 404 not_found
        UpstreamError             → 500 server_error (details logged only)
        ConfigurationError        → 500 server_error
        PotluckError / Exception  → 500 internal_server_error
    """

    @app.exception_handler(UnsupportedMediaTypeError)
    async def handle_unsupported_media(request: Request, exc: UnsupportedMediaTypeError):
        logger.warning("[%s] Unsupported media: %s", request_id_var.get(""), exc.message)
        return _error_response(400, "unsupported_media_type", exc.message, exc.context)

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        logger.warning("[%s] Validation error: %s", request_id_var.get(""), exc.message)
        return _error_response(400, "validation_error", exc.message, exc.context)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        errors = [
            {"field": ".".join(str(p) for p in err.get("loc", ())), "message": err.get("msg", "")}
            for err in exc.errors()
        ]
        logger.warning("[%s] Request validation failed: %s", request_id_var.get(""), errors)
        return _error_response(
            400,
            "validation_error",
            "Request body or parameters are invalid",
            {"errors": errors},
        )

    @app.exception_handler(AuthenticationError)
    async def handle_authentication_error(request: Request, exc: AuthenticationError):
        return _error_response(
            401,
            "unauthorized",
            exc.message,
            headers={"WWW-Authenticate": "Bearer"},
        )

    @app.exception_handler(AuthorizationError)
    async def handle_authorization_error(request: Request, exc: AuthorizationError):
        return _error_response(403, "forbidden", exc.message)

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        return _error_response(404, "not_found", exc.message)

    @app.exception_handler(UpstreamError)
    async def handle_upstream_error(request: Request, exc: UpstreamError):
        rid = request_id_var.get("")
        logger.error(
            "[%s] %s: %s | Context: %s",
            rid,
            type(exc).__name__,
            exc.message,
            exc.context,
        )
        return _error_response(500, "server_error", exc.message)

    @app.exception_handler(ConfigurationError)
    async def handle_configuration_error(request: Request, exc: ConfigurationError):
        logger.error("[%s] Configuration error: %s", request_id_var.get(""), exc.message)
        return _error_response(500, "server_error", exc.message)

    @app.exception_handler(PotluckError)
    async def handle_potluck_error(request: Request, exc: PotluckError):
        logger.error("[%s] Unhandled application error: %s", request_id_var.get(""), exc.message)
        return _error_response(500, "internal_server_error", exc.message)

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        logger.error("[%s] Unexpected error: %s", request_id_var.get(""), exc, exc_info=True)
        return _error_response(
            500,
            "internal_server_error",
            "An unexpected error occurred. Please try again or contact support.",
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app(
    settings: Optional[Settings] = None,
    *,
    storage: Optional[ObjectStorage] = None,
) -> FastAPI:
    """
    Build a fully wired application.

    Args:
        settings: configuration; read from the environment when omitted
        storage:  object storage override (tests inject local or failing stores)
    """
    settings = settings or Settings()

    app = FastAPI(
        title="Potluck API",
        description=(
            "Social food sharing: accounts, posts with photos and videos, "
            "recipes with ingredients and steps, and meal plans."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # ── Process-wide Components ───────────────────────────────────────────
    app.state.settings = settings
    app.state.engine = build_engine(settings)
    app.state.session_factory = build_session_factory(app.state.engine)
    app.state.storage = storage or build_storage(settings)
    app.state.token_codec = TokenCodec(settings.jwt_secret_key, settings.jwt_algorithm)

    # ── Middleware ────────────────────────────────────────────────────────
    # Executes in reverse order of addition: RequestID runs first
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    register_exception_handlers(app)

    app.include_router(auth.router)
    app.include_router(posts.router)
    app.include_router(recipes.router)
    app.include_router(meal_plans.router)
    app.include_router(media.router)
    app.include_router(health.router)

    return app


app = create_app()


def run() -> None:
    """Console entry point: serve the app with the configured host and port."""
    settings: Settings = app.state.settings
    uvicorn.run(
        "potluck.main:app",
        host=settings.backend_host,
        port=settings.backend_port,
        log_level=settings.log_level.lower(),
    )
