"""
Pantry API — FastAPI Application Factory
=========================================

What:  Creates and configures the FastAPI application instance.
How:   Factory pattern: create_app() returns a configured FastAPI instance.
Who:   Called by uvicorn to start the server (uvicorn pantry_api.main:app).

Application Architecture:
    ┌──────────────────────────────────────────────────────────┐
    │                      FastAPI App                         │
    │                                                          │
    │  Middleware Chain:                                       │
    │  ┌──────────┐ ┌────────────┐ ┌────────────┐ ┌──────────┐ │
    │  │ Req ID   │→│ Rate Limit │→│ Access Log │→│ GZip/CORS│ │
    │  └──────────┘ └────────────┘ └────────────┘ └──────────┘ │
    │                                                          │
    │  Routes: /foods /pantries /pantry-items /shopping-lists  │
    │          /shopping-list-items /groups /dishes            │
    │          /meal-logs /recipes /profile /users /health     │
    │                                                          │
    │  app.state: cache_store → response_cache,                │
    │             cache_invalidator, cache_service             │
    └──────────────────────────────────────────────────────────┘

Lifecycle:
    Startup:   logging, configuration check
    Shutdown:  cache store, JWKS client, OpenFoodFacts client, database engine
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError

from pantry_api import __version__
from pantry_api.auth import close_authenticator
from pantry_api.cache import (
    CacheInvalidator,
    CacheService,
    CacheStore,
    ResponseCache,
    create_cache_store,
)
from pantry_api.config import settings
from pantry_api.database import dispose_engine
from pantry_api.exceptions import (
    CircuitBreakerOpenError,
    ConflictError,
    DatabaseError,
    ExternalServiceError,
    ForbiddenError,
    NotFoundError,
    PantryApiError,
    RateLimitExceededError,
    UnauthorizedError,
    ValidationError,
)
from pantry_api.middleware.logging import RequestLoggingMiddleware
from pantry_api.middleware.rate_limit import RateLimitMiddleware
from pantry_api.middleware.request_id import RequestIDMiddleware, request_id_var
from pantry_api.routes import (
    dishes,
    foods,
    groups,
    health,
    meal_logs,
    pantries,
    pantry_items,
    profile,
    recipes,
    shopping_list_items,
    shopping_lists,
    users,
)
from pantry_api.services.openfoodfacts_service import openfoodfacts_service

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure the root logger once, before anything else logs.

    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    for noisy in ("uvicorn.access", "sqlalchemy.engine", "httpcore", "httpx"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    # ── Startup ───────────────────────────────────────────────────────────
    setup_logging()
    logger.info("=" * 60)
    logger.info("Pantry API %s starting up...", __version__)

    try:
        settings.validate_required_for_production()
    except ValueError as e:
        # Keep serving: /health still reports and public reads still work
        logger.error("Configuration error: %s", str(e))

    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)
    logger.info("=" * 60)

    yield

    # ── Shutdown ──────────────────────────────────────────────────────────
    logger.info("Pantry API shutting down...")
    await app.state.cache_store.close()
    await close_authenticator()
    await openfoodfacts_service.close()
    await dispose_engine()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def _error_body(error: str, message: str, details: Optional[dict] = None) -> Dict:
    return {
        "error": error,
        "message": message,
        "details": details or {},
        "request_id": request_id_var.get(""),
    }


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map exception types to status codes and the shared error body.

    Handler hierarchy:
        ValidationError         → 400
        UnauthorizedError       → 401 (WWW-Authenticate: Bearer)
        ForbiddenError          → 403
        NotFoundError           → 404
        ConflictError           → 409 (also unique-constraint races)
        RateLimitExceededError  → 429
        ExternalServiceError    → 503
        CircuitBreakerOpenError → 503
        DatabaseError           → 500
        PantryApiError (base)   → 500
        Exception (fallback)    → 500

    500 responses never carry details; those are logged server-side.
    """

    def client_error(status_code: int, error: str, headers: Optional[Dict[str, str]] = None):
        async def handler(request: Request, exc: PantryApiError):
            if status_code != 404:
                logger.warning("[%s] %s: %s", request_id_var.get(""), error, exc.message)
            return JSONResponse(
                status_code=status_code,
                content=_error_body(error, exc.message, exc.context),
                headers=headers,
            )

        return handler

    app.add_exception_handler(ValidationError, client_error(400, "validation_error"))
    app.add_exception_handler(
        UnauthorizedError, client_error(401, "unauthorized", {"WWW-Authenticate": "Bearer"})
    )
    app.add_exception_handler(ForbiddenError, client_error(403, "forbidden"))
    app.add_exception_handler(NotFoundError, client_error(404, "not_found"))
    app.add_exception_handler(ConflictError, client_error(409, "conflict"))

    @app.exception_handler(RateLimitExceededError)
    async def handle_rate_limit(request: Request, exc: RateLimitExceededError):
        return JSONResponse(
            status_code=429,
            content=_error_body("rate_limit_exceeded", exc.message, exc.context),
            headers={"Retry-After": str(exc.retry_after)},
        )

    @app.exception_handler(CircuitBreakerOpenError)
    async def handle_circuit_breaker(request: Request, exc: CircuitBreakerOpenError):
        logger.warning("[%s] Circuit breaker open: %s", request_id_var.get(""), exc.message)
        return JSONResponse(
            status_code=503,
            content=_error_body("service_unavailable", exc.message, exc.context),
            headers={"Retry-After": str(exc.recovery_time)},
        )

    @app.exception_handler(ExternalServiceError)
    async def handle_external_service(request: Request, exc: ExternalServiceError):
        logger.error("[%s] OpenFoodFacts error: %s", request_id_var.get(""), exc.message)
        headers = {"Retry-After": str(exc.retry_after)} if exc.retry_after else None
        return JSONResponse(
            status_code=503,
            content=_error_body("external_service_error", exc.message, exc.context),
            headers=headers,
        )

    @app.exception_handler(IntegrityError)
    async def handle_integrity_error(request: Request, exc: IntegrityError):
        # Two writers passed the same pre-check; the unique index decided
        logger.warning("[%s] Integrity error: %s", request_id_var.get(""), exc.orig)
        return JSONResponse(
            status_code=409,
            content=_error_body("conflict", "The resource already exists"),
        )

    @app.exception_handler(DatabaseError)
    async def handle_database_error(request: Request, exc: DatabaseError):
        rid = request_id_var.get("")
        logger.error("[%s] Database error: %s | Context: %s", rid, exc.message, exc.context)
        return JSONResponse(
            status_code=500,
            content=_error_body("server_error", "An internal error occurred. Please try again later."),
        )

    @app.exception_handler(PantryApiError)
    async def handle_application_error(request: Request, exc: PantryApiError):
        rid = request_id_var.get("")
        logger.error("[%s] Unhandled application error: %s | Context: %s", rid, exc.message, exc.context)
        return JSONResponse(
            status_code=500,
            content=_error_body("server_error", "An internal error occurred. Please try again later."),
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        logger.error("[%s] Unexpected error: %s", request_id_var.get(""), str(exc), exc_info=True)
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

def create_app(cache_store: Optional[CacheStore] = None) -> FastAPI:
    """
    Assemble the application.

    The cache components are built here rather than in the lifespan so that
    every app instance, including one driven by an in-process test transport,
    owns exactly one store and one instance of each component.
    """
    app = FastAPI(
        title="Pantry API",
        description=(
            "Household food management: a shared food catalog enriched from "
            "OpenFoodFacts, pantries, shopping lists, groups, dishes and meal logs."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # ── Response Cache ────────────────────────────────────────────────────
    store = cache_store if cache_store is not None else create_cache_store(settings)
    app.state.cache_store = store
    app.state.response_cache = ResponseCache(store)
    app.state.cache_invalidator = CacheInvalidator(store)
    app.state.cache_service = CacheService(store)

    # ── Register Middleware ───────────────────────────────────────────────
    # Last added runs first: RequestID → RateLimit → Logging → GZip → CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "X-Total-Count", "Retry-After"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RateLimitMiddleware)
    app.add_middleware(RequestIDMiddleware)

    # ── Register Exception Handlers ───────────────────────────────────────
    register_exception_handlers(app)

    # ── Register Routes ───────────────────────────────────────────────────
    for module in (
        foods,
        pantries,
        pantry_items,
        shopping_lists,
        shopping_list_items,
        groups,
        dishes,
        meal_logs,
        recipes,
        profile,
        users,
        health,
    ):
        app.include_router(module.router)

    return app


# ── Application Instance ─────────────────────────────────────────────────
app = create_app()
