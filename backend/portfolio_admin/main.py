"""Portfolio Admin Backend - FastAPI Application Factory."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from portfolio_admin.api import auth_router, health_router
from portfolio_admin.core import KeyValueStore, Settings, build_kv_store, get_settings, setup_logging
from portfolio_admin.core.logging import get_logger
from portfolio_admin.middleware import (
    AdminAuthMiddleware,
    AuthGate,
    SecurityHeadersMiddleware,
)
from portfolio_admin.services import build_auth_service

logger = get_logger("main")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup/shutdown."""
    app_settings: Settings = app.state.settings

    setup_logging(
        level=app_settings.log_level,
        format_type="structured" if not app_settings.debug else "dev",
    )
    logger.info(f"Starting {app_settings.app_name} v{app_settings.app_version}")

    for warning in app_settings.check_security_configuration():
        logger.warning(f"SECURITY: {warning}")

    yield

    logger.info("Shutting down...")
    store: KeyValueStore | None = app.state.kv_store
    if store is not None:
        await store.close()


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Log unexpected errors and answer without internal details."""
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(status_code=500, content={"success": False, "error": "Internal server error"})


def create_app(
    app_settings: Settings | None = None,
    kv_store: KeyValueStore | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        app_settings: Settings to use (defaults to the environment)
        kv_store: Pre-built store to use instead of the configured one
    """
    app_settings = app_settings or get_settings()
    if kv_store is None:
        kv_store = build_kv_store(app_settings)

    app = FastAPI(
        title=app_settings.app_name,
        description="Administrator authentication for the portfolio site",
        version=app_settings.app_version,
        lifespan=lifespan,
        # API docs sit outside the admin gate; only expose them when debugging
        docs_url="/docs" if app_settings.debug else None,
        redoc_url="/redoc" if app_settings.debug else None,
        openapi_url="/openapi.json" if app_settings.debug else None,
    )

    auth_service = build_auth_service(app_settings, kv_store)
    app.state.settings = app_settings
    app.state.kv_store = kv_store
    app.state.auth_service = auth_service
    app.state.auth_gate = AuthGate(auth_service.tokens, auth_service.sessions)

    # Admin gate for content-editing writes under /api/*
    app.add_middleware(AdminAuthMiddleware)

    # Security headers middleware
    app.add_middleware(SecurityHeadersMiddleware)

    # CORS middleware - MUST be outermost (added last in Starlette LIFO order)
    # so that CORS headers are present on ALL responses, including 401 from AdminAuth.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Accept", "X-Request-ID"],
    )

    app.add_exception_handler(Exception, unhandled_exception_handler)

    app.include_router(health_router)  # Health at root level
    app.include_router(auth_router)  # Auth at /api/auth

    return app


# Application instance
app = create_app()
