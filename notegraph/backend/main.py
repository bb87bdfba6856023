"""
FastAPI Application Entry Point.

This is the main entry point for the NoteGraph backend application.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from notegraph.backend.api import health
from notegraph.backend.api.v1 import router as api_v1_router
from notegraph.backend.core.concurrency import shutdown_pools
from notegraph.backend.core.config import get_app_config
from notegraph.backend.core.database import Database
from notegraph.backend.core.exception_handlers import register_exception_handlers
from notegraph.backend.core.logging import get_logger, setup_logging
from notegraph.backend.core.middleware import RequestContextMiddleware

logger = get_logger(__name__)

_app: FastAPI | None = None


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan manager.

    Opens the database handle at startup. At shutdown disposes it and
    stops the file I/O thread pool.
    """
    app_config = get_app_config()
    setup_logging(config=app_config.logging)

    if app_config.features.security_startup_checks_enabled:
        from notegraph.backend.core.startup_checks import run_startup_checks
        run_startup_checks(app_config)

    database = Database.from_config()
    if database.engine.dialect.name == "sqlite":
        # Local SQLite runs skip Alembic
        await database.create_all()
    app.state.database = database

    logger.info(
        "Application starting",
        extra={
            "app_name": app_config.application.name,
            "env": app_config.application.environment,
        },
    )
    try:
        yield
    finally:
        logger.info("Application shutting down")
        await database.dispose()
        await shutdown_pools()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app_config = get_app_config()
    app_settings = app_config.application

    app = FastAPI(
        title=app_settings.name,
        description=app_settings.description,
        version=app_settings.version,
        docs_url="/docs" if app_settings.docs_enabled else None,
        redoc_url="/redoc" if app_settings.docs_enabled else None,
        lifespan=lifespan,
    )

    app.add_middleware(
        RequestContextMiddleware,
        log_requests=app_config.features.api_request_logging,
    )

    cors_origins = app_settings.cors.origins
    if cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=cors_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    register_exception_handlers(app)

    app.include_router(health.router, tags=["health"])
    app.include_router(api_v1_router, prefix=app_settings.api_prefix)

    return app


def get_app() -> FastAPI:
    """
    Get the application instance (lazy initialization).

    This function creates the app on first call and caches it.
    Use this instead of importing `app` directly to avoid
    import-time configuration errors.
    """
    global _app
    if _app is None:
        _app = create_app()
    return _app


# For uvicorn: `uvicorn notegraph.backend.main:app`
def __getattr__(name: str) -> FastAPI:
    """Support lazy access to `app` for uvicorn compatibility."""
    if name == "app":
        return get_app()
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
