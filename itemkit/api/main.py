"""FastAPI application factory and lifecycle management.

``create_app`` wires the whole service together:
- Application lifespan (database check, schema creation, pool disposal)
- Middleware registration in the correct order
- Exception handler registration
- Routers for login, items and health
- OpenTelemetry instrumentation

Middleware execute in reverse order of registration, so the last one added
is the first to see a request.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from itemkit.api.constants import CORRELATION_ID_HEADER, REQUEST_ID_HEADER
from itemkit.api.middleware.error_handler import register_exception_handlers
from itemkit.api.middleware.request_context import RequestContextMiddleware
from itemkit.api.middleware.request_logging import RequestLoggingMiddleware
from itemkit.api.middleware.security_headers import SecurityHeadersMiddleware
from itemkit.api.routers import auth, health, items
from itemkit.api.utils.responses import ORJSONResponse
from itemkit.core.config import Settings, get_settings
from itemkit.core.logging import setup_logging
from itemkit.core.observability import instrument_app, setup_tracing
from itemkit.infrastructure.database.session import Database
from itemkit.services.auth import AuthService

CORS_METHODS = ["GET", "POST", "PATCH", "DELETE", "OPTIONS"]
CORS_HEADERS = ["Authorization", "Content-Type", CORRELATION_ID_HEADER]


@asynccontextmanager
async def lifespan(app_instance: FastAPI) -> AsyncGenerator[None]:
    """Manage application lifespan events.

    Args:
        app_instance: The FastAPI application instance.

    Yields:
        None: Nothing is yielded, this is just a lifespan context.

    Raises:
        RuntimeError: If database connection fails during startup.
    """
    settings: Settings = app_instance.state.settings
    database: Database = app_instance.state.database

    is_healthy, error_msg = await database.check_connection()
    if not is_healthy:
        logger.error("Database connection failed during startup: {}", error_msg)
        msg = f"Database connection failed: {error_msg}"
        raise RuntimeError(msg)
    logger.info("Database connection successful")

    if settings.database_config.auto_create_schema:
        await database.create_schema()

    logger.info(
        "Application startup complete - {} v{} ({})",
        app_instance.title,
        app_instance.version,
        settings.environment,
    )

    try:
        yield
    finally:
        logger.info("Application shutdown initiated")
        await database.close()
        logger.info("Application shutdown complete")


def add_middleware(application: FastAPI, settings: Settings) -> None:
    """Register middleware, innermost first."""
    # 4. Request logging (innermost, sees the correlation id)
    application.add_middleware(
        RequestLoggingMiddleware,
        log_config=settings.log_config,
        trust_proxy_headers=settings.is_production,
    )

    # 3. Request context (creates correlation ID)
    application.add_middleware(RequestContextMiddleware)

    # 2. Security headers
    application.add_middleware(
        SecurityHeadersMiddleware, hsts_enabled=settings.is_production
    )

    # 1. CORS (outermost, answers preflight requests)
    if settings.cors_origins:
        application.add_middleware(
            CORSMiddleware,
            allow_origins=settings.cors_origins,
            allow_credentials=True,
            allow_methods=CORS_METHODS,
            allow_headers=CORS_HEADERS,
            expose_headers=[CORRELATION_ID_HEADER, REQUEST_ID_HEADER],
        )
    else:
        application.add_middleware(
            CORSMiddleware,
            allow_origins=["*"],
            allow_credentials=False,
            allow_methods=CORS_METHODS,
            allow_headers=CORS_HEADERS,
            expose_headers=[CORRELATION_ID_HEADER, REQUEST_ID_HEADER],
        )


def create_app(
    settings: Settings | None = None, database: Database | None = None
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Optional settings instance. If not provided, will use
            get_settings().
        database: Optional database handle. If not provided, one is built
            from the database configuration.

    Returns:
        FastAPI: Configured FastAPI application instance.
    """
    if settings is None:
        settings = get_settings()

    setup_logging(settings)
    setup_tracing(settings)

    if database is None:
        database = Database.from_config(settings.database_config, settings.log_config)

    application = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        docs_url=settings.docs_url,
        redoc_url=settings.redoc_url,
        openapi_url=settings.openapi_url,
        default_response_class=ORJSONResponse,
        lifespan=lifespan,
    )

    application.state.settings = settings
    application.state.database = database
    application.state.auth_service = AuthService(settings)

    register_exception_handlers(application)
    add_middleware(application, settings)

    application.include_router(auth.router)
    application.include_router(items.router)
    application.include_router(health.router)

    instrument_app(application, settings, database.engine)

    return application
