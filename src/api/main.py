"""FastAPI application initialization and configuration module.

This module builds the VATCalc API. It handles:
- Application lifecycle: the settings synchronizer is created, hydrated and
  subscribed on startup, and torn down on shutdown
- Middleware registration in the correct order
- Exception handler registration
- Health check and info endpoints
- OpenTelemetry instrumentation

Middleware are executed in reverse order of registration.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Annotated, Any

from fastapi import Depends, FastAPI, Request
from loguru import logger

from src.api.dependencies import SynchronizerDep
from src.api.middleware.error_handler import register_exception_handlers
from src.api.middleware.maintenance import MaintenanceModeMiddleware
from src.api.middleware.request_context import RequestContextMiddleware
from src.api.middleware.request_logging import RequestLoggingMiddleware
from src.api.routes import settings_router, site_router, vat_router
from src.api.utils.responses import ORJSONResponse
from src.core.config import Settings, get_settings
from src.core.logging import setup_logging
from src.core.observability import instrument_app, setup_tracing
from src.domain.settings.ports import PersistenceAdapter
from src.domain.settings.synchronizer import SettingsSynchronizer
from src.infrastructure.database.session import (
    check_database_connection,
    close_database,
)
from src.infrastructure.fallback import LocalFallbackStore
from src.infrastructure.stores import build_adapter
from src.infrastructure.stores.base import SqlSettingsStore


def build_synchronizer(
    settings: Settings, adapter: PersistenceAdapter
) -> SettingsSynchronizer:
    """Create the process-wide synchronizer from configuration.

    Args:
        settings: Application settings.
        adapter: The remote settings store.

    Returns:
        SettingsSynchronizer: A synchronizer that has not been initialized yet.
    """
    sync_config = settings.sync_config
    return SettingsSynchronizer(
        adapter,
        LocalFallbackStore(sync_config.fallback_path),
        collection_key=sync_config.collection_key,
        read_timeout_ms=sync_config.read_timeout_ms,
        write_timeout_ms=sync_config.write_timeout_ms,
    )


def create_app(
    settings: Settings | None = None, adapter: PersistenceAdapter | None = None
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Optional settings instance. If not provided, will use get_settings().
        adapter: Optional settings store. If not provided, the store selected
            by ``sync_config.backend`` is built at startup.

    Returns:
        FastAPI: Configured FastAPI application instance.
    """
    if settings is None:
        settings = get_settings()

    # Setup logging first
    setup_logging(settings)

    # Setup tracing
    setup_tracing(settings)

    @asynccontextmanager
    async def lifespan(app_instance: FastAPI) -> AsyncGenerator[None]:
        store = adapter if adapter is not None else build_adapter(settings)
        synchronizer = build_synchronizer(settings, store)
        app_instance.state.synchronizer = synchronizer
        app_instance.state.store = store

        await synchronizer.initialize()
        logger.info(
            "Application startup complete - {} v{}",
            app_instance.title,
            app_instance.version,
            backend=store.backend,
            remote_available=synchronizer.remote_available,
        )

        yield

        logger.info("Application shutdown initiated")
        synchronizer.teardown()
        await store.close()
        if adapter is None and settings.sync_config.backend != "memory":
            await close_database()
        logger.info("Application shutdown complete")

    application = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        debug=settings.debug,
        docs_url=settings.docs_url,
        redoc_url=settings.redoc_url,
        openapi_url=settings.openapi_url,
        default_response_class=ORJSONResponse,
        lifespan=lifespan,
    )

    # Register exception handlers BEFORE middleware
    register_exception_handlers(application)

    # The last middleware added is the first to process requests

    # 3. Maintenance gate (runs with correlation ID and request logging in place)
    application.add_middleware(MaintenanceModeMiddleware)

    # 2. Request logging middleware (logs requests/responses)
    application.add_middleware(RequestLoggingMiddleware, log_config=settings.log_config)

    # 1. Request context middleware (creates correlation ID)
    application.add_middleware(RequestContextMiddleware)

    application.include_router(settings_router)
    application.include_router(site_router)
    application.include_router(vat_router)

    @application.get("/health")
    async def health(
        request: Request, synchronizer: SynchronizerDep
    ) -> dict[str, object]:
        """Health check endpoint for monitoring and container orchestration.

        The service stays "healthy" without the remote store: it keeps
        serving from the local fallback, so a lost remote only degrades it.
        On the SQL backends the database connection is checked as well.

        Returns:
            dict[str, object]: Status and remote store availability.
        """
        remote_available = synchronizer.remote_available
        body: dict[str, object] = {
            "backend": synchronizer.backend,
            "remote_available": remote_available,
        }

        healthy = remote_available
        store = request.app.state.store
        if isinstance(store, SqlSettingsStore):
            connected, error = await check_database_connection(store.engine)
            body["database"] = "connected" if connected else "unreachable"
            if not connected:
                healthy = False
                logger.warning("Database health check failed", error=error)

        if not remote_available:
            logger.warning(
                "Remote settings store unavailable", backend=synchronizer.backend
            )
        return {"status": "healthy" if healthy else "degraded", **body}

    @application.get("/info")
    async def info(
        app_settings: Annotated[Settings, Depends(get_settings)],
    ) -> dict[str, Any]:
        """Get application information.

        Args:
            app_settings: Application settings injected via dependency.

        Returns:
            dict[str, Any]: Application information including name, version,
                and environment.
        """
        return {
            "app_name": app_settings.app_name,
            "version": app_settings.app_version,
            "environment": app_settings.environment,
            "debug": app_settings.debug,
            "backend": app_settings.sync_config.backend,
        }

    # Instrument application for tracing (at the end)
    instrument_app(application, settings)

    return application


app = create_app()
