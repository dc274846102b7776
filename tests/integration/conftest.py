"""Shared fixtures for integration tests.

API tests run the real application (lifespan included) against an
in-memory settings store through httpx's ASGI transport. Store tests run
the SQL layouts against a throwaway SQLite database.
"""

from collections.abc import AsyncGenerator, Awaitable, Callable, Generator
from contextlib import AsyncExitStack
from pathlib import Path

import pytest
from httpx import ASGITransport, AsyncClient
from loguru import logger
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.sqlalchemy import SQLAlchemyInstrumentor
from sqlalchemy.ext.asyncio import AsyncEngine

from src.api.main import create_app
from src.core.config import (
    ObservabilityConfig,
    Settings,
    SyncConfig,
    get_settings,
)
from src.core.context import RequestContext
from src.core.logging import _state
from src.domain.settings.ports import PersistenceAdapter
from src.infrastructure.database.session import create_database_engine
from src.infrastructure.stores.memory import MemorySettingsStore

ClientFactoryType = Callable[[PersistenceAdapter], Awaitable[AsyncClient]]


@pytest.fixture(autouse=True)
def clear_settings_cache() -> Generator[None]:
    """Automatically clear settings cache before and after each test."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture(autouse=True)
def clean_request_context() -> Generator[None]:
    """Automatically clear RequestContext before and after each test."""
    RequestContext.clear()
    yield
    RequestContext.clear()


@pytest.fixture(autouse=True)
def reset_logging_and_tracing_state() -> Generator[None]:
    """Reset logging and tracing state before and after each test.

    Keeps log output out of the test run and prevents "already
    instrumented" warnings when several applications are created.
    """
    logger.remove()
    _state.configured = True
    _uninstrument()

    yield

    _state.configured = True
    logger.remove()
    _uninstrument()


def _uninstrument() -> None:
    try:
        if FastAPIInstrumentor().is_instrumented_by_opentelemetry:
            FastAPIInstrumentor().uninstrument()
    except (AttributeError, RuntimeError) as e:
        logger.trace(f"FastAPI uninstrumentation skipped: {e}")

    try:
        if SQLAlchemyInstrumentor().is_instrumented_by_opentelemetry:
            SQLAlchemyInstrumentor().uninstrument()
    except (AttributeError, RuntimeError) as e:
        logger.trace(f"SQLAlchemy uninstrumentation skipped: {e}")


@pytest.fixture
def fallback_path(tmp_path: Path) -> Path:
    """Location of the local fallback file for the application under test."""
    return tmp_path / "website_settings.json"


@pytest.fixture
def app_settings(fallback_path: Path) -> Settings:
    """Settings for an isolated application instance."""
    return Settings(
        _env_file=None,
        environment="development",
        sync_config=SyncConfig(fallback_path=str(fallback_path)),
        observability_config=ObservabilityConfig(enable_tracing=False),
    )


@pytest.fixture
def memory_store() -> MemorySettingsStore:
    """Remote store shared by the application and the test."""
    return MemorySettingsStore()


@pytest.fixture
async def client_factory(
    app_settings: Settings,
) -> AsyncGenerator[ClientFactoryType]:
    """Factory for clients talking to a started application.

    The application lifespan runs for the duration of the test, so the
    synchronizer is initialized before the first request and torn down
    afterwards.

    Usage:
        async def test_something(client_factory, memory_store):
            client = await client_factory(memory_store)
    """
    async with AsyncExitStack() as stack:

        async def _create_client(adapter: PersistenceAdapter) -> AsyncClient:
            app = create_app(app_settings, adapter=adapter)
            app.dependency_overrides[get_settings] = lambda: app_settings
            await stack.enter_async_context(app.router.lifespan_context(app))
            return await stack.enter_async_context(
                AsyncClient(transport=ASGITransport(app=app), base_url="http://test")
            )

        yield _create_client


@pytest.fixture
async def client(
    client_factory: ClientFactoryType, memory_store: MemorySettingsStore
) -> AsyncClient:
    """Client for an application backed by ``memory_store``."""
    return await client_factory(memory_store)


@pytest.fixture
async def sqlite_engine(tmp_path: Path) -> AsyncGenerator[AsyncEngine]:
    """Async engine on a fresh SQLite file."""
    database_url = f"sqlite+aiosqlite:///{tmp_path / 'vatcalc.db'}"
    engine = create_database_engine(database_url)
    yield engine
    await engine.dispose()
