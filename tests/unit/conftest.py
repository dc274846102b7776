"""Shared fixtures for unit tests."""

import os
from collections.abc import Generator

import pytest
from loguru import logger

from src.core.config import get_settings
from src.core.context import RequestContext
from src.core.logging import _state


@pytest.fixture(autouse=True)
def clean_lru_cache() -> Generator[None]:
    """Clear the settings cache before and after each test to ensure isolation."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture(autouse=True)
def clean_request_context() -> Generator[None]:
    """Clear the correlation ID before and after each test."""
    RequestContext.clear()
    yield
    RequestContext.clear()


@pytest.fixture(autouse=True)
def silence_logging() -> Generator[None]:
    """Keep Loguru quiet and prevent setup_logging from adding stdout sinks."""
    logger.remove()
    _state.configured = True
    yield
    logger.remove()


@pytest.fixture
def log_messages() -> Generator[list[str]]:
    """Capture the messages Loguru emits during the test.

    Yields:
        list[str]: Formatted messages, in emission order.
    """
    messages: list[str] = []
    handler_id = logger.add(
        lambda message: messages.append(message.record["message"]), level="DEBUG"
    )
    yield messages
    logger.remove(handler_id)


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    """Remove application variables so Settings falls back to its defaults.

    Args:
        monkeypatch: Pytest monkeypatch fixture.

    Returns:
        pytest.MonkeyPatch: The monkeypatch instance for env manipulation.
    """
    env_prefixes = (
        "APP_",
        "API_",
        "ENVIRONMENT",
        "DEBUG",
        "LOG_CONFIG__",
        "OBSERVABILITY_CONFIG__",
        "DATABASE_CONFIG__",
        "SYNC_CONFIG__",
        "K_SERVICE",
        "AWS_EXECUTION_ENV",
    )
    for key in list(os.environ):
        if key.startswith(env_prefixes):
            monkeypatch.delenv(key, raising=False)
    return monkeypatch
