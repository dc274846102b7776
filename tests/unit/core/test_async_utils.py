"""Unit tests for the timeout and guard wrappers around remote calls."""

import asyncio

import pytest

from src.core.async_utils import guarded_operation, with_timeout
from src.core.exceptions import (
    AbortedOperationError,
    ErrorCode,
    OperationTimeoutError,
    RemoteStoreError,
)


async def _value_after(delay: float, value: str = "done") -> str:
    await asyncio.sleep(delay)
    return value


@pytest.mark.unit
class TestWithTimeout:
    """Bounding the latency of a remote call."""

    async def test_returns_result_within_budget(self) -> None:
        """A fast operation's result is passed through."""
        assert await with_timeout(_value_after(0), 500, "Get settings") == "done"

    async def test_raises_labelled_timeout(self) -> None:
        """A slow operation is cancelled and reported with its label."""
        with pytest.raises(OperationTimeoutError) as exc_info:
            await with_timeout(_value_after(5), 20, "Get settings document")

        error = exc_info.value
        assert error.message == "Get settings document timeout"
        assert error.error_code == ErrorCode.OPERATION_TIMEOUT.value
        assert error.context["timeout_ms"] == 20

    async def test_operation_errors_propagate(self) -> None:
        """Failures other than the timeout are not rewritten."""

        async def failing() -> None:
            raise RemoteStoreError("Failed to read settings rows")

        with pytest.raises(RemoteStoreError):
            await with_timeout(failing(), 500, "Get settings document")


@pytest.mark.unit
class TestGuardedOperation:
    """Absorbing and classifying failures."""

    async def test_returns_result(self) -> None:
        """A successful operation's result is returned unchanged."""
        assert await guarded_operation(lambda: _value_after(0, "ok"), "Op") == "ok"

    async def test_application_error_becomes_none(
        self, log_messages: list[str]
    ) -> None:
        """Expected failures are logged with the label and absorbed."""

        async def failing() -> None:
            raise RemoteStoreError("Failed to write settings document")

        assert await guarded_operation(failing, "Save settings") is None
        assert "Save settings failed: Failed to write settings document" in (
            log_messages
        )

    async def test_unexpected_error_becomes_none(
        self, log_messages: list[str]
    ) -> None:
        """Unexpected exceptions are logged by type and absorbed."""

        async def failing() -> None:
            raise ConnectionResetError("peer reset")

        assert await guarded_operation(failing, "Save settings") is None
        assert "Save settings failed: ConnectionResetError" in log_messages

    async def test_timeout_becomes_none(self) -> None:
        """A timed-out operation yields no result."""
        result = await guarded_operation(
            lambda: with_timeout(_value_after(5), 10, "Get settings document"),
            "Get settings document",
        )

        assert result is None

    async def test_aborted_operation_logs_at_debug(
        self, log_messages: list[str]
    ) -> None:
        """A caller going away is not reported as a failure."""

        async def aborted() -> None:
            raise AbortedOperationError("Open settings subscription")

        assert await guarded_operation(aborted, "Open settings subscription") is None
        assert log_messages == [
            "Open settings subscription was aborted (caller went away)"
        ]

    async def test_inner_cancellation_is_absorbed(self) -> None:
        """A cancelled inner operation counts as aborted."""

        async def cancelled() -> None:
            raise asyncio.CancelledError

        assert await guarded_operation(cancelled, "Get settings document") is None

    async def test_task_cancellation_propagates(self) -> None:
        """Cancelling the task running the guard is never swallowed."""
        started = asyncio.Event()

        async def wait_forever() -> None:
            started.set()
            await asyncio.Event().wait()

        task = asyncio.create_task(guarded_operation(wait_forever, "Reconcile"))
        await started.wait()
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task
