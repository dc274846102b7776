"""Time-bounded and failure-absorbing wrappers for remote calls.

Every call the settings synchronizer makes to a persistence adapter goes
through two layers:

- :func:`with_timeout` bounds the worst-case latency. When the timer wins,
  the operation is cancelled, its eventual result is ignored and an
  :class:`~src.core.exceptions.OperationTimeoutError` is raised for the label.
- :func:`guarded_operation` never raises. It returns the operation's result,
  or ``None`` when the operation could not complete. Aborted operations
  (the caller went away) are logged at DEBUG, real failures at WARNING or
  ERROR. Callers treat ``None`` as "could not complete" and pick their own
  fallback.
"""

import asyncio
from collections.abc import Awaitable, Callable

from loguru import logger

from src.core.constants import MILLISECONDS_PER_SECOND
from src.core.exceptions import (
    AbortedOperationError,
    OperationTimeoutError,
    VatCalcError,
)


async def with_timeout[T](
    operation: Awaitable[T], timeout_ms: float, label: str
) -> T:
    """Await ``operation`` for at most ``timeout_ms`` milliseconds.

    Args:
        operation: The awaitable to race against the timer.
        timeout_ms: Time budget in milliseconds.
        label: Human-readable operation name used in the timeout error.

    Returns:
        T: The operation's result when it finishes in time.

    Raises:
        OperationTimeoutError: If the timer expires first.
    """
    try:
        async with asyncio.timeout(timeout_ms / MILLISECONDS_PER_SECOND):
            return await operation
    except TimeoutError as exc:
        raise OperationTimeoutError(label, timeout_ms) from exc


async def guarded_operation[T](
    operation: Callable[[], Awaitable[T]], label: str
) -> T | None:
    """Run ``operation`` and classify any failure instead of raising it.

    Args:
        operation: Zero-argument factory returning the awaitable to run.
        label: Human-readable operation name for logs.

    Returns:
        T | None: The result, or None if the operation could not complete.

    Raises:
        asyncio.CancelledError: Only when the task running the guard is
            itself being cancelled (shutdown must not be swallowed).
    """
    try:
        return await operation()
    except AbortedOperationError:
        logger.debug("{} was aborted (caller went away)", label, operation=label)
        return None
    except asyncio.CancelledError:
        task = asyncio.current_task()
        if task is not None and task.cancelling():
            raise
        logger.debug("{} was aborted (caller went away)", label, operation=label)
        return None
    except VatCalcError as exc:
        logger.warning(
            "{} failed: {}",
            label,
            exc.message,
            operation=label,
            error_code=exc.error_code,
        )
        return None
    except Exception as exc:  # noqa: BLE001 - the guard reports every failure as "no result"
        logger.opt(exception=exc).error(
            "{} failed: {}",
            label,
            type(exc).__name__,
            operation=label,
        )
        return None
