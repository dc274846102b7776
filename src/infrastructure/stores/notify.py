"""PostgreSQL LISTEN/NOTIFY bridge for the SQL settings stores.

Writers call ``pg_notify`` inside their write transaction, so PostgreSQL
delivers the notification only once the write commits. The payload is the
collection key; listeners re-read the committed record themselves. Every
process that listens on the channel hears every commit, its own included.
"""

import asyncio
from collections.abc import Awaitable, Callable
from typing import Any

from loguru import logger
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine, AsyncSession

NOTIFY_STATEMENT = text("SELECT pg_notify(:channel, :payload)")


async def notify(session: AsyncSession, channel: str, payload: str) -> None:
    """Queue a notification that is sent when ``session`` commits."""
    await session.execute(NOTIFY_STATEMENT, {"channel": channel, "payload": payload})


class PostgresNotifier:
    """Holds one dedicated connection listening on ``channel``.

    Args:
        engine: Engine to take the listening connection from.
        channel: NOTIFY channel name.
        on_notify: Coroutine run with the payload of each notification.
    """

    def __init__(
        self,
        engine: AsyncEngine,
        channel: str,
        on_notify: Callable[[str], Awaitable[None]],
    ) -> None:
        self._engine = engine
        self._channel = channel
        self._on_notify = on_notify
        self._connection: AsyncConnection | None = None
        self._driver_connection: Any = None
        self._tasks: set[asyncio.Task[None]] = set()

    @property
    def listening(self) -> bool:
        """Whether the listening connection is open."""
        return self._connection is not None

    async def start(self) -> None:
        """Open the listening connection; a no-op when already listening."""
        if self._connection is not None:
            return

        connection = await self._engine.connect()
        try:
            raw_connection = await connection.get_raw_connection()
            driver_connection = raw_connection.driver_connection
            await driver_connection.add_listener(self._channel, self._handle)
        except Exception:
            await connection.close()
            raise

        self._connection = connection
        self._driver_connection = driver_connection
        logger.info("Listening for settings changes", channel=self._channel)

    def _handle(
        self, _connection: object, _pid: int, _channel: str, payload: str
    ) -> None:
        task = asyncio.get_running_loop().create_task(self._on_notify(payload))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def stop(self) -> None:
        """Stop listening and return the connection to the pool."""
        if self._connection is None:
            return

        connection, self._connection = self._connection, None
        driver_connection, self._driver_connection = self._driver_connection, None
        for task in list(self._tasks):
            task.cancel()

        try:
            await driver_connection.remove_listener(self._channel, self._handle)
        finally:
            await connection.close()
        logger.info("Stopped listening for settings changes", channel=self._channel)
