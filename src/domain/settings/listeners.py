"""Consumer-side channels for settings change notifications.

Each consumer (an SSE stream, a test, a background renderer) registers a
:class:`SettingsListener` with the synchronizer's :class:`ListenerRegistry`.
A listener owns a bounded queue of aggregate snapshots and a liveness flag.
Closing a listener only detaches that consumer: the remote subscription the
synchronizer holds is unaffected.
"""

import asyncio
from collections.abc import AsyncIterator

from loguru import logger

from src.core.constants import LISTENER_QUEUE_SIZE
from src.core.context import generate_listener_id
from src.domain.settings.models import SiteSettings


class SettingsListener:
    """A single consumer's view of settings changes.

    Iterate with ``async for`` to receive every published aggregate until
    the listener is closed. When the consumer falls behind, the oldest
    undelivered snapshot is dropped; only the latest state matters.
    """

    def __init__(
        self, registry: "ListenerRegistry", maxsize: int = LISTENER_QUEUE_SIZE
    ) -> None:
        self.listener_id = generate_listener_id()
        self._registry = registry
        self._queue: asyncio.Queue[SiteSettings | None] = asyncio.Queue(maxsize)
        self._alive = True

    @property
    def alive(self) -> bool:
        """Whether the consumer is still interested in changes."""
        return self._alive

    def deliver(self, settings: SiteSettings | None) -> None:
        """Queue a snapshot (or the close sentinel) without blocking."""
        if not self._alive and settings is not None:
            return
        if self._queue.full():
            self._queue.get_nowait()
        self._queue.put_nowait(settings)

    async def next(self) -> SiteSettings | None:
        """Wait for the next snapshot; None once the listener is closed."""
        if not self._alive and self._queue.empty():
            return None
        return await self._queue.get()

    def close(self) -> None:
        """Detach this consumer. Safe to call more than once."""
        if not self._alive:
            return
        self._alive = False
        self._registry.discard(self)
        self.deliver(None)

    def __aiter__(self) -> AsyncIterator[SiteSettings]:
        return self._iterate()

    async def _iterate(self) -> AsyncIterator[SiteSettings]:
        while (settings := await self.next()) is not None:
            yield settings

    def __enter__(self) -> "SettingsListener":
        return self

    def __exit__(self, *_exc_info: object) -> None:
        self.close()


class ListenerRegistry:
    """The set of live listeners attached to one synchronizer."""

    def __init__(self) -> None:
        self._listeners: dict[str, SettingsListener] = {}

    def register(self) -> SettingsListener:
        """Create and attach a new listener."""
        listener = SettingsListener(self)
        self._listeners[listener.listener_id] = listener
        logger.debug(
            "Settings listener attached",
            listener_id=listener.listener_id,
            listeners=len(self._listeners),
        )
        return listener

    def discard(self, listener: SettingsListener) -> None:
        """Detach ``listener`` if it is still registered."""
        if self._listeners.pop(listener.listener_id, None) is not None:
            logger.debug(
                "Settings listener detached",
                listener_id=listener.listener_id,
                listeners=len(self._listeners),
            )

    def publish(self, settings: SiteSettings) -> None:
        """Deliver ``settings`` to every live listener, in registration order."""
        for listener in list(self._listeners.values()):
            listener.deliver(settings)

    def close_all(self) -> None:
        """Close every listener (process shutdown)."""
        for listener in list(self._listeners.values()):
            listener.close()

    def __len__(self) -> int:
        return len(self._listeners)
