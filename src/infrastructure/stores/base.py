"""Shared plumbing for settings stores.

:class:`ChangeFeed` is the push channel every store uses: after a write
commits, the store publishes the full current record and every subscriber
of that collection key receives it, including the process that wrote it.
:class:`SqlSettingsStore` adds the engine, session factory and lazy schema
creation the two SQL layouts share, and decides how commits reach
subscribers:

- **PostgreSQL**: writes send a NOTIFY in their transaction and each store
  with subscribers listens on the channel (see
  :mod:`~src.infrastructure.stores.notify`), so commits made by any process
  reach every subscriber
- **other databases** (SQLite): stores on the same database URL share one
  process-wide feed, so every store instance in the process sees the
  others' commits. Commits made by another process are not pushed; they
  are picked up by ``SettingsSynchronizer.reconcile()``
"""

import asyncio
import inspect
from abc import ABC, abstractmethod
from collections.abc import Collection, Mapping
from typing import Any

from loguru import logger
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession

from src.core.exceptions import RemoteStoreError
from src.core.types import ChangeCallback, SettingsRecord, Unsubscribe
from src.infrastructure.constants import SETTINGS_CHANGE_CHANNEL
from src.infrastructure.database.base import Base
from src.infrastructure.database.session import create_session_factory
from src.infrastructure.stores.notify import PostgresNotifier, notify


class ChangeFeed:
    """In-process fan-out of committed records, keyed by collection."""

    def __init__(self) -> None:
        self._subscribers: dict[str, list[ChangeCallback]] = {}

    def subscribe(self, collection_key: str, on_change: ChangeCallback) -> Unsubscribe:
        """Register ``on_change`` for ``collection_key``.

        Returns:
            Unsubscribe: Cancels this registration; safe to call twice.
        """
        callbacks = self._subscribers.setdefault(collection_key, [])
        callbacks.append(on_change)

        def unsubscribe() -> None:
            if on_change in callbacks:
                callbacks.remove(on_change)

        return unsubscribe

    def subscriber_count(self, collection_key: str) -> int:
        """Number of live registrations for ``collection_key``."""
        return len(self._subscribers.get(collection_key, ()))

    async def publish(self, collection_key: str, record: SettingsRecord) -> None:
        """Deliver ``record`` to every subscriber of ``collection_key``.

        A failing subscriber is logged and does not prevent delivery to the
        others.
        """
        for callback in list(self._subscribers.get(collection_key, ())):
            try:
                result = callback(dict(record))
                if inspect.isawaitable(result):
                    await result
            except Exception as exc:  # noqa: BLE001 - one subscriber must not break the feed
                logger.opt(exception=exc).error(
                    "Settings change subscriber failed",
                    collection_key=collection_key,
                )

    def clear(self) -> None:
        """Drop every registration."""
        self._subscribers.clear()


def select_fields(
    record: Mapping[str, Any], merge_fields: Collection[str] | None
) -> dict[str, Any]:
    """Restrict ``record`` to ``merge_fields`` (all keys when None)."""
    if merge_fields is None:
        return dict(record)
    return {key: record[key] for key in merge_fields if key in record}


_shared_feeds: dict[str, ChangeFeed] = {}


def shared_feed(engine: AsyncEngine) -> ChangeFeed:
    """Return the process-wide feed for the database ``engine`` points at."""
    database_url = engine.url.render_as_string(hide_password=False)
    return _shared_feeds.setdefault(database_url, ChangeFeed())


class SqlSettingsStore(ABC):
    """Base for the SQLAlchemy-backed stores.

    Args:
        engine: Async engine the store's tables live in. The store does not
            own it; disposing of the engine is the caller's job.
    """

    backend = "sql"

    def __init__(self, engine: AsyncEngine) -> None:
        self._engine = engine
        self._session_factory = create_session_factory(engine)
        self._uses_notify = engine.dialect.name == "postgresql"
        self._feed = ChangeFeed() if self._uses_notify else shared_feed(engine)
        self._notifier: PostgresNotifier | None = None
        self._registrations: list[Unsubscribe] = []
        self._schema_ready = False
        self._schema_lock = asyncio.Lock()
        self._listen_lock = asyncio.Lock()

    @property
    def engine(self) -> AsyncEngine:
        """Engine the store reads and writes through."""
        return self._engine

    async def ensure_schema(self) -> None:
        """Create the settings tables on first use."""
        if self._schema_ready:
            return
        async with self._schema_lock:
            if self._schema_ready:
                return
            try:
                async with self._engine.begin() as conn:
                    await conn.run_sync(Base.metadata.create_all)
            except (SQLAlchemyError, OSError) as exc:
                raise RemoteStoreError(
                    "Failed to prepare settings tables",
                    context={"backend": self.backend},
                    cause=exc,
                ) from exc
            self._schema_ready = True
            logger.info("Settings tables ready", backend=self.backend)

    async def subscribe(
        self, collection_key: str, on_change: ChangeCallback
    ) -> Unsubscribe:
        """Register for committed changes of ``collection_key``.

        Raises:
            RemoteStoreError: If the tables or the PostgreSQL listening
                connection cannot be set up.
        """
        await self.ensure_schema()
        if self._uses_notify:
            await self._listen()

        unsubscribe = self._feed.subscribe(collection_key, on_change)
        self._registrations.append(unsubscribe)
        logger.debug(
            "Subscribed to settings changes",
            backend=self.backend,
            collection_key=collection_key,
        )
        return unsubscribe

    async def close(self) -> None:
        """Drop this store's subscriptions and stop listening."""
        for unsubscribe in self._registrations:
            unsubscribe()
        self._registrations.clear()

        if self._notifier is not None:
            notifier, self._notifier = self._notifier, None
            await notifier.stop()

    async def _listen(self) -> None:
        async with self._listen_lock:
            if self._notifier is not None:
                return
            notifier = PostgresNotifier(
                self._engine, SETTINGS_CHANGE_CHANNEL, self._relay
            )
            try:
                await notifier.start()
            except Exception as exc:
                raise RemoteStoreError(
                    "Failed to listen for settings changes",
                    context={"backend": self.backend},
                    cause=exc,
                ) from exc
            self._notifier = notifier

    async def _announce(self, session: AsyncSession, collection_key: str) -> None:
        """Queue the change notification inside the write transaction."""
        if self._uses_notify:
            await notify(session, SETTINGS_CHANGE_CHANNEL, collection_key)

    async def _committed(self, collection_key: str, record: SettingsRecord) -> None:
        """Push a committed record to subscribers of the shared feed."""
        if not self._uses_notify:
            await self._feed.publish(collection_key, record)

    async def _relay(self, collection_key: str) -> None:
        try:
            record = await self.get_snapshot(collection_key)
        except RemoteStoreError as exc:
            logger.warning(
                "Could not read settings after change notification: {}",
                exc.message,
                backend=self.backend,
                collection_key=collection_key,
            )
            return
        if record is not None:
            await self._feed.publish(collection_key, record)

    @abstractmethod
    async def get_snapshot(self, collection_key: str) -> SettingsRecord | None:
        """Read the record stored under ``collection_key``."""

    @abstractmethod
    async def put_snapshot(
        self,
        collection_key: str,
        record: SettingsRecord,
        merge_fields: Collection[str] | None = None,
    ) -> None:
        """Write ``record``, merging when ``merge_fields`` is given."""
