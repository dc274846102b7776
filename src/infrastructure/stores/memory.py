"""In-process settings store.

The default backend for development and tests: records live in a dict for
the lifetime of the process and every write is pushed to subscribers
through a :class:`ChangeFeed`, exactly like the SQL stores.
"""

import copy
from collections.abc import Collection

from loguru import logger

from src.core.types import ChangeCallback, SettingsRecord, Unsubscribe
from src.infrastructure.stores.base import ChangeFeed, select_fields


class MemorySettingsStore:
    """Document store backed by a dict."""

    backend = "memory"

    def __init__(self, records: dict[str, SettingsRecord] | None = None) -> None:
        self._records: dict[str, SettingsRecord] = copy.deepcopy(records or {})
        self._feed = ChangeFeed()

    async def get_snapshot(self, collection_key: str) -> SettingsRecord | None:
        record = self._records.get(collection_key)
        return copy.deepcopy(record) if record is not None else None

    async def put_snapshot(
        self,
        collection_key: str,
        record: SettingsRecord,
        merge_fields: Collection[str] | None = None,
    ) -> None:
        values = copy.deepcopy(select_fields(record, merge_fields))
        if merge_fields is None:
            self._records[collection_key] = values
        else:
            self._records.setdefault(collection_key, {}).update(values)

        logger.debug(
            "Settings written",
            backend=self.backend,
            collection_key=collection_key,
            fields=len(values),
        )
        await self._feed.publish(
            collection_key, copy.deepcopy(self._records[collection_key])
        )

    async def subscribe(
        self, collection_key: str, on_change: ChangeCallback
    ) -> Unsubscribe:
        return self._feed.subscribe(collection_key, on_change)

    def subscriber_count(self, collection_key: str) -> int:
        """Number of live subscriptions for ``collection_key``."""
        return self._feed.subscriber_count(collection_key)

    async def close(self) -> None:
        self._feed.clear()
