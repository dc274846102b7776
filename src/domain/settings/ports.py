"""Persistence adapter port for the settings synchronizer.

The synchronizer is written against this protocol only; which backend
implements it (in-memory, a JSON document per collection, one table row per
field) is a configuration choice.
"""

from collections.abc import Collection
from typing import Protocol

from src.core.types import ChangeCallback, SettingsRecord, Unsubscribe


class PersistenceAdapter(Protocol):
    """Remote settings store with push notifications."""

    @property
    def backend(self) -> str:
        """Short backend name for logs and status reports."""
        ...

    async def get_snapshot(self, collection_key: str) -> SettingsRecord | None:
        """Read the stored record, or None when none exists yet."""
        ...

    async def put_snapshot(
        self,
        collection_key: str,
        record: SettingsRecord,
        merge_fields: Collection[str] | None = None,
    ) -> None:
        """Write ``record``.

        With ``merge_fields``, only those keys are written and every other
        stored field is left untouched. Without it, the stored record is
        replaced.
        """
        ...

    async def subscribe(
        self, collection_key: str, on_change: ChangeCallback
    ) -> Unsubscribe:
        """Deliver the full current record to ``on_change`` after every change.

        Delivery is at-least-once and includes changes written by this
        process.
        """
        ...

    async def close(self) -> None:
        """Release backend resources and drop every subscription."""
        ...
