"""Row-layout settings store: one ``vat_website`` row per settings field.

Strings are stored verbatim; booleans and the social link list are stored as
JSON text and decoded again by the synchronizer when the record is
normalized.
"""

from collections.abc import Collection

from loguru import logger
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.exceptions import RemoteStoreError
from src.core.types import SettingsRecord
from src.domain.settings.records import encode_cell
from src.infrastructure.database.repository import ContentEntryRepository
from src.infrastructure.database.session import get_async_session
from src.infrastructure.stores.base import SqlSettingsStore, select_fields


async def _read_rows(session: AsyncSession, collection_key: str) -> SettingsRecord:
    entries = await ContentEntryRepository(session).list_for_collection(collection_key)
    return {entry.content_key: entry.content_value for entry in entries}


class TableSettingsStore(SqlSettingsStore):
    """Stores each settings field as its own row.

    Commits reach subscribers as described in :mod:`~src.infrastructure.stores.base`:
    across processes on PostgreSQL, within the process elsewhere.
    """

    backend = "table"

    async def get_snapshot(self, collection_key: str) -> SettingsRecord | None:
        """Read every field row of ``collection_key``.

        Returns:
            SettingsRecord | None: Field name to stored text, or None when
                the collection has no rows.

        Raises:
            RemoteStoreError: If the table cannot be read.
        """
        await self.ensure_schema()
        try:
            async with get_async_session(self._session_factory) as session:
                record = await _read_rows(session, collection_key)
        except (SQLAlchemyError, OSError) as exc:
            raise RemoteStoreError(
                "Failed to read settings rows",
                context={"backend": self.backend, "collection_key": collection_key},
                cause=exc,
            ) from exc

        return record or None

    async def put_snapshot(
        self,
        collection_key: str,
        record: SettingsRecord,
        merge_fields: Collection[str] | None = None,
    ) -> None:
        """Upsert one row per written field.

        Without ``merge_fields`` the collection's existing rows are removed
        first, so the stored record equals ``record``.

        Raises:
            RemoteStoreError: If the table cannot be written.
        """
        await self.ensure_schema()
        values = select_fields(record, merge_fields)
        try:
            async with get_async_session(self._session_factory) as session:
                repository = ContentEntryRepository(session)
                if merge_fields is None:
                    await repository.delete_by(collection_key=collection_key)
                for content_key, value in values.items():
                    await repository.upsert(
                        collection_key, content_key, encode_cell(value)
                    )
                stored = await _read_rows(session, collection_key)
                await self._announce(session, collection_key)
        except (SQLAlchemyError, OSError) as exc:
            raise RemoteStoreError(
                "Failed to write settings rows",
                context={"backend": self.backend, "collection_key": collection_key},
                cause=exc,
            ) from exc

        logger.debug(
            "Settings rows written",
            backend=self.backend,
            collection_key=collection_key,
            fields=len(values),
        )
        await self._committed(collection_key, stored)
