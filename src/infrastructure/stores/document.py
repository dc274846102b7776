"""Composite-layout settings store: one JSON document per collection key."""

from collections.abc import Collection

from loguru import logger
from sqlalchemy.exc import SQLAlchemyError

from src.core.exceptions import RemoteStoreError
from src.core.types import SettingsRecord
from src.infrastructure.database.repository import SettingsDocumentRepository
from src.infrastructure.database.session import get_async_session
from src.infrastructure.stores.base import SqlSettingsStore, select_fields


class DocumentSettingsStore(SqlSettingsStore):
    """Stores each settings record as a single JSON document row.

    Commits reach subscribers as described in :mod:`~src.infrastructure.stores.base`:
    across processes on PostgreSQL, within the process elsewhere.
    """

    backend = "document"

    async def get_snapshot(self, collection_key: str) -> SettingsRecord | None:
        """Read the document stored under ``collection_key``.

        Raises:
            RemoteStoreError: If the database cannot be read.
        """
        await self.ensure_schema()
        try:
            async with get_async_session(self._session_factory) as session:
                document = await SettingsDocumentRepository(
                    session
                ).get_by_collection(collection_key)
        except (SQLAlchemyError, OSError) as exc:
            raise RemoteStoreError(
                "Failed to read settings document",
                context={"backend": self.backend, "collection_key": collection_key},
                cause=exc,
            ) from exc

        return dict(document.document) if document is not None else None

    async def put_snapshot(
        self,
        collection_key: str,
        record: SettingsRecord,
        merge_fields: Collection[str] | None = None,
    ) -> None:
        """Write the document, merging when ``merge_fields`` is given.

        Raises:
            RemoteStoreError: If the database cannot be written.
        """
        await self.ensure_schema()
        values = select_fields(record, merge_fields)
        try:
            async with get_async_session(self._session_factory) as session:
                document = await SettingsDocumentRepository(session).save_document(
                    collection_key, values, merge=merge_fields is not None
                )
                stored = dict(document.document)
                await self._announce(session, collection_key)
        except (SQLAlchemyError, OSError) as exc:
            raise RemoteStoreError(
                "Failed to write settings document",
                context={"backend": self.backend, "collection_key": collection_key},
                cause=exc,
            ) from exc

        logger.debug(
            "Settings document written",
            backend=self.backend,
            collection_key=collection_key,
            fields=len(values),
        )
        await self._committed(collection_key, stored)
