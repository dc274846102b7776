"""Repositories for the SQL settings tables.

:class:`BaseRepository` holds the generic async queries; the two concrete
repositories add the per-layout operations the settings stores need.
Repositories only flush. Committing is the job of the session scope
(:func:`~src.infrastructure.database.session.get_async_session`).
"""

from collections.abc import Mapping
from typing import Any

from loguru import logger
from sqlalchemy import delete as sql_delete
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.infrastructure.database.base import BaseModel
from src.infrastructure.database.models import ContentEntry, SettingsDocument


class BaseRepository[T: BaseModel]:
    """Generic async queries for any model that inherits from BaseModel.

    Args:
        session: The async SQLAlchemy session to use for operations.
        model_class: The SQLAlchemy model class this repository manages.

    Example:
        class ContentEntryRepository(BaseRepository[ContentEntry]):
            def __init__(self, session: AsyncSession) -> None:
                super().__init__(session, ContentEntry)
    """

    def __init__(self, session: AsyncSession, model_class: type[T]) -> None:
        self.session = session
        self.model_class = model_class

    async def create(self, obj: T) -> T:
        """Add a new model instance and flush it to obtain its ID.

        Args:
            obj: The model instance to create.

        Returns:
            T: The created model instance with populated ID and timestamps.
        """
        self.session.add(obj)
        await self.session.flush()
        await self.session.refresh(obj)

        logger.debug(
            "Created {} instance with ID: {}", self.model_class.__name__, obj.id
        )
        return obj

    async def filter_by(self, **kwargs: object) -> list[T]:
        """Filter model instances by multiple conditions.

        Args:
            **kwargs: Field-value pairs to filter by.

        Returns:
            list[T]: Matching instances, ordered by ID.
        """
        stmt = select(self.model_class)
        for field, value in kwargs.items():
            stmt = stmt.where(getattr(self.model_class, field) == value)
        stmt = stmt.order_by(self.model_class.id)

        result = await self.session.execute(stmt)
        instances = list(result.scalars().all())

        logger.debug(
            "Filtered {} - found {} instances with filters: {}",
            self.model_class.__name__,
            len(instances),
            kwargs,
        )
        return instances

    async def find_one_by(self, **kwargs: object) -> T | None:
        """Find the first model instance matching the given conditions.

        Args:
            **kwargs: Field-value pairs to filter by.

        Returns:
            T | None: The first matching instance if found, None otherwise.
        """
        stmt = select(self.model_class)
        for field, value in kwargs.items():
            stmt = stmt.where(getattr(self.model_class, field) == value)
        stmt = stmt.order_by(self.model_class.id).limit(1)

        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def delete_by(self, **kwargs: object) -> int:
        """Delete every instance matching the given conditions.

        Returns:
            int: Number of deleted rows.
        """
        stmt = sql_delete(self.model_class)
        for field, value in kwargs.items():
            stmt = stmt.where(getattr(self.model_class, field) == value)

        result = await self.session.execute(stmt)
        deleted = result.rowcount or 0

        logger.debug(
            "Deleted {} {} instances with filters: {}",
            deleted,
            self.model_class.__name__,
            kwargs,
        )
        return deleted


class SettingsDocumentRepository(BaseRepository[SettingsDocument]):
    """Queries for the composite (one JSON document per key) layout."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, SettingsDocument)

    async def get_by_collection(self, collection_key: str) -> SettingsDocument | None:
        """Return the document stored under ``collection_key``."""
        return await self.find_one_by(collection_key=collection_key)

    async def save_document(
        self,
        collection_key: str,
        record: Mapping[str, Any],
        *,
        merge: bool,
    ) -> SettingsDocument:
        """Create or update the document stored under ``collection_key``.

        Args:
            collection_key: Record address.
            record: Fields to write.
            merge: Keep stored fields absent from ``record`` when True,
                replace the whole document when False.

        Returns:
            SettingsDocument: The stored row.
        """
        document = await self.get_by_collection(collection_key)
        if document is None:
            return await self.create(
                SettingsDocument(collection_key=collection_key, document=dict(record))
            )

        # Assign a new dict so the JSON column is marked dirty
        document.document = {**document.document, **record} if merge else dict(record)
        await self.session.flush()
        return document


class ContentEntryRepository(BaseRepository[ContentEntry]):
    """Queries for the row-per-field layout."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, ContentEntry)

    async def list_for_collection(self, collection_key: str) -> list[ContentEntry]:
        """Return every field row of ``collection_key``."""
        return await self.filter_by(collection_key=collection_key)

    async def upsert(
        self, collection_key: str, content_key: str, content_value: str | None
    ) -> ContentEntry:
        """Create or update the row of one field.

        Args:
            collection_key: Record address.
            content_key: camelCase field name.
            content_value: Encoded field value.

        Returns:
            ContentEntry: The stored row.
        """
        entry = await self.find_one_by(
            collection_key=collection_key, content_key=content_key
        )
        if entry is None:
            return await self.create(
                ContentEntry(
                    collection_key=collection_key,
                    content_key=content_key,
                    content_value=content_value,
                )
            )

        entry.content_value = content_value
        await self.session.flush()
        return entry
