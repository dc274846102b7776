"""Tables backing the SQL settings stores.

Two layouts hold the same logical record:

- ``settings_documents``: one row per collection key, the whole record in a
  JSON column (document backend)
- ``vat_website``: one row per field, the value as text (table backend)
"""

from typing import Any

from sqlalchemy import JSON, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from src.infrastructure.constants import CONTENT_ENTRY_TABLE, SETTINGS_DOCUMENT_TABLE
from src.infrastructure.database.base import BaseModel


class SettingsDocument(BaseModel):
    """A settings record stored as one composite JSON document."""

    __tablename__ = SETTINGS_DOCUMENT_TABLE

    collection_key: Mapped[str] = mapped_column(
        String(255), unique=True, nullable=False, doc="Record address"
    )
    document: Mapped[dict[str, Any]] = mapped_column(
        JSON, nullable=False, default=dict, doc="Field name -> native value"
    )


class ContentEntry(BaseModel):
    """One settings field of one collection, stored as text."""

    __tablename__ = CONTENT_ENTRY_TABLE
    __table_args__ = (UniqueConstraint("collection_key", "content_key"),)

    collection_key: Mapped[str] = mapped_column(
        String(255), nullable=False, index=True, doc="Record address"
    )
    content_key: Mapped[str] = mapped_column(
        String(100), nullable=False, doc="camelCase field name"
    )
    content_value: Mapped[str | None] = mapped_column(
        Text, nullable=True, doc="String value, or JSON text for other types"
    )

    def __repr__(self) -> str:
        """Return a string representation including the field name."""
        return f"<ContentEntry(id={self.id}, content_key={self.content_key!r})>"
