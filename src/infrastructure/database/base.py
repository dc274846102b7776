"""SQLAlchemy declarative base and common model fields.

Both SQL settings stores map their tables on top of :class:`BaseModel`,
which provides:

- **Integer ID**: BigInteger on PostgreSQL, plain INTEGER on SQLite so the
  column stays an auto-incrementing rowid alias
- **Timezone-aware timestamps**: ``created_at`` and ``updated_at`` set by the
  database
- **Consistent repr**: Standard string representation for debugging
"""

from datetime import datetime

from sqlalchemy import BigInteger, DateTime, Integer, MetaData, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from src.infrastructure.constants import NAMING_CONVENTION


class Base(DeclarativeBase):
    """SQLAlchemy declarative base with naming conventions."""

    metadata = MetaData(naming_convention=NAMING_CONVENTION)


class BaseModel(Base):
    """Abstract base model with an integer ID and audit timestamps."""

    __abstract__ = True

    id: Mapped[int] = mapped_column(
        BigInteger().with_variant(Integer, "sqlite"),
        primary_key=True,
        autoincrement=True,
        doc="Primary key with auto-incrementing ID",
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
        doc="Timestamp when the row was created (UTC)",
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
        doc="Timestamp when the row was last updated (UTC)",
    )

    def __repr__(self) -> str:
        """Return a string representation of the model instance.

        Returns:
            str: A string showing the model class name and ID
        """
        return f"<{self.__class__.__name__}(id={self.id})>"
