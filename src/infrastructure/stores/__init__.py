"""Persistence adapter implementations for the settings synchronizer."""

from src.core.config import Settings
from src.domain.settings.ports import PersistenceAdapter
from src.infrastructure.database.session import get_engine
from src.infrastructure.stores.base import ChangeFeed
from src.infrastructure.stores.document import DocumentSettingsStore
from src.infrastructure.stores.memory import MemorySettingsStore
from src.infrastructure.stores.table import TableSettingsStore


def build_adapter(settings: Settings) -> PersistenceAdapter:
    """Create the store selected by ``sync_config.backend``.

    The SQL stores share the process-wide engine from
    :func:`~src.infrastructure.database.session.get_engine`.
    """
    match settings.sync_config.backend:
        case "document":
            return DocumentSettingsStore(get_engine())
        case "table":
            return TableSettingsStore(get_engine())
        case _:
            return MemorySettingsStore()


__all__ = [
    "ChangeFeed",
    "DocumentSettingsStore",
    "MemorySettingsStore",
    "TableSettingsStore",
    "build_adapter",
]
