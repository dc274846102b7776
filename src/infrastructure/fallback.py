"""Local JSON mirror of the last known settings record.

The file is read once at startup, before the remote store is consulted, and
rewritten after every save. It is the only durable copy while the remote
store is unreachable.
"""

import os
from pathlib import Path

import orjson
from loguru import logger

from src.core.types import SettingsRecord


class LocalFallbackStore:
    """Single-file key/value mirror.

    Args:
        path: JSON file location. Parent directories are created on write.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def load(self) -> SettingsRecord:
        """Read the stored record.

        Returns:
            SettingsRecord: The record, or an empty mapping when the file is
                missing, unreadable or not a JSON object.
        """
        try:
            raw = self.path.read_bytes()
        except FileNotFoundError:
            return {}
        except OSError as exc:
            logger.warning(
                "Failed to read local settings: {}", exc, path=str(self.path)
            )
            return {}

        try:
            record = orjson.loads(raw)
        except orjson.JSONDecodeError as exc:
            logger.warning(
                "Failed to parse local settings: {}", exc, path=str(self.path)
            )
            return {}

        if not isinstance(record, dict):
            logger.warning(
                "Ignoring local settings that are not a JSON object",
                path=str(self.path),
            )
            return {}
        return record

    def store(self, record: SettingsRecord) -> bool:
        """Write ``record``, logging instead of raising on failure.

        Returns:
            bool: True if the record was written.
        """
        try:
            self.store_or_raise(record)
        except (OSError, TypeError) as exc:
            logger.warning(
                "Failed to save local settings: {}", exc, path=str(self.path)
            )
            return False
        return True

    def store_or_raise(self, record: SettingsRecord) -> None:
        """Write ``record`` atomically.

        Raises:
            OSError: If the file cannot be written.
            TypeError: If the record is not JSON-serializable.
        """
        payload = orjson.dumps(record, option=orjson.OPT_INDENT_2)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_name(f"{self.path.name}.tmp")
        tmp_path.write_bytes(payload)
        os.replace(tmp_path, self.path)
        logger.debug("Local settings saved", path=str(self.path))
