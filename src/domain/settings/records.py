"""Conversion between persisted settings records and the aggregate.

Backends store the same logical record in two layouts:

- **document**: one composite JSON document with native values
- **table**: one row per field; strings are stored as-is, everything else
  (booleans, the social link list) as JSON text

:func:`normalize_record` accepts either layout and returns validated
attribute values. A field that cannot be parsed degrades to its default on
its own; the other fields of the record are unaffected.
"""

from collections.abc import Collection, Mapping
from datetime import UTC, datetime
from functools import cache
from typing import Any

import orjson
from loguru import logger
from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from src.domain.settings.models import FIELD_ALIASES, SiteSettings

# Bookkeeping keys written next to the fields; never part of the aggregate
CREATED_AT_KEY = "createdAt"
UPDATED_AT_KEY = "updatedAt"

_DEFAULTS = SiteSettings()


@cache
def _adapter_for(attribute: str) -> TypeAdapter[Any]:
    return TypeAdapter(SiteSettings.model_fields[attribute].annotation)


def _decode_value(attribute: str, raw: object) -> object:
    value = raw
    if attribute == "social_links" and isinstance(raw, str | bytes):
        value = orjson.loads(raw)
    return _adapter_for(attribute).validate_python(value)


def normalize_record(record: Mapping[str, Any]) -> dict[str, Any]:
    """Extract the known aggregate fields from a persisted record.

    Args:
        record: A record in either storage layout. Unknown keys are ignored.

    Returns:
        dict[str, Any]: Validated values keyed by attribute name, only for
            the fields present in ``record``.
    """
    values: dict[str, Any] = {}
    for alias, attribute in FIELD_ALIASES.items():
        if alias not in record:
            continue
        try:
            values[attribute] = _decode_value(attribute, record[alias])
        except (ValueError, TypeError, PydanticValidationError) as exc:
            # orjson.JSONDecodeError is a ValueError
            logger.warning(
                "Malformed {} in settings record, using default",
                alias,
                field=alias,
                error_type=type(exc).__name__,
            )
            values[attribute] = getattr(_DEFAULTS, attribute)
    return values


def to_record(
    settings: SiteSettings, attributes: Collection[str] | None = None
) -> dict[str, Any]:
    """Serialize the aggregate (or some of its fields) to a document record.

    Args:
        settings: The aggregate to serialize.
        attributes: Attribute names to include; all fields when None.

    Returns:
        dict[str, Any]: JSON-compatible record keyed by camelCase field name.
    """
    include = set(attributes) if attributes is not None else None
    return settings.model_dump(mode="json", by_alias=True, include=include)


def encode_cell(value: object) -> str | None:
    """Encode one field value for the table layout.

    Args:
        value: A JSON-compatible field value.

    Returns:
        str | None: The value as stored in a text column.
    """
    if value is None or isinstance(value, str):
        return value
    return orjson.dumps(value).decode()


def timestamp() -> str:
    """Current UTC time in ISO 8601, as stored in the bookkeeping keys."""
    return datetime.now(UTC).isoformat()
