"""Type aliases for dynamic data structures throughout the application.

This module centralizes type definitions for data that cannot be statically
typed, providing clear semantic meaning for settings records and
subscription callbacks.

All record types defined here must stay JSON-serializable: they travel to the
remote settings store, the local fallback file and the SSE stream.
"""

from collections.abc import Awaitable, Callable
from typing import Any

# A persisted settings record: field name -> value, in either storage layout
type SettingsRecord = dict[str, Any]

# Callback invoked by a persistence adapter with the full current record
type ChangeCallback = Callable[[SettingsRecord], Awaitable[None] | None]

# Handle returned by subscribe(); calling it cancels the subscription
type Unsubscribe = Callable[[], None]
