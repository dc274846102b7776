"""Core application constants."""

# Time constants
MILLISECONDS_PER_SECOND = 1000

# Security and redaction
REDACTED = "[REDACTED]"

# Remote settings store timeouts (milliseconds)
DEFAULT_READ_TIMEOUT_MS = 3000
DEFAULT_WRITE_TIMEOUT_MS = 5000

# Settings collection addressed in every backend
DEFAULT_COLLECTION_KEY = "settings/website"
DEFAULT_FALLBACK_PATH = "var/website_settings.json"

# Maximum number of snapshots buffered per live listener before the oldest
# one is dropped (listeners only ever need the latest aggregate)
LISTENER_QUEUE_SIZE = 16
