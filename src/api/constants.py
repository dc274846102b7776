"""API-related constants."""

# HTTP Headers
CORRELATION_ID_HEADER = "X-Correlation-ID"

# Route prefixes
SETTINGS_PREFIX = "/api/settings"
VAT_PREFIX = "/api/vat"
SITE_PREFIX = "/api/site"

# Paths that stay reachable while the site is in maintenance mode
MAINTENANCE_EXEMPT_PREFIXES = (
    SETTINGS_PREFIX,
    "/health",
    "/info",
    "/docs",
    "/redoc",
    "/openapi.json",
)

# Server-sent events
SSE_MEDIA_TYPE = "text/event-stream"
SSE_SETTINGS_EVENT = "settings"
SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}
