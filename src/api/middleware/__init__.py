"""FastAPI middleware for cross-cutting request/response concerns.

- **RequestContextMiddleware**: Manages correlation IDs and request context
- **RequestLoggingMiddleware**: Structured logging with duration tracking
- **MaintenanceModeMiddleware**: Closes the public site during maintenance
- **error_handler**: Centralized exception handling with consistent responses

Request processing order:
1. Request context (sets up correlation IDs)
2. Request logging (logs with correlation context)
3. Maintenance gate
4. Error handling (catches and formats all exceptions)
"""
