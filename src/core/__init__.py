"""Core package for shared application functionality.

- **async_utils**: Timeout and failure-absorbing wrappers for remote calls
- **config**: Centralized configuration management with environment support
- **context**: Request context and correlation ID management
- **exceptions**: Structured exception hierarchy with error codes
- **logging**: Structured logging with Loguru
- **observability**: Distributed tracing with OpenTelemetry
- **types**: Type aliases for settings records and callbacks
"""
