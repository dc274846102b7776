"""Error response schemas shared by every API error.

Key models:
- **ErrorResponse**: Error code, message, correlation and request IDs, plus
  debug information in development
- **ServiceInfo**: Service identification for multi-instance debugging
"""

from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, Field


class ServiceInfo(BaseModel):
    """Service information for error context.

    Provides metadata about the service that generated the error,
    useful for debugging in multi-service environments.
    """

    name: str = Field(
        ...,
        description="Name of the service",
        examples=["VATCalc"],
    )

    version: str = Field(
        ...,
        description="Version of the service",
        examples=["1.0.0"],
    )

    environment: str = Field(
        ...,
        description="Environment where the service is running",
        examples=["development", "staging", "production"],
    )


class ErrorResponse(BaseModel):
    """Standardized error response model for API errors.

    This model ensures all API errors follow a consistent structure,
    making it easier for clients to handle errors programmatically.
    """

    error_code: str = Field(
        ...,
        description="Unique error code identifying the error type",
        examples=["VALIDATION_ERROR", "SAVE_IN_PROGRESS", "PERSISTENCE_FAILED"],
    )

    message: str = Field(
        ...,
        description="Human-readable error message",
        examples=[
            "Please enter a valid VAT rate (0-100%)",
            "A settings save is already in progress",
        ],
    )

    details: dict[str, Any] | None = Field(
        default=None,
        description="Additional error details (e.g., field-specific validation errors)",
        examples=[{"field": "socialLinks"}],
    )

    correlation_id: str | None = Field(
        default=None,
        description="Request correlation ID for tracing and debugging",
        examples=["550e8400-e29b-41d4-a716-446655440000"],
    )

    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        description="Timestamp when the error occurred (with timezone)",
        examples=["2024-06-14T12:00:00+00:00"],
    )

    severity: str | None = Field(
        default=None,
        description="Error severity level (LOW, MEDIUM, HIGH, CRITICAL)",
        examples=["LOW", "HIGH"],
    )

    service_info: ServiceInfo | None = Field(
        default=None,
        description="Information about the service that generated the error",
        examples=[
            {
                "name": "VATCalc",
                "version": "1.0.0",
                "environment": "production",
            }
        ],
    )

    request_id: str | None = Field(
        default=None,
        description=(
            "Unique request identifier (different from correlation_id "
            "which can span multiple services)"
        ),
        examples=["req-550e8400-e29b-41d4-a716-446655440000"],
    )

    debug_info: dict[str, Any] | None = Field(
        default=None,
        description="Debug information (only populated in development environments)",
        examples=[
            {
                "stack_trace": ["File 'main.py', line 123, in function_name"],
                "error_context": {"field": "rate", "value": "120"},
                "exception_type": "ValidationError",
            }
        ],
    )

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "error_code": "VALIDATION_ERROR",
                    "message": "Please enter a valid VAT rate (0-100%)",
                    "details": {"field": "rate", "value": "120"},
                    "correlation_id": "550e8400-e29b-41d4-a716-446655440000",
                    "request_id": "req-660e8400-e29b-41d4-a716-446655440000",
                    "timestamp": "2024-06-14T12:00:00+00:00",
                    "severity": "LOW",
                    "service_info": {
                        "name": "VATCalc",
                        "version": "1.0.0",
                        "environment": "production",
                    },
                },
                {
                    "error_code": "SAVE_IN_PROGRESS",
                    "message": "A settings save is already in progress",
                    "correlation_id": "550e8400-e29b-41d4-a716-446655440001",
                    "request_id": "req-660e8400-e29b-41d4-a716-446655440001",
                    "timestamp": "2024-06-14T12:00:01+00:00",
                    "severity": "LOW",
                },
                {
                    "error_code": "PERSISTENCE_FAILED",
                    "message": "Failed to save settings",
                    "details": {"fields": ["hero_heading"]},
                    "timestamp": "2024-06-14T12:00:02+00:00",
                    "severity": "HIGH",
                },
            ]
        }
    }
