"""Global exception handlers for the FastAPI application.

Every error leaves the API as an :class:`ErrorResponse`. Application errors
(:class:`VatCalcError`) map to a status code by type:

- ``ValidationError``: 400
- ``SaveInProgressError``: 409 (retry once the running save finishes)
- ``PersistenceError``, ``MaintenanceModeError`` and remote store failures: 503
- anything else: 500
"""

import traceback

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import Response
from loguru import logger
from starlette.exceptions import HTTPException

from src.api.schemas.errors import ErrorResponse, ServiceInfo
from src.api.utils.responses import ORJSONResponse
from src.core.config import Settings, get_settings
from src.core.context import RequestContext, generate_request_id
from src.core.exceptions import (
    ErrorCode,
    MaintenanceModeError,
    OperationTimeoutError,
    PersistenceError,
    RemoteStoreError,
    SaveInProgressError,
    Severity,
    ValidationError,
    VatCalcError,
)


def get_service_info(settings: Settings) -> ServiceInfo:
    """Create ServiceInfo from application settings."""
    return ServiceInfo(
        name=settings.app_name,
        version=settings.app_version,
        environment=settings.environment,
    )


def status_code_for(exc: VatCalcError) -> int:
    """Map an application error to its HTTP status code."""
    match exc:
        case ValidationError():
            return status.HTTP_400_BAD_REQUEST
        case SaveInProgressError():
            return status.HTTP_409_CONFLICT
        case (
            PersistenceError()
            | MaintenanceModeError()
            | RemoteStoreError()
            | OperationTimeoutError()
        ):
            return status.HTTP_503_SERVICE_UNAVAILABLE
        case _:
            return status.HTTP_500_INTERNAL_SERVER_ERROR


def _respond(status_code: int, error_response: ErrorResponse) -> Response:
    return ORJSONResponse(
        status_code=status_code,
        content=error_response.model_dump(mode="json"),
    )


def render_error(exc: VatCalcError, request: Request) -> Response:
    """Build the error response for an application error.

    Args:
        exc: The application error.
        request: The request that failed.

    Returns:
        Response: ORJSONResponse with the error details.
    """
    settings = get_settings()
    correlation_id = RequestContext.get_correlation_id()
    status_code = status_code_for(exc)

    log = logger.bind(
        error_code=exc.error_code,
        status_code=status_code,
        method=request.method,
        path=request.url.path,
    )
    if exc.should_alert:
        log.error("Handling {}: {}", type(exc).__name__, exc.message)
    else:
        log.warning("Handling {}: {}", type(exc).__name__, exc.message)

    debug_info = None
    if settings.environment == "development":
        debug_info = {
            "stack_trace": exc.stack_trace,
            "error_context": exc.context,
            "exception_type": type(exc).__name__,
        }
        if exc.cause:
            debug_info["cause"] = {
                "type": type(exc.cause).__name__,
                "message": str(exc.cause),
            }

    return _respond(
        status_code,
        ErrorResponse(
            error_code=exc.error_code,
            message=exc.message,
            details=exc.context or None,
            correlation_id=correlation_id,
            request_id=generate_request_id(),
            severity=exc.severity.value,
            service_info=get_service_info(settings),
            debug_info=debug_info,
        ),
    )


async def vatcalc_error_handler(request: Request, exc: Exception) -> Response:
    """Handle VatCalcError exceptions.

    Raises:
        TypeError: If exc is not a VatCalcError instance
    """
    if not isinstance(exc, VatCalcError):
        raise TypeError(f"Expected VatCalcError, got {type(exc).__name__}")
    return render_error(exc, request)


async def validation_error_handler(request: Request, exc: Exception) -> Response:
    """Handle FastAPI RequestValidationError exceptions with field-level details.

    Raises:
        TypeError: If exc is not a RequestValidationError instance
    """
    if not isinstance(exc, RequestValidationError):
        raise TypeError(f"Expected RequestValidationError, got {type(exc).__name__}")

    field_errors: dict[str, list[str]] = {}
    for error in exc.errors():
        # ['body', 'socialLinks', 0, 'platform'] -> 'socialLinks.0.platform'
        field_path = error.get("loc", ())
        field_name = ".".join(str(loc) for loc in field_path[1:]) or "root"
        field_errors.setdefault(field_name, []).append(
            error.get("msg", "Invalid value")
        )

    logger.warning(
        "Request validation failed",
        method=request.method,
        path=request.url.path,
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        validation_errors=field_errors,
    )

    return _respond(
        status.HTTP_422_UNPROCESSABLE_ENTITY,
        ErrorResponse(
            error_code=ErrorCode.VALIDATION_ERROR.value,
            message="Request validation failed",
            details={"validation_errors": field_errors},
            correlation_id=RequestContext.get_correlation_id(),
            request_id=generate_request_id(),
            severity=Severity.LOW.value,
            service_info=get_service_info(get_settings()),
        ),
    )


async def http_exception_handler(request: Request, exc: Exception) -> Response:
    """Handle Starlette HTTPException (unknown routes, wrong methods).

    Raises:
        TypeError: If exc is not an HTTPException instance
    """
    if not isinstance(exc, HTTPException):
        raise TypeError(f"Expected HTTPException, got {type(exc).__name__}")

    if exc.status_code == status.HTTP_404_NOT_FOUND:
        error_code, severity = ErrorCode.NOT_FOUND, Severity.LOW
    elif exc.status_code < status.HTTP_500_INTERNAL_SERVER_ERROR:
        error_code, severity = ErrorCode.VALIDATION_ERROR, Severity.LOW
    else:
        error_code, severity = ErrorCode.INTERNAL_ERROR, Severity.HIGH

    logger.warning(
        "HTTP exception",
        status_code=exc.status_code,
        method=request.method,
        path=request.url.path,
        detail=exc.detail,
    )

    return _respond(
        exc.status_code,
        ErrorResponse(
            error_code=error_code.value,
            message=str(exc.detail),
            correlation_id=RequestContext.get_correlation_id(),
            request_id=generate_request_id(),
            severity=severity.value,
            service_info=get_service_info(get_settings()),
        ),
    )


async def generic_exception_handler(request: Request, exc: Exception) -> Response:
    """Handle unexpected exceptions, hiding internals in production."""
    settings = get_settings()

    logger.opt(exception=exc).error(
        "Unhandled exception: {}",
        type(exc).__name__,
        method=request.method,
        path=request.url.path,
    )

    if settings.environment == "production":
        message = "An internal server error occurred"
        details = None
        debug_info = None
    else:
        message = f"Internal server error: {type(exc).__name__}"
        details = {"error": str(exc), "type": type(exc).__name__}
        debug_info = {
            "stack_trace": traceback.format_tb(exc.__traceback__),
            "exception_type": type(exc).__name__,
        }

    return _respond(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        ErrorResponse(
            error_code=ErrorCode.INTERNAL_ERROR.value,
            message=message,
            details=details,
            correlation_id=RequestContext.get_correlation_id(),
            request_id=generate_request_id(),
            severity=Severity.CRITICAL.value,
            service_info=get_service_info(settings),
            debug_info=debug_info,
        ),
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers with the FastAPI application.

    Args:
        app: The FastAPI application instance
    """
    app.add_exception_handler(VatCalcError, vatcalc_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)

    logger.info("Exception handlers registered")
