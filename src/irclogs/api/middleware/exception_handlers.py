"""
Global exception handlers for the IRC log service API.

Provides centralized error handling with consistent response formatting
and logging. Ask sessions report their own failures as stream events; these
handlers only cover errors raised before a stream starts.
"""

from __future__ import annotations

import traceback

from typing import Any

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from irclogs.core.constants import get_settings
from irclogs.models.error_models import (
    ErrorCode,
    ErrorDetail,
    ErrorResponse,
    get_status_code,
)
from irclogs.utils.logger import logger


class AppException(Exception):
    """Base application exception with error code support.

    Use this for request errors that should return a specific
    error code and message to the client.

    Example:
        raise AppException(
            code=ErrorCode.CHANNEL_NOT_FOUND,
            message="Channel not found",
            details={"channel": channel}
        )
    """

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        details: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ):
        self.code = code
        self.message = message
        self.details = details
        self.cause = cause
        super().__init__(message)


class MissingParameterError(AppException):
    """A required query parameter is missing or blank."""

    def __init__(self, parameter: str):
        super().__init__(
            code=ErrorCode.VALIDATION_MISSING_FIELD,
            message=f"missing required parameter '{parameter}'",
            details={"parameter": parameter},
        )


class ResourceNotFoundError(AppException):
    """Resource not found errors."""

    def __init__(
        self,
        resource: str,
        resource_id: str | None = None,
        code: ErrorCode = ErrorCode.RESOURCE_NOT_FOUND,
        cause: Exception | None = None,
    ):
        message = f"{resource} not found"
        if resource_id:
            message = f"{resource} '{resource_id}' not found"
        super().__init__(code=code, message=message, details={"resource": resource, "id": resource_id}, cause=cause)


class ChannelNotFoundError(ResourceNotFoundError):
    """Channel path does not name an accessible channel."""

    def __init__(self, channel: str, cause: Exception | None = None):
        super().__init__(resource="Channel", resource_id=channel, code=ErrorCode.CHANNEL_NOT_FOUND, cause=cause)


class LogFileNotFoundError(ResourceNotFoundError):
    """No log file for a channel and date."""

    def __init__(self, channel: str, date: str):
        super().__init__(resource="Log", resource_id=f"{channel} {date}", code=ErrorCode.LOG_NOT_FOUND)


class LogFileUnreadableError(AppException):
    """A log file exists but cannot be read or decompressed."""

    def __init__(self, channel: str, date: str, cause: Exception | None = None):
        super().__init__(
            code=ErrorCode.LOG_UNREADABLE,
            message=f"Log '{channel} {date}' could not be read",
            details={"resource": "Log", "id": f"{channel} {date}"},
            cause=cause,
        )


class ArtifactNotFoundError(ResourceNotFoundError):
    """Saved ask output does not exist."""

    def __init__(self, slug: str):
        super().__init__(resource="Output", resource_id=slug, code=ErrorCode.ARTIFACT_NOT_FOUND)


class AdmissionRejectedError(AppException):
    """Every ask permit is in use."""

    def __init__(self, capacity: int):
        super().__init__(
            code=ErrorCode.ASK_BUSY,
            message="too many concurrent ask sessions, try again later",
            details={"capacity": capacity},
        )


class AskNotConfiguredError(AppException):
    """The ask assistant has no ``ai`` configuration."""

    def __init__(self) -> None:
        super().__init__(code=ErrorCode.ASK_NOT_CONFIGURED, message="ask is not configured on this server")


def _create_error_response(
    code: ErrorCode,
    message: str,
    request: Request | None = None,
    details: list[ErrorDetail] | None = None,
    debug_info: dict[str, Any] | None = None,
) -> ErrorResponse:
    """Create a standardized error response.

    Args:
        code: Application error code
        message: Human-readable error message
        request: FastAPI request object for path extraction
        details: List of detailed error information
        debug_info: Debug information (only included in development)
    """
    path = request.url.path if request else None

    return ErrorResponse(
        code=code,
        message=message,
        path=path,
        details=details,
        debug=debug_info,
    )


def _log_error(
    error: Exception,
    code: ErrorCode,
    status_code: int,
    request: Request | None = None,
) -> None:
    """Log error with appropriate level and context."""
    log_context: dict[str, Any] = {"error_code": code.value, "status_code": status_code}
    if request is not None:
        log_context["path"] = request.url.path

    # Log at appropriate level based on status code
    if status_code >= 500:
        logger.error(
            f"Server error: {code.value} - {error}",
            exc_info=True,
            **log_context,
        )
    elif status_code >= 400:
        logger.warning(
            f"Client error: {code.value} - {error}",
            **log_context,
        )


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """Handle application-specific exceptions."""
    status_code = get_status_code(exc.code)

    settings = get_settings()
    debug_info = None
    if settings.debug:
        debug_info = {
            "exception_type": type(exc).__name__,
            "cause": str(exc.cause) if exc.cause else None,
        }

    details = None
    if exc.details:
        details = [ErrorDetail(message=str(v), field=k) for k, v in exc.details.items() if v is not None]

    error_response = _create_error_response(
        code=exc.code,
        message=exc.message,
        request=request,
        details=details or None,
        debug_info=debug_info,
    )

    _log_error(exc, exc.code, status_code, request)

    headers = {"Retry-After": "5"} if exc.code == ErrorCode.ASK_BUSY else None
    return JSONResponse(
        status_code=status_code,
        content=error_response.to_dict(include_debug=settings.debug),
        headers=headers,
    )


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Handle FastAPI HTTPException with consistent formatting."""
    status_to_code = {
        400: ErrorCode.VALIDATION_MISSING_FIELD,
        404: ErrorCode.RESOURCE_NOT_FOUND,
        422: ErrorCode.VALIDATION_ERROR,
        429: ErrorCode.EXTERNAL_RATE_LIMITED,
        500: ErrorCode.INTERNAL_ERROR,
        502: ErrorCode.EXTERNAL_SERVICE_ERROR,
    }

    code = status_to_code.get(exc.status_code, ErrorCode.INTERNAL_ERROR)
    message = exc.detail if isinstance(exc.detail, str) else str(exc.detail)

    error_response = _create_error_response(code=code, message=message, request=request)

    _log_error(exc, code, exc.status_code, request)

    return JSONResponse(
        status_code=exc.status_code,
        content=error_response.to_dict(),
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Handle Pydantic validation errors from request parsing."""
    details = []
    for error in exc.errors():
        field_path = ".".join(str(loc) for loc in error["loc"])
        details.append(
            ErrorDetail(
                field=field_path,
                message=error["msg"],
                code=error["type"],
            )
        )

    error_response = _create_error_response(
        code=ErrorCode.VALIDATION_ERROR,
        message="Request validation failed",
        request=request,
        details=details,
    )

    _log_error(exc, ErrorCode.VALIDATION_ERROR, 422, request)

    return JSONResponse(
        status_code=422,
        content=error_response.to_dict(),
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions with graceful degradation."""
    settings = get_settings()

    # Log full traceback for debugging
    logger.error(
        f"Unhandled exception: {type(exc).__name__}: {exc}",
        exc_info=True,
        path=request.url.path,
    )

    debug_info = None
    if settings.debug:
        debug_info = {
            "exception_type": type(exc).__name__,
            "exception_message": str(exc),
            "traceback": traceback.format_exc(),
        }

    error_response = _create_error_response(
        code=ErrorCode.INTERNAL_UNEXPECTED,
        message="An unexpected error occurred",
        request=request,
        debug_info=debug_info,
    )

    return JSONResponse(
        status_code=500,
        content=error_response.to_dict(include_debug=settings.debug),
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers with the FastAPI application.

    Call this right after creating the FastAPI app:
        register_exception_handlers(app)
    """
    # Note: type: ignore needed because Starlette's type signature expects Exception,
    # but covariant exception types in handlers are safe and work correctly at runtime
    app.add_exception_handler(AppException, app_exception_handler)  # type: ignore[arg-type]

    # FastAPI/Starlette exceptions
    app.add_exception_handler(HTTPException, http_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, validation_exception_handler)  # type: ignore[arg-type]

    # Catch-all for unexpected exceptions
    app.add_exception_handler(Exception, generic_exception_handler)


__all__ = [
    "AdmissionRejectedError",
    "AppException",
    "ArtifactNotFoundError",
    "AskNotConfiguredError",
    "ChannelNotFoundError",
    "LogFileNotFoundError",
    "LogFileUnreadableError",
    "MissingParameterError",
    "ResourceNotFoundError",
    "app_exception_handler",
    "generic_exception_handler",
    "http_exception_handler",
    "register_exception_handlers",
    "validation_exception_handler",
]
