"""Global exception handlers for the FastAPI application.

This is the single catch boundary of the service. Every failure leaves as
the error envelope ``{"success": false, "error", "details"?}`` with the
status code taken from the ``ErrorCode`` table.

Starlette picks the handler registered for the closest class in the
exception's MRO, so application errors, request validation errors and HTTP
errors each get their own handler and anything else falls through to the
unclassified handler.
"""

import traceback
from http import HTTPStatus

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import Response
from loguru import logger
from starlette.exceptions import HTTPException

from itemkit.api.constants import INTERNAL_ERROR_MESSAGE, ROUTE_NOT_FOUND_MESSAGE
from itemkit.api.utils.responses import ORJSONResponse, error_response
from itemkit.api.validation import issues_from_errors
from itemkit.core.config import Settings, get_settings
from itemkit.core.context import RequestContext
from itemkit.core.error_context import sanitize_error_context
from itemkit.core.exceptions import ErrorCode, ItemKitError, ValidationError
from itemkit.core.observability import record_exception

# Detail of the 404 the router raises when no route matches
ROUTER_404_DETAIL = HTTPStatus.NOT_FOUND.phrase


def _settings_for(request: Request) -> Settings:
    """Return the settings of the application serving ``request``."""
    settings: Settings | None = getattr(request.app.state, "settings", None)
    return settings if settings is not None else get_settings()


async def itemkit_error_handler(request: Request, exc: Exception) -> Response:
    """Handle ItemKitError exceptions.

    The status code comes from the error's ``ErrorCode``; the message and
    details are the ones the error carries.

    Args:
        request: The FastAPI request that caused the exception
        exc: The ItemKitError exception to handle

    Returns:
        Response: ORJSONResponse with the error envelope

    Raises:
        TypeError: If exc is not an ItemKitError instance
    """
    if not isinstance(exc, ItemKitError):
        raise TypeError(f"Expected ItemKitError, got {type(exc).__name__}")

    error_context = sanitize_error_context(
        exc,
        {
            "request_method": request.method,
            "request_path": str(request.url.path),
            "error_code": exc.error_code.value,
            "status_code": exc.status_code,
            "severity": exc.severity.value,
            "fingerprint": exc.fingerprint,
        },
    )

    if exc.should_alert:
        record_exception(exc, error_code=exc.error_code.value)
        logger.error("Handling {}: {}", type(exc).__name__, exc.message, **error_context)
    else:
        logger.warning(
            "Handling {}: {}", type(exc).__name__, exc.message, **error_context
        )

    return ORJSONResponse(
        status_code=exc.status_code,
        content=error_response(exc.message, exc.details),
    )


async def validation_error_handler(request: Request, exc: Exception) -> Response:
    """Handle FastAPI RequestValidationError exceptions.

    Converts them to the same 400 envelope as ``ValidationError``.

    Args:
        request: The FastAPI request that caused the exception
        exc: The RequestValidationError exception to handle

    Returns:
        Response: ORJSONResponse with the validation issues

    Raises:
        TypeError: If exc is not a RequestValidationError instance
    """
    if not isinstance(exc, RequestValidationError):
        raise TypeError(f"Expected RequestValidationError, got {type(exc).__name__}")

    issues = issues_from_errors(list(exc.errors()), "body", skip_region_prefix=True)

    logger.warning(
        "Request validation failed",
        **sanitize_error_context(
            exc,
            {
                "request_method": request.method,
                "request_path": str(request.url.path),
                "issue_count": len(issues),
            },
        ),
    )

    return ORJSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_response(ValidationError.MESSAGE, issues),
    )


async def http_exception_handler(request: Request, exc: Exception) -> Response:
    """Handle Starlette HTTPException.

    Unknown routes become 404 "Route not found"; other HTTP errors (405,
    or a 404 raised with its own detail) keep their status, detail and
    headers.

    Args:
        request: The FastAPI request that caused the exception
        exc: The HTTPException to handle

    Returns:
        Response: ORJSONResponse with the error envelope

    Raises:
        TypeError: If exc is not an HTTPException instance
    """
    if not isinstance(exc, HTTPException):
        raise TypeError(f"Expected HTTPException, got {type(exc).__name__}")

    if exc.status_code == status.HTTP_404_NOT_FOUND and exc.detail == ROUTER_404_DETAIL:
        message = ROUTE_NOT_FOUND_MESSAGE
    else:
        message = str(exc.detail)

    logger.warning(
        "HTTP exception",
        status=exc.status_code,
        request_method=request.method,
        request_path=str(request.url.path),
    )

    return ORJSONResponse(
        status_code=exc.status_code,
        content=error_response(message),
        headers=getattr(exc, "headers", None),
    )


async def generic_exception_handler(request: Request, exc: Exception) -> Response:
    """Handle unclassified exceptions.

    The error is always logged with its traceback and recorded on the
    active span before the response is built. In production the client
    only sees "Internal server error"; elsewhere it sees the underlying
    message, type and stack trace.

    Args:
        request: The FastAPI request that caused the exception
        exc: The unhandled exception

    Returns:
        Response: ORJSONResponse with status 500
    """
    settings = _settings_for(request)

    error_context = sanitize_error_context(
        exc,
        {
            "request_method": request.method,
            "request_path": str(request.url.path),
            "error_code": ErrorCode.INTERNAL_ERROR.value,
            "correlation_id": RequestContext.get_correlation_id(),
        },
    )

    logger.opt(exception=exc).error(
        "Unhandled exception: {}", type(exc).__name__, **error_context
    )
    record_exception(exc, error_code=ErrorCode.INTERNAL_ERROR.value)

    if settings.is_production:
        content = error_response(INTERNAL_ERROR_MESSAGE)
    else:
        content = error_response(
            str(exc) or INTERNAL_ERROR_MESSAGE,
            {
                "type": type(exc).__name__,
                "stack_trace": traceback.format_exception(exc),
            },
        )

    return ORJSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=content,
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers with the FastAPI application.

    Args:
        app: The FastAPI application instance
    """
    app.add_exception_handler(ItemKitError, itemkit_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)

    logger.info("Exception handlers registered")
