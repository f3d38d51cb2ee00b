"""Request context middleware for correlation IDs.

Each request gets a correlation ID, taken from ``X-Correlation-ID`` when
the caller sends a usable one and generated otherwise. The ID is stored in
a context variable, bound to every log line of the request through
``logger.contextualize`` and echoed in the response header.
"""

import re
from typing import Final

from loguru import logger
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from itemkit.api.constants import CORRELATION_ID_HEADER
from itemkit.core.context import RequestContext, generate_correlation_id

MAX_CORRELATION_ID_LENGTH: Final[int] = 128
CORRELATION_ID_PATTERN: Final[re.Pattern[str]] = re.compile(r"[A-Za-z0-9._:-]+")


def resolve_correlation_id(header_value: str | None) -> str:
    """Return the incoming correlation ID if it is safe to log, else a new one.

    Examples:
        >>> resolve_correlation_id("abc-123")
        'abc-123'
        >>> resolve_correlation_id("bad value\\n") != "bad value\\n"
        True
    """
    if (
        header_value
        and len(header_value) <= MAX_CORRELATION_ID_LENGTH
        and CORRELATION_ID_PATTERN.fullmatch(header_value)
    ):
        return header_value
    return generate_correlation_id()


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Middleware to manage request context and correlation IDs."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        """Process the request with context management.

        Args:
            request: The incoming request.
            call_next: The next middleware/endpoint.

        Returns:
            Response: Response with correlation ID header.
        """
        correlation_id = resolve_correlation_id(
            request.headers.get(CORRELATION_ID_HEADER)
        )
        RequestContext.set_correlation_id(correlation_id)
        request.state.correlation_id = correlation_id

        try:
            with logger.contextualize(correlation_id=correlation_id):
                response = await call_next(request)
                response.headers[CORRELATION_ID_HEADER] = correlation_id
                return response
        finally:
            RequestContext.clear()
