"""HTTP request/response logging with performance monitoring.

One line when a request starts and one when it completes, both carrying the
method, path, client and (through the request context) the correlation ID.
Completion lines are logged at WARNING for 4xx and ERROR for 5xx, requests
over the configured threshold get an extra slow-request warning, and
configured paths (``/health`` by default) are not logged at all.
"""

import time
from collections.abc import Awaitable, Callable
from typing import Final

from fastapi import Request, Response
from loguru import logger
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from itemkit.api.constants import REQUEST_ID_HEADER
from itemkit.core.config import LogConfig
from itemkit.core.constants import MILLISECONDS_PER_SECOND
from itemkit.core.context import generate_request_id
from itemkit.core.error_context import sanitize_dict, sanitize_headers

MAX_USER_AGENT_LENGTH: Final[int] = 200
HTTP_CLIENT_ERROR: Final[int] = 400
HTTP_SERVER_ERROR: Final[int] = 500


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Middleware for logging HTTP requests and responses.

    Args:
        app: The ASGI application.
        log_config: Logging configuration.
        trust_proxy_headers: Read the client address from ``X-Forwarded-For``
            and ``X-Real-IP``; only enable behind a trusted proxy.
    """

    def __init__(
        self,
        app: ASGIApp,
        *,
        log_config: LogConfig,
        trust_proxy_headers: bool = False,
    ) -> None:
        super().__init__(app)
        self.log_config = log_config
        self.excluded_paths = frozenset(log_config.excluded_paths)
        self.trust_proxy_headers = trust_proxy_headers

    def _get_client_ip(self, request: Request) -> str:
        """Extract the client IP, honouring proxy headers when trusted."""
        if self.trust_proxy_headers:
            if forwarded_for := request.headers.get("x-forwarded-for"):
                return forwarded_for.split(",")[0].strip()
            if real_ip := request.headers.get("x-real-ip"):
                return real_ip.strip()

        if request.client:
            return request.client.host
        return "unknown"

    @staticmethod
    def _completion_level(status_code: int) -> str:
        if status_code >= HTTP_SERVER_ERROR:
            return "ERROR"
        if status_code >= HTTP_CLIENT_ERROR:
            return "WARNING"
        return "INFO"

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        """Process the request and log details.

        Args:
            request: The incoming request.
            call_next: The next middleware/endpoint.

        Returns:
            Response: The response from the application.

        Raises:
            Exception: Any exception raised by the application is re-raised
                after logging.
        """
        if request.url.path in self.excluded_paths:
            return await call_next(request)

        request_id = request.headers.get(REQUEST_ID_HEADER) or generate_request_id()
        user_agent = request.headers.get("user-agent", "unknown")

        with logger.contextualize(
            request_id=request_id,
            method=request.method,
            path=request.url.path,
            client_host=self._get_client_ip(request),
            user_agent=user_agent[:MAX_USER_AGENT_LENGTH],
        ):
            logger.info(
                "Request started",
                query_params=(
                    sanitize_dict(dict(request.query_params))
                    if request.query_params
                    else None
                ),
            )
            logger.debug(
                "Request headers", headers=sanitize_headers(dict(request.headers))
            )

            start_time = time.perf_counter()
            try:
                response = await call_next(request)
            except Exception as exc:
                duration_ms = (time.perf_counter() - start_time) * MILLISECONDS_PER_SECOND
                logger.error(
                    "Request failed",
                    duration_ms=round(duration_ms, 2),
                    error_type=type(exc).__name__,
                )
                raise

            duration_ms = (time.perf_counter() - start_time) * MILLISECONDS_PER_SECOND
            auth = getattr(request.state, "auth", None)
            logger.log(
                self._completion_level(response.status_code),
                "Request completed",
                status_code=response.status_code,
                duration_ms=round(duration_ms, 2),
                authenticated=auth is not None,
            )

            if duration_ms > self.log_config.slow_request_threshold_ms:
                logger.warning(
                    "Slow request detected",
                    duration_ms=round(duration_ms, 2),
                    threshold_ms=self.log_config.slow_request_threshold_ms,
                )

            response.headers[REQUEST_ID_HEADER] = request_id
            return response
