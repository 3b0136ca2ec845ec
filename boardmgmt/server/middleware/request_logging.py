"""
Request Logging Middleware for FastAPI.

This middleware provides request tracing and timing for every API call:
- A request id, taken from ``X-Request-ID`` or generated, stored on ``request.state``
  and echoed in the response
- Request/response logging with duration
- Slow request warnings
- Error logging for requests that fail with an unhandled exception
"""

import time
import uuid
from typing import Callable

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from boardmgmt.core.logging_config import get_logger
from boardmgmt.server.core.constant import REQUEST_ID_HEADER, SLOW_REQUEST_THRESHOLD_MS

logger = get_logger(__name__)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Middleware for tracing and timing API requests."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        """
        Process the request and log metrics.

        Args:
            request: The incoming HTTP request
            call_next: The next middleware/handler

        Returns:
            The HTTP response
        """
        start_time = time.perf_counter()

        method = request.method
        path = request.url.path
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex

        request.state.request_id = request_id
        request.state.start_time = start_time

        try:
            response = await call_next(request)
        except Exception as e:
            duration_ms = (time.perf_counter() - start_time) * 1000
            logger.error(
                f"API request failed: {method} {path}",
                exc_info=True,
                extra={
                    "request_id": request_id,
                    "method": method,
                    "path": path,
                    "duration_ms": duration_ms,
                    "error": str(e),
                },
            )
            raise

        duration_ms = (time.perf_counter() - start_time) * 1000
        logger.debug(f"{method} {path} -> {response.status_code} in {duration_ms:.2f}ms [{request_id}]")

        response.headers[REQUEST_ID_HEADER] = request_id
        response.headers["X-Process-Time"] = f"{duration_ms:.2f}"

        if duration_ms > SLOW_REQUEST_THRESHOLD_MS:
            logger.warning(
                f"Slow API request: {method} {path} took {duration_ms:.2f}ms",
                extra={
                    "request_id": request_id,
                    "method": method,
                    "path": path,
                    "duration_ms": duration_ms,
                    "status_code": response.status_code,
                },
            )

        return response
