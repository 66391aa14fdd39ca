"""Middleware for HTTP error logging."""

import json
import logging
import time
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger(__name__)


class HTTPErrorLoggingMiddleware(BaseHTTPMiddleware):
    """Middleware to ensure all HTTP errors are logged.

    - 4xx responses: logged at WARN level
    - 5xx responses: logged at ERROR level
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        """Process request and log errors.

        Args:
            request: Incoming HTTP request
            call_next: Next middleware/handler in chain

        Returns:
            HTTP response
        """
        start_time = time.time()

        source = None
        original_url = request.query_params.get("originalUrl")

        if request.method in ["POST", "PUT", "PATCH"]:
            try:
                body = json.loads(await request.body())
            except ValueError:
                body = None
            if isinstance(body, dict):
                source = body.get("source")
                original_url = body.get("originalUrl")

        response = await call_next(request)

        duration_ms = (time.time() - start_time) * 1000
        context = {
            "http_status": response.status_code,
            "method": request.method,
            "path": request.url.path,
            "source": source,
            "original_url": original_url,
            "duration_ms": duration_ms,
        }

        if 400 <= response.status_code < 500:
            logger.warning("Client error response", extra=context)
        elif response.status_code >= 500:
            logger.error("Server error response", extra=context)

        return response
