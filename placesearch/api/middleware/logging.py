"""
Request Logging Middleware
Assigns a request ID and logs each request with its outcome.
"""

import logging
import time
import uuid
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Logs method, path, status and duration for every request.

    The request ID comes from the `X-Request-ID` header or is generated, is
    stored on `request.state.request_id` and echoed back in the response.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        request.state.request_id = request_id
        start_time = time.time()

        context = {
            "request_id": request_id,
            "method": request.method,
            "path": request.url.path,
        }
        logger.debug(
            "Request started",
            extra={**context, "query": str(request.url.query) or None},
        )

        try:
            response = await call_next(request)
        except Exception as e:
            logger.error(
                f"Request failed: {request.method} {request.url.path}",
                exc_info=True,
                extra={**context, "duration_ms": (time.time() - start_time) * 1000, "error": str(e)},
            )
            raise

        duration_ms = (time.time() - start_time) * 1000
        log = logger.warning if response.status_code >= 500 else logger.info
        log(
            f"{request.method} {request.url.path} -> {response.status_code} ({duration_ms:.1f}ms)",
            extra={**context, "status_code": response.status_code, "duration_ms": duration_ms},
        )

        response.headers[REQUEST_ID_HEADER] = request_id
        return response
