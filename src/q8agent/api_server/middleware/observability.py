# src/q8agent/api_server/middleware/observability.py
"""
Observability middleware for the q8 agent API server.

Binds a request id and the request line to structlog's context-local
storage for the lifetime of each request, logs request start and
completion, and returns the request id in the X-Request-ID header.
"""

import logging
import time
import uuid
from typing import Callable

import structlog
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from structlog.contextvars import bind_contextvars, clear_contextvars

REQUEST_ID_HEADER = "X-Request-ID"

logger = structlog.get_logger(__name__)


def configure_structlog(json_format: bool = False) -> None:
    """
    Route structlog output through the standard logging handlers.

    Args:
        json_format: Render events as JSON instead of key=value pairs
    """
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.JSONRenderer() if json_format else structlog.processors.KeyValueRenderer(
                key_order=["event", "request_id"]
            ),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(logging.INFO),
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


class ObservabilityMiddleware(BaseHTTPMiddleware):
    """
    Middleware injecting request context into structured logs.

    This middleware:
    1. Reuses the caller's X-Request-ID or generates one
    2. Binds request_id, method and path to structlog's context
    3. Logs request start and completion with duration
    4. Echoes the request id on the response
    5. Clears context after the request
    """

    def __init__(self, app, enable_request_logging: bool = True):
        super().__init__(app)
        self.enable_request_logging = enable_request_logging

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        start_time = time.monotonic()

        clear_contextvars()
        bind_contextvars(request_id=request_id, method=request.method, path=request.url.path)

        try:
            if self.enable_request_logging:
                logger.info("request_started")

            response = await call_next(request)

            if self.enable_request_logging:
                logger.info(
                    "request_completed",
                    status_code=response.status_code,
                    duration_ms=round((time.monotonic() - start_time) * 1000, 2),
                )
            response.headers[REQUEST_ID_HEADER] = request_id
            return response
        except Exception as e:
            logger.error(
                "request_failed",
                error=str(e),
                error_type=type(e).__name__,
                duration_ms=round((time.monotonic() - start_time) * 1000, 2),
            )
            raise
        finally:
            clear_contextvars()
