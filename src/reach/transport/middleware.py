"""HTTP middleware for the registry server.

- SizeLimitMiddleware rejects oversized bodies before routing (every
  registry body is a few hundred bytes).
- RequestLoggingMiddleware writes one structured access-log line per
  request, with a per-request id bound into the log context.
"""

from __future__ import annotations

import time
import uuid
from typing import Any, Awaitable, Callable

import structlog
from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from reach.observability import get_logger

logger = get_logger(__name__)

MAX_REQUEST_SIZE = 64 * 1024


class SizeLimitMiddleware(BaseHTTPMiddleware):
    """Reject requests whose Content-Length exceeds ``max_size`` with 413.

    Example:
        >>> app.add_middleware(SizeLimitMiddleware, max_size=64 * 1024)
    """

    def __init__(self, app: Any, max_size: int = MAX_REQUEST_SIZE) -> None:
        if max_size < 1:
            raise ValueError(f"max_size must be >= 1, got {max_size}")
        super().__init__(app)
        self.max_size = max_size

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Any]]
    ) -> Any:
        content_length = request.headers.get("content-length")
        if content_length:
            try:
                size = int(content_length)
            except ValueError:
                logger.debug("reach.middleware.invalid_content_length", content_length=content_length)
            else:
                if size > self.max_size:
                    logger.warning(
                        "reach.request.size_exceeded",
                        content_length=size,
                        max_size=self.max_size,
                    )
                    return JSONResponse(
                        status_code=413,
                        content={
                            "error": f"Request size ({size} bytes) exceeds maximum ({self.max_size} bytes)"
                        },
                    )
        return await call_next(request)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Access log: method, path, status and duration for every request."""

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Any]]
    ) -> Any:
        with structlog.contextvars.bound_contextvars(request_id=uuid.uuid4().hex[:16]):
            start = time.perf_counter()
            response = await call_next(request)
            logger.info(
                "reach.request.completed",
                method=request.method,
                path=request.url.path,
                status_code=response.status_code,
                duration_ms=round((time.perf_counter() - start) * 1000, 2),
            )
        return response


__all__ = ["MAX_REQUEST_SIZE", "RequestLoggingMiddleware", "SizeLimitMiddleware"]
