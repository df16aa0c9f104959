"""Request logging middleware for Reviewflow.

Every request runs under a correlation id (taken from X-Correlation-ID or
generated) that is echoed back on the response. The acting user from
X-Actor-Id and the project id in /projects/{id}/... paths are bound to the
log context, so every event emitted while handling a review action carries
them. Health probes are logged at debug level only.
"""

from __future__ import annotations

import re
import time
import uuid
from typing import TYPE_CHECKING

import structlog
from starlette.middleware.base import BaseHTTPMiddleware

from reviewflow.logging import get_logger, set_correlation_id

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from starlette.requests import Request
    from starlette.responses import Response

logger = get_logger(__name__)

_PROJECT_PATH = re.compile(r"^/projects/([0-9a-fA-F-]{36})(?:/|$)")


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log each request's outcome and duration with review context bound."""

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        correlation_id = request.headers.get("X-Correlation-ID") or str(uuid.uuid4())
        set_correlation_id(correlation_id)

        structlog.contextvars.clear_contextvars()
        context: dict[str, str] = {}
        actor = request.headers.get("X-Actor-Id")
        if actor:
            context["actor"] = actor
        match = _PROJECT_PATH.match(request.url.path)
        if match:
            context["project_id"] = match.group(1).lower()
        if context:
            structlog.contextvars.bind_contextvars(**context)

        log = logger.debug if request.url.path.startswith("/health") else logger.info
        start_time = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception as exc:
            logger.error(
                "request_failed",
                method=request.method,
                path=request.url.path,
                duration_ms=round((time.perf_counter() - start_time) * 1000, 2),
                error=str(exc),
                exc_info=True,
            )
            set_correlation_id(None)
            raise

        log(
            "request_completed",
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
            duration_ms=round((time.perf_counter() - start_time) * 1000, 2),
        )
        response.headers["X-Correlation-ID"] = correlation_id
        set_correlation_id(None)
        return response
