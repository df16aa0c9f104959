"""Exception handlers mapping Reviewflow errors onto HTTP responses.

Every ReviewflowError carries its own status code; the handler renders it
as ``{"detail": message, "error": code}``. Storage errors are not handled
here and surface as 500 responses.
"""

from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from reviewflow.errors import ReviewflowError
from reviewflow.logging import get_logger

logger = get_logger(__name__)


async def reviewflow_error_handler(request: Request, exc: ReviewflowError) -> JSONResponse:
    """Render a ReviewflowError as a JSON error response."""
    log = logger.warning if exc.status_code < 500 else logger.error
    log(
        "request_rejected",
        method=request.method,
        path=request.url.path,
        status_code=exc.status_code,
        error=exc.code,
        detail=exc.message,
    )
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "error": exc.code},
    )


def register_error_handlers(app: FastAPI) -> None:
    """Install the Reviewflow exception handlers on an application."""
    app.add_exception_handler(ReviewflowError, reviewflow_error_handler)
