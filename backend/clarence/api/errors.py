"""Translate domain errors into JSON responses."""

from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from clarence.core.errors import ClarenceError, RateLimitedError
from clarence.core.logging import get_logger

logger = get_logger(__name__)


async def clarence_error_handler(request: Request, exc: ClarenceError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(
            "Request failed",
            path=request.url.path,
            error=type(exc).__name__,
            message=exc.message,
        )

    headers = None
    if isinstance(exc, RateLimitedError) and exc.retry_after:
        headers = {"Retry-After": str(exc.retry_after)}

    return JSONResponse(
        status_code=exc.status_code,
        content={**exc.details, "detail": exc.message, "error": type(exc).__name__},
        headers=headers,
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ClarenceError, clarence_error_handler)
