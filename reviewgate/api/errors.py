"""HTTP rendering of gate errors."""

import math

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from reviewgate.core.errors import GateError, RateLimitError
from reviewgate.core.logger import get_logger

logger = get_logger("api")


async def gate_error_handler(request: Request, exc: GateError) -> JSONResponse:
    """Render a classified error as ``{"error": {...}}`` with its status code."""
    headers = {}
    if isinstance(exc, RateLimitError) and exc.retry_after is not None:
        headers["Retry-After"] = str(max(1, math.ceil(exc.retry_after)))

    if exc.http_status >= 500:
        logger.warning(f"{request.method} {request.url.path} failed: {exc.message}")

    return JSONResponse(
        status_code=exc.http_status,
        content={"error": exc.to_dict()},
        headers=headers,
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(GateError, gate_error_handler)
