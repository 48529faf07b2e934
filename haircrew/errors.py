"""Application exceptions and the handlers that turn them into JSON responses"""

import logging
from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from .audit import log_validation_event

logger = logging.getLogger(__name__)


class DashboardError(Exception):
    """Raised by dashboard/analytics services for bad input they can describe"""

    def __init__(self, code: str, message: str, context: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.code = code
        self.message = message
        self.context = context or {}


class RateLimitExceeded(Exception):
    def __init__(self, limit: int, remaining: int, reset: int, retry_after: int):
        super().__init__("Too many requests")
        self.limit = limit
        self.remaining = remaining
        self.reset = reset
        self.retry_after = retry_after


def _validation_messages(exc: RequestValidationError) -> list[str]:
    messages = []
    for error in exc.errors():
        msg = str(error.get("msg", "Invalid value"))
        # Custom validators raise ValueError, which pydantic prefixes
        if msg.startswith("Value error, "):
            msg = msg[len("Value error, "):]
        location = [str(part) for part in error.get("loc", ()) if part not in ("body", "query")]
        if location and error.get("type") in ("missing", "extra_forbidden"):
            msg = f"{'.'.join(location)}: {msg}"
        messages.append(msg)
    return messages


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    messages = _validation_messages(exc)
    log_validation_event(f"{request.method} {request.url.path}", messages)
    return JSONResponse(status_code=400, content={"detail": "Validation failed", "errors": messages})


async def dashboard_error_handler(request: Request, exc: DashboardError):
    logger.warning(f"⚠️ Dashboard error {exc.code} on {request.url.path}: {exc.message} {exc.context}")
    return JSONResponse(status_code=400, content={"error": exc.message, "code": exc.code})


async def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded):
    return JSONResponse(
        status_code=429,
        content={"error": "Too many requests", "code": "RATE_LIMITED"},
        headers={
            "Retry-After": str(exc.retry_after),
            "X-RateLimit-Limit": str(exc.limit),
            "X-RateLimit-Remaining": str(exc.remaining),
            "X-RateLimit-Reset": str(exc.reset),
        },
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(DashboardError, dashboard_error_handler)
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
