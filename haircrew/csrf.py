"""
CSRF Protection Middleware for FastAPI

Implements double-submit cookie pattern for CSRF protection.
- Generates a CSRF token and sets it as a cookie
- Validates that the X-CSRF-Token header matches the cookie value
- Applies to state-changing methods (POST, PUT, PATCH, DELETE)
- Skips Bearer-authenticated requests, which carry no ambient credential, and public endpoints

Set CSRF_ENABLED=false in environment to disable.
"""
import logging
import secrets
from typing import Callable, List

from fastapi import Request
from fastapi.responses import JSONResponse, Response
from starlette.middleware.base import BaseHTTPMiddleware

from .config import IS_PRODUCTION

logger = logging.getLogger(__name__)

# CSRF token cookie name
CSRF_COOKIE_NAME = "csrf_token"
CSRF_HEADER_NAME = "X-CSRF-Token"
CSRF_COOKIE_MAX_AGE = 86400

# Methods that require CSRF protection
PROTECTED_METHODS = {"POST", "PUT", "PATCH", "DELETE"}

# Paths that are exempt from CSRF protection
EXEMPT_PATHS: List[str] = [
    "/health",  # Health check
    "/docs",  # API docs
    "/openapi.json",
    "/csrf-token",  # CSRF token endpoint
]


def generate_csrf_token() -> str:
    """Generate a cryptographically secure CSRF token"""
    return secrets.token_urlsafe(32)


def is_path_exempt(path: str) -> bool:
    """Check if a path is exempt from CSRF protection"""
    return any(path == exempt or path.startswith(exempt) for exempt in EXEMPT_PATHS)


def has_bearer_token(request: Request) -> bool:
    """Bearer clients authenticate per request; the session cookie is not involved"""
    return request.headers.get("Authorization", "").startswith("Bearer ")


def set_csrf_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        key=CSRF_COOKIE_NAME,
        value=token,
        httponly=True,
        secure=IS_PRODUCTION,
        samesite="strict",
        max_age=CSRF_COOKIE_MAX_AGE,
        path="/",
    )


def _reject(request: Request, reason: str, detail: str) -> JSONResponse:
    logger.warning(f"🚫 CSRF: {reason} for {request.method} {request.url.path}")
    return JSONResponse(status_code=403, content={"detail": detail})


class CSRFMiddleware(BaseHTTPMiddleware):
    """
    CSRF Protection Middleware using double-submit cookie pattern.

    How it works:
    1. On any request, if no CSRF cookie exists, generate one and set it
    2. For state-changing requests (POST/PUT/PATCH/DELETE) outside the exempt paths
       that do not carry a Bearer token:
       - Check that X-CSRF-Token header exists
       - Verify it matches the csrf_token cookie
       - Reject with 403 if missing or mismatched
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        csrf_cookie = request.cookies.get(CSRF_COOKIE_NAME)

        if (
            request.method in PROTECTED_METHODS
            and not is_path_exempt(request.url.path)
            and not has_bearer_token(request)
        ):
            csrf_header = request.headers.get(CSRF_HEADER_NAME)

            if not csrf_cookie:
                return _reject(request, "Missing cookie", "CSRF token missing. Please refresh the page and try again.")
            if not csrf_header:
                return _reject(
                    request, "Missing header", "CSRF token header missing. Please refresh the page and try again."
                )
            # Constant-time comparison
            if not secrets.compare_digest(csrf_cookie, csrf_header):
                return _reject(request, "Token mismatch", "CSRF token invalid. Please refresh the page and try again.")

            logger.debug(f"✅ CSRF: Valid token for {request.method} {request.url.path}")

        response = await call_next(request)

        # /csrf-token issues its own cookie
        issued = any(c.startswith(f"{CSRF_COOKIE_NAME}=") for c in response.headers.getlist("set-cookie"))
        if not csrf_cookie and not issued:
            set_csrf_cookie(response, generate_csrf_token())
            logger.debug("🔑 CSRF: Set new token cookie")

        return response
