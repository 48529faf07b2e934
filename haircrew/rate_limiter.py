"""
Redis sliding-window rate limiting
Each key holds a sorted set of request timestamps (ms) inside the current window
"""

import logging
import math
import time
import uuid
from typing import Optional

import redis
from fastapi import HTTPException, Request, status

from .config import REDIS_URL
from .errors import RateLimitExceeded

logger = logging.getLogger(__name__)

# Redis connection
redis_client: Optional[redis.Redis] = None
_warned_disabled = False


def get_redis_client() -> Optional[redis.Redis]:
    """
    Get or create Redis client
    Returns None when REDIS_URL is not configured (limiter and cache disabled)
    """
    global redis_client, _warned_disabled

    if redis_client is None:
        if not REDIS_URL:
            if not _warned_disabled:
                logger.warning("⚠️ REDIS_URL not set - rate limiting and caching are disabled")
                _warned_disabled = True
            return None

        # Mask password in URL for logging
        if "@" in REDIS_URL:
            url_parts = REDIS_URL.split("@")
            protocol = url_parts[0].split(":")[0]
            masked_url = f"{protocol}:****@{url_parts[1]}"
        else:
            masked_url = "****"
        logger.info(f"📡 Using Redis URL connection: {masked_url}")

        try:
            redis_client = redis.from_url(
                REDIS_URL,
                decode_responses=True,
                socket_connect_timeout=5,
                socket_timeout=5,
                retry_on_timeout=True,
                health_check_interval=30,
                max_connections=20,
            )
            redis_client.ping()
            logger.info("Redis connected successfully via URL")
        except Exception as e:
            logger.error(f"❌ Failed to connect to Redis via URL: {str(e)}")
            redis_client = None
            raise

    return redis_client


def get_client_ip(request: Request) -> str:
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    real_ip = request.headers.get("X-Real-IP")
    if real_ip:
        return real_ip.strip()
    return request.client.host if request.client else "unknown"


def check_rate_limit(
    key: str, limit: int, window_seconds: int, client: redis.Redis
) -> tuple[bool, int, int]:
    """Check and record a request against a sliding window

    Args:
        key: Redis key for this rate limit
        limit: Maximum number of requests allowed inside the window
        window_seconds: Window length in seconds
        client: Redis client instance

    Returns:
        Tuple of (is_allowed, remaining, reset_epoch_seconds)
    """
    now_ms = int(time.time() * 1000)
    window_ms = window_seconds * 1000

    pipe = client.pipeline()
    pipe.zremrangebyscore(key, 0, now_ms - window_ms)
    pipe.zcard(key)
    pipe.zrange(key, 0, 0, withscores=True)
    _, count, oldest = pipe.execute()

    oldest_ms = int(oldest[0][1]) if oldest else now_ms
    reset = math.ceil((oldest_ms + window_ms) / 1000)

    if count >= limit:
        return False, 0, reset

    # Unique member so simultaneous requests in the same ms all count
    client.zadd(key, {f"{now_ms}-{uuid.uuid4().hex[:8]}": now_ms})
    client.pexpire(key, window_ms)
    return True, limit - count - 1, reset


async def rate_limit_dependency(
    request: Request,
    limit: int,
    window_seconds: int,
    key_prefix: str = "rate_limit",
    use_ip: bool = True,
):
    """
    FastAPI dependency for rate limiting

    Args:
        request: FastAPI request object
        limit: Maximum requests allowed
        window_seconds: Time window in seconds
        key_prefix: Prefix for Redis key
        use_ip: If True, use client IP in key (per-IP limit), otherwise global
    """
    try:
        client = get_redis_client()
        if client is None:
            # Fail open: limiter disabled without Redis
            return

        identifier = get_client_ip(request) if use_ip else "global"
        key = f"ratelimit:{key_prefix}:{identifier}"

        is_allowed, remaining, reset = check_rate_limit(key, limit, window_seconds, client)

        if not is_allowed:
            retry_after = max(1, reset - int(time.time()))
            logger.warning(f"🚫 Rate limit EXCEEDED for {key} - {limit} per {window_seconds}s")
            raise RateLimitExceeded(limit, remaining, reset, retry_after)

        request.state.rate_limit_remaining = remaining
        request.state.rate_limit_limit = limit
        request.state.rate_limit_reset = reset

    except RateLimitExceeded:
        raise
    except Exception as e:
        logger.error(f"❌ Rate limiting error: {str(e)}")
        logger.warning("🔒 Denying request due to rate limiting error (fail-closed mode)")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Rate limiting service temporarily unavailable",
        ) from e


def create_rate_limiter(
    limit: int, window_seconds: int, key_prefix: str = "rate_limit", use_ip: bool = True
):
    """
    Create a rate limiter dependency with specific parameters

    Example usage:
        sensitive_limiter = create_rate_limiter(limit=5, window_seconds=60, key_prefix="dashboard:sensitive")

        @router.post("/reset-password")
        async def reset_password(data: ResetPasswordRequest, _: None = Depends(sensitive_limiter)):
            ...
    """

    async def rate_limiter(request: Request):
        return await rate_limit_dependency(request, limit, window_seconds, key_prefix, use_ip)

    return rate_limiter


# Dashboard metrics reads and sensitive account actions
metrics_rate_limiter = create_rate_limiter(limit=15, window_seconds=30, key_prefix="dashboard:metrics")
sensitive_rate_limiter = create_rate_limiter(limit=5, window_seconds=60, key_prefix="dashboard:sensitive")
