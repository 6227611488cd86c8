"""
Per-IP rate limiting for the account endpoints (login, registration, codes, resets)

Fixed windows counted in Redis, so every API process shares the same budget.
"""

import logging
import os
from typing import Optional

import redis
from fastapi import HTTPException, Request, status

from .config import RATE_LIMIT_ENABLED

logger = logging.getLogger(__name__)

redis_client: Optional[redis.Redis] = None


def _mask_redis_url(redis_url: str) -> str:
    if "@" in redis_url:
        scheme = redis_url.split("://", 1)[0]
        return f"{scheme}://****@{redis_url.rsplit('@', 1)[1]}"
    return redis_url


def get_redis_client() -> redis.Redis:
    """
    Shared Redis connection for rate limits, the rate cache and health checks.
    REDIS_URL wins over REDIS_HOST / REDIS_PORT / REDIS_PASSWORD / REDIS_SSL.
    """
    global redis_client

    if redis_client is not None:
        return redis_client

    options = {
        "decode_responses": True,
        "socket_connect_timeout": 15,
        "socket_timeout": 30,
        "retry_on_timeout": True,
        "health_check_interval": 30,
    }
    redis_url = os.getenv("REDIS_URL")
    try:
        if redis_url:
            logger.info(f"📡 Connecting to Redis at {_mask_redis_url(redis_url)}")
            client = redis.from_url(redis_url, **options)
        else:
            host = os.getenv("REDIS_HOST", "localhost")
            port = int(os.getenv("REDIS_PORT", "6379"))
            logger.info(f"📡 Connecting to Redis at {host}:{port}")
            client = redis.Redis(
                host=host,
                port=port,
                password=os.getenv("REDIS_PASSWORD"),
                ssl=os.getenv("REDIS_SSL", "false").lower() == "true",
                **options,
            )
        client.ping()
    except redis.RedisError as e:
        logger.error(f"❌ Failed to connect to Redis: {e}")
        raise

    redis_client = client
    logger.info("✅ Redis connected")
    return redis_client


def hit(key: str, limit: int, window_seconds: int, client: redis.Redis) -> tuple[bool, int, int]:
    """
    Count one request against `key`.

    Returns (allowed, count, seconds until the window resets).
    """
    pipe = client.pipeline()
    pipe.incr(key)
    pipe.ttl(key)
    count, ttl = pipe.execute()

    # First hit of a window (or a key that lost its expiry) starts the clock
    if count == 1 or ttl < 0:
        client.expire(key, window_seconds)
        ttl = window_seconds

    return count <= limit, count, ttl


def _client_ip(request: Request) -> str:
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


def create_rate_limiter(limit: int, window_seconds: int, key_prefix: str = "rate_limit"):
    """
    Build a FastAPI dependency allowing `limit` requests per IP per window.

        login_limiter = create_rate_limiter(limit=10, window_seconds=900, key_prefix="login")

        @router.post("/login")
        async def login(data: LoginRequest, _: None = Depends(login_limiter)):
            ...

    Answers 429 with Retry-After when the budget is spent, and 503 when Redis
    can't be reached (fail closed).
    """

    async def rate_limiter(request: Request):
        if not RATE_LIMIT_ENABLED:
            return

        key = f"{key_prefix}:{_client_ip(request)}"
        try:
            allowed, count, ttl = hit(key, limit, window_seconds, get_redis_client())
        except redis.RedisError as e:
            logger.error(f"❌ Rate limiting unavailable for {key}: {e}")
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail="Rate limiting service temporarily unavailable",
            ) from e

        if not allowed:
            logger.warning(f"🚫 Rate limit exceeded for {key} ({count}/{limit})")
            raise HTTPException(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                detail={
                    "message": f"Too many requests. Maximum {limit} per {window_seconds} seconds.",
                    "retry_after": ttl,
                },
                headers={"Retry-After": str(ttl)},
            )

    return rate_limiter
