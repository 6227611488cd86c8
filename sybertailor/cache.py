"""
Redis cache for upstream lookups (exchange-rate tables)

Every failure degrades to a miss: the caller fetches from upstream instead.
"""
import json
import logging
from typing import Any, Optional

import redis

from .rate_limiter import get_redis_client

logger = logging.getLogger(__name__)

EXCHANGE_RATES_PREFIX = "exchange_rates"


def _client() -> Optional[redis.Redis]:
    try:
        return get_redis_client()
    except redis.RedisError as e:
        logger.warning(f"⚠️ Redis cache unavailable: {e}")
        return None


def cache_get(key: str) -> Optional[Any]:
    client = _client()
    if client is None:
        return None
    try:
        raw = client.get(key)
    except redis.RedisError as e:
        logger.error(f"❌ Cache get error for {key}: {e}")
        return None
    if raw is None:
        logger.debug(f"Cache miss: {key}")
        return None
    try:
        return json.loads(raw)
    except ValueError:
        logger.warning(f"⚠️ Discarding unreadable cache entry {key}")
        return None


def cache_set(key: str, value: Any, ttl: int) -> bool:
    client = _client()
    if client is None:
        return False
    try:
        client.setex(key, ttl, json.dumps(value))
        return True
    except redis.RedisError as e:
        logger.error(f"❌ Cache set error for {key}: {e}")
        return False


def get_exchange_rates_cached(base: str) -> Optional[dict]:
    """Cached rate table for a base currency"""
    return cache_get(f"{EXCHANGE_RATES_PREFIX}:{base.upper()}")


def set_exchange_rates_cache(base: str, rates: dict, ttl: int = 3600) -> bool:
    return cache_set(f"{EXCHANGE_RATES_PREFIX}:{base.upper()}", rates, ttl)
