# redis_store.py
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import redis

from config import REDIS_URL

logger = logging.getLogger("equilisolve.redis_store")

_redis_client = None


def get_redis():
    """
    Lazy Redis client creation.
    If REDIS_URL is not set, returns None (feature disabled).
    """
    global _redis_client
    if not REDIS_URL:
        return None

    if _redis_client is not None:
        return _redis_client

    try:
        _redis_client = redis.Redis.from_url(REDIS_URL, decode_responses=True)
        return _redis_client
    except (redis.RedisError, ValueError) as e:
        logger.warning("Redis init failed (disabled): %s", e)
        _redis_client = None
        return None


def redis_health() -> Dict[str, Any]:
    r = get_redis()
    if not r:
        return {"enabled": False, "connected": False}

    try:
        pong = r.ping()
        return {"enabled": True, "connected": bool(pong)}
    except redis.RedisError as e:
        return {"enabled": True, "connected": False, "reason": str(e)}


def incr_with_ttl(key: str, ttl_seconds: int) -> Optional[int]:
    """
    Counter with TTL:
    - INCR key
    - if the key has no expiry yet, EXPIRE ttl_seconds
    Returns current count or None if Redis disabled/fails.
    """
    r = get_redis()
    if not r:
        return None
    try:
        pipe = r.pipeline()
        pipe.incr(key)
        pipe.ttl(key)
        count, current_ttl = pipe.execute()

        if current_ttl is None or current_ttl < 0:
            r.expire(key, int(ttl_seconds))

        return int(count)
    except redis.RedisError as e:
        logger.warning("Redis incr_with_ttl failed: %s", e)
        return None
