"""
Redis client for rate limiting and short-lived counters
"""
import redis
from typing import Optional
import structlog
from veriboard.core.config import settings

logger = structlog.get_logger()

# Create Redis connection pool
redis_client = redis.from_url(
    settings.REDIS_URL,
    encoding="utf-8",
    decode_responses=True,
    socket_connect_timeout=5,
    socket_timeout=5,
    retry_on_timeout=True,
    health_check_interval=30,
)


def get_cache_key(prefix: str, *args) -> str:
    """Generate cache key from prefix and arguments"""
    return f"{prefix}:{':'.join(str(arg) for arg in args)}"


def increment_counter(key: str, window_seconds: int) -> Optional[int]:
    """
    Increment a counter that expires window_seconds after its first hit.
    Returns the new value, or None when Redis is unavailable.
    """
    try:
        count = redis_client.incr(key)
        if count == 1:
            redis_client.expire(key, window_seconds)
        return int(count)
    except Exception as e:
        logger.error("counter_increment_error", key=key, error=str(e))
        return None


def get_ttl(key: str) -> Optional[int]:
    """Seconds until key expires"""
    try:
        ttl = redis_client.ttl(key)
        return ttl if ttl and ttl > 0 else None
    except Exception as e:
        logger.error("counter_ttl_error", key=key, error=str(e))
        return None


def delete_cache(key: str) -> bool:
    """Delete key from cache"""
    try:
        return bool(redis_client.delete(key))
    except Exception as e:
        logger.error("cache_delete_error", key=key, error=str(e))
        return False
