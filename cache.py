"""
Redis cache helpers: key builders and async get/set with TTL.
Redis is optional (REDIS_URL empty = no cache).
"""
import json
import logging
from typing import Any, Optional

logger = logging.getLogger(__name__)


def key_route_aqi(
    origin_lat: float,
    origin_lon: float,
    dest_lat: float,
    dest_lon: float,
    alternatives: bool,
) -> str:
    """Cache key for a scored route batch."""
    alt = "alt" if alternatives else "single"
    return f"route_aqi:{origin_lat}:{origin_lon}:{dest_lat}:{dest_lon}:{alt}"


def key_heatmap(
    ne_lat: float,
    ne_lon: float,
    sw_lat: float,
    sw_lon: float,
    grid_size: int,
    time_filter: Optional[Any] = None,
) -> str:
    """Cache key for a heatmap grid; time_filter is anything with hour/day/month, or None."""
    t = "now" if time_filter is None else f"{time_filter.hour}-{time_filter.day}-{time_filter.month}"
    return f"heatmap:{ne_lat}:{ne_lon}:{sw_lat}:{sw_lon}:{grid_size}:{t}"


async def cache_get(redis: Any, key: str) -> Optional[Any]:
    """Return deserialized value if key exists, else None."""
    if redis is None:
        return None
    try:
        raw = await redis.get(key)
        if raw is None:
            logger.debug("Cache miss: %s", key)
            return None
        return json.loads(raw)
    except Exception as e:
        logger.warning("Cache get failed for %s: %s", key, e)
        return None


async def cache_set(redis: Any, key: str, value: Any, ttl: int) -> None:
    """Serialize value and set with TTL."""
    if redis is None:
        return
    try:
        await redis.setex(key, ttl, json.dumps(value, default=str))
    except Exception as e:
        logger.warning("Cache set failed for %s: %s", key, e)


async def get_or_compute(redis: Any, key: str, ttl: int, compute_fn: Any) -> Any:
    """Return cached value for key, or await compute_fn(), cache and return it."""
    cached = await cache_get(redis, key)
    if cached is not None:
        return cached
    data = await compute_fn()
    await cache_set(redis, key, data, ttl)
    return data
