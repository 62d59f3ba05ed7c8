"""
Redis caching for the user's booking view.

CACHING STRATEGY
================

What we cache:
  - The GET /booking payload (booking plus its room), JSON-serialized
  - Cache key pattern: "booking:user:{user_id}:v{version}"
  - The version lives in "booking:user:{user_id}:version" (no TTL)

Why:
  - Attendees poll their booking far more often than they change it
  - Rooms are read-only from this service, so the attached room never goes stale

Invalidation strategy:
  - Only the owner can create or re-room a booking, so a successful
    POST/PUT bumps exactly that user's version and deletes the old payload
  - A GET resolves the versioned key before reading the database, so a GET
    racing a PUT can only write its stale payload under the old version
  - TTL-based expiry as safety net

Capacity decisions never read from the cache: occupancy is always counted
in the database inside the booking transaction.

Redis is optional. When disabled or unreachable every call is a no-op and
the database answers.
"""

import json
from typing import Optional

import redis.asyncio as redis
from hotel_booking.core.config import get_settings
from hotel_booking.core.logging import get_logger
from hotel_booking.core.metrics import record_cache_operation, redis_connection_errors

logger = get_logger(__name__)
settings = get_settings()

_redis_client: Optional[redis.Redis] = None


async def get_redis() -> Optional[redis.Redis]:
    """Get or create Redis connection. Returns None if Redis is disabled."""
    global _redis_client

    if not settings.REDIS_ENABLED:
        return None

    if _redis_client is None:
        try:
            _redis_client = redis.from_url(
                settings.REDIS_URL,
                encoding="utf-8",
                decode_responses=True,
                socket_connect_timeout=5,
                socket_timeout=5,
                retry_on_timeout=True,
            )
            await _redis_client.ping()
            logger.info("redis_connected", url=settings.REDIS_URL)
        except Exception as e:
            redis_connection_errors.inc()
            logger.error("redis_connection_failed", error=str(e))
            _redis_client = None
            return None

    return _redis_client


async def close_redis() -> None:
    """Close Redis connection on shutdown."""
    global _redis_client
    if _redis_client:
        await _redis_client.aclose()
        _redis_client = None


def _make_version_key(user_id: int) -> str:
    return f"booking:user:{user_id}:version"


def _make_booking_key(user_id: int, version: int) -> str:
    return f"booking:user:{user_id}:v{version}"


async def current_booking_key(user_id: int) -> Optional[str]:
    """
    Key for the user's booking payload at the current cache version.

    Read it before loading the booking from the database and write the
    result back under the same key. A create or room change bumps the
    version, so a slower GET that loaded the old row ends up writing to a
    key nobody reads any more.
    """
    client = await get_redis()
    if not client:
        return None

    try:
        version = int(await client.get(_make_version_key(user_id)) or 0)
    except Exception as e:
        logger.error("cache_version_error", user_id=user_id, error=str(e))
        return None
    return _make_booking_key(user_id, version)


async def get_cached_booking(key: Optional[str]) -> Optional[dict]:
    """Retrieve a cached booking payload."""
    client = await get_redis()
    if not client or key is None:
        return None

    try:
        data = await client.get(key)
        record_cache_operation("get", hit=data is not None)
        if data:
            logger.debug("cache_hit", key=key)
            return json.loads(data)
        logger.debug("cache_miss", key=key)
    except Exception as e:
        logger.error("cache_get_error", key=key, error=str(e))

    return None


async def set_cached_booking(key: Optional[str], data: dict) -> None:
    """Cache a booking payload with TTL."""
    client = await get_redis()
    if not client or key is None:
        return

    try:
        await client.setex(key, settings.REDIS_CACHE_TTL, json.dumps(data, default=str))
        logger.debug("cache_set", key=key, ttl=settings.REDIS_CACHE_TTL)
    except Exception as e:
        logger.error("cache_set_error", key=key, error=str(e))


async def invalidate_booking_cache(user_id: int) -> None:
    """Bump the user's cache version after a create or room change and drop the old payload."""
    client = await get_redis()
    if not client:
        return

    try:
        version = await client.incr(_make_version_key(user_id))
        stale_key = _make_booking_key(user_id, version - 1)
        deleted = await client.delete(stale_key)
        logger.info("cache_invalidated", key=stale_key, version=version, keys_deleted=deleted)
    except Exception as e:
        logger.error("cache_invalidation_error", user_id=user_id, error=str(e))


async def get_cache_stats() -> dict:
    """Get Redis cache statistics for monitoring."""
    client = await get_redis()
    if not client:
        return {"status": "disabled"}

    try:
        info = await client.info("stats")
        hits = info.get("keyspace_hits", 0)
        misses = info.get("keyspace_misses", 0)
        return {
            "status": "connected",
            "hits": hits,
            "misses": misses,
            "hit_rate": round(hits / max(hits + misses, 1) * 100, 2),
        }
    except Exception as e:
        return {"status": "error", "error": str(e)}
