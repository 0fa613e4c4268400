"""
Redis caching for catalog reads.

CACHING STRATEGY
================

What we cache:
  - The movie list: "movies:list"
  - Upcoming shows per movie: "shows:by_movie:{movie_id}"

Why:
  - Browsing movies and their showtimes is the most frequent read
  - The data changes only when an admin edits the catalog or the schedule

Invalidation strategy:
  - Movie create/update/delete: delete "movies:list" and the movie's show list
  - Show create/update/delete: delete every "shows:by_movie:*" key
  - TTL-based expiry as safety net (REDIS_CACHE_TTL)

  Show listings are keyed by movie but a reschedule can move a show between
  movies, so show writes drop the whole prefix with SCAN.

What is NOT cached:
  - Seat availability and anything read by lock/confirm. Those must see the
    database as it is; a stale seat map means users chase seats that are gone.

Redis is optional. With REDIS_ENABLED=false, or when Redis is unreachable,
every read is a miss and every write is a no-op.
"""

import json
from typing import Any, Optional

import redis.asyncio as redis
from cinema.core.config import get_settings
from cinema.core.logging import get_logger
from cinema.core.metrics import record_cache_operation

logger = get_logger(__name__)
settings = get_settings()

MOVIE_LIST_KEY = "movies:list"
SHOWS_BY_MOVIE_PREFIX = "shows:by_movie:"

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
            logger.error("redis_connection_failed", error=str(e))
            _redis_client = None
            return None

    return _redis_client


async def close_redis() -> None:
    """Close Redis connection on shutdown."""
    global _redis_client
    if _redis_client:
        await _redis_client.close()
        _redis_client = None


def shows_by_movie_key(movie_id: int) -> str:
    return f"{SHOWS_BY_MOVIE_PREFIX}{movie_id}"


async def get_cached(key: str) -> Optional[Any]:
    """Return the decoded JSON stored under key, or None on miss."""
    client = await get_redis()
    if not client:
        return None

    try:
        data = await client.get(key)
        if data:
            record_cache_operation("get", hit=True)
            logger.debug("cache_hit", key=key)
            return json.loads(data)
        record_cache_operation("get", hit=False)
        logger.debug("cache_miss", key=key)
    except Exception as e:
        logger.error("cache_get_error", key=key, error=str(e))

    return None


async def set_cached(key: str, data: Any) -> None:
    """Store JSON-serializable data under key with the configured TTL."""
    client = await get_redis()
    if not client:
        return

    try:
        await client.setex(key, settings.REDIS_CACHE_TTL, json.dumps(data, default=str))
        logger.debug("cache_set", key=key, ttl=settings.REDIS_CACHE_TTL)
    except Exception as e:
        logger.error("cache_set_error", key=key, error=str(e))


async def invalidate(*keys: str) -> None:
    client = await get_redis()
    if not client or not keys:
        return

    try:
        await client.delete(*keys)
        logger.info("cache_invalidated", keys=list(keys))
    except Exception as e:
        logger.error("cache_invalidation_error", keys=list(keys), error=str(e))


async def invalidate_prefix(prefix: str) -> None:
    """Delete every key starting with prefix (SCAN, not KEYS)."""
    client = await get_redis()
    if not client:
        return

    try:
        deleted = 0
        async for key in client.scan_iter(match=f"{prefix}*", count=100):
            await client.delete(key)
            deleted += 1
        logger.info("cache_invalidated", prefix=prefix, keys_deleted=deleted)
    except Exception as e:
        logger.error("cache_invalidation_error", prefix=prefix, error=str(e))


async def invalidate_movie(movie_id: int) -> None:
    await invalidate(MOVIE_LIST_KEY, shows_by_movie_key(movie_id))


async def invalidate_show_listings() -> None:
    await invalidate_prefix(SHOWS_BY_MOVIE_PREFIX)


async def get_cache_stats() -> dict:
    """Get Redis cache statistics for monitoring."""
    client = await get_redis()
    if not client:
        return {"status": "disabled"}

    try:
        info = await client.info("stats")
        keyspace = await client.info("keyspace")
        hits = info.get("keyspace_hits", 0)
        misses = info.get("keyspace_misses", 0)
        return {
            "status": "connected",
            "hits": hits,
            "misses": misses,
            "hit_rate": round(hits / max(hits + misses, 1) * 100, 2),
            "keys": keyspace,
        }
    except Exception as e:
        return {"status": "error", "error": str(e)}
