"""
Redis caching service for public event listings.

CACHING STRATEGY
================

What we cache:
  - Public event listing responses (JSON-serialized, camelCase wire form)
  - Cache key pattern: "events:public:{filter params}"

Invalidation strategy:
  - On any admin/owner edit (publish, reject, field changes)
  - On request creation, cancellation and allocation batches, since
    confirmedRequests and onlyAvailable depend on them
  - TTL-based expiry as safety net; view counters are allowed to lag by at
    most REDIS_CACHE_TTL seconds

  All listing keys start with "events:public:" so invalidation is a SCAN
  over that prefix.

Single-event reads are never cached. When Redis is disabled or unreachable
every function is a no-op and reads go straight to the database.
"""

import json
from typing import Optional

import redis.asyncio as redis
from redis.exceptions import RedisError

from app.core.config import get_settings
from app.core.logging import get_logger
from app.core.metrics import record_cache_operation
from app.schemas.event import PublicEventFilter

logger = get_logger(__name__)
settings = get_settings()

KEY_PREFIX = "events:public:"

_redis_client: Optional[redis.Redis] = None


async def get_redis() -> Optional[redis.Redis]:
    """Get or create Redis connection. Returns None if Redis is disabled."""
    global _redis_client

    if not settings.REDIS_ENABLED:
        return None

    if _redis_client is None:
        client = redis.from_url(
            settings.REDIS_URL,
            encoding="utf-8",
            decode_responses=True,
            socket_connect_timeout=5,
            socket_timeout=5,
            retry_on_timeout=True,
        )
        try:
            await client.ping()
        except (RedisError, OSError) as e:
            logger.error("redis_connection_failed", error=str(e))
            return None
        _redis_client = client
        logger.info("redis_connected", url=settings.REDIS_URL)

    return _redis_client


async def close_redis() -> None:
    """Close Redis connection on shutdown."""
    global _redis_client
    if _redis_client:
        await _redis_client.aclose()
        _redis_client = None


def make_listing_key(filters: PublicEventFilter) -> str:
    categories = ",".join(str(c) for c in sorted(filters.categories or []))
    sort = filters.sort.value if filters.sort else ""
    return (
        f"{KEY_PREFIX}text={filters.text or ''}&categories={categories}"
        f"&paid={filters.paid}&start={filters.range_start}&end={filters.range_end}"
        f"&available={filters.only_available}&sort={sort}"
        f"&from={filters.offset}&size={filters.size}"
    )


async def get_cached_listing(filters: PublicEventFilter) -> Optional[list]:
    """Retrieve a cached listing response."""
    client = await get_redis()
    if not client:
        return None

    key = make_listing_key(filters)
    try:
        data = await client.get(key)
    except RedisError as e:
        logger.error("cache_get_error", key=key, error=str(e))
        return None

    record_cache_operation("get", hit=data is not None)
    if data is None:
        logger.debug("cache_miss", key=key)
        return None
    logger.debug("cache_hit", key=key)
    return json.loads(data)


async def set_cached_listing(filters: PublicEventFilter, data: list) -> None:
    """Cache a listing response with TTL."""
    client = await get_redis()
    if not client:
        return

    key = make_listing_key(filters)
    try:
        await client.setex(key, settings.REDIS_CACHE_TTL, json.dumps(data))
    except RedisError as e:
        logger.error("cache_set_error", key=key, error=str(e))
        return
    logger.debug("cache_set", key=key, ttl=settings.REDIS_CACHE_TTL)


async def invalidate_listing_cache() -> None:
    """Invalidate all cached public listings."""
    client = await get_redis()
    if not client:
        return

    try:
        deleted = 0
        async for key in client.scan_iter(match=f"{KEY_PREFIX}*", count=100):
            await client.delete(key)
            deleted += 1
    except RedisError as e:
        logger.error("cache_invalidation_error", error=str(e))
        return
    logger.info("cache_invalidated", keys_deleted=deleted)


async def get_cache_stats() -> dict:
    """Get Redis cache statistics for the health endpoint."""
    client = await get_redis()
    if not client:
        return {"status": "disabled"}

    try:
        info = await client.info("stats")
    except RedisError as e:
        return {"status": "error", "error": str(e)}

    hits = info.get("keyspace_hits", 0)
    misses = info.get("keyspace_misses", 0)
    return {
        "status": "connected",
        "hits": hits,
        "misses": misses,
        "hit_rate": round(hits / max(hits + misses, 1) * 100, 2),
    }
