"""
Result cache for idempotent reads (history pages, stats, test detail, filters).

Backed by Redis when REDIS_URL is set. Without Redis (or when it is down)
every lookup is a miss and reads go straight to the database. Entries are
plain JSON snapshots; staleness up to the TTL is accepted and writes never
invalidate.
"""

from __future__ import annotations

import json
import logging
import time
from typing import Any, Callable, Optional, TypeVar

import redis

import config

logger = logging.getLogger(__name__)

T = TypeVar("T")

_redis_client: Optional[object] = None
# monotonic time before which a failed connection is not retried
_redis_retry_at: float = 0.0


def get_redis_client():
    """Redis client, or None when not configured / unreachable right now."""
    global _redis_client, _redis_retry_at

    if _redis_client is not None:
        return _redis_client

    if not config.REDIS_URL:
        logger.debug("REDIS_URL not set, result cache disabled")
        return None

    if time.monotonic() < _redis_retry_at:
        return None

    try:
        client = redis.Redis.from_url(
            config.REDIS_URL,
            decode_responses=True,
            socket_timeout=5,
            socket_connect_timeout=5,
        )
        client.ping()
    except redis.RedisError as e:
        logger.warning(
            "Redis connection failed, result cache disabled for %ss: %s",
            config.REDIS_RETRY_SECONDS,
            e,
        )
        _redis_retry_at = time.monotonic() + config.REDIS_RETRY_SECONDS
        return None

    _redis_client = client
    _redis_retry_at = 0.0
    logger.info("Result cache connected to Redis")
    return client


def reset_redis_state() -> None:
    global _redis_client, _redis_retry_at
    _redis_client = None
    _redis_retry_at = 0.0


class ResultCache:
    def __init__(self, client=None, prefix: str = config.CACHE_PREFIX):
        self.client = client
        self.prefix = prefix

    @property
    def enabled(self) -> bool:
        return self.client is not None

    def _key(self, key: str) -> str:
        return f"{self.prefix}:{key}"

    def get(self, key: str) -> Optional[Any]:
        if not self.enabled:
            return None
        try:
            raw = self.client.get(self._key(key))
        except redis.RedisError as e:
            logger.warning("cache get failed for %s: %s", key, e)
            return None
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except (TypeError, ValueError):
            logger.warning("dropping undecodable cache entry %s", key)
            return None

    def set(self, key: str, value: Any, ttl: int) -> bool:
        if not self.enabled:
            return False
        try:
            self.client.set(self._key(key), json.dumps(value, default=str), ex=ttl)
            return True
        except redis.RedisError as e:
            logger.warning("cache set failed for %s: %s", key, e)
            return False

    def clear(self) -> int:
        """Drop every entry under this cache's prefix. Operational escape hatch."""
        if not self.enabled:
            return 0
        try:
            keys = list(self.client.scan_iter(match=f"{self.prefix}:*"))
            if keys:
                self.client.delete(*keys)
        except redis.RedisError as e:
            logger.warning("cache clear failed: %s", e)
            return 0
        logger.info("cleared %d cache entries", len(keys))
        return len(keys)


def with_cache(
    cache: ResultCache,
    key: str,
    ttl: int,
    compute: Callable[[], T],
    cache_if: Optional[Callable[[T], bool]] = None,
) -> T:
    hit = cache.get(key)
    if hit is not None:
        return hit

    value = compute()
    if cache_if is None or cache_if(value):
        cache.set(key, value, ttl)
    return value


_default_cache: Optional[ResultCache] = None


def get_result_cache() -> ResultCache:
    global _default_cache
    if _default_cache is None:
        _default_cache = ResultCache(get_redis_client())
    elif not _default_cache.enabled:
        # Redis may have come back since the last attempt
        _default_cache.client = get_redis_client()
    return _default_cache
