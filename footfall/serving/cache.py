"""
Redis response cache for the read-heavy analytics endpoints.

The cache never decides an answer. When Redis is disabled, not yet
initialized or erroring, reads miss and writes are dropped, so every
request can still be served from the store.
"""

import json
from typing import Any, Optional

import structlog
from redis.asyncio import ConnectionPool, Redis
from redis.exceptions import RedisError

from footfall.config.settings import RedisSettings

logger = structlog.get_logger(__name__)

_client: Optional[Redis] = None


async def init_redis(settings: RedisSettings) -> Optional[Redis]:
    """Connect and ping; returns None when caching is switched off."""
    global _client

    if not settings.enabled:
        logger.info("Redis cache disabled")
        return None
    if _client is not None:
        return _client

    pool = ConnectionPool.from_url(
        settings.get_url(),
        max_connections=settings.max_connections,
        socket_timeout=settings.socket_timeout,
        decode_responses=settings.decode_responses,
    )
    client = Redis(connection_pool=pool)
    try:
        await client.ping()
    except (RedisError, OSError) as e:
        logger.error("Redis connection failed", url=settings.get_url(), error=str(e))
        await client.aclose(close_connection_pool=True)
        raise

    _client = client
    logger.info("Redis connection established", max_connections=settings.max_connections)
    return _client


async def close_redis() -> None:
    global _client

    if _client is None:
        return
    await _client.aclose(close_connection_pool=True)
    _client = None
    logger.info("Redis connection closed")


def get_redis() -> Optional[Redis]:
    return _client


class CacheManager:
    """
    JSON values under one key namespace.

    Example:
        cache = CacheManager("footfall")
        await cache.set("summary:rajasthan", payload, ttl=60)
        payload = await cache.get("summary:rajasthan")
    """

    def __init__(self, namespace: str, default_ttl: int = 60):
        self.namespace = namespace
        self.default_ttl = default_ttl

    def _key(self, key: str) -> str:
        return f"{self.namespace}:{key}"

    async def get(self, key: str) -> Optional[Any]:
        client = get_redis()
        if client is None:
            return None

        try:
            raw = await client.get(self._key(key))
        except RedisError as e:
            logger.warning("Cache read failed", key=self._key(key), error=str(e))
            return None

        if raw is None:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("Discarding undecodable cache entry", key=self._key(key))
            return None

    async def set(self, key: str, value: Any, ttl: Optional[int] = None) -> bool:
        client = get_redis()
        if client is None:
            return False

        try:
            payload = json.dumps(value, default=str)
        except (TypeError, ValueError) as e:
            logger.warning("Value not cacheable", key=self._key(key), error=str(e))
            return False

        try:
            await client.set(self._key(key), payload, ex=ttl or self.default_ttl)
        except RedisError as e:
            logger.warning("Cache write failed", key=self._key(key), error=str(e))
            return False
        return True

    async def invalidate_all(self) -> int:
        """Drop every key in the namespace; returns how many were removed."""
        client = get_redis()
        if client is None:
            return 0

        try:
            keys = [k async for k in client.scan_iter(match=f"{self.namespace}:*")]
            return await client.delete(*keys) if keys else 0
        except RedisError as e:
            logger.warning("Cache invalidation failed", namespace=self.namespace, error=str(e))
            return 0


footfall_cache = CacheManager("footfall")
dashboard_cache = CacheManager("dashboard")


async def invalidate_footfall_caches() -> None:
    """Drop every cached view derived from ticket data."""
    await footfall_cache.invalidate_all()
    await dashboard_cache.invalidate_all()
