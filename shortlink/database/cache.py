"""Redis cache layer for short links."""

import json
import logging
from datetime import datetime
from typing import Optional, Dict, Any

import redis.asyncio as redis
from redis.exceptions import RedisError

from .models import ShortLink
from ..common.timeutil import ensure_utc, utc_now


class RedisCache:
    """Redis cache for link lookups on the redirect path.

    Failures never propagate: the cache logs them and behaves as a miss, so
    the store stays the source of truth.
    """

    def __init__(
        self,
        redis_url: Optional[str] = None,
        ttl_seconds: int = 3600,
        logger: Optional[logging.Logger] = None,
    ):
        """Initialize Redis cache.

        Args:
            redis_url: Redis connection URL (e.g., redis://localhost:6379/0)
            ttl_seconds: Default TTL for cached items
            logger: Optional logger instance
        """
        self.redis_url = redis_url
        self.ttl_seconds = ttl_seconds
        self.logger = logger or logging.getLogger(__name__)
        self.enabled = redis_url is not None
        self.client: Optional[redis.Redis] = None

        if redis_url:
            self.logger.info(f"Redis cache enabled with TTL={ttl_seconds}s")

    async def connect(self) -> None:
        """Connect to Redis."""
        if not self.enabled:
            return

        try:
            self.client = redis.from_url(
                self.redis_url,
                encoding="utf-8",
                decode_responses=True,
            )
            await self.client.ping()
            self.logger.info("Connected to Redis")
        except (RedisError, OSError) as e:
            self.logger.error(f"Failed to connect to Redis: {e}")
            self.enabled = False

    async def get(self, key: str) -> Optional[str]:
        """Get value from cache.

        Args:
            key: Cache key

        Returns:
            Cached value or None
        """
        if not self.enabled or not self.client:
            return None

        try:
            return await self.client.get(key)
        except (RedisError, OSError) as e:
            self.logger.error(f"Cache get error: {e}")
            return None

    async def set(
        self,
        key: str,
        value: str,
        ttl: Optional[int] = None,
    ) -> bool:
        """Set value in cache.

        Args:
            key: Cache key
            value: Value to cache
            ttl: Optional TTL override (seconds)

        Returns:
            True if successful
        """
        if not self.enabled or not self.client:
            return False

        try:
            ttl = ttl or self.ttl_seconds
            await self.client.setex(key, ttl, value)
            return True
        except (RedisError, OSError) as e:
            self.logger.error(f"Cache set error: {e}")
            return False

    async def delete(self, key: str) -> bool:
        """Delete key from cache.

        Args:
            key: Cache key

        Returns:
            True if deleted
        """
        if not self.enabled or not self.client:
            return False

        try:
            result = await self.client.delete(key)
            return result > 0
        except (RedisError, OSError) as e:
            self.logger.error(f"Cache delete error: {e}")
            return False

    async def get_link(self, code: str) -> Optional[Dict[str, Any]]:
        """Get the cached target of a short code.

        Returns:
            Dictionary with original_url and expires_at (aware datetime or None)
        """
        raw = await self.get(self.get_cache_key(code))
        if raw is None:
            return None

        try:
            data = json.loads(raw)
            expires_at = data.get("expires_at")
            return {
                "original_url": data["original_url"],
                "expires_at": ensure_utc(datetime.fromisoformat(expires_at)) if expires_at else None,
            }
        except (ValueError, KeyError, TypeError) as e:
            self.logger.warning(f"Discarding malformed cache entry for {code}: {e}")
            await self.delete(self.get_cache_key(code))
            return None

    async def set_link(self, link: ShortLink) -> bool:
        """Cache the target of a link.

        The entry never outlives the link: its TTL is capped at the time left
        before expiry. Already-expired links are not cached.
        """
        ttl = self.ttl_seconds
        if link.expires_at is not None:
            remaining = int((link.expires_at - utc_now()).total_seconds())
            if remaining <= 0:
                return False
            ttl = min(ttl, remaining)

        value = json.dumps({
            "original_url": link.original_url,
            "expires_at": link.expires_at.isoformat() if link.expires_at else None,
        })
        return await self.set(self.get_cache_key(link.code), value, ttl=ttl)

    async def delete_link(self, code: str) -> bool:
        return await self.delete(self.get_cache_key(code))

    async def ping(self) -> bool:
        """Check whether Redis answers."""
        if not self.enabled or not self.client:
            return False

        try:
            return bool(await self.client.ping())
        except (RedisError, OSError) as e:
            self.logger.error(f"Cache ping error: {e}")
            return False

    async def close(self) -> None:
        """Close Redis connection."""
        if self.client:
            await self.client.aclose()
            self.logger.info("Redis connection closed")

    def get_cache_key(self, code: str) -> str:
        """Generate cache key for short code.

        Args:
            code: The short code

        Returns:
            Cache key
        """
        return f"shortlink:link:{code}"
