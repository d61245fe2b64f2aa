"""Redis-backed durable cache tier.

Survives process restarts and is shared between app instances. Values are
stored as JSON strings with a Redis-side expiry.

Usage:
    store = RedisCache(
        redis_url="redis://localhost:6379",
        key_prefix="mangahub:cache",
    )
    await store.connect()

    await store.set("mangareader:info:id:one-piece-3", {...}, ttl=3600)
    value = await store.get("mangareader:info:id:one-piece-3")
"""

import json
from typing import Any, Optional

import redis.asyncio as redis
import structlog

logger = structlog.get_logger(__name__)


class RedisCache:
    """
    Durable key-value tier on top of Redis strings.

    Args:
        redis_url: Redis connection URL
        key_prefix: Prefix for Redis keys (default: "mangahub:cache")
        default_ttl: Expiry in seconds when set() is called without one
    """

    def __init__(
        self,
        redis_url: str,
        key_prefix: str = "mangahub:cache",
        default_ttl: int = 3600,
    ):
        self._redis_url = redis_url
        self._key_prefix = key_prefix
        self._default_ttl = default_ttl
        self._client: Optional[redis.Redis] = None
        self._connected = False

    async def connect(self) -> None:
        """Establish Redis connection."""
        if self._connected:
            return

        try:
            self._client = redis.from_url(
                self._redis_url,
                encoding="utf-8",
                decode_responses=True,
            )
            await self._client.ping()
            self._connected = True
            logger.info("redis_cache_connected", url=self._redis_url_masked)
        except Exception as e:
            logger.error("redis_cache_connection_failed", error=str(e))
            raise

    async def disconnect(self) -> None:
        """Close Redis connection."""
        if self._client:
            await self._client.aclose()
            self._connected = False
            logger.info("redis_cache_disconnected")

    @property
    def is_connected(self) -> bool:
        return self._connected

    @property
    def _redis_url_masked(self) -> str:
        """Return masked Redis URL for logging (hide password)."""
        if "@" in self._redis_url:
            parts = self._redis_url.split("@")
            return f"{parts[0].rsplit(':', 1)[0]}:****@{parts[-1]}"
        return self._redis_url

    def _make_key(self, key: str) -> str:
        return f"{self._key_prefix}:{key}"

    def _require_client(self) -> redis.Redis:
        if not self._connected or self._client is None:
            raise RuntimeError("Redis cache not connected. Call connect() first.")
        return self._client

    async def get(self, key: str) -> Optional[Any]:
        """Return the decoded value, or None on a miss."""
        client = self._require_client()
        raw = await client.get(self._make_key(key))
        if raw is None:
            return None
        return json.loads(raw)

    async def set(self, key: str, value: Any, ttl: Optional[int] = None) -> None:
        """Store a JSON-serializable value with an expiry."""
        client = self._require_client()
        await client.set(
            self._make_key(key),
            json.dumps(value, ensure_ascii=False),
            ex=ttl or self._default_ttl,
        )

    async def delete(self, key: str) -> None:
        client = self._require_client()
        await client.delete(self._make_key(key))

    async def clear(self) -> int:
        """Delete every key under this cache's prefix. Returns count deleted."""
        client = self._require_client()

        keys = []
        async for key in client.scan_iter(match=f"{self._key_prefix}:*"):
            keys.append(key)

        if keys:
            count = await client.delete(*keys)
            logger.info("redis_cache_cleared", count=count)
            return count
        return 0
