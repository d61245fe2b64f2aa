"""Two-tier response cache with Redis and in-memory implementations.

The in-memory tier is consulted first; the optional Redis tier is a second
chance that survives restarts. Redis failures are logged and ignored, so an
outage degrades to memory-only caching instead of failing requests.

Usage:
    cache = await create_cache(settings)

    key = generate_cache_key("mangareader", "search", {"query": "one piece", "page": 1})
    value = await cache.get(key)
    if value is None:
        value = await fetch()
        await cache.set(key, value, ttl=600)
"""

import heapq
import time
from dataclasses import dataclass
from typing import Any, Callable, Mapping, Optional, Protocol

import structlog

from mangahub.config.settings import Settings

logger = structlog.get_logger(__name__)


def generate_cache_key(source: str, operation: str, params: Mapping[str, Any]) -> str:
    """Build a deterministic cache key.

    Parameters are sorted by name, so ``{"a": 1, "b": 2}`` and
    ``{"b": 2, "a": 1}`` produce the same key.

    Example:
        >>> generate_cache_key("mangareader", "search", {"query": "one piece", "page": 1})
        'mangareader:search:page:1|query:one piece'
    """
    params_string = "|".join(f"{name}:{params[name]}" for name in sorted(params))
    return f"{source}:{operation}:{params_string}"


class DurableStore(Protocol):
    """Protocol for the second cache tier."""

    async def get(self, key: str) -> Optional[Any]: ...

    async def set(self, key: str, value: Any, ttl: Optional[int] = None) -> None: ...

    async def delete(self, key: str) -> None: ...

    async def clear(self) -> int: ...

    async def disconnect(self) -> None: ...


@dataclass
class CacheEntry:
    """A cached value and the clock reading after which it is stale."""

    value: Any
    expires_at: float


class InMemoryCache:
    """
    Process-local TTL cache.

    WARNING: Does not persist across restarts and does not share
    state between multiple application instances.

    Expired entries are dropped lazily on read and swept on every write, so
    keys that are never read again do not accumulate.

    Args:
        default_ttl: Seconds a value lives when set() gets no TTL.
        clock: Monotonic time source; tests pass a fake one.
    """

    def __init__(self, default_ttl: int = 600, clock: Callable[[], float] = time.monotonic):
        self._default_ttl = default_ttl
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}
        # (expires_at, key) min-heap; may hold stale pairs for overwritten keys
        self._expiry: list[tuple[float, str]] = []
        self._hits = 0
        self._misses = 0

    def get(self, key: str) -> Optional[Any]:
        entry = self._entries.get(key)
        if entry is None:
            self._misses += 1
            return None

        if self._clock() >= entry.expires_at:
            del self._entries[key]
            self._misses += 1
            return None

        self._hits += 1
        return entry.value

    def set(self, key: str, value: Any, ttl: Optional[int] = None) -> None:
        now = self._clock()
        self._evict_expired(now)

        lifetime = ttl if ttl is not None else self._default_ttl
        expires_at = now + lifetime
        self._entries[key] = CacheEntry(value=value, expires_at=expires_at)
        heapq.heappush(self._expiry, (expires_at, key))

    def delete(self, key: str) -> None:
        self._entries.pop(key, None)

    def clear(self) -> None:
        self._entries.clear()
        self._expiry.clear()

    def purge_expired(self) -> int:
        """Drop stale entries eagerly. Returns how many were removed."""
        return self._evict_expired(self._clock())

    def _evict_expired(self, now: float) -> int:
        removed = 0
        while self._expiry and self._expiry[0][0] <= now:
            expires_at, key = heapq.heappop(self._expiry)
            entry = self._entries.get(key)
            # Skip pairs left behind by a later set() or delete() of the key
            if entry is not None and entry.expires_at == expires_at:
                del self._entries[key]
                removed += 1
        return removed

    def keys(self) -> list[str]:
        return list(self._entries.keys())

    def stats(self) -> dict[str, int]:
        return {
            "keys": len(self._entries),
            "hits": self._hits,
            "misses": self._misses,
        }


class TieredCache:
    """
    Read-through / write-through cache over an in-memory and a durable tier.

    - get(): memory first; on a memory miss the durable tier is asked and a hit
      is promoted back into memory.
    - set(): writes memory with the caller's TTL and the durable tier with its
      own (usually longer) TTL.

    Values are never mutated in place; a later set() replaces the whole value.
    """

    def __init__(
        self,
        memory: InMemoryCache,
        durable: Optional[DurableStore] = None,
        durable_ttl: int = 3600,
    ):
        self.memory = memory
        self.durable = durable
        self._durable_ttl = durable_ttl

    @property
    def has_durable_tier(self) -> bool:
        return self.durable is not None

    async def get(self, key: str) -> Optional[Any]:
        value = self.memory.get(key)
        if value is not None:
            logger.debug("cache_hit", key=key, tier="memory")
            return value

        if self.durable is None:
            return None

        try:
            value = await self.durable.get(key)
        except Exception as e:
            logger.warning("durable_cache_get_failed", key=key, error=str(e))
            return None

        if value is not None:
            self.memory.set(key, value)
            logger.debug("cache_hit", key=key, tier="durable")
        return value

    async def set(
        self,
        key: str,
        value: Any,
        ttl: Optional[int] = None,
        durable: bool = True,
    ) -> None:
        self.memory.set(key, value, ttl)

        if self.durable is None or not durable:
            return

        try:
            await self.durable.set(key, value, ttl=self._durable_ttl)
        except Exception as e:
            logger.warning("durable_cache_set_failed", key=key, error=str(e))

    async def delete(self, key: str) -> None:
        self.memory.delete(key)

        if self.durable is None:
            return

        try:
            await self.durable.delete(key)
        except Exception as e:
            logger.warning("durable_cache_delete_failed", key=key, error=str(e))

    async def clear(self) -> None:
        self.memory.clear()

        if self.durable is None:
            return

        try:
            await self.durable.clear()
        except Exception as e:
            logger.warning("durable_cache_clear_failed", error=str(e))

    def stats(self) -> dict[str, Any]:
        return {
            "memory": self.memory.stats(),
            "durable": {"enabled": self.durable is not None},
        }

    async def close(self) -> None:
        if self.durable is None:
            return
        try:
            await self.durable.disconnect()
        except Exception as e:
            logger.warning("durable_cache_disconnect_failed", error=str(e))


async def create_cache(settings: Settings) -> TieredCache:
    """
    Build the cache for one container.

    Attempts to attach Redis if configured, falls back to memory-only.

    Args:
        settings: Application settings

    Returns:
        TieredCache with or without a durable tier
    """
    memory = InMemoryCache(default_ttl=settings.cache_ttl_seconds)

    if settings.redis_url:
        try:
            from mangahub.core.redis_cache import RedisCache

            redis_cache = RedisCache(
                redis_url=settings.redis_url,
                key_prefix=settings.redis_key_prefix,
                default_ttl=settings.redis_cache_ttl_seconds,
            )
            await redis_cache.connect()
            logger.info("cache_initialized", backend="memory+redis")
            return TieredCache(memory, redis_cache, durable_ttl=settings.redis_cache_ttl_seconds)
        except Exception as e:
            logger.warning(
                "redis_cache_failed_fallback_to_memory",
                error=str(e),
            )

    logger.info("cache_initialized", backend="memory")
    return TieredCache(memory, durable_ttl=settings.redis_cache_ttl_seconds)
