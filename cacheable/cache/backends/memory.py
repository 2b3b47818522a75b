"""
Cacheable - Memory Cache Backend

In-memory cache implementation with LRU eviction, TTL and tag support.
Safe for concurrent coroutines and suitable for single-process deployments.
"""

import asyncio
import logging
import time
from collections import OrderedDict
from typing import Any

from ...errors import CacheOperationError, ErrorCode
from ..interface import CacheInterface

logger = logging.getLogger(__name__)


class MemoryCacheBackend(CacheInterface):
    """
    In-memory cache backend with LRU eviction.

    Features:
    - LRU eviction when max_size is reached
    - Per-key TTL support
    - Native tags (can be switched off to behave like a tagless store)
    - O(1) get/set/delete operations
    """

    def __init__(
        self,
        max_size: int = 1000,
        default_ttl: int = 3600,
        namespace: str = "cacheable",
        enable_tags: bool = True,
    ):
        """
        Initialize memory cache backend.

        Args:
            max_size: Maximum number of entries (LRU eviction when exceeded)
            default_ttl: Default TTL in seconds (0 = no expiry)
            namespace: Cache key namespace/prefix
            enable_tags: Whether tag operations are available
        """
        self.max_size = max_size
        self.default_ttl = default_ttl
        self.namespace = namespace
        self.enable_tags = enable_tags

        # Cache storage: key -> (value, expiry_time)
        self._cache: OrderedDict[str, tuple[Any, float | None]] = OrderedDict()

        # Tag membership in both directions so removals stay O(tags)
        self._tag_keys: dict[str, set[str]] = {}
        self._key_tags: dict[str, set[str]] = {}

        # Stats
        self._hits = 0
        self._misses = 0
        self._sets = 0
        self._deletes = 0
        self._evictions = 0

        self._lock = asyncio.Lock()

    @property
    def supports_tags(self) -> bool:
        return self.enable_tags

    def _make_key(self, key: str) -> str:
        """Create namespaced cache key."""
        return f"{self.namespace}:{key}"

    def _is_expired(self, expiry: float | None) -> bool:
        """Check if entry is expired."""
        if expiry is None:
            return False
        return time.time() > expiry

    def _remove(self, cache_key: str) -> None:
        """Drop an entry and its tag memberships. Caller holds the lock."""
        self._cache.pop(cache_key, None)
        for tag in self._key_tags.pop(cache_key, set()):
            members = self._tag_keys.get(tag)
            if members is not None:
                members.discard(cache_key)
                if not members:
                    del self._tag_keys[tag]

    async def get(self, key: str) -> Any | None:
        """Retrieve value from cache."""
        if not key:
            logger.warning("Attempted to get cache value with empty key")
            return None

        async with self._lock:
            cache_key = self._make_key(key)

            if cache_key not in self._cache:
                self._misses += 1
                return None

            value, expiry = self._cache[cache_key]

            if self._is_expired(expiry):
                self._remove(cache_key)
                self._misses += 1
                return None

            # Mark as recently used
            self._cache.move_to_end(cache_key)
            self._hits += 1

            return value

    async def set(
        self,
        key: str,
        value: Any,
        ttl: int | None = None,
        tags: list[str] | None = None,
    ) -> bool:
        """Store value in cache."""
        if not key:
            logger.warning("Attempted to set cache value with empty key")
            return False

        if tags and not self.enable_tags:
            raise CacheOperationError(
                "Memory cache backend was created without tag support",
                details={"key": key, "tags": tags, "error_code": ErrorCode.GROUPING_UNSUPPORTED},
            )

        async with self._lock:
            cache_key = self._make_key(key)

            if ttl is None:
                ttl = self.default_ttl

            expiry = time.time() + ttl if ttl > 0 else None

            # Evict if at capacity and key is new
            if cache_key not in self._cache and len(self._cache) >= self.max_size:
                evicted_key = next(iter(self._cache))
                self._remove(evicted_key)
                self._evictions += 1
                logger.debug(f"Evicted key from memory cache: {evicted_key}")

            self._cache[cache_key] = (value, expiry)
            self._cache.move_to_end(cache_key)
            self._sets += 1

            for tag in tags or []:
                self._tag_keys.setdefault(tag, set()).add(cache_key)
                self._key_tags.setdefault(cache_key, set()).add(tag)

            return True

    async def delete(self, key: str) -> bool:
        """Delete key from cache."""
        if not key:
            logger.warning("Attempted to delete cache value with empty key")
            return False

        async with self._lock:
            cache_key = self._make_key(key)

            if cache_key in self._cache:
                self._remove(cache_key)
                self._deletes += 1
                return True

            return False

    async def exists(self, key: str) -> bool:
        """Check if key exists and is not expired."""
        if not key:
            return False

        async with self._lock:
            cache_key = self._make_key(key)

            if cache_key not in self._cache:
                return False

            _, expiry = self._cache[cache_key]

            if self._is_expired(expiry):
                self._remove(cache_key)
                return False

            return True

    async def flush_tags(self, tags: list[str]) -> int:
        """Remove every entry attached to any of the given tags."""
        if not self.enable_tags:
            return await super().flush_tags(tags)

        async with self._lock:
            removed = 0
            for tag in tags:
                for cache_key in list(self._tag_keys.get(tag, ())):
                    if cache_key in self._cache:
                        removed += 1
                    self._remove(cache_key)
                self._tag_keys.pop(tag, None)

            self._deletes += removed
            logger.debug(
                f"Flushed {removed} entries for tags {tags}",
                extra={"tags": tags, "removed": removed, "namespace": self.namespace},
            )
            return removed

    async def clear(self) -> bool:
        """Clear all entries from cache."""
        async with self._lock:
            size = len(self._cache)
            self._cache.clear()
            self._tag_keys.clear()
            self._key_tags.clear()
            logger.info(f"Cleared {size} entries from memory cache namespace '{self.namespace}'")
            return True

    async def get_stats(self) -> dict[str, Any]:
        """Get cache statistics."""
        async with self._lock:
            total_requests = self._hits + self._misses
            hit_rate = (self._hits / total_requests * 100) if total_requests > 0 else 0.0

            return {
                "backend": "memory",
                "size": len(self._cache),
                "max_size": self.max_size,
                "tags": len(self._tag_keys),
                "hits": self._hits,
                "misses": self._misses,
                "hit_rate": round(hit_rate, 2),
                "sets": self._sets,
                "deletes": self._deletes,
                "evictions": self._evictions,
                "namespace": self.namespace,
            }

    async def close(self) -> None:
        """Close cache and release resources."""
        # Nothing to release; data lives in-process
        logger.debug(f"Memory cache backend closed for namespace '{self.namespace}'")
