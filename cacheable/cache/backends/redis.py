"""
Cacheable - Redis Cache Backend

Asynchronous Redis cache implementation with:
- JSON serialization for values
- Per-key TTL support
- Namespace prefixing for safe multi-tenant usage
- Native tags backed by Redis sets

Requires: redis>=5.0 with asyncio support

Example:
    cache = RedisCacheBackend(redis_url="redis://localhost:6379", namespace="cacheable")
    await cache.set("users:adults", [{"id": 1}], ttl=60, tags=["User"])
    await cache.flush_tags(["User"])
"""

from __future__ import annotations

import json
import logging
from typing import Any

from ...errors import CacheConnectionError, CacheError, CacheOperationError
from ..interface import CacheInterface

logger = logging.getLogger(__name__)

try:
    from redis.asyncio import Redis
    from redis.exceptions import ConnectionError as RedisConnectionError
    from redis.exceptions import TimeoutError as RedisTimeoutError
except ImportError as e:  # pragma: no cover
    raise ImportError(
        "Redis async client is required but not installed. "
        "Install with: pip install 'redis>=5.0.0' or add 'redis' to your dependencies."
    ) from e


class RedisCacheBackend(CacheInterface):
    """
    Redis cache backend with JSON serialization, TTL and tags.

    Notes:
    - Keys are prefixed with the configured namespace to avoid collisions.
    - Values are stored as UTF-8 JSON strings.
    - TTL is applied via Redis EX seconds (None -> default_ttl, 0 -> no expiry).
    - Each tag is a set at "<namespace>:tag:<tag>" holding member keys.
    - Store failures raise CacheOperationError instead of reading as a miss;
      an unreachable server raises CacheConnectionError.
    """

    def __init__(
        self,
        redis_url: str,
        namespace: str = "cacheable",
        default_ttl: int = 3600,
        max_connections: int = 10,
        socket_timeout: int = 5,
        decode_responses: bool = True,
    ) -> None:
        """
        Initialize Redis cache backend.

        Args:
            redis_url: Connection URL, e.g., redis://localhost:6379/0 or rediss:// for TLS
            namespace: Prefix for all keys
            default_ttl: Default TTL in seconds (0 => no expiry)
            max_connections: Connection pool size
            socket_timeout: Socket timeout in seconds
            decode_responses: If True, values returned as str, not bytes
        """
        if not redis_url:
            raise ValueError("redis_url is required")

        self.namespace = namespace.strip() or "cacheable"
        self.default_ttl = max(0, int(default_ttl))
        self._hits = 0
        self._misses = 0
        self._sets = 0
        self._deletes = 0

        # Lazy connection; connects on first command
        self._client = Redis.from_url(  # type: ignore[call-overload]
            url=redis_url,
            decode_responses=decode_responses,
            max_connections=max_connections,
            socket_timeout=socket_timeout,
        )

    @property
    def supports_tags(self) -> bool:
        return True

    # ------------ Helpers ------------

    def _make_key(self, key: str) -> str:
        """Create namespaced key."""
        return f"{self.namespace}:{key}"

    def _tag_key(self, tag: str) -> str:
        return f"{self.namespace}:tag:{tag}"

    @staticmethod
    def _to_json(value: Any) -> str:
        """Serialize value to JSON string."""
        return json.dumps(value, ensure_ascii=False, separators=(",", ":"))

    @staticmethod
    def _from_json(data: str | bytes | None) -> Any | None:
        """Deserialize JSON string to Python object. Returns None if data is None."""
        if data is None:
            return None
        if isinstance(data, bytes):
            data = data.decode("utf-8")
        try:
            return json.loads(data)
        except ValueError as e:
            logger.warning(
                f"Failed to decode JSON from cache, returning raw data: {e}",
                extra={"data_preview": data[:100], "error": str(e)},
            )
            return data

    def _ttl_seconds(self, ttl: int | None) -> int | None:
        """
        Normalize TTL:
        - None -> default_ttl
        - 0 or negative -> no expiry (return None)
        - positive -> provided ttl
        """
        if ttl is None:
            ttl = self.default_ttl
        ttl = int(ttl)
        return ttl if ttl > 0 else None

    def _failure(self, action: str, key: str | None, error: Exception) -> CacheError:
        logger.error(
            f"Failed to {action} in Redis: {error}",
            extra={"key": key, "namespace": self.namespace, "error": str(error)},
            exc_info=True,
        )
        if isinstance(error, (RedisConnectionError, RedisTimeoutError)):
            return CacheConnectionError(
                "redis",
                details={"action": action, "key": key, "namespace": self.namespace, "error": str(error)},
            )
        return CacheOperationError(
            f"Redis {action} failed: {error}",
            details={"key": key, "namespace": self.namespace, "backend": "redis"},
        )

    # ------------ Core Interface ------------

    async def get(self, key: str) -> Any | None:
        """Retrieve a value by key."""
        try:
            data = await self._client.get(self._make_key(key))
        except Exception as e:
            raise self._failure("get", key, e) from e

        if data is None:
            self._misses += 1
            return None

        self._hits += 1
        return self._from_json(data)

    async def set(
        self,
        key: str,
        value: Any,
        ttl: int | None = None,
        tags: list[str] | None = None,
    ) -> bool:
        """Store a value with optional TTL and tags."""
        try:
            payload = self._to_json(value)
        except (TypeError, ValueError) as e:
            logger.error(
                f"Failed to serialize value for key '{key}': {e}",
                extra={"key": key, "value_type": type(value).__name__, "error": str(e)},
            )
            raise CacheOperationError(
                f"Value for key '{key}' is not JSON serializable",
                details={"key": key, "value_type": type(value).__name__},
            ) from e

        ns_key = self._make_key(key)
        try:
            pipe = self._client.pipeline(transaction=True)
            pipe.set(name=ns_key, value=payload, ex=self._ttl_seconds(ttl))
            for tag in tags or []:
                pipe.sadd(self._tag_key(tag), ns_key)
            results = await pipe.execute()
        except Exception as e:
            raise self._failure("set", key, e) from e

        success = bool(results and results[0])
        if success:
            self._sets += 1
        return success

    async def delete(self, key: str) -> bool:
        """Delete a single key."""
        try:
            deleted = await self._client.delete(self._make_key(key))
        except Exception as e:
            raise self._failure("delete", key, e) from e

        if deleted:
            self._deletes += 1
        return bool(deleted)

    async def exists(self, key: str) -> bool:
        """Check if a key exists."""
        try:
            return bool(await self._client.exists(self._make_key(key)))
        except Exception as e:
            raise self._failure("check existence", key, e) from e

    async def flush_tags(self, tags: list[str]) -> int:
        """Delete every key recorded under the given tags along with the tag sets."""
        removed = 0
        try:
            for tag in tags:
                # Read and drop the tag set in one transaction so a concurrent
                # tagged set lands either in this flush or in a fresh tag set
                pipe = self._client.pipeline(transaction=True)
                pipe.smembers(self._tag_key(tag))
                pipe.delete(self._tag_key(tag))
                members, _ = await pipe.execute()
                if members:
                    removed += int(await self._client.delete(*members))
        except Exception as e:
            raise self._failure("flush tags", None, e) from e

        self._deletes += removed
        logger.debug(
            f"Flushed {removed} keys for tags {tags}",
            extra={"tags": tags, "removed": removed, "namespace": self.namespace},
        )
        return removed

    async def clear(self) -> bool:
        """
        Clear all entries under the namespace.

        Implementation: SCAN match "<namespace>:*" and DEL in batches.
        """
        try:
            pattern = f"{self.namespace}:*"
            cursor = 0
            total_deleted = 0
            batch_size = 1000

            while True:
                cursor, keys = await self._client.scan(cursor=cursor, match=pattern, count=batch_size)
                if keys:
                    total_deleted += await self._client.delete(*keys)
                if cursor == 0:
                    break
        except Exception as e:
            raise self._failure("clear namespace", None, e) from e

        self._deletes += total_deleted
        logger.info(f"Cleared {total_deleted} keys from namespace '{self.namespace}'")
        return True

    async def get_stats(self) -> dict[str, Any]:
        """Return cache statistics and connectivity."""
        stats: dict[str, Any] = {
            "backend": "redis",
            "namespace": self.namespace,
            "default_ttl": self.default_ttl,
            "hits": self._hits,
            "misses": self._misses,
            "hit_rate": 0.0,
            "sets": self._sets,
            "deletes": self._deletes,
            "connected": False,
        }

        total_requests = self._hits + self._misses
        stats["hit_rate"] = round((self._hits / total_requests) * 100, 2) if total_requests else 0.0

        try:
            stats["connected"] = bool(await self._client.ping())
        except Exception as e:
            logger.warning(f"Failed to ping Redis: {e}", extra={"error": str(e)})

        return stats

    async def close(self) -> None:
        """Close the Redis client and release resources."""
        try:
            await self._client.aclose()
            logger.info(f"Closed Redis cache backend for namespace '{self.namespace}'")
        finally:
            await self._client.connection_pool.disconnect()

    async def get_many(self, keys: list[str]) -> dict[str, Any]:
        """
        Retrieve multiple values in one round-trip using MGET.
        Missing keys are omitted from the result.
        """
        if not keys:
            return {}

        try:
            values = await self._client.mget([self._make_key(k) for k in keys])
        except Exception as e:
            raise self._failure("get multiple keys", None, e) from e

        result: dict[str, Any] = {}
        for k, raw in zip(keys, values, strict=False):
            if raw is None:
                self._misses += 1
                continue
            self._hits += 1
            result[k] = self._from_json(raw)

        return result
