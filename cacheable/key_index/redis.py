"""
Cacheable - Redis Key Index

Keeps one Redis set per entity type plus a registry set of known types.
Appends are a single SADD and flushes read-and-delete inside MULTI/EXEC, so
every process sharing the Redis server sees a consistent index.
"""

from __future__ import annotations

import logging

from ..errors import KeyIndexError
from .interface import KeyIndex

logger = logging.getLogger(__name__)

try:
    from redis.asyncio import Redis
except ImportError as e:  # pragma: no cover
    raise ImportError(
        "Redis async client is required but not installed. "
        "Install with: pip install 'redis>=5.0.0' or add 'redis' to your dependencies."
    ) from e


class RedisKeyIndex(KeyIndex):
    """Key index stored as Redis sets."""

    def __init__(
        self,
        redis_url: str,
        namespace: str = "cacheable",
        socket_timeout: int = 5,
    ) -> None:
        if not redis_url:
            raise ValueError("redis_url is required")

        self.namespace = namespace.strip() or "cacheable"
        self._registry = f"{self.namespace}:key-index"
        self._client = Redis.from_url(  # type: ignore[call-overload]
            url=redis_url,
            decode_responses=True,
            socket_timeout=socket_timeout,
        )

    def _type_key(self, entity_type: str) -> str:
        return f"{self._registry}:{entity_type}"

    def _failure(self, action: str, error: Exception) -> KeyIndexError:
        logger.error(
            f"Failed to {action} Redis key index: {error}",
            extra={"namespace": self.namespace, "error": str(error)},
            exc_info=True,
        )
        return KeyIndexError(
            f"Failed to {action} Redis key index: {error}",
            details={"namespace": self.namespace, "backend": "redis"},
        )

    async def add(self, entity_type: str, key: str) -> bool:
        try:
            pipe = self._client.pipeline(transaction=True)
            pipe.sadd(self._type_key(entity_type), key)
            pipe.sadd(self._registry, entity_type)
            added, _ = await pipe.execute()
        except Exception as e:
            raise self._failure("update", e) from e
        return bool(added)

    async def pop(self, entity_type: str) -> list[str]:
        try:
            pipe = self._client.pipeline(transaction=True)
            pipe.smembers(self._type_key(entity_type))
            pipe.delete(self._type_key(entity_type))
            pipe.srem(self._registry, entity_type)
            members, _, _ = await pipe.execute()
        except Exception as e:
            raise self._failure("flush", e) from e
        return sorted(members)

    async def read(self) -> dict[str, list[str]]:
        try:
            entity_types = await self._client.smembers(self._registry)
            mapping = {}
            for entity_type in sorted(entity_types):
                members = await self._client.smembers(self._type_key(entity_type))
                if members:
                    mapping[entity_type] = sorted(members)
        except Exception as e:
            raise self._failure("read", e) from e
        return mapping

    async def write(self, mapping: dict[str, list[str]]) -> None:
        try:
            existing = await self._client.smembers(self._registry)
            pipe = self._client.pipeline(transaction=True)
            for entity_type in existing:
                pipe.delete(self._type_key(entity_type))
            pipe.delete(self._registry)
            for entity_type, keys in mapping.items():
                if keys:
                    pipe.sadd(self._type_key(entity_type), *keys)
                pipe.sadd(self._registry, entity_type)
            await pipe.execute()
        except Exception as e:
            raise self._failure("write", e) from e

    async def close(self) -> None:
        await self._client.aclose()
