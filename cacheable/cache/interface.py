"""
Cacheable - Cache Store Interface

Contract every cache store implements. The query cache only talks to stores
through this interface, wrapped in a CacheGateway.
"""

from abc import ABC, abstractmethod
from typing import Any

from ..errors import CacheOperationError, ErrorCode


class CacheInterface(ABC):
    """
    Abstract cache store.

    TTLs are in seconds: ``None`` means the store default, ``0`` means the
    entry never expires. Stores that can drop every entry carrying a tag in
    one call override ``supports_tags`` and ``flush_tags``; all others are
    flushed per key through the key index.
    """

    @property
    def supports_tags(self) -> bool:
        return False

    @abstractmethod
    async def get(self, key: str) -> Any | None:
        """Return the stored value, or None when missing or expired."""
        pass

    @abstractmethod
    async def set(
        self,
        key: str,
        value: Any,
        ttl: int | None = None,
        tags: list[str] | None = None,
    ) -> bool:
        """
        Store a value.

        Args:
            key: Cache key
            value: JSON-compatible value
            ttl: Lifetime in seconds (None = store default, 0 = forever)
            tags: Tags to attach; stores without tag support raise CacheOperationError

        Returns:
            True if the store accepted the write
        """
        pass

    @abstractmethod
    async def delete(self, key: str) -> bool:
        """Remove a key. Returns False if it was not present."""
        pass

    @abstractmethod
    async def exists(self, key: str) -> bool:
        pass

    @abstractmethod
    async def clear(self) -> bool:
        """Remove every entry in this store's namespace."""
        pass

    @abstractmethod
    async def get_stats(self) -> dict[str, Any]:
        pass

    @abstractmethod
    async def close(self) -> None:
        pass

    async def flush_tags(self, tags: list[str]) -> int:
        """
        Remove every entry attached to any of the given tags.

        Returns:
            Number of entries removed

        Raises:
            CacheOperationError: If the store has no tag support
        """
        raise CacheOperationError(
            f"{type(self).__name__} does not support tags",
            details={"tags": tags, "error_code": ErrorCode.GROUPING_UNSUPPORTED},
        )

    async def get_many(self, keys: list[str]) -> dict[str, Any]:
        """Fetch several keys; missing ones are left out of the result."""
        found = {}
        for key in keys:
            value = await self.get(key)
            if value is not None:
                found[key] = value
        return found

    async def set_many(self, items: dict[str, Any], ttl: int | None = None) -> int:
        """Store several untagged values. Returns how many were accepted."""
        stored = 0
        for key, value in items.items():
            stored += bool(await self.set(key, value, ttl))
        return stored

    async def delete_many(self, keys: list[str]) -> int:
        """Remove several keys. Returns how many were present."""
        removed = 0
        for key in keys:
            removed += bool(await self.delete(key))
        return removed
