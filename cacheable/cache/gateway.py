"""
Cacheable - Cache Gateway

Thin layer over a CacheInterface store that adds remember/forget semantics,
group (tag) scoping, and driver selection through an injected resolver.
"""

from __future__ import annotations

import inspect
import logging
from collections.abc import Callable
from typing import Any

from ..errors import CacheOperationError, ConfigurationError, ErrorCode
from .interface import CacheInterface

logger = logging.getLogger(__name__)

Producer = Callable[[], Any]
DriverResolver = Callable[[str], CacheInterface]


async def produce(producer: Producer) -> Any:
    """Invoke a zero-argument producer, awaiting it if it returns an awaitable."""
    result = producer()
    if inspect.isawaitable(result):
        result = await result
    return result


class CacheGateway:
    """
    Remember/forget front-end for one cache store.

    Usage:
        gateway = CacheGateway(MemoryCacheBackend(), resolver=get_cache)
        users = await gateway.remember("User", key, 60, load_users)
        await gateway.forget_group("User")
    """

    def __init__(
        self,
        store: CacheInterface,
        resolver: DriverResolver | None = None,
        driver: str = "default",
    ) -> None:
        self._store = store
        self._resolver = resolver
        self._driver = driver

    @property
    def store(self) -> CacheInterface:
        return self._store

    @property
    def driver(self) -> str:
        return self._driver

    def supports_grouping(self) -> bool:
        return self._store.supports_tags

    def _resolve(self, name: str) -> CacheInterface:
        if self._resolver is None:
            raise ConfigurationError(
                f"Cannot switch to cache driver '{name}': no driver resolver configured",
                details={"driver": name, "error_code": ErrorCode.UNKNOWN_DRIVER},
            )
        return self._resolver(name)

    def set_active_driver(self, name: str) -> None:
        """Re-bind this gateway to another store for all subsequent calls."""
        self._store = self._resolve(name)
        self._driver = name
        logger.debug(f"Switched active cache driver to '{name}'", extra={"driver": name})

    def for_driver(self, name: str) -> CacheGateway:
        """Return a gateway bound to the named store, leaving this one untouched."""
        if name == self._driver:
            return self
        return CacheGateway(self._resolve(name), self._resolver, name)

    def _tags_for(self, group: str | None) -> list[str] | None:
        if group is None:
            return None
        if not self.supports_grouping():
            raise CacheOperationError(
                f"Cache driver '{self._driver}' does not support grouping",
                details={"group": group, "driver": self._driver, "error_code": ErrorCode.GROUPING_UNSUPPORTED},
            )
        return [group]

    async def remember(self, group: str | None, key: str, lifetime: int, producer: Producer) -> Any:
        """
        Return the cached value for key, or produce, store and return it.

        Args:
            group: Group to scope the entry to (None for ungrouped)
            key: Cache key
            lifetime: Positive lifetime in seconds
            producer: Zero-argument callable (sync or async) computing the value

        Raises:
            CacheOperationError: If the store rejects the write or grouping is unsupported
        """
        if lifetime <= 0:
            raise ValueError(f"lifetime must be positive, got {lifetime}")
        return await self._remember(group, key, lifetime, producer)

    async def remember_forever(self, group: str | None, key: str, producer: Producer) -> Any:
        """Like remember(), but the entry never expires."""
        return await self._remember(group, key, 0, producer)

    async def _remember(self, group: str | None, key: str, ttl: int, producer: Producer) -> Any:
        tags = self._tags_for(group)

        value = await self._store.get(key)
        if value is not None:
            logger.debug("Cache hit", extra={"key": key, "group": group, "driver": self._driver})
            return value

        logger.debug("Cache miss", extra={"key": key, "group": group, "driver": self._driver})
        value = await produce(producer)

        if not await self._store.set(key, value, ttl=ttl, tags=tags):
            raise CacheOperationError(
                f"Cache driver '{self._driver}' rejected write for key '{key}'",
                details={"key": key, "group": group, "driver": self._driver},
            )

        return value

    async def forget_group(self, group: str) -> int:
        """Remove every entry scoped to the group. Requires grouping support."""
        self._tags_for(group)  # raises when grouping is unsupported
        removed = await self._store.flush_tags([group])
        logger.info(
            f"Flushed group '{group}' ({removed} entries)",
            extra={"group": group, "removed": removed, "driver": self._driver},
        )
        return removed

    async def forget(self, key: str) -> bool:
        """Remove a single entry regardless of group."""
        return await self._store.delete(key)
