"""
Cacheable - Query Cache

Entry point for caching read queries. Picks the native-tag path when the
store can group entries, and otherwise falls back to recording each key in
the key index so the entity type can still be flushed as a whole.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import timedelta
from typing import Any

from .cache.gateway import CacheGateway, Producer
from .config.schemas import InvalidationSettings
from .errors import KeyIndexError
from .events import CACHE_FLUSHED, CACHE_FLUSHING, EventDispatcher
from .fingerprint import FOREVER, CacheOptions, QueryDescriptor, fingerprint
from .key_index.interface import KeyIndex

logger = logging.getLogger(__name__)


class QueryCache:
    """
    Caches query results per entity type and flushes them on demand.

    Usage:
        query_cache = QueryCache(CacheGateway(store, resolver=get_cache), FileKeyIndex(path))
        users = await query_cache.cache_query(descriptor, load_users, CacheOptions(lifetime=60))
        await query_cache.forget_cache("User")
    """

    def __init__(
        self,
        gateway: CacheGateway,
        key_index: KeyIndex,
        dispatcher: EventDispatcher | None = None,
        settings: InvalidationSettings | None = None,
    ) -> None:
        self._gateway = gateway
        self._key_index = key_index
        self._dispatcher = dispatcher or EventDispatcher()
        self._settings = settings or InvalidationSettings()

    @property
    def gateway(self) -> CacheGateway:
        return self._gateway

    @property
    def key_index(self) -> KeyIndex:
        return self._key_index

    @property
    def dispatcher(self) -> EventDispatcher:
        return self._dispatcher

    @property
    def settings(self) -> InvalidationSettings:
        return self._settings

    def _gateway_for(self, driver: str | None) -> CacheGateway:
        return self._gateway.for_driver(driver) if driver else self._gateway

    async def cache_query(
        self,
        descriptor: QueryDescriptor,
        producer: Producer,
        options: CacheOptions | None = None,
    ) -> Any:
        """
        Return the cached result of a query, running producer on a miss.

        Grouping support is read once per call from the gateway bound to the
        requested driver; the whole call follows that one decision.

        Raises:
            FingerprintError: If the descriptor cannot be fingerprinted
            CacheOperationError: If the store fails
            KeyIndexError: If the key could not be recorded (tagless stores)
            Exception: Whatever the producer raises, unchanged
        """
        options = options or CacheOptions()
        entity_type = descriptor.entity_type
        key = fingerprint(descriptor, options)
        gateway = self._gateway_for(options.driver)

        if gateway.supports_grouping():
            if options.forever:
                return await gateway.remember_forever(entity_type, key, producer)
            return await gateway.remember(entity_type, key, options.lifetime_seconds, producer)

        if options.forever:
            result = await gateway.remember_forever(None, key, producer)
        else:
            result = await gateway.remember(None, key, options.lifetime_seconds, producer)

        # The store has no tags; remember the key so the type can be flushed later
        try:
            await self._key_index.add(entity_type, key)
        except KeyIndexError:
            # An unrecorded entry could never be flushed, so drop it
            await gateway.forget(key)
            raise
        return result

    async def forget_cache(self, entity_type: str, drivers: Sequence[str | None] | None = None) -> list[str]:
        """
        Flush every cached query of an entity type.

        Fires "cache.flushing" first (a listener returning False cancels the
        flush) and "cache.flushed" afterwards.

        Args:
            entity_type: Entity type to flush
            drivers: Drivers to flush on (None means the default driver only)

        Returns:
            Keys removed through the key index; empty for tag-capable stores,
            untracked types and cancelled flushes
        """
        if await self._dispatcher.until(CACHE_FLUSHING, entity_type) is False:
            logger.info(f"Flush of {entity_type} cancelled by listener", extra={"entity_type": entity_type})
            return []

        gateways = [self._gateway_for(driver) for driver in (drivers or [None])]
        tagless = [gateway for gateway in gateways if not gateway.supports_grouping()]

        for gateway in gateways:
            if gateway.supports_grouping():
                await gateway.forget_group(entity_type)

        flushed: list[str] = []
        if tagless:
            flushed = await self._key_index.pop(entity_type)
            for key in flushed:
                for gateway in tagless:
                    await gateway.forget(key)

        logger.info(
            f"Flushed cache for {entity_type}",
            extra={"entity_type": entity_type, "keys": len(flushed), "drivers": [g.driver for g in gateways]},
        )

        await self._dispatcher.dispatch(CACHE_FLUSHED, entity_type)
        return flushed


class ModelCache:
    """
    Per-entity-type cache handle with one-shot caching options.

    Options set through the setters apply to the next cache_query() call
    only and are reset to defaults afterwards, whether the call succeeds or not.
    """

    def __init__(self, query_cache: QueryCache, entity_type: str) -> None:
        self.query_cache = query_cache
        self.entity_type = entity_type
        self._driver: str | None = None
        self._lifetime: int | float | timedelta = FOREVER

    def set_cache_lifetime(self, lifetime: int | float | timedelta) -> ModelCache:
        self._lifetime = lifetime
        return self

    def get_cache_lifetime(self) -> int | float | timedelta:
        return self._lifetime

    def set_cache_driver(self, driver: str | None) -> ModelCache:
        self._driver = driver
        return self

    def get_cache_driver(self) -> str | None:
        return self._driver

    def reset_cache_config(self) -> ModelCache:
        self._driver = None
        self._lifetime = FOREVER
        return self

    def is_cache_clear_enabled(self) -> bool:
        return self.query_cache.settings.is_enabled(self.entity_type)

    async def cache_query(self, descriptor: QueryDescriptor, producer: Producer) -> Any:
        if descriptor.entity_type != self.entity_type:
            raise ValueError(
                f"Descriptor targets '{descriptor.entity_type}', not '{self.entity_type}'",
            )

        try:
            options = CacheOptions(driver=self._driver, lifetime=self._lifetime)
            return await self.query_cache.cache_query(descriptor, producer, options)
        finally:
            self.reset_cache_config()

    async def forget_cache(self, drivers: Sequence[str | None] | None = None) -> list[str]:
        return await self.query_cache.forget_cache(self.entity_type, drivers)
