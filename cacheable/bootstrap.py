"""
Cacheable - Wiring

Builds a ready-to-use QueryCache and InvalidationTrigger from configuration.
The core classes never look anything up globally; everything they need is
constructed here and passed in.
"""

from __future__ import annotations

import logging

from .cache.factory import create_cache
from .cache.gateway import CacheGateway, DriverResolver
from .cache.interface import CacheInterface
from .config import CacheableConfig, get_config
from .errors import ConfigurationError, ErrorCode
from .events import EventDispatcher
from .invalidation import InvalidationTrigger
from .key_index.factory import create_key_index
from .query_cache import QueryCache

logger = logging.getLogger(__name__)


def make_driver_resolver(config: CacheableConfig) -> DriverResolver:
    """Resolve driver names to stores: "default" plus every entry in config.drivers."""

    def resolve(name: str) -> CacheInterface:
        if name == "default":
            return create_cache(config.cache, name="default")
        if name in config.drivers:
            return create_cache(config.drivers[name], name=name)
        raise ConfigurationError(
            f"Unknown cache driver: {name}",
            details={
                "driver": name,
                "known": ["default", *sorted(config.drivers)],
                "error_code": ErrorCode.UNKNOWN_DRIVER,
            },
        )

    return resolve


def build_query_cache(
    config: CacheableConfig | None = None,
    dispatcher: EventDispatcher | None = None,
) -> QueryCache:
    """
    Construct a QueryCache from configuration.

    Args:
        config: Root configuration (uses global config if not provided)
        dispatcher: Event dispatcher to share with the host (a new one if omitted)
    """
    config = config or get_config()
    resolver = make_driver_resolver(config)

    gateway = CacheGateway(resolver("default"), resolver=resolver)
    key_index = create_key_index(config.key_index)

    logger.info(
        "Query cache ready",
        extra={
            "cache_backend": str(config.cache.backend),
            "grouping": gateway.supports_grouping(),
            "drivers": ["default", *sorted(config.drivers)],
        },
    )

    return QueryCache(gateway, key_index, dispatcher=dispatcher, settings=config.invalidation)


def build_invalidation(
    config: CacheableConfig | None = None,
    dispatcher: EventDispatcher | None = None,
) -> tuple[QueryCache, InvalidationTrigger]:
    """
    Construct a QueryCache and an attached InvalidationTrigger.

    The trigger flushes on the default driver and on every named driver.
    """
    config = config or get_config()
    query_cache = build_query_cache(config, dispatcher)

    drivers: list[str | None] = [None, *sorted(config.drivers)]
    trigger = InvalidationTrigger(query_cache, drivers=drivers)
    trigger.attach()

    return query_cache, trigger
