"""
Cacheable - Cache Module

Provides cache stores with pluggable backends and the gateway that adds
remember/forget and group semantics on top of them.

Usage:
    from cacheable.cache import CacheGateway, create_cache, get_cache

    gateway = CacheGateway(create_cache(), resolver=get_cache)
    value = await gateway.remember_forever("User", "some-key", load_users)
"""

from .factory import (
    close_all_caches,
    create_cache,
    get_cache,
    list_cache_instances,
    reset_cache_factory,
)
from .gateway import CacheGateway, DriverResolver, Producer
from .interface import CacheInterface

__all__ = [
    # Factory functions
    "create_cache",
    "get_cache",
    "close_all_caches",
    "list_cache_instances",
    "reset_cache_factory",
    # Gateway
    "CacheGateway",
    "DriverResolver",
    "Producer",
    # Interface
    "CacheInterface",
]
