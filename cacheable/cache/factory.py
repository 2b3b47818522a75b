"""
Cacheable - Cache Factory

Builds cache stores from CacheConfig and keeps them in a registry keyed by
name. The registry is also the driver table: "default" is the store built
from the root cache config, any other name comes from the ``drivers``
section or an explicit create_cache(config, name=...) call.

Example:
    files = create_cache(CacheConfig(backend=CacheBackend.FILE, file_path="/var/cache/app"), name="files")
    assert get_cache("files") is files
"""

from __future__ import annotations

import logging

from ..config import CacheBackend, CacheConfig, get_config
from ..errors import ConfigurationError
from .backends.file import FileCacheBackend
from .backends.memory import MemoryCacheBackend
from .interface import CacheInterface

logger = logging.getLogger(__name__)

_cache_instances: dict[str, CacheInterface] = {}


def _create_memory_cache(config: CacheConfig) -> CacheInterface:
    """Internal helper to construct a memory cache backend."""
    return MemoryCacheBackend(
        max_size=config.max_size,
        default_ttl=config.ttl_seconds,
        namespace=config.namespace,
        enable_tags=config.enable_tags,
    )


def _create_file_cache(config: CacheConfig) -> CacheInterface:
    """Internal helper to construct a file cache backend."""
    return FileCacheBackend(
        directory=config.file_path,
        default_ttl=config.ttl_seconds,
        namespace=config.namespace,
    )


def _create_redis_cache(config: CacheConfig) -> CacheInterface:
    """Internal helper to construct a redis cache backend with lazy import."""
    if not config.redis_url:
        raise ConfigurationError(
            "REDIS_URL must be set when CACHE_BACKEND=redis",
            details={"env": "REDIS_URL", "backend": "redis"},
        )

    # Lazy import to avoid hard dependency when redis is not used
    try:
        from .backends.redis import RedisCacheBackend
    except ImportError as e:
        logger.error(
            "Redis backend selected but redis client is not installed",
            extra={"package": "redis>=5.0.0", "error": str(e)},
        )
        raise ConfigurationError(
            "Redis backend selected but redis client is unavailable. Install with: pip install 'redis>=5.0.0'.",
            details={"package": "redis>=5.0.0", "error": str(e), "backend": "redis"},
        ) from e

    return RedisCacheBackend(
        redis_url=config.redis_url,
        namespace=config.namespace,
        default_ttl=config.ttl_seconds,
        max_connections=config.redis_max_connections,
        socket_timeout=config.redis_socket_timeout,
    )


def create_cache(
    config: CacheConfig | None = None,
    name: str = "default",
) -> CacheInterface:
    """
    Create a cache backend instance based on configuration.

    Args:
        config: Cache configuration (uses global config if not provided)
        name: Cache instance name; doubles as the driver name

    Returns:
        Configured cache backend instance

    Raises:
        ConfigurationError: If cache configuration is invalid or backend unavailable
    """
    if name in _cache_instances:
        logger.debug("Returning existing cache instance: %s", name)
        return _cache_instances[name]

    if config is None:
        config = get_config().cache

    logger.info(
        "Creating cache instance '%s' with backend: %s",
        name,
        config.backend,
        extra={"cache_name": name, "backend": str(config.backend)},
    )

    if config.backend == CacheBackend.MEMORY:
        cache = _create_memory_cache(config)
    elif config.backend == CacheBackend.FILE:
        cache = _create_file_cache(config)
    elif config.backend == CacheBackend.REDIS:
        cache = _create_redis_cache(config)
    else:
        raise ConfigurationError(
            f"Unknown cache backend: {config.backend}",
            details={
                "backend": str(config.backend),
                "supported": [b.value for b in CacheBackend],
            },
        )

    _cache_instances[name] = cache

    logger.info(
        "Cache instance '%s' created successfully",
        name,
        extra={"cache_name": name, "backend": str(config.backend), "supports_tags": cache.supports_tags},
    )

    return cache


def get_cache(name: str = "default") -> CacheInterface:
    """
    Get an existing cache instance by name, creating the default one on demand.

    Named drivers other than "default" must be created first, either with
    create_cache() or from the ``drivers`` section of the configuration.

    Raises:
        ConfigurationError: If the named driver is unknown
    """
    if name in _cache_instances:
        return _cache_instances[name]

    if name == "default":
        logger.debug("Default cache instance not found, creating new instance")
        return create_cache(name=name)

    drivers = get_config().drivers
    if name in drivers:
        return create_cache(drivers[name], name=name)

    raise ConfigurationError(
        f"Unknown cache driver: {name}",
        details={"driver": name, "known": sorted(set(_cache_instances) | set(drivers))},
    )


async def close_all_caches() -> None:
    """Close every registered store and empty the registry. Close errors are logged, not raised."""
    if not _cache_instances:
        logger.debug("No cache instances to close")
        return

    logger.info("Closing %d cache instance(s)...", len(_cache_instances))

    for name, cache in list(_cache_instances.items()):
        try:
            await cache.close()
            logger.info("Closed cache instance: %s", name)
        except Exception as e:
            logger.error(
                "Error closing cache instance '%s': %s",
                name,
                e,
                extra={"cache_name": name, "error": str(e)},
                exc_info=True,
            )

    _cache_instances.clear()
    logger.info("All cache instances closed")


def reset_cache_factory() -> None:
    """Forget registered stores without closing them (tests)."""
    count = len(_cache_instances)
    _cache_instances.clear()
    logger.debug("Reset cache factory, cleared %d instance reference(s)", count)


def list_cache_instances() -> list[str]:
    return list(_cache_instances.keys())
