"""
Cacheable - Cache Factory Integration Tests

Tests for the cache factory that creates and manages store instances, which
also serves as the registry of named drivers.
"""

from collections.abc import AsyncGenerator
from pathlib import Path

import pytest

from cacheable.cache.backends.file import FileCacheBackend
from cacheable.cache.factory import (
    close_all_caches,
    create_cache,
    get_cache,
    list_cache_instances,
    reset_cache_factory,
)
from cacheable.cache.interface import CacheInterface
from cacheable.config import CacheableConfig, CacheBackend, CacheConfig, load_config
from cacheable.errors import ConfigurationError

# Check if Redis is available
try:
    import socket

    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    sock.settimeout(1)
    redis_available = sock.connect_ex(("localhost", 6379)) == 0
    sock.close()
except OSError:
    redis_available = False


class TestCacheFactory:
    """Test suite for cache factory functionality."""

    @pytest.fixture(autouse=True)
    async def cleanup(self, mock_env_memory: None) -> AsyncGenerator[None, None]:
        """Use the memory backend and close cache instances after each test."""
        yield
        await close_all_caches()
        reset_cache_factory()

    async def test_create_memory_cache_default(self) -> None:
        cache = create_cache()

        assert isinstance(cache, CacheInterface)
        assert cache.supports_tags is True

        await cache.set("test_key", "test_value")
        assert await cache.get("test_key") == "test_value"

    async def test_create_file_cache(self, tmp_path: Path) -> None:
        config = CacheConfig(backend=CacheBackend.FILE, file_path=str(tmp_path / "cache"), namespace="files")

        cache = create_cache(config=config, name="file")

        assert isinstance(cache, FileCacheBackend)
        assert cache.supports_tags is False
        await cache.set("key1", "value1")
        assert await cache.get("key1") == "value1"

    async def test_tags_can_be_disabled(self) -> None:
        cache = create_cache(config=CacheConfig(enable_tags=False), name="plain")

        assert cache.supports_tags is False

    @pytest.mark.skipif(not redis_available, reason="Redis server not available")
    async def test_create_redis_cache_with_config(self, test_redis_url: str) -> None:
        config = CacheConfig(backend=CacheBackend.REDIS, redis_url=test_redis_url, namespace="test_redis")

        cache = create_cache(config=config, name="redis_test")

        assert cache.supports_tags is True
        await cache.set("key1", "value1")
        assert await cache.get("key1") == "value1"
        await cache.clear()

    async def test_singleton_behavior(self) -> None:
        cache1 = create_cache(name="singleton_test")
        cache2 = create_cache(name="singleton_test")

        assert cache1 is cache2

    async def test_multiple_named_instances(self) -> None:
        cache1 = create_cache(name="cache1")
        cache2 = create_cache(name="cache2")

        assert cache1 is not cache2

        await cache1.set("key", "value1")
        await cache2.set("key", "value2")

        assert await cache1.get("key") == "value1"
        assert await cache2.get("key") == "value2"

    async def test_get_cache_returns_existing(self) -> None:
        cache1 = create_cache(name="existing")
        await cache1.set("key", "value")

        cache2 = get_cache("existing")

        assert cache1 is cache2
        assert await cache2.get("key") == "value"

    async def test_get_cache_unknown_driver(self) -> None:
        with pytest.raises(ConfigurationError) as exc_info:
            get_cache("missing")

        assert exc_info.value.details["driver"] == "missing"

    async def test_get_cache_from_configured_drivers(self, tmp_path: Path) -> None:
        config = load_config(env_file=str(tmp_path / "missing.env"))
        config.drivers = {"files": CacheConfig(backend=CacheBackend.FILE, file_path=str(tmp_path / "cache"))}

        cache = get_cache("files")

        assert isinstance(cache, FileCacheBackend)
        assert "files" in list_cache_instances()

    async def test_default_cache_name(self) -> None:
        cache1 = create_cache()
        cache2 = get_cache()

        assert cache1 is cache2
        assert "default" in list_cache_instances()

    async def test_list_cache_instances(self) -> None:
        assert list_cache_instances() == []

        create_cache(name="cache1")
        create_cache(name="cache2")

        assert sorted(list_cache_instances()) == ["cache1", "cache2"]

    async def test_close_all_caches(self) -> None:
        cache1 = create_cache(name="cache1")
        await cache1.set("key", "value")

        await close_all_caches()

        assert list_cache_instances() == []

    async def test_reset_cache_factory(self) -> None:
        create_cache(name="cache1")
        create_cache(name="cache2")

        reset_cache_factory()

        assert list_cache_instances() == []

    async def test_namespace_isolation(self) -> None:
        cache1 = create_cache(config=CacheConfig(namespace="ns1"), name="cache_ns1")
        cache2 = create_cache(config=CacheConfig(namespace="ns2"), name="cache_ns2")

        await cache1.set("shared_key", "value1")
        await cache2.set("shared_key", "value2")

        assert await cache1.get("shared_key") == "value1"
        assert await cache2.get("shared_key") == "value2"

    async def test_max_size_configuration(self) -> None:
        cache = create_cache(config=CacheConfig(max_size=3), name="maxsize_test")

        for i in range(4):
            await cache.set(f"key{i}", f"value{i}")

        stats = await cache.get_stats()
        assert stats["evictions"] == 1

    async def test_root_config_drivers_are_validated(self) -> None:
        with pytest.raises(ValueError):
            CacheableConfig(drivers={"shared": {"backend": "redis", "redis_url": ""}})
