"""
Cacheable - Cache Gateway Tests
"""

from pathlib import Path
from typing import Any

import pytest

from cacheable.cache.backends.file import FileCacheBackend
from cacheable.cache.backends.memory import MemoryCacheBackend
from cacheable.cache.gateway import CacheGateway, produce
from cacheable.cache.interface import CacheInterface
from cacheable.errors import CacheOperationError, ConfigurationError


class RejectingStore(MemoryCacheBackend):
    """Store whose writes always fail."""

    async def set(self, key: str, value: Any, ttl: int | None = None, tags: list[str] | None = None) -> bool:
        return False


class TestProduce:
    async def test_sync_producer(self) -> None:
        assert await produce(lambda: 42) == 42

    async def test_async_producer(self) -> None:
        async def load() -> list[int]:
            return [1, 2]

        assert await produce(load) == [1, 2]


class TestRemember:
    """remember / remember_forever semantics."""

    async def test_miss_then_hit(self, counter: Any) -> None:
        gateway = CacheGateway(MemoryCacheBackend(namespace="test"))
        producer = counter(["row"])

        assert await gateway.remember(None, "k", 60, producer) == ["row"]
        assert await gateway.remember(None, "k", 60, producer) == ["row"]
        assert producer.calls == 1

    async def test_remember_forever_has_no_expiry(self) -> None:
        store = MemoryCacheBackend(namespace="test", default_ttl=1)
        gateway = CacheGateway(store)

        await gateway.remember_forever(None, "k", lambda: "v")

        _, expiry = store._cache["test:k"]
        assert expiry is None

    async def test_non_positive_lifetime_rejected(self) -> None:
        gateway = CacheGateway(MemoryCacheBackend(namespace="test"))
        with pytest.raises(ValueError):
            await gateway.remember(None, "k", 0, lambda: "v")

    async def test_group_attaches_tag(self) -> None:
        store = MemoryCacheBackend(namespace="test")
        gateway = CacheGateway(store)

        await gateway.remember_forever("User", "k", lambda: "v")
        await gateway.forget_group("User")

        assert await store.get("k") is None

    async def test_group_on_tagless_store_raises(self, tmp_path: Path) -> None:
        gateway = CacheGateway(FileCacheBackend(tmp_path))
        assert gateway.supports_grouping() is False

        with pytest.raises(CacheOperationError):
            await gateway.remember_forever("User", "k", lambda: "v")

        with pytest.raises(CacheOperationError):
            await gateway.forget_group("User")

    async def test_producer_error_propagates_and_nothing_is_stored(self) -> None:
        store = MemoryCacheBackend(namespace="test")
        gateway = CacheGateway(store)

        def explode() -> Any:
            raise RuntimeError("database went away")

        with pytest.raises(RuntimeError, match="database went away"):
            await gateway.remember(None, "k", 60, explode)

        assert await store.exists("k") is False

    async def test_rejected_write_raises(self) -> None:
        gateway = CacheGateway(RejectingStore(namespace="test"))

        with pytest.raises(CacheOperationError):
            await gateway.remember_forever(None, "k", lambda: "v")

    async def test_forget(self) -> None:
        store = MemoryCacheBackend(namespace="test")
        gateway = CacheGateway(store)
        await gateway.remember_forever(None, "k", lambda: "v")

        assert await gateway.forget("k") is True
        assert await gateway.forget("k") is False


class TestDriverSelection:
    """Driver switching through the injected resolver."""

    @pytest.fixture
    def stores(self, tmp_path: Path) -> dict[str, CacheInterface]:
        return {
            "default": MemoryCacheBackend(namespace="test"),
            "file": FileCacheBackend(tmp_path, namespace="test"),
        }

    async def test_for_driver_returns_new_gateway(self, stores: dict[str, CacheInterface]) -> None:
        gateway = CacheGateway(stores["default"], resolver=stores.__getitem__)

        file_gateway = gateway.for_driver("file")

        assert file_gateway is not gateway
        assert file_gateway.store is stores["file"]
        assert file_gateway.driver == "file"
        assert gateway.store is stores["default"]
        assert gateway.for_driver("default") is gateway

    async def test_set_active_driver(self, stores: dict[str, CacheInterface]) -> None:
        gateway = CacheGateway(stores["default"], resolver=stores.__getitem__)

        gateway.set_active_driver("file")

        assert gateway.store is stores["file"]
        assert gateway.supports_grouping() is False

    async def test_no_resolver(self) -> None:
        gateway = CacheGateway(MemoryCacheBackend())

        with pytest.raises(ConfigurationError):
            gateway.set_active_driver("redis")

        with pytest.raises(ConfigurationError):
            gateway.for_driver("redis")

    async def test_resolver_errors_propagate(self, stores: dict[str, CacheInterface]) -> None:
        gateway = CacheGateway(stores["default"], resolver=stores.__getitem__)

        with pytest.raises(KeyError):
            gateway.for_driver("missing")
