"""
Cacheable - Test Configuration and Shared Fixtures

Provides pytest configuration and shared fixtures for unit and integration tests.
"""

import os
import socket
from collections.abc import AsyncGenerator, Generator
from pathlib import Path
from typing import Any

import pytest
import pytest_asyncio
from redis.asyncio import Redis

from cacheable.cache.backends.file import FileCacheBackend
from cacheable.cache.backends.memory import MemoryCacheBackend
from cacheable.cache.gateway import CacheGateway
from cacheable.fingerprint import QueryDescriptor
from cacheable.key_index.file import FileKeyIndex
from cacheable.query_cache import QueryCache

# Set test environment
os.environ["ENVIRONMENT"] = "test"
os.environ["LOG_LEVEL"] = "DEBUG"


def is_redis_available() -> bool:
    """Check if Redis server is available for testing."""
    try:
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        sock.settimeout(1)
        result = sock.connect_ex(("localhost", 6379))
        sock.close()
        return result == 0
    except OSError:
        return False


# Skip marker for Redis tests
redis_available = pytest.mark.skipif(not is_redis_available(), reason="Redis server not available")


@pytest.fixture
def test_redis_url() -> str:
    """Get Redis URL for testing (database 15 for isolation)."""
    return os.environ.get("TEST_REDIS_URL", "redis://localhost:6379/15")


@pytest_asyncio.fixture
async def redis_client(test_redis_url: str) -> AsyncGenerator[Redis, None]:
    """
    Create a Redis client for testing.

    Skips the test if Redis is not reachable; flushes the test database
    before and after each test.
    """
    client: Redis = Redis.from_url(test_redis_url, decode_responses=True)

    try:
        await client.ping()
    except Exception as e:
        await client.aclose()
        pytest.skip(f"Redis not available for testing: {e}")

    await client.flushdb()

    yield client

    try:
        await client.flushdb()
    finally:
        await client.aclose()


@pytest.fixture
def mock_env_memory(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Set environment variables for memory cache backend."""
    monkeypatch.setenv("CACHE_BACKEND", "memory")
    monkeypatch.setenv("CACHE_MAX_SIZE", "100")
    monkeypatch.setenv("CACHE_TTL_SECONDS", "3600")
    monkeypatch.setenv("CACHE_NAMESPACE", "test")
    monkeypatch.setenv("KEY_INDEX_PATH", str(tmp_path / "index.json"))
    monkeypatch.delenv("REDIS_URL", raising=False)


@pytest.fixture
def index_path(tmp_path: Path) -> Path:
    """Location of a key index document that has never been written."""
    return tmp_path / "data" / "cacheable.json"


@pytest.fixture
def key_index(index_path: Path) -> FileKeyIndex:
    return FileKeyIndex(index_path)


@pytest.fixture
def tagged_store() -> MemoryCacheBackend:
    """Store with native grouping."""
    return MemoryCacheBackend(max_size=100, default_ttl=3600, namespace="test")


@pytest.fixture
def tagless_store(tmp_path: Path) -> FileCacheBackend:
    """Store without native grouping."""
    return FileCacheBackend(directory=tmp_path / "cache", default_ttl=3600, namespace="test")


@pytest.fixture
def tagged_cache(tagged_store: MemoryCacheBackend, key_index: FileKeyIndex) -> QueryCache:
    return QueryCache(CacheGateway(tagged_store), key_index)


@pytest.fixture
def tagless_cache(tagless_store: FileCacheBackend, key_index: FileKeyIndex) -> QueryCache:
    return QueryCache(CacheGateway(tagless_store), key_index)


@pytest.fixture
def adult_users() -> QueryDescriptor:
    """SELECT id, name FROM users WHERE age > 18."""
    return QueryDescriptor(
        entity_type="User",
        columns=["id", "name"],
        source="users",
        wheres=[{"type": "Basic", "column": "age", "operator": ">", "value": 18, "boolean": "and"}],
        sql='select "id", "name" from "users" where "age" > ?',
        bindings=[18],
        selected=["id", "name"],
    )


@pytest.fixture
def recent_posts() -> QueryDescriptor:
    """SELECT * FROM posts ORDER BY created_at DESC LIMIT 10."""
    return QueryDescriptor(
        entity_type="Post",
        source="posts",
        orders=[{"column": "created_at", "direction": "desc"}],
        limit=10,
        sql='select * from "posts" order by "created_at" desc limit 10',
    )


@pytest.fixture
def sample_cache_data() -> dict[str, Any]:
    """Sample data for cache testing."""
    return {
        "simple_string": "hello",
        "simple_int": 42,
        "simple_float": 3.14,
        "simple_bool": True,
        "complex_dict": {
            "nested": {
                "key": "value",
                "number": 123,
                "list": [1, 2, 3],
            }
        },
        "complex_list": [
            {"id": 1, "name": "Alice"},
            {"id": 2, "name": "Bob"},
        ],
    }


@pytest.fixture(autouse=True)
def reset_cache_factory() -> Generator[None, None, None]:
    """Reset cache factory and config singleton after each test to prevent state leakage."""
    yield
    from cacheable.cache.factory import reset_cache_factory
    from cacheable.config import loader

    reset_cache_factory()
    loader._config_instance = None


class Counter:
    """Producer that counts its invocations."""

    def __init__(self, result: Any) -> None:
        self.result = result
        self.calls = 0

    def __call__(self) -> Any:
        self.calls += 1
        return self.result


@pytest.fixture
def counter() -> type[Counter]:
    return Counter
