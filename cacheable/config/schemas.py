"""
Cacheable - Configuration Schemas

Defines typed configuration models using Pydantic for validation and type safety.
All configuration must be defined here and validated at startup.
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Environment(str, Enum):
    """Runtime environment."""

    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"
    TEST = "test"


class CacheBackend(str, Enum):
    """Supported cache backends."""

    MEMORY = "memory"
    REDIS = "redis"
    FILE = "file"


class KeyIndexBackend(str, Enum):
    """Supported key index persistence backends."""

    FILE = "file"
    REDIS = "redis"


class LogLevel(str, Enum):
    """Log levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class CacheConfig(BaseModel):
    """Cache store configuration."""

    backend: CacheBackend = Field(default=CacheBackend.MEMORY, description="Cache backend to use")
    ttl_seconds: int = Field(default=3600, ge=0, description="Default TTL in seconds (0 = no expiry)")
    max_size: int = Field(default=1000, ge=1, description="Max cache entries (memory backend)")
    namespace: str = Field(default="cacheable", description="Cache key namespace/prefix")
    enable_tags: bool = Field(default=True, description="Expose native tag support (memory backend)")

    # File-specific settings (only used when backend=file)
    file_path: str = Field(default="./data/cache", description="Directory for file cache entries")

    # Redis-specific settings (only used when backend=redis)
    redis_url: str | None = Field(default=None, description="Redis connection URL")
    redis_max_connections: int = Field(default=10, ge=1, description="Redis connection pool size")
    redis_socket_timeout: int = Field(default=5, ge=1, description="Redis socket timeout in seconds")

    @field_validator("redis_url")
    @classmethod
    def validate_redis_url(cls, v: str | None, info: Any) -> str | None:
        """Ensure redis_url is provided when backend is redis."""
        backend = info.data.get("backend")
        if backend == CacheBackend.REDIS and not v:
            raise ValueError("redis_url is required when cache backend is 'redis'")
        return v


class KeyIndexConfig(BaseModel):
    """Key index configuration (used when the cache store has no native tags)."""

    backend: KeyIndexBackend = Field(default=KeyIndexBackend.FILE, description="Key index backend")
    path: str = Field(default="./data/cacheable.json", description="JSON document path (file backend)")
    namespace: str = Field(default="cacheable", description="Key prefix (redis backend)")
    redis_url: str | None = Field(default=None, description="Redis connection URL (redis backend)")

    @field_validator("redis_url")
    @classmethod
    def validate_redis_url(cls, v: str | None, info: Any) -> str | None:
        """Ensure redis_url is provided when backend is redis."""
        backend = info.data.get("backend")
        if backend == KeyIndexBackend.REDIS and not v:
            raise ValueError("redis_url is required when key index backend is 'redis'")
        return v


class InvalidationSettings(BaseModel):
    """
    Per-entity-type switch for lifecycle-driven cache flushing.

    ``enabled`` is the default for every entity type; ``overrides`` pins
    individual types on or off.
    """

    enabled: bool = Field(default=True, description="Flush on create/update/delete by default")
    overrides: dict[str, bool] = Field(default_factory=dict, description="Per entity type overrides")

    def is_enabled(self, entity_type: str) -> bool:
        return self.overrides.get(entity_type, self.enabled)

    def enable(self, entity_type: str) -> None:
        self.overrides[entity_type] = True

    def disable(self, entity_type: str) -> None:
        self.overrides[entity_type] = False


class CacheableConfig(BaseModel):
    """Root configuration for Cacheable."""

    environment: Environment = Field(default=Environment.DEVELOPMENT, description="Runtime environment")
    log_level: LogLevel = Field(default=LogLevel.INFO, description="Logging level")

    cache: CacheConfig = Field(default_factory=CacheConfig)
    key_index: KeyIndexConfig = Field(default_factory=KeyIndexConfig)
    invalidation: InvalidationSettings = Field(default_factory=InvalidationSettings)

    # Named stores selectable per call via CacheOptions.driver
    drivers: dict[str, CacheConfig] = Field(default_factory=dict)

    model_config = ConfigDict(use_enum_values=True, validate_assignment=True)
