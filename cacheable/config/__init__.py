"""
Cacheable - Configuration Module

Provides typed configuration loading and validation.
"""

from .loader import get_config, load_config, reload_config
from .schemas import (
    CacheableConfig,
    CacheBackend,
    CacheConfig,
    Environment,
    InvalidationSettings,
    KeyIndexBackend,
    KeyIndexConfig,
    LogLevel,
)

__all__ = [
    # Loader functions
    "load_config",
    "get_config",
    "reload_config",
    # Main config
    "CacheableConfig",
    # Enums
    "Environment",
    "CacheBackend",
    "KeyIndexBackend",
    "LogLevel",
    # Config sections
    "CacheConfig",
    "KeyIndexConfig",
    "InvalidationSettings",
]
