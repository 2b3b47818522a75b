"""
Cacheable - Key Index Factory

Builds the configured key index (file by default, redis for multi-host setups).
"""

from __future__ import annotations

import logging

from ..config import KeyIndexBackend, KeyIndexConfig, get_config
from ..errors import ConfigurationError
from .file import FileKeyIndex
from .interface import KeyIndex

logger = logging.getLogger(__name__)


def create_key_index(config: KeyIndexConfig | None = None) -> KeyIndex:
    """
    Create a key index from configuration.

    Args:
        config: Key index configuration (uses global config if not provided)

    Raises:
        ConfigurationError: If the backend is unknown or unavailable
    """
    if config is None:
        config = get_config().key_index

    if config.backend == KeyIndexBackend.FILE:
        logger.info("Using file key index at %s", config.path, extra={"path": config.path})
        return FileKeyIndex(config.path)

    if config.backend == KeyIndexBackend.REDIS:
        if not config.redis_url:
            raise ConfigurationError(
                "KEY_INDEX_REDIS_URL or REDIS_URL must be set when KEY_INDEX_BACKEND=redis",
                details={"env": "KEY_INDEX_REDIS_URL", "backend": "redis"},
            )
        try:
            from .redis import RedisKeyIndex
        except ImportError as e:
            raise ConfigurationError(
                "Redis key index selected but redis client is unavailable. Install with: pip install 'redis>=5.0.0'.",
                details={"package": "redis>=5.0.0", "error": str(e), "backend": "redis"},
            ) from e

        logger.info("Using redis key index", extra={"namespace": config.namespace})
        return RedisKeyIndex(redis_url=config.redis_url, namespace=config.namespace)

    raise ConfigurationError(
        f"Unknown key index backend: {config.backend}",
        details={"backend": str(config.backend), "supported": [b.value for b in KeyIndexBackend]},
    )
