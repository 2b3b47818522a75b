"""
Cacheable - Configuration Loader

Loads and validates configuration from environment variables and .env files.
Provides a singleton configuration instance for the runtime.
"""

import logging
import os
from pathlib import Path

from dotenv import load_dotenv
from pydantic import ValidationError

from ..errors import ConfigurationError
from .schemas import CacheableConfig

logger = logging.getLogger(__name__)

_config_instance: CacheableConfig | None = None


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() == "true"


def load_config(
    env_file: str | None = None,
    reload: bool = False,
) -> CacheableConfig:
    """
    Load configuration from environment variables and .env file.

    Args:
        env_file: Path to .env file (default: .env in working directory)
        reload: Force reload even if config already loaded

    Returns:
        Validated CacheableConfig instance

    Raises:
        ConfigurationError: If configuration is invalid
    """
    global _config_instance

    if _config_instance is not None and not reload:
        return _config_instance

    if env_file:
        env_path = Path(env_file)
    else:
        env_path = Path.cwd() / ".env"

    if env_path.exists():
        logger.info(f"Loading environment from {env_path}")
        try:
            load_dotenv(env_path, override=True)
        except Exception as e:
            logger.error(
                f"Failed to load .env file from {env_path}: {e}",
                extra={"path": str(env_path), "error": str(e)},
                exc_info=True,
            )
            raise ConfigurationError(
                f"Failed to load environment file: {e}",
                details={"path": str(env_path), "error": str(e)},
            ) from e
    else:
        logger.debug("No .env file found, using environment variables only")

    # Auto-detect cache backend: Redis if REDIS_URL is set, else memory
    redis_url = os.getenv("REDIS_URL")
    cache_backend = "redis" if redis_url else "memory"

    disabled_types = [t.strip() for t in os.getenv("CACHE_CLEAR_DISABLED_TYPES", "").split(",") if t.strip()]

    config_dict = {
        "environment": os.getenv("ENVIRONMENT", "development"),
        "log_level": os.getenv("LOG_LEVEL", "INFO"),
        "cache": {
            "backend": os.getenv("CACHE_BACKEND", cache_backend),
            "ttl_seconds": int(os.getenv("CACHE_TTL_SECONDS", "3600")),
            "max_size": int(os.getenv("CACHE_MAX_SIZE", "1000")),
            "namespace": os.getenv("CACHE_NAMESPACE", "cacheable"),
            "enable_tags": _env_flag("CACHE_ENABLE_TAGS", "true"),
            "file_path": os.getenv("CACHE_FILE_PATH", "./data/cache"),
            "redis_url": redis_url,
            "redis_max_connections": int(os.getenv("REDIS_MAX_CONNECTIONS", "10")),
            "redis_socket_timeout": int(os.getenv("REDIS_SOCKET_TIMEOUT", "5")),
        },
        "key_index": {
            "backend": os.getenv("KEY_INDEX_BACKEND", "file"),
            "path": os.getenv("KEY_INDEX_PATH", "./data/cacheable.json"),
            "namespace": os.getenv("CACHE_NAMESPACE", "cacheable"),
            "redis_url": os.getenv("KEY_INDEX_REDIS_URL", redis_url),
        },
        "invalidation": {
            "enabled": _env_flag("CACHE_CLEAR_ENABLED", "true"),
            "overrides": {entity_type: False for entity_type in disabled_types},
        },
    }

    try:
        _config_instance = CacheableConfig(**config_dict)  # type: ignore[arg-type]
        logger.info(
            f"Configuration loaded successfully (environment: {_config_instance.environment})",
            extra={
                "environment": _config_instance.environment,
                "cache_backend": _config_instance.cache.backend,
                "key_index_backend": _config_instance.key_index.backend,
            },
        )
        return _config_instance
    except ValidationError as e:
        logger.error(
            f"Configuration validation failed: {e}",
            extra={"validation_errors": e.errors(), "config_dict_keys": list(config_dict.keys())},
            exc_info=True,
        )
        raise ConfigurationError(
            "Configuration validation failed. Check your environment variables and configuration.",
            details={"validation_errors": e.errors()},
        ) from e


def get_config() -> CacheableConfig:
    """
    Get the current configuration instance, loading it on first access.

    Returns:
        Current CacheableConfig instance
    """
    if _config_instance is None:
        return load_config()

    return _config_instance


def reload_config(env_file: str | None = None) -> CacheableConfig:
    """
    Force reload configuration.

    Args:
        env_file: Optional path to .env file

    Returns:
        Reloaded CacheableConfig instance
    """
    return load_config(env_file=env_file, reload=True)
