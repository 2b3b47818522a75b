"""
Cacheable - Core Error Types

Defines the exception hierarchy for the query cache runtime.
All exceptions inherit from CacheableError for consistent error handling.
"""

from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """
    Standard error codes for structured error reporting.

    Used by callers that need to map failures to responses or retries.
    """

    # Configuration errors
    INVALID_CONFIGURATION = "INVALID_CONFIGURATION"
    UNKNOWN_DRIVER = "UNKNOWN_DRIVER"

    # Cache store errors
    CACHE_FAILURE = "CACHE_FAILURE"
    CACHE_UNAVAILABLE = "CACHE_UNAVAILABLE"
    GROUPING_UNSUPPORTED = "GROUPING_UNSUPPORTED"

    # Key derivation errors
    FINGERPRINT_FAILURE = "FINGERPRINT_FAILURE"

    # Key index errors
    KEY_INDEX_FAILURE = "KEY_INDEX_FAILURE"
    KEY_INDEX_CORRUPT = "KEY_INDEX_CORRUPT"

    # Internal errors
    INTERNAL_ERROR = "INTERNAL_ERROR"


class CacheableError(Exception):
    """Base exception for all Cacheable errors."""

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
        status_code: int = 500,
    ):
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.status_code = status_code

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for logging and API responses."""
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "details": self.details,
        }


class ConfigurationError(CacheableError):
    """Raised when configuration is invalid or a driver cannot be resolved."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message, details, status_code=500)


class CacheError(CacheableError):
    """Base exception for cache store errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message, details, status_code=500)


class CacheConnectionError(CacheError):
    """Raised when the cache store connection fails."""

    def __init__(self, backend: str, details: dict[str, Any] | None = None):
        message = f"Failed to connect to cache backend: {backend}"
        super().__init__(message, details)


class CacheOperationError(CacheError):
    """Raised when a cache store operation fails or is unsupported."""

    pass


class FingerprintError(CacheableError):
    """Raised when a query descriptor cannot be turned into a cache key."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message, details, status_code=422)


class KeyIndexError(CacheableError):
    """Raised when the key index cannot be read or written."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message, details, status_code=500)


class KeyIndexCorruptError(KeyIndexError):
    """Raised when the persisted key index exists but cannot be decoded."""

    def __init__(self, location: str, details: dict[str, Any] | None = None):
        message = f"Key index at {location} is corrupt"
        error_details = details or {}
        error_details["location"] = location
        super().__init__(message, error_details)


def extract_error_code(error: Exception) -> ErrorCode:
    """
    Extract the appropriate ErrorCode from an exception.

    Args:
        error: Exception to categorize

    Returns:
        ErrorCode for the exception
    """
    if isinstance(error, KeyIndexCorruptError):
        return ErrorCode.KEY_INDEX_CORRUPT

    if isinstance(error, KeyIndexError):
        return ErrorCode.KEY_INDEX_FAILURE

    if isinstance(error, FingerprintError):
        return ErrorCode.FINGERPRINT_FAILURE

    if isinstance(error, CacheConnectionError):
        return ErrorCode.CACHE_UNAVAILABLE

    if isinstance(error, CacheError):
        return ErrorCode.CACHE_FAILURE

    if isinstance(error, ConfigurationError):
        return ErrorCode.INVALID_CONFIGURATION

    return ErrorCode.INTERNAL_ERROR
