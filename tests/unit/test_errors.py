"""
Cacheable - Error Hierarchy Tests
"""

import pytest

from cacheable.errors import (
    CacheableError,
    CacheConnectionError,
    CacheOperationError,
    ConfigurationError,
    ErrorCode,
    FingerprintError,
    KeyIndexCorruptError,
    KeyIndexError,
    extract_error_code,
)


class TestErrors:
    def test_to_dict(self) -> None:
        error = KeyIndexError("disk full", details={"path": "/data/cacheable.json"})

        assert error.to_dict() == {
            "error": "KeyIndexError",
            "message": "disk full",
            "details": {"path": "/data/cacheable.json"},
        }

    def test_corrupt_error_records_location(self) -> None:
        error = KeyIndexCorruptError("/data/cacheable.json", details={"error": "Expecting value"})

        assert error.message == "Key index at /data/cacheable.json is corrupt"
        assert error.details == {"error": "Expecting value", "location": "/data/cacheable.json"}

    def test_fingerprint_error_is_client_error(self) -> None:
        assert FingerprintError("bad binding").status_code == 422

    def test_connection_error_message(self) -> None:
        assert str(CacheConnectionError("redis")) == "Failed to connect to cache backend: redis"

    @pytest.mark.parametrize(
        "error, code",
        [
            (KeyIndexCorruptError("/x"), ErrorCode.KEY_INDEX_CORRUPT),
            (KeyIndexError("io"), ErrorCode.KEY_INDEX_FAILURE),
            (FingerprintError("bad"), ErrorCode.FINGERPRINT_FAILURE),
            (CacheConnectionError("redis"), ErrorCode.CACHE_UNAVAILABLE),
            (CacheOperationError("rejected"), ErrorCode.CACHE_FAILURE),
            (ConfigurationError("bad"), ErrorCode.INVALID_CONFIGURATION),
            (CacheableError("other"), ErrorCode.INTERNAL_ERROR),
            (RuntimeError("boom"), ErrorCode.INTERNAL_ERROR),
        ],
    )
    def test_extract_error_code(self, error: Exception, code: ErrorCode) -> None:
        assert extract_error_code(error) == code
