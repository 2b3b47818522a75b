"""
Cacheable - File Cache Backend

Stores each entry as a small JSON document on disk. Survives restarts and
can be shared by processes on the same host, but has no notion of tags:
grouped invalidation for this backend goes through the key index.
"""

import asyncio
import hashlib
import json
import logging
import os
import tempfile
import time
from pathlib import Path
from typing import Any

from ...errors import CacheOperationError, ErrorCode
from ..interface import CacheInterface

logger = logging.getLogger(__name__)

ENTRY_SUFFIX = ".entry.json"


class FileCacheBackend(CacheInterface):
    """
    Directory-backed cache backend.

    Each key maps to ``<directory>/<sha256(namespace:key)>.entry.json`` holding
    ``{"key": ..., "value": ..., "expires_at": ...}``. Expired entries are
    removed lazily on read. Other files in the directory are left alone.
    """

    def __init__(
        self,
        directory: str | Path,
        default_ttl: int = 3600,
        namespace: str = "cacheable",
    ):
        self.directory = Path(directory)
        self.default_ttl = default_ttl
        self.namespace = namespace

        self._hits = 0
        self._misses = 0
        self._sets = 0
        self._deletes = 0

    def _make_key(self, key: str) -> str:
        return f"{self.namespace}:{key}"

    def _path_for(self, key: str) -> Path:
        digest = hashlib.sha256(self._make_key(key).encode("utf-8")).hexdigest()
        return self.directory / f"{digest}{ENTRY_SUFFIX}"

    # ------------ Blocking helpers (run in a worker thread) ------------

    def _read_entry(self, path: Path) -> dict[str, Any] | None:
        try:
            raw = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None

        try:
            entry = json.loads(raw)
        except ValueError:
            entry = None

        if not isinstance(entry, dict):
            logger.warning(f"Discarding unreadable cache entry {path.name}", extra={"path": str(path)})
            path.unlink(missing_ok=True)
            return None

        expires_at = entry.get("expires_at")
        if expires_at is not None and time.time() > expires_at:
            path.unlink(missing_ok=True)
            return None

        return entry

    def _write_entry(self, path: Path, payload: str) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        tmp_path: Path | None = None
        try:
            with tempfile.NamedTemporaryFile(
                "w",
                dir=self.directory,
                delete=False,
                encoding="utf-8",
                suffix=".tmp",
            ) as handle:
                tmp_path = Path(handle.name)
                handle.write(payload)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(tmp_path, path)
        except OSError:
            if tmp_path is not None:
                tmp_path.unlink(missing_ok=True)
            raise

    def _delete_entry(self, path: Path) -> bool:
        try:
            path.unlink()
            return True
        except FileNotFoundError:
            return False

    def _entry_paths(self) -> list[Path]:
        if not self.directory.exists():
            return []
        return list(self.directory.glob(f"*{ENTRY_SUFFIX}"))

    # ------------ Core Interface ------------

    async def get(self, key: str) -> Any | None:
        """Retrieve value from disk."""
        try:
            entry = await asyncio.to_thread(self._read_entry, self._path_for(key))
        except OSError as e:
            raise CacheOperationError(
                f"Failed to read cache entry '{key}': {e}",
                details={"key": key, "directory": str(self.directory)},
            ) from e

        if entry is None:
            self._misses += 1
            return None

        self._hits += 1
        return entry.get("value")

    async def set(
        self,
        key: str,
        value: Any,
        ttl: int | None = None,
        tags: list[str] | None = None,
    ) -> bool:
        """Store value on disk."""
        if tags:
            raise CacheOperationError(
                "File cache backend does not support tags",
                details={"key": key, "tags": tags, "error_code": ErrorCode.GROUPING_UNSUPPORTED},
            )

        if ttl is None:
            ttl = self.default_ttl
        expires_at = time.time() + ttl if ttl > 0 else None

        try:
            payload = json.dumps({"key": key, "value": value, "expires_at": expires_at}, ensure_ascii=False)
        except (TypeError, ValueError) as e:
            raise CacheOperationError(
                f"Value for key '{key}' is not JSON serializable",
                details={"key": key, "value_type": type(value).__name__},
            ) from e

        try:
            await asyncio.to_thread(self._write_entry, self._path_for(key), payload)
        except OSError as e:
            logger.error(
                f"Failed to write cache entry '{key}': {e}",
                extra={"key": key, "directory": str(self.directory), "error": str(e)},
                exc_info=True,
            )
            raise CacheOperationError(
                f"Failed to write cache entry '{key}': {e}",
                details={"key": key, "directory": str(self.directory)},
            ) from e

        self._sets += 1
        return True

    async def delete(self, key: str) -> bool:
        """Delete entry from disk."""
        try:
            deleted = await asyncio.to_thread(self._delete_entry, self._path_for(key))
        except OSError as e:
            logger.error(
                f"Failed to delete cache entry '{key}': {e}",
                extra={"key": key, "directory": str(self.directory), "error": str(e)},
                exc_info=True,
            )
            raise CacheOperationError(
                f"Failed to delete cache entry '{key}': {e}",
                details={"key": key, "directory": str(self.directory)},
            ) from e
        if deleted:
            self._deletes += 1
        return deleted

    async def exists(self, key: str) -> bool:
        """Check if an unexpired entry exists."""
        try:
            entry = await asyncio.to_thread(self._read_entry, self._path_for(key))
        except OSError as e:
            raise CacheOperationError(
                f"Failed to read cache entry '{key}': {e}",
                details={"key": key, "directory": str(self.directory)},
            ) from e
        return entry is not None

    async def clear(self) -> bool:
        """Remove every entry file in the directory."""
        try:
            paths = await asyncio.to_thread(self._entry_paths)
            for path in paths:
                await asyncio.to_thread(self._delete_entry, path)
        except OSError as e:
            raise CacheOperationError(
                f"Failed to clear file cache at {self.directory}: {e}",
                details={"directory": str(self.directory)},
            ) from e
        logger.info(f"Cleared {len(paths)} entries from file cache at {self.directory}")
        return True

    async def get_stats(self) -> dict[str, Any]:
        """Get cache statistics."""
        paths = await asyncio.to_thread(self._entry_paths)
        total_requests = self._hits + self._misses
        hit_rate = (self._hits / total_requests * 100) if total_requests > 0 else 0.0

        return {
            "backend": "file",
            "directory": str(self.directory),
            "size": len(paths),
            "hits": self._hits,
            "misses": self._misses,
            "hit_rate": round(hit_rate, 2),
            "sets": self._sets,
            "deletes": self._deletes,
            "namespace": self.namespace,
        }

    async def close(self) -> None:
        """Nothing to release; entries stay on disk."""
        logger.debug(f"File cache backend closed for {self.directory}")
