"""
Cacheable - File Key Index

Persists the key index as one JSON document:

    {"User": ["3f2a...", "9bc1..."], "Post": ["77de..."]}

Every read-modify-write runs under an asyncio lock (coroutines in this
process) and an exclusive flock on ``<path>.lock`` (other processes), and
the document is replaced atomically, so concurrent appends are never lost.
"""

import asyncio
import fcntl
import json
import logging
import os
import tempfile
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from ..errors import KeyIndexCorruptError, KeyIndexError
from .interface import KeyIndex

logger = logging.getLogger(__name__)


class FileKeyIndex(KeyIndex):
    """JSON document key index guarded by an in-process lock and a file lock."""

    def __init__(self, path: str | Path):
        self.path = Path(path)
        self.lock_path = self.path.with_name(f"{self.path.name}.lock")
        self._lock = asyncio.Lock()

    # ------------ Blocking helpers (run in a worker thread) ------------

    @contextmanager
    def _exclusive(self) -> Iterator[None]:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.lock_path, "a") as handle:
            fcntl.flock(handle.fileno(), fcntl.LOCK_EX)
            try:
                yield
            finally:
                fcntl.flock(handle.fileno(), fcntl.LOCK_UN)

    def _load(self) -> dict[str, list[str]]:
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        except UnicodeDecodeError as e:
            raise KeyIndexCorruptError(str(self.path), details={"error": str(e)}) from e

        # An empty document is how a freshly created index looks
        if not raw.strip():
            return {}

        try:
            data = json.loads(raw)
        except ValueError as e:
            raise KeyIndexCorruptError(str(self.path), details={"error": str(e)}) from e

        if not isinstance(data, dict) or not all(
            isinstance(entity_type, str) and isinstance(keys, list) and all(isinstance(k, str) for k in keys)
            for entity_type, keys in data.items()
        ):
            raise KeyIndexCorruptError(str(self.path), details={"error": "expected an object of string lists"})

        return data

    def _dump(self, mapping: dict[str, list[str]]) -> None:
        directory = self.path.parent
        directory.mkdir(parents=True, exist_ok=True)
        tmp_path: Path | None = None
        try:
            with tempfile.NamedTemporaryFile(
                "w",
                dir=directory,
                delete=False,
                encoding="utf-8",
                prefix=f".{self.path.name}.",
            ) as handle:
                tmp_path = Path(handle.name)
                json.dump(mapping, handle)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(tmp_path, self.path)
        except OSError:
            if tmp_path is not None:
                tmp_path.unlink(missing_ok=True)
            raise

    def _add(self, entity_type: str, key: str) -> bool:
        with self._exclusive():
            mapping = self._load()
            keys = mapping.setdefault(entity_type, [])
            if key in keys:
                return False
            keys.append(key)
            self._dump(mapping)
            return True

    def _pop(self, entity_type: str) -> list[str]:
        with self._exclusive():
            mapping = self._load()
            if entity_type not in mapping:
                return []
            keys = mapping.pop(entity_type)
            self._dump(mapping)
            return keys

    def _read(self) -> dict[str, list[str]]:
        with self._exclusive():
            return self._load()

    def _write(self, mapping: dict[str, list[str]]) -> None:
        with self._exclusive():
            self._dump(mapping)

    def _io_error(self, action: str, error: OSError) -> KeyIndexError:
        logger.error(
            f"Failed to {action} key index at {self.path}: {error}",
            extra={"path": str(self.path), "error": str(error)},
            exc_info=True,
        )
        return KeyIndexError(
            f"Failed to {action} key index at {self.path}: {error}",
            details={"path": str(self.path), "error": str(error)},
        )

    # ------------ KeyIndex ------------

    async def add(self, entity_type: str, key: str) -> bool:
        async with self._lock:
            try:
                added = await asyncio.to_thread(self._add, entity_type, key)
            except OSError as e:
                raise self._io_error("update", e) from e

        if added:
            logger.debug("Recorded cache key", extra={"entity_type": entity_type, "key": key})
        return added

    async def pop(self, entity_type: str) -> list[str]:
        async with self._lock:
            try:
                keys = await asyncio.to_thread(self._pop, entity_type)
            except OSError as e:
                raise self._io_error("flush", e) from e

        logger.debug(
            f"Popped {len(keys)} cache keys for {entity_type}",
            extra={"entity_type": entity_type, "count": len(keys)},
        )
        return keys

    async def read(self) -> dict[str, list[str]]:
        async with self._lock:
            try:
                return await asyncio.to_thread(self._read)
            except OSError as e:
                raise self._io_error("read", e) from e

    async def write(self, mapping: dict[str, list[str]]) -> None:
        async with self._lock:
            try:
                await asyncio.to_thread(self._write, mapping)
            except OSError as e:
                raise self._io_error("write", e) from e
