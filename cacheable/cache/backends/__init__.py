"""
Cacheable - Cache Backends

Exports available cache backend implementations.

Redis backend is lazy-loaded via factory.py to avoid import overhead.
"""

from .file import FileCacheBackend
from .memory import MemoryCacheBackend

__all__ = [
    "FileCacheBackend",
    "MemoryCacheBackend",
]
