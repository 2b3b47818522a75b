"""
Cacheable - Key Index Module

Tracks cache keys per entity type for stores without native tags.
Redis index is lazy-loaded via factory.py.
"""

from .factory import create_key_index
from .file import FileKeyIndex
from .interface import KeyIndex

__all__ = [
    "create_key_index",
    "FileKeyIndex",
    "KeyIndex",
]
