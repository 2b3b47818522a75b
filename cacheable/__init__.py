"""
Cacheable - Query Result Caching

Transparent caching of read queries keyed by their structure, with
per-entity-type invalidation on create/update/delete. Works with stores
that support tags natively and, through a persisted key index, with
stores that do not.
"""

__version__ = "1.0.0"

from .bootstrap import build_invalidation, build_query_cache
from .events import (
    CACHE_FLUSHED,
    CACHE_FLUSHING,
    ENTITY_CREATED,
    ENTITY_DELETED,
    ENTITY_UPDATED,
    EventDispatcher,
)
from .fingerprint import FOREVER, CacheOptions, QueryDescriptor, fingerprint
from .invalidation import InvalidationTrigger
from .query_cache import ModelCache, QueryCache

__all__ = [
    # Wiring
    "build_query_cache",
    "build_invalidation",
    # Core
    "QueryCache",
    "ModelCache",
    "InvalidationTrigger",
    "QueryDescriptor",
    "CacheOptions",
    "FOREVER",
    "fingerprint",
    # Events
    "EventDispatcher",
    "ENTITY_CREATED",
    "ENTITY_UPDATED",
    "ENTITY_DELETED",
    "CACHE_FLUSHING",
    "CACHE_FLUSHED",
]
