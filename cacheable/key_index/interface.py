"""
Cacheable - Key Index Interface

The key index records which cache keys belong to which entity type, so that
stores without native tags can still drop every cached query of a type.
"""

from abc import ABC, abstractmethod


class KeyIndex(ABC):
    """
    Abstract base class for key index persistence.

    Implementations must make ``add`` and ``pop`` atomic with respect to
    every other caller sharing the same index, including other processes.
    """

    @abstractmethod
    async def add(self, entity_type: str, key: str) -> bool:
        """
        Record a cache key under an entity type.

        Args:
            entity_type: Entity type the cached query targets
            key: Cache key to record

        Returns:
            True if the key was new for this type, False if already recorded
        """
        pass

    @abstractmethod
    async def pop(self, entity_type: str) -> list[str]:
        """
        Remove and return every key recorded for an entity type.

        Returns:
            The recorded keys, or an empty list if the type has none
        """
        pass

    @abstractmethod
    async def read(self) -> dict[str, list[str]]:
        """Return the whole index. A never-written index reads as empty."""
        pass

    @abstractmethod
    async def write(self, mapping: dict[str, list[str]]) -> None:
        """Replace the whole index with the given mapping."""
        pass

    async def close(self) -> None:
        """Release resources held by the index."""
        return None
