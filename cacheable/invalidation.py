"""
Cacheable - Invalidation Trigger

Flushes an entity type's cached queries whenever one of its records is
created, updated or deleted, unless invalidation is switched off for it.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from .config.schemas import InvalidationSettings
from .events import LIFECYCLE_EVENTS, EventDispatcher
from .query_cache import QueryCache

logger = logging.getLogger(__name__)


class InvalidationTrigger:
    """
    Subscribes to entity lifecycle events and flushes the affected type.

    Usage:
        trigger = InvalidationTrigger(query_cache, dispatcher)
        trigger.attach()
        await dispatcher.fire(ENTITY_UPDATED, "User")
    """

    def __init__(
        self,
        query_cache: QueryCache,
        dispatcher: EventDispatcher | None = None,
        settings: InvalidationSettings | None = None,
        drivers: Sequence[str | None] | None = None,
    ) -> None:
        self.query_cache = query_cache
        self.dispatcher = dispatcher or query_cache.dispatcher
        self.settings = settings or query_cache.settings
        self.drivers = list(drivers) if drivers else None
        self._attached = False

    @property
    def attached(self) -> bool:
        return self._attached

    def attach(self) -> None:
        """Start listening for lifecycle events. Safe to call more than once."""
        if self._attached:
            return
        for event in LIFECYCLE_EVENTS:
            self.dispatcher.listen(event, self.handle)
        self._attached = True

    def detach(self) -> None:
        for event in LIFECYCLE_EVENTS:
            self.dispatcher.remove(event, self.handle)
        self._attached = False

    async def handle(self, entity_type: str) -> list[str]:
        """Flush the entity type if invalidation is enabled for it."""
        if not self.settings.is_enabled(entity_type):
            logger.debug(
                f"Cache invalidation disabled for {entity_type}, skipping flush",
                extra={"entity_type": entity_type},
            )
            return []

        return await self.query_cache.forget_cache(entity_type, self.drivers)
