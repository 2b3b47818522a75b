"""
Cacheable - Event Dispatcher

Minimal in-process dispatcher for entity lifecycle hooks and cache flush
notifications. Host frameworks fire the lifecycle events with the entity
type as payload; the query cache fires the flush notifications.
"""

from __future__ import annotations

import inspect
import logging
from collections.abc import Callable
from typing import Any

logger = logging.getLogger(__name__)

# Entity lifecycle events (payload: entity type)
ENTITY_CREATED = "entity.created"
ENTITY_UPDATED = "entity.updated"
ENTITY_DELETED = "entity.deleted"
LIFECYCLE_EVENTS = (ENTITY_CREATED, ENTITY_UPDATED, ENTITY_DELETED)

# Flush notifications (payload: entity type)
CACHE_FLUSHING = "cache.flushing"
CACHE_FLUSHED = "cache.flushed"

Listener = Callable[[Any], Any]


class EventDispatcher:
    """
    Registry of listeners keyed by event name.

    Listeners take the payload as their only argument and may be plain
    functions or coroutine functions.
    """

    def __init__(self) -> None:
        self._listeners: dict[str, list[Listener]] = {}

    def listen(self, event: str, listener: Listener) -> None:
        self._listeners.setdefault(event, []).append(listener)

    def remove(self, event: str, listener: Listener) -> None:
        listeners = self._listeners.get(event, [])
        if listener in listeners:
            listeners.remove(listener)

    def forget(self, event: str) -> None:
        self._listeners.pop(event, None)

    def has_listeners(self, event: str) -> bool:
        return bool(self._listeners.get(event))

    @staticmethod
    async def _call(listener: Listener, payload: Any) -> Any:
        result = listener(payload)
        if inspect.isawaitable(result):
            result = await result
        return result

    async def until(self, event: str, payload: Any) -> Any:
        """
        Call listeners in registration order until one returns a non-None value.

        Used for halting events: a listener returning False vetoes the action.
        Listener exceptions propagate to the caller.

        Returns:
            The first non-None listener result, or None
        """
        for listener in list(self._listeners.get(event, [])):
            result = await self._call(listener, payload)
            if result is not None:
                return result
        return None

    async def fire(self, event: str, payload: Any) -> list[Any]:
        """Call every listener and collect results. Listener exceptions propagate."""
        return [await self._call(listener, payload) for listener in list(self._listeners.get(event, []))]

    async def dispatch(self, event: str, payload: Any) -> None:
        """Call every listener, ignoring results. Failing listeners are logged and skipped."""
        for listener in list(self._listeners.get(event, [])):
            try:
                await self._call(listener, payload)
            except Exception as e:
                logger.error(
                    f"Listener for '{event}' failed: {e}",
                    extra={"event": event, "listener": getattr(listener, "__qualname__", repr(listener))},
                    exc_info=True,
                )
