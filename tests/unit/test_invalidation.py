"""
Cacheable - Invalidation Trigger Tests
"""

import pytest

from cacheable.cache.backends.file import FileCacheBackend
from cacheable.cache.gateway import CacheGateway
from cacheable.config.schemas import InvalidationSettings
from cacheable.events import (
    CACHE_FLUSHED,
    ENTITY_CREATED,
    ENTITY_DELETED,
    ENTITY_UPDATED,
    LIFECYCLE_EVENTS,
    EventDispatcher,
)
from cacheable.fingerprint import QueryDescriptor, fingerprint
from cacheable.invalidation import InvalidationTrigger
from cacheable.key_index.file import FileKeyIndex
from cacheable.query_cache import QueryCache


@pytest.fixture
def dispatcher() -> EventDispatcher:
    return EventDispatcher()


@pytest.fixture
def settings() -> InvalidationSettings:
    return InvalidationSettings()


@pytest.fixture
def query_cache(
    tagless_store: FileCacheBackend,
    key_index: FileKeyIndex,
    dispatcher: EventDispatcher,
    settings: InvalidationSettings,
) -> QueryCache:
    return QueryCache(CacheGateway(tagless_store), key_index, dispatcher, settings)


@pytest.fixture
def trigger(query_cache: QueryCache) -> InvalidationTrigger:
    trigger = InvalidationTrigger(query_cache)
    trigger.attach()
    return trigger


class TestInvalidationTrigger:
    @pytest.mark.parametrize("event", LIFECYCLE_EVENTS)
    async def test_lifecycle_event_flushes_type(
        self,
        trigger: InvalidationTrigger,
        dispatcher: EventDispatcher,
        tagless_store: FileCacheBackend,
        adult_users: QueryDescriptor,
        event: str,
    ) -> None:
        await trigger.query_cache.cache_query(adult_users, lambda: ["row"])

        await dispatcher.fire(event, "User")

        assert await tagless_store.get(fingerprint(adult_users)) is None

    async def test_other_types_survive(
        self,
        trigger: InvalidationTrigger,
        dispatcher: EventDispatcher,
        tagless_store: FileCacheBackend,
        adult_users: QueryDescriptor,
        recent_posts: QueryDescriptor,
    ) -> None:
        await trigger.query_cache.cache_query(adult_users, lambda: ["user"])
        await trigger.query_cache.cache_query(recent_posts, lambda: ["post"])

        await dispatcher.fire(ENTITY_DELETED, "User")

        assert await tagless_store.get(fingerprint(recent_posts)) == ["post"]

    async def test_disabled_type_keeps_results(
        self,
        trigger: InvalidationTrigger,
        dispatcher: EventDispatcher,
        settings: InvalidationSettings,
        tagless_store: FileCacheBackend,
        adult_users: QueryDescriptor,
    ) -> None:
        await trigger.query_cache.cache_query(adult_users, lambda: ["row"])
        settings.disable("User")

        results = await dispatcher.fire(ENTITY_UPDATED, "User")

        assert results == [[]]
        assert await tagless_store.get(fingerprint(adult_users)) == ["row"]

        # Re-enabling restores flushing
        settings.enable("User")
        await dispatcher.fire(ENTITY_UPDATED, "User")
        assert await tagless_store.get(fingerprint(adult_users)) is None

    async def test_globally_disabled(
        self, query_cache: QueryCache, dispatcher: EventDispatcher, adult_users: QueryDescriptor
    ) -> None:
        trigger = InvalidationTrigger(query_cache, settings=InvalidationSettings(enabled=False, overrides={"Post": True}))
        trigger.attach()
        await query_cache.cache_query(adult_users, lambda: ["row"])

        assert await trigger.handle("User") == []
        assert await trigger.handle("Post") == []
        assert await query_cache.key_index.read() == {"User": [fingerprint(adult_users)]}

    async def test_flush_notifications_follow_lifecycle_event(
        self, trigger: InvalidationTrigger, dispatcher: EventDispatcher
    ) -> None:
        flushed: list[str] = []
        dispatcher.listen(CACHE_FLUSHED, flushed.append)

        await dispatcher.fire(ENTITY_CREATED, "Post")

        assert flushed == ["Post"]

    async def test_attach_is_idempotent(self, trigger: InvalidationTrigger, dispatcher: EventDispatcher) -> None:
        flushed: list[str] = []
        dispatcher.listen(CACHE_FLUSHED, flushed.append)

        trigger.attach()
        await dispatcher.fire(ENTITY_UPDATED, "User")

        assert flushed == ["User"]

    async def test_detach(
        self,
        trigger: InvalidationTrigger,
        dispatcher: EventDispatcher,
        tagless_store: FileCacheBackend,
        adult_users: QueryDescriptor,
    ) -> None:
        await trigger.query_cache.cache_query(adult_users, lambda: ["row"])

        trigger.detach()
        assert trigger.attached is False
        for event in LIFECYCLE_EVENTS:
            assert dispatcher.has_listeners(event) is False

        await dispatcher.fire(ENTITY_UPDATED, "User")
        assert await tagless_store.get(fingerprint(adult_users)) == ["row"]

    async def test_shares_query_cache_collaborators(self, query_cache: QueryCache) -> None:
        trigger = InvalidationTrigger(query_cache)

        assert trigger.dispatcher is query_cache.dispatcher
        assert trigger.settings is query_cache.settings
        assert trigger.attached is False
