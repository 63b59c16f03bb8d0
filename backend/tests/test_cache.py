"""
Tests for the public listing cache and its invalidation.
Redis is replaced by an in-memory stand-in exposing the calls the cache uses.
"""

import fnmatch

import pytest
from httpx import AsyncClient

from app.schemas.event import EventSort, PublicEventFilter
from app.services import cache_service


class InMemoryRedis:
    def __init__(self):
        self.store: dict[str, str] = {}

    async def get(self, key):
        return self.store.get(key)

    async def setex(self, key, ttl, value):
        self.store[key] = value

    async def delete(self, key):
        self.store.pop(key, None)

    async def scan_iter(self, match="*", count=None):
        for key in list(self.store):
            if fnmatch.fnmatch(key, match):
                yield key


@pytest.fixture
def fake_redis(monkeypatch) -> InMemoryRedis:
    redis = InMemoryRedis()

    async def get_redis():
        return redis

    monkeypatch.setattr(cache_service, "get_redis", get_redis)
    return redis


def test_listing_key_depends_on_every_filter():
    base = PublicEventFilter()
    keys = {
        cache_service.make_listing_key(base),
        cache_service.make_listing_key(PublicEventFilter(text="jazz")),
        cache_service.make_listing_key(PublicEventFilter(categories=[2, 1])),
        cache_service.make_listing_key(PublicEventFilter(paid=True)),
        cache_service.make_listing_key(PublicEventFilter(only_available=True)),
        cache_service.make_listing_key(PublicEventFilter(sort=EventSort.VIEWS)),
        cache_service.make_listing_key(PublicEventFilter(offset=10)),
    }
    assert len(keys) == 7
    assert all(key.startswith(cache_service.KEY_PREFIX) for key in keys)
    assert cache_service.make_listing_key(PublicEventFilter(categories=[1, 2])) == \
        cache_service.make_listing_key(PublicEventFilter(categories=[2, 1]))


@pytest.mark.asyncio
async def test_disabled_cache_is_a_no_op():
    filters = PublicEventFilter()
    await cache_service.set_cached_listing(filters, [{"id": 1}])
    assert await cache_service.get_cached_listing(filters) is None


@pytest.mark.asyncio
async def test_listing_served_from_cache(client: AsyncClient, fake_redis, fake_stats, published_event):
    first = await client.get("/events")
    assert len(fake_redis.store) == 1
    assert len(fake_stats.lookups) == 1

    second = await client.get("/events")
    assert second.json() == first.json()
    assert len(fake_stats.lookups) == 1
    # Cached reads still count as views
    assert len(fake_stats.hits) == 2


@pytest.mark.asyncio
async def test_request_creation_invalidates_listing(client: AsyncClient, fake_redis, participant, published_event):
    await client.get("/events")
    assert fake_redis.store

    response = await client.post(f"/users/{participant.id}/requests", params={"eventId": published_event.id})
    assert response.status_code == 201
    assert fake_redis.store == {}

    refreshed = await client.get("/events")
    assert refreshed.json()[0]["confirmedRequests"] == 1
