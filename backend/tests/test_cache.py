"""
Tests for catalog caching: read-through, invalidation on writes, and
fail-open behaviour when Redis is disabled.
"""

import fnmatch
from datetime import timedelta

import pytest
from httpx import AsyncClient

from cinema.services import cache_service


class InMemoryRedis:
    """The subset of redis.asyncio.Redis the cache service uses."""

    def __init__(self):
        self.store = {}

    async def get(self, key):
        return self.store.get(key)

    async def setex(self, key, ttl, value):
        self.store[key] = value

    async def delete(self, *keys):
        for key in keys:
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


@pytest.mark.asyncio
async def test_cache_disabled_is_a_miss():
    await cache_service.set_cached("movies:list", [{"id": 1}])
    assert await cache_service.get_cached("movies:list") is None


@pytest.mark.asyncio
async def test_movie_list_cached_and_invalidated(client: AsyncClient, alice_headers, seeded, fake_redis):
    response = await client.get("/api/v1/movies")
    assert [m["title"] for m in response.json()] == ["Test Movie"]
    assert cache_service.MOVIE_LIST_KEY in fake_redis.store

    response = await client.post(
        "/api/v1/movies",
        json={"title": "Arrival", "description": "Aliens land.", "duration_minutes": 116},
        headers=alice_headers,
    )
    assert response.status_code == 201
    assert cache_service.MOVIE_LIST_KEY not in fake_redis.store

    response = await client.get("/api/v1/movies")
    assert [m["title"] for m in response.json()] == ["Arrival", "Test Movie"]


@pytest.mark.asyncio
async def test_cached_movie_list_is_served(client: AsyncClient, seeded, fake_redis):
    await client.get("/api/v1/movies")
    fake_redis.store[cache_service.MOVIE_LIST_KEY] = fake_redis.store[cache_service.MOVIE_LIST_KEY].replace(
        "Test Movie", "Cached Title"
    )

    response = await client.get("/api/v1/movies")
    assert [m["title"] for m in response.json()] == ["Cached Title"]


@pytest.mark.asyncio
async def test_show_listing_invalidated_on_show_write(client: AsyncClient, alice_headers, seeded, fake_redis):
    key = cache_service.shows_by_movie_key(seeded["movie_id"])
    response = await client.get(f"/api/v1/shows/by-movie/{seeded['movie_id']}")
    assert len(response.json()) == 1
    assert key in fake_redis.store

    starts_at = seeded["show_starts_at"] + timedelta(hours=3)
    response = await client.post(
        "/api/v1/shows",
        json={
            "movie_id": seeded["movie_id"],
            "screen_id": seeded["screen_id"],
            "starts_at": starts_at.isoformat(),
            "price": "120.00",
        },
        headers=alice_headers,
    )
    assert response.status_code == 201
    assert key not in fake_redis.store

    response = await client.get(f"/api/v1/shows/by-movie/{seeded['movie_id']}")
    assert len(response.json()) == 2


@pytest.mark.asyncio
async def test_seat_map_is_never_cached(client: AsyncClient, seeded, fake_redis):
    await client.get(f"/api/v1/shows/{seeded['show_id']}/seats")
    assert fake_redis.store == {}
