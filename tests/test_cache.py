"""
Tests for the booking view cache, with Redis replaced by an in-memory fake.
"""

import json

import pytest
from httpx import AsyncClient

from hotel_booking.services import cache_service


class FakeRedis:
    """The handful of redis.asyncio calls the cache uses, backed by a dict."""

    def __init__(self):
        self.data = {}

    async def get(self, key):
        return self.data.get(key)

    async def setex(self, key, ttl, value):
        self.data[key] = value

    async def delete(self, *keys):
        return sum(1 for key in keys if self.data.pop(key, None) is not None)

    async def incr(self, key):
        value = int(self.data.get(key, 0)) + 1
        self.data[key] = str(value)
        return value


@pytest.fixture
def fake_redis(monkeypatch) -> FakeRedis:
    fake = FakeRedis()

    async def get_fake_redis():
        return fake

    monkeypatch.setattr(cache_service, "get_redis", get_fake_redis)
    return fake


@pytest.mark.asyncio
async def test_room_change_invalidates_cached_booking(
    client: AsyncClient, fake_redis, factory, test_user, auth_headers, room, hotel
):
    """GET fills the cache, PUT drops it, and the next GET shows the new room."""
    booking = await factory.create_booking(test_user, room)
    new_room = await factory.create_room(hotel)
    user_id, booking_id, room_id, new_room_id = test_user.id, booking.id, room.id, new_room.id
    first_key = f"booking:user:{user_id}:v0"

    first = await client.get("/booking", headers=auth_headers)
    assert first.status_code == 200
    assert json.loads(fake_redis.data[first_key])["roomId"] == room_id

    moved = await client.put(f"/booking/{booking_id}", json={"roomId": new_room_id}, headers=auth_headers)
    assert moved.status_code == 200
    assert first_key not in fake_redis.data
    assert fake_redis.data[f"booking:user:{user_id}:version"] == "1"

    second = await client.get("/booking", headers=auth_headers)
    assert second.json()["roomId"] == new_room_id
    assert second.json()["Room"]["id"] == new_room_id
    assert json.loads(fake_redis.data[f"booking:user:{user_id}:v1"])["roomId"] == new_room_id


@pytest.mark.asyncio
async def test_get_serves_cached_payload(client: AsyncClient, fake_redis, factory, test_user, auth_headers, room):
    """A cache hit answers without reading the database."""
    await factory.create_booking(test_user, room)
    key = f"booking:user:{test_user.id}:v0"

    await client.get("/booking", headers=auth_headers)
    payload = json.loads(fake_redis.data[key])
    payload["Room"]["name"] = "cached"
    fake_redis.data[key] = json.dumps(payload)

    response = await client.get("/booking", headers=auth_headers)
    assert response.json()["Room"]["name"] == "cached"


@pytest.mark.asyncio
async def test_create_invalidates_cache(client: AsyncClient, fake_redis, test_user, auth_headers, room):
    """A successful POST bumps the cache version for that user only."""
    user_id, room_id = test_user.id, room.id

    missing = await client.get("/booking", headers=auth_headers)
    assert missing.status_code == 404
    assert fake_redis.data == {}

    created = await client.post("/booking", json={"roomId": room_id}, headers=auth_headers)
    assert created.status_code == 200
    assert fake_redis.data == {f"booking:user:{user_id}:version": "1"}

    view = await client.get("/booking", headers=auth_headers)
    assert view.json()["id"] == created.json()["bookingId"]


@pytest.mark.asyncio
async def test_slow_read_cannot_repopulate_cache_after_change(fake_redis):
    """A GET that loaded the old row before a change writes under a key nobody reads."""
    stale_key = await cache_service.current_booking_key(1)

    await cache_service.invalidate_booking_cache(1)
    await cache_service.set_cached_booking(stale_key, {"id": 1, "roomId": 10})

    fresh_key = await cache_service.current_booking_key(1)
    assert fresh_key != stale_key
    assert await cache_service.get_cached_booking(fresh_key) is None


@pytest.mark.asyncio
async def test_cache_is_noop_when_redis_disabled():
    """With Redis disabled there is no key and every call is a no-op."""
    assert await cache_service.current_booking_key(1) is None
    assert await cache_service.get_cached_booking(None) is None
    await cache_service.set_cached_booking(None, {"id": 1})
    await cache_service.invalidate_booking_cache(1)
