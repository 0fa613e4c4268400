"""
Tests for seat locking: acquisition, renewal, expiry takeover and validation.
"""

import asyncio
from datetime import datetime

import pytest
from httpx import AsyncClient
from sqlalchemy import select

from cinema.core.config import get_settings
from cinema.core.exceptions import ConflictError
from cinema.models import Seat
from cinema.models.seat_lock import SeatLock
from cinema.services import seat_service
from cinema.services.lock_service import acquire_locks

HOLD = get_settings().lock_hold


def parse_dt(value: str) -> datetime:
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


async def lock_rows(session, show_id):
    result = await session.execute(
        select(SeatLock.seat_id, SeatLock.locked_by).where(SeatLock.show_id == show_id).order_by(SeatLock.seat_id)
    )
    return [tuple(row) for row in result.all()]


@pytest.mark.asyncio
async def test_lock_seats(client: AsyncClient, alice_headers, seeded, clock):
    """Locking free seats returns their ids and a common expiry."""
    a1, a2 = seeded["seats"]["A1"], seeded["seats"]["A2"]
    response = await client.post(
        "/api/v1/bookings/lock",
        json={"show_id": seeded["show_id"], "seat_ids": [a1, a2]},
        headers=alice_headers,
    )
    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["data"]["message"] == "locked"
    assert body["data"]["seat_ids"] == [a1, a2]
    assert parse_dt(body["data"]["expires_at"]) == clock.now() + HOLD


@pytest.mark.asyncio
async def test_lock_requires_auth(client: AsyncClient, seeded):
    response = await client.post(
        "/api/v1/bookings/lock",
        json={"show_id": seeded["show_id"], "seat_ids": [seeded["seats"]["A1"]]},
    )
    assert response.status_code == 401
    assert response.json()["success"] is False


@pytest.mark.asyncio
async def test_lock_invalid_token(client: AsyncClient, seeded):
    response = await client.post(
        "/api/v1/bookings/lock",
        json={"show_id": seeded["show_id"], "seat_ids": [seeded["seats"]["A1"]]},
        headers={"Authorization": "Bearer not-a-jwt"},
    )
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_lock_held_by_other_user_conflicts(client: AsyncClient, alice_headers, bob_headers, seeded, db_session):
    """All or nothing: a conflict on one seat leaves the other seats unlocked."""
    a1, a2 = seeded["seats"]["A1"], seeded["seats"]["A2"]
    await client.post(
        "/api/v1/bookings/lock", json={"show_id": seeded["show_id"], "seat_ids": [a1]}, headers=alice_headers
    )

    response = await client.post(
        "/api/v1/bookings/lock", json={"show_id": seeded["show_id"], "seat_ids": [a1, a2]}, headers=bob_headers
    )
    assert response.status_code == 409
    body = response.json()
    assert body["success"] is False
    assert body["data"] is None
    assert body["seat_ids"] == [a1]
    assert body["message"] == f"Seats already locked: {a1}"

    assert await lock_rows(db_session, seeded["show_id"]) == [(a1, "alice@example.com")]


@pytest.mark.asyncio
async def test_relock_renews_expiry(client: AsyncClient, alice_headers, seeded, clock, db_session):
    """Re-locking before expiry extends the same rows instead of adding new ones."""
    a1, a2 = seeded["seats"]["A1"], seeded["seats"]["A2"]
    body = {"show_id": seeded["show_id"], "seat_ids": [a1, a2]}
    await client.post("/api/v1/bookings/lock", json=body, headers=alice_headers)

    clock.advance(minutes=2)
    response = await client.post("/api/v1/bookings/lock", json=body, headers=alice_headers)
    assert response.status_code == 200
    assert parse_dt(response.json()["data"]["expires_at"]) == clock.now() + HOLD

    rows = await lock_rows(db_session, seeded["show_id"])
    assert rows == [(a1, "alice@example.com"), (a2, "alice@example.com")]


@pytest.mark.asyncio
async def test_relock_can_extend_selection(client: AsyncClient, alice_headers, seeded, db_session):
    a1, a2 = seeded["seats"]["A1"], seeded["seats"]["A2"]
    await client.post(
        "/api/v1/bookings/lock", json={"show_id": seeded["show_id"], "seat_ids": [a1]}, headers=alice_headers
    )
    response = await client.post(
        "/api/v1/bookings/lock", json={"show_id": seeded["show_id"], "seat_ids": [a1, a2]}, headers=alice_headers
    )
    assert response.status_code == 200
    assert len(await lock_rows(db_session, seeded["show_id"])) == 2


@pytest.mark.asyncio
async def test_expired_lock_is_taken_over(client: AsyncClient, alice_headers, bob_headers, seeded, clock, db_session):
    """An expired lock never conflicts; the next acquirer replaces it."""
    a1 = seeded["seats"]["A1"]
    body = {"show_id": seeded["show_id"], "seat_ids": [a1]}
    await client.post("/api/v1/bookings/lock", json=body, headers=alice_headers)

    clock.advance(minutes=6)
    response = await client.post("/api/v1/bookings/lock", json=body, headers=bob_headers)
    assert response.status_code == 200

    assert await lock_rows(db_session, seeded["show_id"]) == [(a1, "bob@example.com")]


@pytest.mark.asyncio
async def test_lock_exactly_at_expiry_is_expired(client: AsyncClient, alice_headers, bob_headers, seeded, clock):
    a1 = seeded["seats"]["A1"]
    body = {"show_id": seeded["show_id"], "seat_ids": [a1]}
    await client.post("/api/v1/bookings/lock", json=body, headers=alice_headers)

    clock.advance(minutes=get_settings().LOCK_HOLD_MINUTES)
    response = await client.post("/api/v1/bookings/lock", json=body, headers=bob_headers)
    assert response.status_code == 200


@pytest.mark.asyncio
async def test_duplicate_and_non_positive_ids_are_dropped(client: AsyncClient, alice_headers, seeded):
    a1 = seeded["seats"]["A1"]
    response = await client.post(
        "/api/v1/bookings/lock",
        json={"show_id": seeded["show_id"], "seat_ids": [a1, 0, -3, a1]},
        headers=alice_headers,
    )
    assert response.status_code == 200
    assert response.json()["data"]["seat_ids"] == [a1]


@pytest.mark.asyncio
@pytest.mark.parametrize("seat_ids", [[], [0, -1]])
async def test_empty_selection(client: AsyncClient, alice_headers, seeded, seat_ids):
    response = await client.post(
        "/api/v1/bookings/lock",
        json={"show_id": seeded["show_id"], "seat_ids": seat_ids},
        headers=alice_headers,
    )
    assert response.status_code == 400
    assert response.json()["message"] == "Seat selection is required"


async def add_row(session, screen_id, row, count):
    seats = [Seat(screen_id=screen_id, row=row, number=n) for n in range(1, count + 1)]
    session.add_all(seats)
    await session.commit()
    return [seat.id for seat in seats]


@pytest.mark.asyncio
async def test_large_selection_is_not_capped(session_factory, alice, seeded, clock):
    """Without MAX_SEATS_PER_REQUEST any number of valid seats locks at once."""
    async with session_factory() as session:
        row_c = await add_row(session, seeded["screen_id"], "C", 12)

    async with session_factory() as session:
        _, locked = await acquire_locks(session, seeded["show_id"], row_c[:11], alice.email, clock)
    assert locked == row_c[:11]


@pytest.mark.asyncio
async def test_configured_seat_cap(client: AsyncClient, alice_headers, seeded, monkeypatch):
    monkeypatch.setattr(seat_service.settings, "MAX_SEATS_PER_REQUEST", 2)
    seats = seeded["seats"]
    response = await client.post(
        "/api/v1/bookings/lock",
        json={"show_id": seeded["show_id"], "seat_ids": [seats["A1"], seats["A2"], seats["B1"]]},
        headers=alice_headers,
    )
    assert response.status_code == 400
    assert response.json()["message"] == "At most 2 seats per request"

    response = await client.post(
        "/api/v1/bookings/lock",
        json={"show_id": seeded["show_id"], "seat_ids": [seats["A1"], seats["A2"]]},
        headers=alice_headers,
    )
    assert response.status_code == 200


@pytest.mark.asyncio
async def test_unknown_show(client: AsyncClient, alice_headers, seeded):
    response = await client.post(
        "/api/v1/bookings/lock",
        json={"show_id": 99999, "seat_ids": [seeded["seats"]["A1"]]},
        headers=alice_headers,
    )
    assert response.status_code == 404
    assert response.json()["message"] == "Show not found"


@pytest.mark.asyncio
async def test_seat_of_another_screen_is_invalid(client: AsyncClient, alice_headers, seeded):
    response = await client.post(
        "/api/v1/bookings/lock",
        json={"show_id": seeded["show_id"], "seat_ids": [seeded["seats"]["A1"], seeded["foreign_seat_id"]]},
        headers=alice_headers,
    )
    assert response.status_code == 400
    assert response.json()["message"] == "Some seats are invalid for this show"


@pytest.mark.asyncio
async def test_disabled_seat_is_invalid(client: AsyncClient, alice_headers, seeded):
    response = await client.post(
        "/api/v1/bookings/lock",
        json={"show_id": seeded["show_id"], "seat_ids": [seeded["seats"]["A3"]]},
        headers=alice_headers,
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_concurrent_lock_same_seat(session_factory, seeded, clock):
    """Ten holders race for one seat: exactly one wins, the rest get a conflict."""
    a1 = seeded["seats"]["A1"]
    holders = [f"user{i}@example.com" for i in range(10)]

    async def attempt(holder):
        async with session_factory() as session:
            try:
                await acquire_locks(session, seeded["show_id"], [a1], holder, clock)
                return holder
            except ConflictError:
                return None

    results = await asyncio.gather(*(attempt(h) for h in holders))
    winners = [r for r in results if r]
    assert len(winners) == 1

    async with session_factory() as session:
        assert await lock_rows(session, seeded["show_id"]) == [(a1, winners[0])]


@pytest.mark.asyncio
async def test_concurrent_overlapping_selections(session_factory, seeded, clock):
    """[A1, A2] and [A2, B1] overlap on A2: only one selection can be held."""
    seats = seeded["seats"]
    selections = {
        "first@example.com": [seats["A1"], seats["A2"]],
        "second@example.com": [seats["A2"], seats["B1"]],
    }

    async def attempt(holder, seat_ids):
        async with session_factory() as session:
            try:
                await acquire_locks(session, seeded["show_id"], seat_ids, holder, clock)
                return True
            except ConflictError:
                return False

    results = await asyncio.gather(*(attempt(h, s) for h, s in selections.items()))
    assert sorted(results) == [False, True]

    async with session_factory() as session:
        holders = {holder for _, holder in await lock_rows(session, seeded["show_id"])}
    assert len(holders) == 1
