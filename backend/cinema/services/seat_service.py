"""
Seat/show validation and the seat availability projection.

Both are pure reads. `validate_seats` is the first step of every lock and
confirm request; `get_seat_availability` is what seat maps are drawn from.
"""

from typing import Iterable

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from cinema.core.clock import Clock
from cinema.core.config import get_settings
from cinema.core.exceptions import InvalidInputError, NotFoundError
from cinema.models.booking import Booking, BookingSeat, BookingStatus
from cinema.models.catalog import Seat
from cinema.models.seat_lock import SeatLock
from cinema.models.show import Show
from cinema.schemas.booking import SeatAvailability

settings = get_settings()


def normalize_seat_ids(seat_ids: Iterable[int]) -> list[int]:
    """Drop non-positive ids and duplicates, keeping first-seen order."""
    seen: dict[int, None] = {}
    for seat_id in seat_ids or []:
        if seat_id > 0:
            seen.setdefault(seat_id, None)
    return list(seen)


async def get_show(db: AsyncSession, show_id: int) -> Show:
    result = await db.execute(select(Show).where(Show.id == show_id))
    show = result.scalar_one_or_none()
    if not show:
        raise NotFoundError("Show not found")
    return show


async def validate_seats(db: AsyncSession, show_id: int, seat_ids: Iterable[int]) -> tuple[Show, list[int]]:
    """
    Check that the show exists and every requested seat is a usable seat of
    its screen. Returns the show and the normalized seat ids.
    """
    requested = normalize_seat_ids(seat_ids)
    if not requested:
        raise InvalidInputError("Seat selection is required")
    if settings.MAX_SEATS_PER_REQUEST and len(requested) > settings.MAX_SEATS_PER_REQUEST:
        raise InvalidInputError(f"At most {settings.MAX_SEATS_PER_REQUEST} seats per request")

    show = await get_show(db, show_id)

    result = await db.execute(
        select(Seat.id).where(
            Seat.screen_id == show.screen_id,
            Seat.id.in_(requested),
            Seat.is_disabled.is_(False),
        )
    )
    valid = set(result.scalars().all())
    if len(valid) != len(requested):
        raise InvalidInputError("Some seats are invalid for this show")

    return show, requested


async def booked_seat_ids(db: AsyncSession, show_id: int, seat_ids: Iterable[int] | None = None) -> list[int]:
    """Seats of the show held by a Pending or Confirmed booking."""
    query = (
        select(BookingSeat.seat_id)
        .join(Booking, Booking.id == BookingSeat.booking_id)
        .where(
            Booking.show_id == show_id,
            Booking.status.in_(BookingStatus.HOLDING),
        )
    )
    if seat_ids is not None:
        query = query.where(BookingSeat.seat_id.in_(list(seat_ids)))
    result = await db.execute(query)
    return sorted(set(result.scalars().all()))


async def get_seat_availability(db: AsyncSession, show_id: int, clock: Clock) -> list[SeatAvailability]:
    show = await get_show(db, show_id)

    seats = (
        await db.execute(
            select(Seat)
            .where(Seat.screen_id == show.screen_id)
            .order_by(Seat.row, Seat.number)
        )
    ).scalars().all()

    booked = set(await booked_seat_ids(db, show_id))
    locked_result = await db.execute(
        select(SeatLock.seat_id).where(
            SeatLock.show_id == show_id,
            SeatLock.expires_at > clock.now(),
        )
    )
    locked = set(locked_result.scalars().all())

    return [
        SeatAvailability(
            seat_id=seat.id,
            row=seat.row,
            number=seat.number,
            is_disabled=seat.is_disabled,
            is_booked=seat.id in booked,
            is_locked=seat.id in locked,
        )
        for seat in seats
    ]
