"""
Show scheduling: create, reschedule, delete and list shows.

A screen can run one show at a time. A show occupies its screen for
[starts_at, starts_at + movie.duration_minutes); a new or rescheduled show
whose interval overlaps another show's on the same screen is rejected.
"""

from datetime import datetime, timedelta

from sqlalchemy import exists, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from cinema.core.clock import Clock, as_utc
from cinema.core.exceptions import ConflictError, InvalidInputError, NotFoundError
from cinema.core.logging import get_logger
from cinema.models.booking import Booking
from cinema.models.catalog import Movie, Screen
from cinema.models.seat_lock import SeatLock
from cinema.models.show import Show
from cinema.schemas.show import ShowCreate, ShowListing

logger = get_logger(__name__)


def overlaps(start_a: datetime, end_a: datetime, start_b: datetime, end_b: datetime) -> bool:
    """Half-open interval overlap: back-to-back shows do not collide."""
    return start_a < end_b and start_b < end_a


async def _validate_schedule(
    db: AsyncSession,
    data: ShowCreate,
    clock: Clock,
    exclude_show_id: int | None = None,
) -> datetime:
    if data.price < 0:
        raise InvalidInputError("Price cannot be negative")

    movie = (await db.execute(select(Movie).where(Movie.id == data.movie_id))).scalar_one_or_none()
    if not movie:
        raise NotFoundError(f"Movie {data.movie_id} not found")

    screen_exists = (await db.execute(select(exists().where(Screen.id == data.screen_id)))).scalar()
    if not screen_exists:
        raise NotFoundError(f"Screen {data.screen_id} not found")

    starts_at = as_utc(data.starts_at)
    if starts_at <= clock.now():
        raise InvalidInputError("Start time must be in the future")

    ends_at = starts_at + timedelta(minutes=movie.duration_minutes)

    query = (
        select(Show.starts_at, Movie.duration_minutes)
        .join(Movie, Movie.id == Show.movie_id)
        .where(Show.screen_id == data.screen_id)
    )
    if exclude_show_id is not None:
        query = query.where(Show.id != exclude_show_id)

    for other_start, duration in (await db.execute(query)).all():
        other_start = as_utc(other_start)
        if overlaps(starts_at, ends_at, other_start, other_start + timedelta(minutes=duration)):
            logger.info("show_overlap_rejected", screen_id=data.screen_id, starts_at=starts_at.isoformat())
            raise ConflictError("Overlapping show on this screen")

    return starts_at


async def create_show(db: AsyncSession, data: ShowCreate, clock: Clock) -> Show:
    starts_at = await _validate_schedule(db, data, clock)

    show = Show(
        movie_id=data.movie_id,
        screen_id=data.screen_id,
        starts_at=starts_at,
        price=data.price,
    )
    db.add(show)
    await db.flush()
    await db.refresh(show)

    logger.info("show_created", show_id=show.id, movie_id=show.movie_id, screen_id=show.screen_id)
    return show


async def get_show(db: AsyncSession, show_id: int) -> Show:
    result = await db.execute(select(Show).where(Show.id == show_id))
    show = result.scalar_one_or_none()
    if not show:
        raise NotFoundError(f"Show {show_id} not found")
    return show


async def list_shows(db: AsyncSession) -> list[Show]:
    result = await db.execute(select(Show).order_by(Show.starts_at.asc()))
    return list(result.scalars().all())


async def update_show(db: AsyncSession, show_id: int, data: ShowCreate, clock: Clock) -> Show:
    if show_id <= 0:
        raise InvalidInputError("Invalid show ID")
    show = await get_show(db, show_id)
    starts_at = await _validate_schedule(db, data, clock, exclude_show_id=show_id)

    show.movie_id = data.movie_id
    show.screen_id = data.screen_id
    show.starts_at = starts_at
    show.price = data.price
    await db.flush()
    await db.refresh(show)

    logger.info("show_rescheduled", show_id=show.id, starts_at=starts_at.isoformat())
    return show


async def delete_show(db: AsyncSession, show_id: int) -> None:
    """Delete a show; refused while any booking or seat lock references it."""
    show = await get_show(db, show_id)

    has_bookings = (await db.execute(select(exists().where(Booking.show_id == show_id)))).scalar()
    has_locks = (await db.execute(select(exists().where(SeatLock.show_id == show_id)))).scalar()
    if has_bookings or has_locks:
        raise ConflictError("Show has bookings or seat locks and cannot be deleted")

    await db.delete(show)
    await db.flush()
    logger.info("show_deleted", show_id=show_id)


async def list_shows_by_movie(db: AsyncSession, movie_id: int, clock: Clock) -> list[ShowListing]:
    """Upcoming shows of a movie, including ones that started within the last hour."""
    cutoff = clock.now() - timedelta(hours=1)
    result = await db.execute(
        select(Show)
        .options(selectinload(Show.screen).selectinload(Screen.theater))
        .where(Show.movie_id == movie_id, Show.starts_at > cutoff)
        .order_by(Show.starts_at.asc())
    )
    return [
        ShowListing(
            id=show.id,
            starts_at=as_utc(show.starts_at),
            price=show.price,
            screen=show.screen.name,
            theater=show.screen.theater.name,
        )
        for show in result.scalars().all()
    ]
