"""
Booking confirmation and booking history.

CONCURRENCY STRATEGY: Claim-by-delete inside one transaction
============================================================

Problem:
  Confirmation is read-then-write: "are my locks still valid? is any seat
  already booked? then insert the booking". Run naively, two confirmers can
  both pass the checks and both insert: a double booking.

Solution:
  The whole confirmation is one database transaction, and its first write is
  the check itself:

  1. DELETE the caller's valid locks
       WHERE show_id = :show AND seat_id IN (:seats)
         AND locked_by = :holder AND expires_at > :now
     The affected row count must equal the number of requested seats,
     otherwise -> Conflict "Missing or expired locks".
  2. Check no requested seat is held by a Pending/Confirmed booking of the
     show, otherwise -> Conflict "Seats already booked".
  3. INSERT the booking (total = price x seats) and its booking_seats rows.
  4. COMMIT.

  A concurrent confirmer for the same lock rows blocks on the row locks taken
  by step 1 and, once the winner commits, deletes zero rows and fails in
  step 1. Because seat_locks allows one row per seat, two different holders
  can never both own valid locks on one seat, so the lock table serializes
  all confirmers of a seat.

  Any failure rolls the transaction back: the locks reappear untouched and
  nothing of the booking is visible. A failed confirm does not release the
  caller's locks; they simply age out.

Payment is not captured. `finalize=False` writes the booking as Pending (its
seats are already held) and `finalize_booking` later flips it to Confirmed.
"""

import time
from decimal import Decimal
from typing import Iterable, Optional

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from cinema.core.clock import Clock, as_utc
from cinema.core.exceptions import DomainError, ConflictError, InvalidInputError, NotFoundError, UnauthorizedError
from cinema.core.logging import get_logger
from cinema.core.metrics import booking_confirm_latency, record_confirm_attempt
from cinema.core.security import normalize_email
from cinema.models.booking import Booking, BookingSeat, BookingStatus
from cinema.models.seat_lock import SeatLock
from cinema.models.show import Show
from cinema.schemas.booking import BookedSeat, BookingSummary
from cinema.services.seat_service import booked_seat_ids, validate_seats

logger = get_logger(__name__)


async def confirm_booking(
    db: AsyncSession,
    show_id: int,
    seat_ids: Iterable[int],
    user_id: Optional[int],
    holder: str,
    clock: Clock,
    finalize: bool = True,
) -> Booking:
    """
    Turn the caller's valid locks into a booking, atomically.
    """
    holder = normalize_email(holder or "")
    if user_id is None or not holder:
        raise UnauthorizedError("Not logged in")

    start_time = time.perf_counter()
    try:
        show, requested = await validate_seats(db, show_id, seat_ids)
    except DomainError as e:
        record_confirm_attempt("not_found" if e.status_code == 404 else "invalid")
        raise

    now = clock.now()
    lock_filter = (
        SeatLock.show_id == show_id,
        SeatLock.seat_id.in_(requested),
        SeatLock.locked_by == holder,
        SeatLock.expires_at > now,
    )

    # Only used to name the missing seats in the error
    valid_result = await db.execute(select(SeatLock.seat_id).where(*lock_filter))
    valid_seat_ids = set(valid_result.scalars().all())

    try:
        claimed = await db.execute(delete(SeatLock).where(*lock_filter))
        if claimed.rowcount != len(requested):
            missing = [s for s in requested if s not in valid_seat_ids] or requested
            record_confirm_attempt("missing_locks")
            logger.info("confirm_rejected", show_id=show_id, reason="missing_or_expired_locks", seat_ids=missing)
            raise ConflictError("Missing or expired locks", missing)

        booked = await booked_seat_ids(db, show_id, requested)
        if booked:
            record_confirm_attempt("already_booked")
            logger.info("confirm_rejected", show_id=show_id, reason="already_booked", seat_ids=booked)
            raise ConflictError(
                f"Seats already booked: {', '.join(str(s) for s in booked)}", booked
            )

        total = Decimal(show.price) * len(requested)
        booking = Booking(
            show_id=show_id,
            user_id=user_id,
            status=BookingStatus.CONFIRMED if finalize else BookingStatus.PENDING,
            total_amount=total,
            created_at=now,
            seats=[BookingSeat(seat_id=seat_id) for seat_id in requested],
        )
        db.add(booking)
        await db.flush()
        await db.commit()
    except ConflictError:
        await db.rollback()
        raise
    except Exception as e:
        await db.rollback()
        record_confirm_attempt("error")
        logger.error("confirm_failed", show_id=show_id, user_id=user_id, error=str(e))
        raise

    booking_confirm_latency.observe(time.perf_counter() - start_time)
    record_confirm_attempt("success")
    logger.info(
        "booking_confirmed",
        booking_id=booking.id,
        user_id=user_id,
        show_id=show_id,
        seat_ids=requested,
        total=total,
        status=booking.status,
    )
    return booking


async def _get_owned_booking(db: AsyncSession, booking_id: int, user_id: int, for_update: bool = False) -> Booking:
    query = select(Booking).where(Booking.id == booking_id, Booking.user_id == user_id)
    if for_update:
        query = query.with_for_update()
    booking = (await db.execute(query)).scalar_one_or_none()
    if not booking:
        raise NotFoundError("Booking not found")
    return booking


async def finalize_booking(db: AsyncSession, booking_id: int, user_id: int) -> Booking:
    """Flip a Pending booking to Confirmed (the hook for a payment step)."""
    booking = await _get_owned_booking(db, booking_id, user_id, for_update=True)
    if booking.status != BookingStatus.PENDING:
        raise InvalidInputError(f"Cannot finalize booking with status {booking.status}")

    booking.status = BookingStatus.CONFIRMED
    await db.commit()

    logger.info("booking_finalized", booking_id=booking.id, user_id=user_id)
    return booking


async def cancel_booking(db: AsyncSession, booking_id: int, user_id: int) -> Booking:
    """
    Cancel a booking. Its seats stop counting as booked for the show; the
    booking_seats rows stay for history.
    """
    booking = await _get_owned_booking(db, booking_id, user_id, for_update=True)
    if booking.status == BookingStatus.CANCELLED:
        raise InvalidInputError("Booking is already cancelled")

    booking.status = BookingStatus.CANCELLED
    await db.commit()

    logger.info("booking_cancelled", booking_id=booking.id, user_id=user_id, show_id=booking.show_id)
    return booking


def _summary_query():
    # populate_existing: bookings created earlier in this session must get their
    # relationships loaded eagerly too, lazy loads are not available under asyncio
    return (
        select(Booking)
        .options(
            selectinload(Booking.show).selectinload(Show.movie),
            selectinload(Booking.show).selectinload(Show.screen),
            selectinload(Booking.seats).selectinload(BookingSeat.seat),
        )
        .execution_options(populate_existing=True)
    )


def _to_summary(booking: Booking) -> BookingSummary:
    seats = sorted(
        (bs.seat for bs in booking.seats),
        key=lambda seat: (seat.row, seat.number),
    )
    return BookingSummary(
        id=booking.id,
        show_id=booking.show_id,
        movie_title=booking.show.movie.title,
        screen_name=booking.show.screen.name,
        starts_at=as_utc(booking.show.starts_at),
        status=booking.status,
        total_amount=booking.total_amount,
        created_at=as_utc(booking.created_at),
        seats=[BookedSeat(seat_id=seat.id, row=seat.row, number=seat.number) for seat in seats],
    )


async def list_user_bookings(db: AsyncSession, user_id: int) -> list[BookingSummary]:
    """Bookings owned by the user, newest first."""
    result = await db.execute(
        _summary_query()
        .where(Booking.user_id == user_id)
        .order_by(Booking.created_at.desc(), Booking.id.desc())
    )
    return [_to_summary(b) for b in result.scalars().all()]


async def get_booking_summary(db: AsyncSession, booking_id: int, user_id: int) -> BookingSummary:
    """One booking; bookings of other users are reported as not found."""
    result = await db.execute(
        _summary_query().where(Booking.id == booking_id, Booking.user_id == user_id)
    )
    booking = result.scalar_one_or_none()
    if not booking:
        raise NotFoundError("Booking not found")
    return _to_summary(booking)
