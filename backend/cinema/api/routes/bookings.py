"""
Booking endpoints: seat locking, confirmation, history and the lock sweeper.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from cinema.core.clock import Clock, get_clock
from cinema.core.security import Identity, get_current_identity
from cinema.db.session import get_db
from cinema.schemas.booking import (
    BookingSummary,
    ConfirmResponse,
    LockResponse,
    SeatSelectionRequest,
    SweepResponse,
)
from cinema.schemas.common import ApiResponse
from cinema.services.booking_service import (
    cancel_booking,
    confirm_booking,
    finalize_booking,
    get_booking_summary,
    list_user_bookings,
)
from cinema.services.lock_service import acquire_locks, sweep_expired_locks

router = APIRouter(prefix="/bookings", tags=["Bookings"])


@router.post("/lock", response_model=ApiResponse[LockResponse])
async def lock_seats(
    request: SeatSelectionRequest,
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    """
    Hold seats for the caller for LOCK_HOLD_MINUTES.

    All or nothing: if any seat is booked or held by someone else the request
    fails with 409 and lists the offending seat ids. Locking seats the caller
    already holds renews them.
    """
    expires_at, seat_ids = await acquire_locks(db, request.show_id, request.seat_ids, identity.email, clock)
    return ApiResponse(data=LockResponse(expires_at=expires_at, seat_ids=seat_ids))


@router.post("/confirm", response_model=ApiResponse[ConfirmResponse], status_code=status.HTTP_201_CREATED)
async def confirm_seats(
    request: SeatSelectionRequest,
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    """Turn the caller's valid locks into a confirmed booking."""
    booking = await confirm_booking(
        db, request.show_id, request.seat_ids, identity.user_id, identity.email, clock
    )
    return ApiResponse(
        data=ConfirmResponse(booking_id=booking.id, total=booking.total_amount, status=booking.status)
    )


@router.post("/release-expired-locks", response_model=ApiResponse[SweepResponse])
async def release_expired_locks(
    db: AsyncSession = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    """Delete expired seat locks. Anonymous so a scheduler can call it."""
    removed = await sweep_expired_locks(db, clock)
    return ApiResponse(data=SweepResponse(removed=removed))


@router.get("/my", response_model=ApiResponse[list[BookingSummary]])
async def my_bookings(
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db),
):
    bookings = await list_user_bookings(db, identity.user_id)
    return ApiResponse(data=bookings)


@router.get("/{booking_id}", response_model=ApiResponse[BookingSummary])
async def get_booking(
    booking_id: int,
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db),
):
    summary = await get_booking_summary(db, booking_id, identity.user_id)
    return ApiResponse(data=summary)


@router.post("/{booking_id}/finalize", response_model=ApiResponse[BookingSummary])
async def finalize(
    booking_id: int,
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db),
):
    """Flip a Pending booking to Confirmed."""
    booking = await finalize_booking(db, booking_id, identity.user_id)
    summary = await get_booking_summary(db, booking.id, identity.user_id)
    return ApiResponse(data=summary, message="Booking confirmed")


@router.post("/{booking_id}/cancel", response_model=ApiResponse[BookingSummary])
async def cancel(
    booking_id: int,
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db),
):
    """Cancel a booking and release its seats for the show."""
    booking = await cancel_booking(db, booking_id, identity.user_id)
    summary = await get_booking_summary(db, booking.id, identity.user_id)
    return ApiResponse(data=summary, message="Booking cancelled successfully")
