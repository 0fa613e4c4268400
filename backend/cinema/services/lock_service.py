"""
Seat lock manager: soft, time-boxed holds on seats for a show.

CONCURRENCY STRATEGY: Unique index as the arbiter
=================================================

Problem:
  Two users select the same seat at the same moment. Both read "no lock",
  both insert a lock, both proceed to checkout.

Solution:
  seat_locks has a UNIQUE (show_id, seat_id) constraint and at most one row
  per seat ever exists. Acquisition is read-then-write:

  1. Validate show and seats, refuse seats that are already booked
  2. Read existing lock rows for the requested seats and partition them:
     - expired (expires_at <= now)      -> deleted in this write
     - active, held by someone else     -> conflict, nothing is written
     - active, held by this holder      -> renewed (expiry extended)
  3. In one transaction: delete the expired rows, extend own rows, insert
     rows for the remaining seats

  If another holder raced past step 2, one of the two inserts violates the
  unique constraint. That IntegrityError is rolled back and reported as a
  ConflictError, never as a server error. No in-process mutex is used, so
  the guarantee holds across any number of API instances.

Re-locking the same seats before expiry is a renewal: the rows are updated
in place, never duplicated.

The sweeper deletes only rows whose expiry has passed. Those rows are already
dead for every reader, so it needs no coordination with acquire/confirm.
"""

import asyncio
from datetime import datetime
from typing import Iterable

from sqlalchemy import delete, insert, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from cinema.core.clock import Clock, as_utc
from cinema.core.config import get_settings
from cinema.core.exceptions import DomainError, ConflictError, UnauthorizedError
from cinema.core.logging import get_logger
from cinema.core.metrics import record_lock_attempt, record_sweep
from cinema.core.security import normalize_email
from cinema.models.seat_lock import SeatLock
from cinema.services.seat_service import booked_seat_ids, validate_seats

logger = get_logger(__name__)
settings = get_settings()


def _format_ids(seat_ids: Iterable[int]) -> str:
    return ", ".join(str(s) for s in sorted(seat_ids))


async def acquire_locks(
    db: AsyncSession,
    show_id: int,
    seat_ids: Iterable[int],
    holder: str,
    clock: Clock,
) -> tuple[datetime, list[int]]:
    """
    Lock (or renew) every requested seat for `holder`, all or nothing.
    Returns the common expiry and the normalized seat ids.
    """
    holder = normalize_email(holder or "")
    if not holder:
        raise UnauthorizedError("Not logged in")

    try:
        _, requested = await validate_seats(db, show_id, seat_ids)
    except DomainError as e:
        record_lock_attempt("not_found" if e.status_code == 404 else "invalid")
        raise

    booked = await booked_seat_ids(db, show_id, requested)
    if booked:
        record_lock_attempt("conflict")
        logger.info("lock_conflict", show_id=show_id, reason="already_booked", seat_ids=booked)
        raise ConflictError(f"Seats already booked: {_format_ids(booked)}", booked)

    now = clock.now()
    result = await db.execute(
        select(SeatLock.seat_id, SeatLock.locked_by, SeatLock.expires_at).where(
            SeatLock.show_id == show_id,
            SeatLock.seat_id.in_(requested),
        )
    )
    existing = result.all()

    expired = [row.seat_id for row in existing if as_utc(row.expires_at) <= now]
    active = [row for row in existing if as_utc(row.expires_at) > now]
    conflicting = sorted({row.seat_id for row in active if row.locked_by.lower() != holder})
    if conflicting:
        record_lock_attempt("conflict")
        logger.info("lock_conflict", show_id=show_id, reason="locked_by_other", seat_ids=conflicting)
        raise ConflictError(f"Seats already locked: {_format_ids(conflicting)}", conflicting)

    renewed = [row.seat_id for row in active]
    to_insert = [seat_id for seat_id in requested if seat_id not in set(renewed)]
    expires = now + settings.lock_hold

    try:
        if expired:
            # Re-check expiry in SQL: the row may have been renewed since the read
            await db.execute(
                delete(SeatLock).where(
                    SeatLock.show_id == show_id,
                    SeatLock.seat_id.in_(expired),
                    SeatLock.expires_at <= now,
                )
            )

        if renewed:
            renew_result = await db.execute(
                update(SeatLock)
                .where(
                    SeatLock.show_id == show_id,
                    SeatLock.seat_id.in_(renewed),
                    SeatLock.locked_by == holder,
                )
                .values(expires_at=expires)
            )
            if renew_result.rowcount != len(renewed):
                # Own lock consumed (confirmed in another tab) between read and write
                raise ConflictError("Some seats are already locked", renewed)

        if to_insert:
            await db.execute(
                insert(SeatLock),
                [
                    {"show_id": show_id, "seat_id": seat_id, "locked_by": holder, "expires_at": expires}
                    for seat_id in to_insert
                ],
            )

        await db.commit()
    except IntegrityError:
        await db.rollback()
        record_lock_attempt("conflict")
        logger.info("lock_conflict", show_id=show_id, reason="unique_violation", seat_ids=to_insert)
        raise ConflictError("Some seats are already locked", to_insert)
    except ConflictError:
        await db.rollback()
        record_lock_attempt("conflict")
        raise

    record_lock_attempt("success", len(requested))
    logger.info(
        "seats_locked",
        show_id=show_id,
        holder=holder,
        seat_ids=requested,
        renewed=len(renewed),
        created=len(to_insert),
        expired_replaced=len(expired),
        expires_at=expires,
    )
    return expires, requested


async def sweep_expired_locks(db: AsyncSession, clock: Clock) -> int:
    """Delete every lock whose expiry has passed. Returns the number removed."""
    result = await db.execute(delete(SeatLock).where(SeatLock.expires_at <= clock.now()))
    await db.commit()

    removed = result.rowcount or 0
    record_sweep(removed)
    logger.info("expired_locks_swept", removed=removed)
    return removed


async def run_periodic_sweeper(session_factory: async_sessionmaker, clock: Clock, interval_seconds: float) -> None:
    """
    Background loop for the sweeper. Started from the app lifespan when
    LOCK_SWEEP_INTERVAL_SECONDS > 0 and cancelled on shutdown.
    """
    logger.info("lock_sweeper_started", interval_seconds=interval_seconds)
    while True:
        await asyncio.sleep(interval_seconds)
        try:
            async with session_factory() as session:
                await sweep_expired_locks(session, clock)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            # A failed pass is retried on the next tick
            logger.error("lock_sweep_failed", error=str(e))
