"""
Show scheduling endpoints and the per-show seat map.
"""

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from cinema.core.clock import Clock, get_clock
from cinema.core.logging import get_logger
from cinema.core.security import get_current_user_id
from cinema.db.session import get_db
from cinema.schemas.booking import SeatAvailability
from cinema.schemas.show import ShowCreate, ShowListing, ShowResponse
from cinema.services.cache_service import get_cached, invalidate_show_listings, set_cached, shows_by_movie_key
from cinema.services.seat_service import get_seat_availability
from cinema.services.show_service import (
    create_show,
    delete_show,
    get_show,
    list_shows,
    list_shows_by_movie,
    update_show,
)

logger = get_logger(__name__)
router = APIRouter(prefix="/shows", tags=["Shows"])


@router.post("", response_model=ShowResponse, status_code=status.HTTP_201_CREATED)
async def create_show_endpoint(
    show_data: ShowCreate,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    """
    Schedule a show. Price must be non-negative, the start in the future, and
    the screen free for the movie's whole running time.
    """
    show = await create_show(db, show_data, clock)
    await invalidate_show_listings()
    return show


@router.get("", response_model=list[ShowResponse])
async def list_shows_endpoint(db: AsyncSession = Depends(get_db)):
    return await list_shows(db)


@router.get("/by-movie/{movie_id}", response_model=list[ShowListing])
async def list_shows_by_movie_endpoint(
    movie_id: int,
    db: AsyncSession = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    """
    Upcoming shows of a movie with screen and theater names.
    Cached in Redis; invalidated on any show write.
    """
    key = shows_by_movie_key(movie_id)
    cached = await get_cached(key)
    if cached is not None:
        logger.info("shows_by_movie_cache_hit", movie_id=movie_id)
        return [ShowListing(**s) for s in cached]

    shows = await list_shows_by_movie(db, movie_id, clock)
    await set_cached(key, [s.model_dump(mode="json") for s in shows])
    return shows


@router.get("/{show_id}", response_model=ShowResponse)
async def get_show_endpoint(show_id: int, db: AsyncSession = Depends(get_db)):
    return await get_show(db, show_id)


@router.get("/{show_id}/seats", response_model=list[SeatAvailability])
async def show_seats_endpoint(
    show_id: int,
    db: AsyncSession = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    """Seat map for a show. Never cached: it must reflect current locks and bookings."""
    return await get_seat_availability(db, show_id, clock)


@router.put("/{show_id}", response_model=ShowResponse)
async def update_show_endpoint(
    show_id: int,
    show_data: ShowCreate,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    show = await update_show(db, show_id, show_data, clock)
    await invalidate_show_listings()
    return show


@router.delete("/{show_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_show_endpoint(
    show_id: int,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Delete a show. Refused with 409 while bookings or seat locks reference it."""
    await delete_show(db, show_id)
    await invalidate_show_listings()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
