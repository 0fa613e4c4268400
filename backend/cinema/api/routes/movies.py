"""
Movie catalog endpoints with Redis caching on the list.
"""

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from cinema.core.logging import get_logger
from cinema.core.security import get_current_user_id
from cinema.db.session import get_db
from cinema.schemas.movie import MovieCreate, MovieResponse, MovieUpdate
from cinema.services.cache_service import MOVIE_LIST_KEY, get_cached, invalidate_movie, set_cached
from cinema.services.movie_service import create_movie, delete_movie, get_movie, list_movies, update_movie

logger = get_logger(__name__)
router = APIRouter(prefix="/movies", tags=["Movies"])


@router.get("", response_model=list[MovieResponse])
async def list_movies_endpoint(db: AsyncSession = Depends(get_db)):
    """List all movies. Cached until a movie is created, updated or deleted."""
    cached = await get_cached(MOVIE_LIST_KEY)
    if cached is not None:
        logger.info("movies_list_cache_hit", count=len(cached))
        return [MovieResponse(**m) for m in cached]

    movies = [MovieResponse.model_validate(m) for m in await list_movies(db)]
    await set_cached(MOVIE_LIST_KEY, [m.model_dump(mode="json") for m in movies])
    return movies


@router.get("/{movie_id}", response_model=MovieResponse)
async def get_movie_endpoint(movie_id: int, db: AsyncSession = Depends(get_db)):
    return await get_movie(db, movie_id)


@router.post("", response_model=MovieResponse, status_code=status.HTTP_201_CREATED)
async def create_movie_endpoint(
    movie_data: MovieCreate,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    movie = await create_movie(db, movie_data)
    await invalidate_movie(movie.id)
    return movie


@router.put("/{movie_id}", response_model=MovieResponse)
async def update_movie_endpoint(
    movie_id: int,
    movie_data: MovieUpdate,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    movie = await update_movie(db, movie_id, movie_data)
    await invalidate_movie(movie.id)
    return movie


@router.delete("/{movie_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_movie_endpoint(
    movie_id: int,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Delete a movie. Refused with 409 while shows reference it."""
    await delete_movie(db, movie_id)
    await invalidate_movie(movie_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
