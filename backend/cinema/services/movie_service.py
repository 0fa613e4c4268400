"""
Movie catalog CRUD.
"""

from sqlalchemy import exists, select
from sqlalchemy.ext.asyncio import AsyncSession

from cinema.core.exceptions import ConflictError, NotFoundError
from cinema.core.logging import get_logger
from cinema.models.catalog import Movie
from cinema.models.show import Show
from cinema.schemas.movie import MovieCreate, MovieUpdate

logger = get_logger(__name__)


async def create_movie(db: AsyncSession, data: MovieCreate) -> Movie:
    movie = Movie(**data.model_dump())
    db.add(movie)
    await db.flush()
    await db.refresh(movie)

    logger.info("movie_created", movie_id=movie.id, title=movie.title)
    return movie


async def get_movie(db: AsyncSession, movie_id: int) -> Movie:
    result = await db.execute(select(Movie).where(Movie.id == movie_id))
    movie = result.scalar_one_or_none()
    if not movie:
        raise NotFoundError("Movie not found")
    return movie


async def list_movies(db: AsyncSession) -> list[Movie]:
    result = await db.execute(select(Movie).order_by(Movie.title.asc(), Movie.id.asc()))
    return list(result.scalars().all())


async def update_movie(db: AsyncSession, movie_id: int, data: MovieUpdate) -> Movie:
    movie = await get_movie(db, movie_id)
    for field, value in data.model_dump().items():
        setattr(movie, field, value)
    await db.flush()
    await db.refresh(movie)

    logger.info("movie_updated", movie_id=movie.id)
    return movie


async def delete_movie(db: AsyncSession, movie_id: int) -> None:
    movie = await get_movie(db, movie_id)
    has_shows = (await db.execute(select(exists().where(Show.movie_id == movie_id)))).scalar()
    if has_shows:
        raise ConflictError("Movie has scheduled shows and cannot be deleted")

    await db.delete(movie)
    await db.flush()
    logger.info("movie_deleted", movie_id=movie_id)
