"""
Pytest fixtures for test database, client, clock and authentication.

Each test gets its own file-backed SQLite database under tmp_path, so several
sessions can run against it at once (the concurrency tests need that) and no
state leaks between tests. Time is a FrozenClock shared by the app and the
tests; lock expiry is simulated by advancing it.
"""

import os

# Must be set before cinema.core.config caches its settings
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["REDIS_ENABLED"] = "false"
os.environ["ENVIRONMENT"] = "test"
os.environ["LOCK_SWEEP_INTERVAL_SECONDS"] = "0"

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from cinema.main import app
from cinema.core.clock import FrozenClock, get_clock
from cinema.core.security import create_access_token, hash_password
from cinema.db.base import Base
from cinema.db.session import get_db
from cinema.models import Movie, Screen, Seat, Show, Theater, User

START = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)
PASSWORD = "testpassword123"


@pytest_asyncio.fixture
async def db_engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}", echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine) -> async_sessionmaker:
    """Factory to create multiple sessions for concurrent tests."""
    return async_sessionmaker(bind=db_engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock(START)


@pytest_asyncio.fixture
async def client(session_factory, clock) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client with one fresh session per request, as in production."""

    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_clock] = lambda: clock

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


async def _create_user(session: AsyncSession, name: str, email: str) -> User:
    user = User(name=name, email=email, hashed_password=hash_password(PASSWORD))
    session.add(user)
    await session.commit()
    await session.refresh(user)
    return user


@pytest_asyncio.fixture
async def alice(session_factory) -> User:
    async with session_factory() as session:
        return await _create_user(session, "Alice", "alice@example.com")


@pytest_asyncio.fixture
async def bob(session_factory) -> User:
    async with session_factory() as session:
        return await _create_user(session, "Bob", "bob@example.com")


def _headers_for(user: User) -> dict:
    token = create_access_token(data={"sub": str(user.id), "email": user.email})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def alice_headers(alice: User) -> dict:
    return _headers_for(alice)


@pytest.fixture
def bob_headers(bob: User) -> dict:
    return _headers_for(bob)


@pytest_asyncio.fixture
async def seeded(session_factory, clock) -> dict:
    """
    One theater with two screens. Screen 1 has seats A1, A2, A3 (disabled)
    and B1; screen 2 has one seat. A 120-minute movie plays on screen 1 a day
    after the clock start, at price 100.
    """
    async with session_factory() as session:
        theater = Theater(name="Test Theater", location="Test City")
        session.add(theater)
        await session.flush()

        screen = Screen(name="Screen 1", theater_id=theater.id, total_seats=4)
        other_screen = Screen(name="Screen 2", theater_id=theater.id, total_seats=1)
        session.add_all([screen, other_screen])
        await session.flush()

        seats = {
            "A1": Seat(screen_id=screen.id, row="A", number=1),
            "A2": Seat(screen_id=screen.id, row="A", number=2),
            "A3": Seat(screen_id=screen.id, row="A", number=3, is_disabled=True),
            "B1": Seat(screen_id=screen.id, row="B", number=1),
        }
        foreign_seat = Seat(screen_id=other_screen.id, row="A", number=1)
        session.add_all([*seats.values(), foreign_seat])
        await session.flush()

        movie = Movie(title="Test Movie", description="A test movie", duration_minutes=120)
        session.add(movie)
        await session.flush()

        show = Show(
            movie_id=movie.id,
            screen_id=screen.id,
            starts_at=clock.now() + timedelta(days=1),
            price=Decimal("100.00"),
        )
        session.add(show)
        await session.commit()

        return {
            "theater_id": theater.id,
            "screen_id": screen.id,
            "other_screen_id": other_screen.id,
            "movie_id": movie.id,
            "show_id": show.id,
            "show_starts_at": clock.now() + timedelta(days=1),
            "seats": {label: seat.id for label, seat in seats.items()},
            "foreign_seat_id": foreign_seat.id,
        }
