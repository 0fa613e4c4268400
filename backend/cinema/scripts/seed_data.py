"""
Development seed: one theater with two screens, a seat grid, two movies and
a few upcoming shows.

Run with: python -m cinema.scripts.seed_data
"""

import asyncio
from datetime import timedelta
from decimal import Decimal

from cinema.core.clock import SystemClock
from cinema.core.logging import get_logger, setup_logging
from cinema.db.session import SessionLocal, init_db
from cinema.models import Movie, Screen, Seat, Show, Theater

logger = get_logger(__name__)

ROWS = ["A", "B", "C", "D", "E"]
SEATS_PER_ROW = 10


async def seed() -> dict:
    now = SystemClock().now()

    async with SessionLocal() as session:
        theater = Theater(name="Grand Cinema", location="Main Street 1")
        session.add(theater)
        await session.flush()

        screen1 = Screen(name="Screen 1", theater_id=theater.id, total_seats=len(ROWS) * SEATS_PER_ROW)
        screen2 = Screen(name="Screen 2", theater_id=theater.id, total_seats=len(ROWS) * SEATS_PER_ROW)
        session.add_all([screen1, screen2])
        await session.flush()

        for screen in (screen1, screen2):
            session.add_all(
                Seat(screen_id=screen.id, row=row, number=num)
                for row in ROWS
                for num in range(1, SEATS_PER_ROW + 1)
            )
        await session.flush()

        movie1 = Movie(
            title="Interstellar",
            description="A group of explorers travel through a wormhole in space.",
            duration_minutes=169,
            language="English",
            genre="Sci-Fi",
            rating="PG-13",
        )
        movie2 = Movie(
            title="The Grand Budapest Hotel",
            description="A concierge and his lobby boy get caught up in a theft.",
            duration_minutes=99,
            language="English",
            genre="Comedy",
            rating="R",
        )
        session.add_all([movie1, movie2])
        await session.flush()

        shows = [
            Show(movie_id=movie1.id, screen_id=screen1.id, starts_at=now + timedelta(hours=1), price=Decimal("300.00")),
            Show(movie_id=movie1.id, screen_id=screen1.id, starts_at=now + timedelta(hours=4), price=Decimal("350.00")),
            Show(movie_id=movie2.id, screen_id=screen2.id, starts_at=now + timedelta(hours=2), price=Decimal("250.00")),
        ]
        session.add_all(shows)
        await session.flush()
        await session.commit()

        ids = {"theater_id": theater.id, "show_ids": [s.id for s in shows]}

    logger.info("seed_completed", **ids)
    return ids


async def main() -> None:
    setup_logging()
    await init_db()
    await seed()


if __name__ == "__main__":
    asyncio.run(main())
