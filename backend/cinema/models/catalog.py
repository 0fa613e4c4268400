"""
Catalog models: movies, theaters, screens and their physical seats.

These are plain persisted records. The booking core only reads them to check
that a seat belongs to a show's screen and to price a booking.
"""

from sqlalchemy import Column, Integer, String, Boolean, Date, ForeignKey, UniqueConstraint, CheckConstraint
from sqlalchemy.orm import relationship

from cinema.db.base import Base, TimestampMixin


class Movie(Base, TimestampMixin):
    __tablename__ = "movies"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(255), nullable=False)
    description = Column(String(2000), nullable=True)
    duration_minutes = Column(Integer, nullable=False)
    language = Column(String(50), nullable=True)
    genre = Column(String(100), nullable=True)
    rating = Column(String(20), nullable=True)  # e.g. PG-13
    release_date = Column(Date, nullable=True)
    image_url = Column(String(1000), nullable=True)

    shows = relationship("Show", back_populates="movie")

    __table_args__ = (
        CheckConstraint("duration_minutes > 0", name="check_movie_duration_positive"),
    )

    def __repr__(self) -> str:
        return f"<Movie(id={self.id}, title={self.title})>"


class Theater(Base, TimestampMixin):
    __tablename__ = "theaters"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    location = Column(String(255), nullable=False, default="")

    screens = relationship("Screen", back_populates="theater", cascade="all, delete-orphan")


class Screen(Base, TimestampMixin):
    __tablename__ = "screens"

    id = Column(Integer, primary_key=True, index=True)
    theater_id = Column(Integer, ForeignKey("theaters.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    total_seats = Column(Integer, nullable=False, default=0)

    theater = relationship("Theater", back_populates="screens")
    seats = relationship("Seat", back_populates="screen", cascade="all, delete-orphan")
    shows = relationship("Show", back_populates="screen")


class Seat(Base, TimestampMixin):
    __tablename__ = "seats"

    id = Column(Integer, primary_key=True, index=True)
    screen_id = Column(Integer, ForeignKey("screens.id", ondelete="CASCADE"), nullable=False, index=True)
    row = Column(String(5), nullable=False)
    number = Column(Integer, nullable=False)
    is_disabled = Column(Boolean, nullable=False, default=False)

    screen = relationship("Screen", back_populates="seats")

    __table_args__ = (
        UniqueConstraint("screen_id", "row", "number", name="uq_seat_screen_row_number"),
        CheckConstraint("number > 0", name="check_seat_number_positive"),
    )

    @property
    def label(self) -> str:
        return f"{self.row}{self.number}"

    def __repr__(self) -> str:
        return f"<Seat(id={self.id}, screen={self.screen_id}, label={self.label})>"
