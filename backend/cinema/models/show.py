"""
Show model: one screening of a movie on a screen.

Key design decisions:
- (screen_id, starts_at) is unique; the stronger no-overlap rule depends on
  movie duration and is enforced by show_service before insert/update
- price is Numeric so totals are exact (price x seat count)
- bookings and locks reference shows with RESTRICT, so a show with
  dependents cannot be deleted
"""

from sqlalchemy import Column, Integer, Numeric, DateTime, ForeignKey, UniqueConstraint, CheckConstraint, Index
from sqlalchemy.orm import relationship

from cinema.db.base import Base, TimestampMixin


class Show(Base, TimestampMixin):
    __tablename__ = "shows"

    id = Column(Integer, primary_key=True, index=True)
    movie_id = Column(Integer, ForeignKey("movies.id", ondelete="RESTRICT"), nullable=False, index=True)
    screen_id = Column(Integer, ForeignKey("screens.id", ondelete="RESTRICT"), nullable=False)
    starts_at = Column(DateTime(timezone=True), nullable=False)
    price = Column(Numeric(10, 2), nullable=False)

    movie = relationship("Movie", back_populates="shows")
    screen = relationship("Screen", back_populates="shows")

    __table_args__ = (
        UniqueConstraint("screen_id", "starts_at", name="uq_show_screen_start"),
        CheckConstraint("price >= 0", name="check_show_price_non_negative"),
        Index("ix_shows_starts_at", "starts_at"),
    )

    def __repr__(self) -> str:
        return f"<Show(id={self.id}, movie={self.movie_id}, screen={self.screen_id}, starts_at={self.starts_at})>"
