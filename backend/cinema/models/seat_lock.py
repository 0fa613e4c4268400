"""
SeatLock: a short-lived soft hold on one seat for one show.

Key design decisions:
- Unique (show_id, seat_id): at most one lock row per seat per show. This is
  the last line of defense when two holders race past the read check; the
  loser's insert fails and is reported as a conflict.
- A lock is "active" while expires_at > now. Expired rows are dead and may be
  deleted by anyone (next acquirer or the sweeper).
- Weak references: RESTRICT on both FKs, the lock never drives the lifecycle
  of a show or seat.
"""

from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, UniqueConstraint, Index

from cinema.db.base import Base


class SeatLock(Base):
    __tablename__ = "seat_locks"

    id = Column(Integer, primary_key=True)
    show_id = Column(Integer, ForeignKey("shows.id", ondelete="RESTRICT"), nullable=False)
    seat_id = Column(Integer, ForeignKey("seats.id", ondelete="RESTRICT"), nullable=False)
    locked_by = Column(String(255), nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        UniqueConstraint("show_id", "seat_id", name="uq_seat_lock_show_seat"),
        # Sweeper scans by expiry
        Index("ix_seat_locks_expires_at", "expires_at"),
    )

    def __repr__(self) -> str:
        return f"<SeatLock(show={self.show_id}, seat={self.seat_id}, by={self.locked_by}, expires={self.expires_at})>"
