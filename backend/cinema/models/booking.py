"""
Booking model and its seat rows.

Key design decisions:
- A Booking is written only by the confirm transaction, together with all of
  its BookingSeat rows; it is never partially persisted
- BookingSeat has a composite primary key (booking_id, seat_id) and is
  cascade-deleted with its booking
- Status keeps cancelled bookings for history; only Pending and Confirmed
  bookings hold their seats
"""

from sqlalchemy import Column, Integer, String, Numeric, DateTime, ForeignKey, CheckConstraint, Index
from sqlalchemy.orm import relationship

from cinema.db.base import Base, utcnow


class BookingStatus:
    PENDING = "Pending"
    CONFIRMED = "Confirmed"
    CANCELLED = "Cancelled"

    # Statuses whose seats are unavailable to everyone else
    HOLDING = (PENDING, CONFIRMED)


class Booking(Base):
    __tablename__ = "bookings"

    id = Column(Integer, primary_key=True, index=True)
    show_id = Column(Integer, ForeignKey("shows.id", ondelete="RESTRICT"), nullable=False)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="RESTRICT"), nullable=False, index=True)
    status = Column(String(20), nullable=False, default=BookingStatus.PENDING)
    total_amount = Column(Numeric(10, 2), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    show = relationship("Show")
    user = relationship("User", back_populates="bookings")
    seats = relationship("BookingSeat", back_populates="booking", cascade="all, delete-orphan")

    __table_args__ = (
        CheckConstraint("total_amount >= 0", name="check_booking_total_non_negative"),
        CheckConstraint("status IN ('Pending', 'Confirmed', 'Cancelled')", name="check_booking_status"),
        Index("ix_bookings_show_status", "show_id", "status"),
    )

    def __repr__(self) -> str:
        return f"<Booking(id={self.id}, user={self.user_id}, show={self.show_id}, status={self.status})>"


class BookingSeat(Base):
    __tablename__ = "booking_seats"

    booking_id = Column(Integer, ForeignKey("bookings.id", ondelete="CASCADE"), primary_key=True)
    seat_id = Column(Integer, ForeignKey("seats.id", ondelete="RESTRICT"), primary_key=True, index=True)

    booking = relationship("Booking", back_populates="seats")
    seat = relationship("Seat")
