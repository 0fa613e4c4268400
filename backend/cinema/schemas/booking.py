"""
Pydantic schemas for seat locking, confirmation and booking history.
"""

from datetime import datetime
from decimal import Decimal
from pydantic import BaseModel, Field


class SeatSelectionRequest(BaseModel):
    show_id: int
    # Non-positive ids are filtered by the service; an empty list after that is a 400
    seat_ids: list[int] = Field(default_factory=list)


class LockResponse(BaseModel):
    message: str = "locked"
    expires_at: datetime
    seat_ids: list[int]


class ConfirmResponse(BaseModel):
    booking_id: int
    total: Decimal
    status: str


class SweepResponse(BaseModel):
    removed: int


class BookedSeat(BaseModel):
    seat_id: int
    row: str
    number: int


class BookingSummary(BaseModel):
    id: int
    show_id: int
    movie_title: str
    screen_name: str
    starts_at: datetime
    status: str
    total_amount: Decimal
    created_at: datetime
    seats: list[BookedSeat]


class SeatAvailability(BaseModel):
    seat_id: int
    row: str
    number: int
    is_disabled: bool
    is_booked: bool
    is_locked: bool
