from cinema.models.user import User
from cinema.models.catalog import Movie, Theater, Screen, Seat
from cinema.models.show import Show
from cinema.models.seat_lock import SeatLock
from cinema.models.booking import Booking, BookingSeat, BookingStatus

__all__ = [
    "User", "Movie", "Theater", "Screen", "Seat", "Show",
    "SeatLock", "Booking", "BookingSeat", "BookingStatus",
]
