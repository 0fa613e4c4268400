from cinema.schemas.common import ApiResponse, ErrorResponse
from cinema.schemas.user import UserCreate, UserResponse, UserLogin, AuthResponse
from cinema.schemas.movie import MovieCreate, MovieUpdate, MovieResponse
from cinema.schemas.show import ShowCreate, ShowResponse, ShowListing
from cinema.schemas.booking import (
    SeatSelectionRequest, LockResponse, ConfirmResponse, SweepResponse,
    BookedSeat, BookingSummary, SeatAvailability,
)

__all__ = [
    "ApiResponse", "ErrorResponse",
    "UserCreate", "UserResponse", "UserLogin", "AuthResponse",
    "MovieCreate", "MovieUpdate", "MovieResponse",
    "ShowCreate", "ShowResponse", "ShowListing",
    "SeatSelectionRequest", "LockResponse", "ConfirmResponse", "SweepResponse",
    "BookedSeat", "BookingSummary", "SeatAvailability",
]
