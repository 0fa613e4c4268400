"""
Domain errors raised by the booking core and catalog services.

Each error carries the HTTP status it maps to so the API layer can render it
without knowing which service raised it. ConflictError additionally names the
seats involved, letting a client retry with a reduced selection.
"""

from typing import Iterable, Optional


class DomainError(Exception):
    def __init__(self, message: str, status_code: int = 400):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class NotFoundError(DomainError):
    def __init__(self, message: str = "Not found"):
        super().__init__(message, status_code=404)


class InvalidInputError(DomainError):
    def __init__(self, message: str):
        super().__init__(message, status_code=400)


class UnauthorizedError(DomainError):
    def __init__(self, message: str = "Not logged in"):
        super().__init__(message, status_code=401)


class ConflictError(DomainError):
    def __init__(self, message: str, seat_ids: Optional[Iterable[int]] = None):
        super().__init__(message, status_code=409)
        self.seat_ids = sorted(set(seat_ids)) if seat_ids else []
