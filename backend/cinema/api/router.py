"""
Central API router that aggregates all route modules.
"""

from fastapi import APIRouter
from cinema.api.routes import auth, bookings, movies, shows

api_router = APIRouter(prefix="/api/v1")
api_router.include_router(auth.router)
api_router.include_router(movies.router)
api_router.include_router(shows.router)
api_router.include_router(bookings.router)
