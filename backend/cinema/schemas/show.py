"""
Pydantic schemas for show scheduling.
"""

from datetime import datetime
from decimal import Decimal
from pydantic import BaseModel, Field


class ShowCreate(BaseModel):
    movie_id: int
    screen_id: int
    starts_at: datetime
    # Negative prices are rejected by the service with a 400, not by schema validation
    price: Decimal = Field(..., max_digits=10, decimal_places=2)


class ShowResponse(BaseModel):
    id: int
    movie_id: int
    screen_id: int
    starts_at: datetime
    price: Decimal

    model_config = {"from_attributes": True}


class ShowListing(BaseModel):
    id: int
    starts_at: datetime
    price: Decimal
    screen: str
    theater: str
