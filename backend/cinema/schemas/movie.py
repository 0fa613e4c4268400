"""
Pydantic schemas for movie catalog requests/responses.
"""

from datetime import date
from typing import Optional
from pydantic import BaseModel, Field


class MovieCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: str = Field(..., min_length=1, max_length=2000)
    duration_minutes: int = Field(..., ge=1, le=1000)
    language: Optional[str] = Field(None, max_length=50)
    genre: Optional[str] = Field(None, max_length=100)
    rating: Optional[str] = Field(None, max_length=20)
    release_date: Optional[date] = None
    image_url: Optional[str] = Field(None, max_length=1000)


class MovieUpdate(MovieCreate):
    pass


class MovieResponse(BaseModel):
    id: int
    title: str
    description: Optional[str]
    duration_minutes: int
    language: Optional[str]
    genre: Optional[str]
    rating: Optional[str]
    release_date: Optional[date]
    image_url: Optional[str] = None

    model_config = {"from_attributes": True}
