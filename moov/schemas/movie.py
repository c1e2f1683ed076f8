"""
Movie Schemas - Pydantic models for the catalog cache
"""
from pydantic import BaseModel, Field, ConfigDict
from datetime import datetime
from typing import Optional, List, Any
from enum import Enum


class TimeWindow(str, Enum):
    """Time window for trending movies"""
    DAY = "day"
    WEEK = "week"


class GenreSchema(BaseModel):
    id: int
    name: str


class CastMemberSchema(BaseModel):
    id: int
    name: str
    character: str
    order: int = Field(..., description="Billing position")


class MovieUpsert(BaseModel):
    """Full movie snapshot written to the cache on every upsert"""
    tmdb_id: int = Field(..., gt=0, description="TMDB movie ID")
    title: str = Field(..., min_length=1, max_length=500)
    release_date: Optional[str] = Field(None, description="Release date (YYYY-MM-DD)")
    runtime: Optional[int] = Field(None, ge=0, description="Runtime in minutes")
    overview: Optional[str] = None
    poster_path: Optional[str] = None
    backdrop_path: Optional[str] = None
    vote_average: Optional[float] = Field(None, ge=0, le=10)
    genres: Optional[List[GenreSchema]] = None
    cast: Optional[List[CastMemberSchema]] = None
    tmdb_data: Any = Field(None, description="Raw TMDB payload")


class MovieResponse(BaseModel):
    id: int
    tmdb_id: int
    title: str
    release_date: Optional[str] = None
    runtime: Optional[int] = None
    overview: Optional[str] = None
    poster_path: Optional[str] = None
    backdrop_path: Optional[str] = None
    vote_average: Optional[float] = None
    genres: Optional[List[GenreSchema]] = None
    cast: Optional[List[CastMemberSchema]] = None
    tmdb_data: Any = None
    last_synced_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class EntityReference(BaseModel):
    """Internal id of a stored record"""
    id: int
