"""
Watch Log Schemas - request/response models for logging movie viewings
"""
from pydantic import BaseModel, Field, ConfigDict, field_validator
from datetime import date, datetime
from typing import Optional, List

from moov.models.enums import Visibility, TheaterFormat
from moov.schemas.movie import GenreSchema, CastMemberSchema
from moov.schemas.validation import SafeStringMixin


def _blank_to_none(v):
    if isinstance(v, str) and not v.strip():
        return None
    return v


class WatchLogFields(BaseModel, SafeStringMixin):
    """Everything a watch log records apart from the movie reference"""
    tmdb_id: int = Field(..., gt=0, description="TMDB movie ID")
    watched_at: date
    rating: Optional[float] = Field(None, ge=0.0, le=10.0, description="Rating value (0-10)")
    review_text: Optional[str] = Field(None, max_length=5000)
    is_rewatch: bool = False
    watched_in_theater: bool = False
    theater_name: Optional[str] = Field(None, max_length=255)
    theater_city: Optional[str] = Field(None, max_length=255)
    theater_format: Optional[TheaterFormat] = None
    visibility: Visibility = Visibility.PUBLIC

    @field_validator('review_text', 'theater_name', 'theater_city', 'theater_format', mode='before')
    @classmethod
    def blank_is_null(cls, v):
        return _blank_to_none(v)

    @field_validator('review_text')
    @classmethod
    def clean_review(cls, v):
        if v is None:
            return v
        v = cls.validate_no_script(v)
        return cls.sanitize_html(v)

    @field_validator('rating')
    @classmethod
    def round_rating(cls, v):
        return round(v, 1) if v is not None else v


class WatchLogCreate(WatchLogFields):
    """Schema for creating a watch log against an already cached movie"""
    movie_id: int = Field(..., gt=0, description="Internal movie ID returned by the movie upsert")


class WatchLogResponse(BaseModel):
    id: int
    user_id: int
    movie_id: int
    tmdb_id: int
    watched_at: date
    rating: Optional[float] = None
    review_text: Optional[str] = None
    is_rewatch: bool
    watched_in_theater: bool
    theater_name: Optional[str] = None
    theater_city: Optional[str] = None
    theater_format: Optional[TheaterFormat] = None
    visibility: Visibility
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class WatchLogWithMovieResponse(WatchLogResponse):
    """Watch log with the movie fields the profile list shows"""
    movie_title: Optional[str] = None
    movie_poster: Optional[str] = None
    movie_release_date: Optional[str] = None


class WatchLogStats(BaseModel):
    total_logs: int = 0
    unique_movies: int = 0
    rewatches: int = 0
    theater_visits: int = 0


# ==================== ACTIVITY FEED ====================

class ActivityUserSummary(BaseModel):
    display_name: Optional[str] = None
    username: Optional[str] = None
    profile_image_url: Optional[str] = None


class ActivityMovieSummary(BaseModel):
    title: str
    poster_path: Optional[str] = None
    release_date: Optional[str] = None


class ActivityItem(BaseModel):
    log: WatchLogResponse
    user: ActivityUserSummary
    movie: ActivityMovieSummary


class ActivityFeedPage(BaseModel):
    activities: List[ActivityItem] = []
    has_more: bool = False


# ==================== SUBMISSION FLOW ====================

class MovieSnapshot(BaseModel):
    """Movie metadata as shown on the detail page at submission time"""
    tmdb_id: Optional[int] = None
    title: str = ""
    release_date: Optional[str] = None
    runtime: Optional[int] = None
    overview: Optional[str] = None
    poster_path: Optional[str] = None
    backdrop_path: Optional[str] = None
    vote_average: Optional[float] = None
    genres: Optional[List[GenreSchema]] = None
    cast: Optional[List[CastMemberSchema]] = None
    tmdb_data: Optional[dict] = None


class WatchLogSubmission(BaseModel):
    """Everything the log form collects; validated by the submission service, not by pydantic constraints"""
    rating: Optional[float] = None
    review_text: Optional[str] = None
    watched_at: date = Field(default_factory=date.today)
    is_rewatch: bool = False
    watched_in_theater: bool = False
    theater_name: Optional[str] = None
    theater_city: Optional[str] = None
    theater_format: Optional[TheaterFormat] = None
    visibility: Visibility = Visibility.PUBLIC
    movie: MovieSnapshot

    @field_validator('review_text', 'theater_name', 'theater_city', 'theater_format', mode='before')
    @classmethod
    def blank_is_null(cls, v):
        return _blank_to_none(v)


class SubmissionResult(BaseModel):
    success: bool
    error: Optional[str] = None
    movie_id: Optional[int] = None
    watch_log_id: Optional[int] = None
