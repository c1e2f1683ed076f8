"""
Watch Log Routes - logging viewings and reading them back
"""
from fastapi import APIRouter, Depends, Path, Query, status
from sqlalchemy.orm import Session
from typing import List

from moov.database import get_db
from moov.schemas.movie import EntityReference
from moov.schemas.watch_log import (
    WatchLogCreate,
    WatchLogResponse,
    WatchLogWithMovieResponse,
    WatchLogStats,
    ActivityFeedPage,
    WatchLogSubmission,
    SubmissionResult,
)
from moov.services.activity_feed import ITEMS_PER_PAGE
from moov.services.submission_service import SubmissionService
from moov.services.watch_log_service import WatchLogService
from moov.utils.dependencies import get_current_identity
from moov.utils.security import Identity

router = APIRouter(prefix="/api/watch-logs", tags=["Watch Logs"])


@router.post("/", response_model=EntityReference, status_code=status.HTTP_201_CREATED)
def create_watch_log(
    log_data: WatchLogCreate,
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db)
):
    """
    Record a viewing of an already cached movie

    - **movie_id**: internal id returned by `PUT /api/movies/{tmdb_id}`
    - **watched_at**: date of the viewing
    - **rating**: 0-10, one decimal (optional)

    Logging the same movie again adds a new entry; nothing is overwritten.
    """
    return {"id": WatchLogService.create_watch_log(db, identity.subject, log_data)}


@router.post("/submit", response_model=SubmissionResult)
def submit_watch_log(
    submission: WatchLogSubmission,
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db)
):
    """
    Log a movie from its detail page in one call

    Caches the movie snapshot, then records the watch. Problems come back as
    `success: false` with an `error` message rather than an HTTP error.
    """
    return SubmissionService.submit_watch_log(db, identity.subject, submission)


@router.get("/feed", response_model=ActivityFeedPage)
def get_public_activity_feed(
    limit: int = Query(ITEMS_PER_PAGE, ge=1, le=100, description="Max results per page"),
    offset: int = Query(0, ge=0, description="Pagination offset"),
    db: Session = Depends(get_db)
):
    """Public watch logs from everyone, most recent watch first"""
    return WatchLogService.get_public_activity_feed(db, limit, offset)


@router.get("/me", response_model=List[WatchLogWithMovieResponse])
def get_my_watch_logs(
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db)
):
    """All of the signed-in user's logs with movie title, poster and release date"""
    return WatchLogService.get_watch_logs_by_user(db, identity.subject)


@router.get("/me/stats", response_model=WatchLogStats)
def get_my_stats(
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db)
):
    return WatchLogService.get_user_stats(db, identity.subject)


@router.get("/me/movie/{tmdb_id}", response_model=List[WatchLogResponse])
def get_my_watch_logs_for_movie(
    tmdb_id: int = Path(..., description="TMDB movie ID", gt=0),
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db)
):
    """
    The signed-in user's logs for one movie, most recent first

    Empty when the movie was never logged by anyone.
    """
    return WatchLogService.get_watch_logs_by_user_and_movie(db, identity.subject, tmdb_id)
