"""
Submission Service - the "log a movie" flow

Caches the movie snapshot first, then records the watch log against the
cached row. Problems come back as a SubmissionResult instead of an exception
so the form can show the message inline.
"""
import logging

from fastapi import HTTPException
from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from moov.schemas.movie import MovieUpsert
from moov.schemas.watch_log import WatchLogSubmission, WatchLogFields, WatchLogCreate, SubmissionResult
from moov.services.movie_service import MovieService
from moov.services.watch_log_service import WatchLogService

logger = logging.getLogger(__name__)


class SubmissionService:

    @staticmethod
    def _validate(submission: WatchLogSubmission):
        """Return an error message, or None when the submission may be saved"""
        # Checked at the stored precision of one decimal
        rating = round(submission.rating, 1) if submission.rating is not None else None
        if rating is None or rating <= 0:
            return "Rating is required"
        if rating > 10:
            return "Rating must be between 0 and 10"
        if not submission.movie.tmdb_id or submission.movie.tmdb_id <= 0:
            return "Movie ID is required"
        return None

    @staticmethod
    def submit_watch_log(db: Session, clerk_user_id: str, submission: WatchLogSubmission) -> SubmissionResult:
        error = SubmissionService._validate(submission)
        if error:
            return SubmissionResult(success=False, error=error)

        # Theater details only apply to theater viewings
        in_theater = submission.watched_in_theater

        try:
            movie_data = MovieUpsert(**submission.movie.model_dump())
            log_fields = WatchLogFields(
                tmdb_id=movie_data.tmdb_id,
                watched_at=submission.watched_at,
                rating=round(submission.rating, 1),
                review_text=submission.review_text,
                is_rewatch=submission.is_rewatch,
                watched_in_theater=in_theater,
                theater_name=submission.theater_name if in_theater else None,
                theater_city=submission.theater_city if in_theater else None,
                theater_format=submission.theater_format if in_theater else None,
                visibility=submission.visibility,
            )
        except ValidationError as e:
            first = e.errors()[0]
            field = ".".join(str(part) for part in first["loc"])
            return SubmissionResult(success=False, error=f"Invalid {field}: {first['msg']}")

        try:
            movie_id = MovieService.upsert_movie(db, movie_data)
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Movie upsert failed for tmdb_id={movie_data.tmdb_id}: {str(e)}")
            return SubmissionResult(success=False, error="Could not save movie")

        try:
            watch_log_id = WatchLogService.create_watch_log(
                db, clerk_user_id, WatchLogCreate(movie_id=movie_id, **log_fields.model_dump())
            )
        except HTTPException as e:
            return SubmissionResult(success=False, error=e.detail, movie_id=movie_id)
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Watch log insert failed for user {clerk_user_id}: {str(e)}")
            return SubmissionResult(success=False, error="Could not save watch log", movie_id=movie_id)

        return SubmissionResult(success=True, movie_id=movie_id, watch_log_id=watch_log_id)
