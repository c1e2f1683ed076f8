"""
Watch Log Service - Handle all watch-log business logic
Follows the same pattern as MovieService and UserService for consistency
"""
import logging
from datetime import datetime, timezone
from typing import List

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from moov.models.enums import Visibility
from moov.models.movie import Movie
from moov.models.user import User
from moov.models.watch_log import WatchLog
from moov.schemas.watch_log import (
    WatchLogCreate,
    WatchLogResponse,
    WatchLogWithMovieResponse,
    WatchLogStats,
    ActivityItem,
    ActivityUserSummary,
    ActivityMovieSummary,
    ActivityFeedPage,
)
from moov.services.user_service import UserService

logger = logging.getLogger(__name__)


class WatchLogService:
    """
    Service for watch-log operations

    Lists are ordered most recent watch first. Logs sharing a watched_at date
    are ordered by id, newest first, so the order is stable between calls.
    """

    NEWEST_FIRST = (WatchLog.watched_at.desc(), WatchLog.id.desc())

    @staticmethod
    def create_watch_log(db: Session, clerk_user_id: str, log_data: WatchLogCreate) -> int:
        """Record one viewing for the user; returns the new watch log id"""
        user = db.query(User).filter(User.clerk_user_id == clerk_user_id).first()
        if not user:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

        movie = db.get(Movie, log_data.movie_id)
        if not movie:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Movie not found")
        if log_data.tmdb_id != movie.tmdb_id:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="tmdb_id does not match the referenced movie"
            )

        watch_log = WatchLog(
            user_id=user.id,
            movie_id=movie.id,
            tmdb_id=movie.tmdb_id,
            watched_at=log_data.watched_at,
            rating=log_data.rating,
            review_text=log_data.review_text,
            is_rewatch=log_data.is_rewatch,
            watched_in_theater=log_data.watched_in_theater,
            theater_name=log_data.theater_name,
            theater_city=log_data.theater_city,
            theater_format=log_data.theater_format,
            visibility=log_data.visibility,
            updated_at=datetime.now(timezone.utc),
        )
        db.add(watch_log)
        db.commit()
        db.refresh(watch_log)
        logger.info(f"User {user.id} logged movie {movie.tmdb_id} (watch log {watch_log.id})")
        return watch_log.id

    @staticmethod
    def get_watch_logs_by_user_and_movie(db: Session, clerk_user_id: str, tmdb_id: int) -> List[WatchLog]:
        """
        All of a user's logs for one movie.
        An unknown user or a movie that was never cached simply has no logs.
        """
        user = db.query(User).filter(User.clerk_user_id == clerk_user_id).first()
        if not user:
            return []

        movie = db.query(Movie).filter(Movie.tmdb_id == tmdb_id).first()
        if not movie:
            return []

        return (
            db.query(WatchLog)
            .filter(WatchLog.user_id == user.id, WatchLog.movie_id == movie.id)
            .order_by(*WatchLogService.NEWEST_FIRST)
            .all()
        )

    @staticmethod
    def get_watch_logs_by_user(db: Session, clerk_user_id: str) -> List[WatchLogWithMovieResponse]:
        """All of a user's logs, each with the current title, poster and release date of its movie"""
        user = db.query(User).filter(User.clerk_user_id == clerk_user_id).first()
        if not user:
            return []

        logs = (
            db.query(WatchLog)
            .filter(WatchLog.user_id == user.id)
            .order_by(*WatchLogService.NEWEST_FIRST)
            .all()
        )

        results = []
        for log in logs:
            movie = db.get(Movie, log.movie_id)
            item = WatchLogWithMovieResponse.model_validate(log)
            if movie:
                item.movie_title = movie.title
                item.movie_poster = movie.poster_path
                item.movie_release_date = movie.release_date
            results.append(item)
        return results

    @staticmethod
    def get_user_stats(db: Session, clerk_user_id: str) -> WatchLogStats:
        """Totals over every log of the user; all zero for an unknown user"""
        user = db.query(User).filter(User.clerk_user_id == clerk_user_id).first()
        if not user:
            return WatchLogStats()

        logs = db.query(WatchLog).filter(WatchLog.user_id == user.id).all()

        return WatchLogStats(
            total_logs=len(logs),
            unique_movies=len({log.movie_id for log in logs}),
            rewatches=sum(1 for log in logs if log.is_rewatch),
            theater_visits=sum(1 for log in logs if log.watched_in_theater),
        )

    @staticmethod
    def get_public_activity_feed(db: Session, limit: int, offset: int) -> ActivityFeedPage:
        """
        One page of public logs from everyone, newest watch first.

        User and movie summaries are read fresh for every row, so edits to a
        profile or a movie refresh show up on the next fetch. Rows whose user
        or movie can no longer be found are left out of the page.
        """
        rows = (
            db.query(WatchLog)
            .filter(WatchLog.visibility == Visibility.PUBLIC)
            .order_by(*WatchLogService.NEWEST_FIRST)
            .offset(offset)
            .limit(limit + 1)  # one extra row tells us whether another page exists
            .all()
        )
        has_more = len(rows) > limit

        activities = []
        for log in rows[:limit]:
            user = db.get(User, log.user_id)
            movie = db.get(Movie, log.movie_id)
            if not user or not movie:
                logger.debug(f"Skipping watch log {log.id} with unresolved user or movie")
                continue

            activities.append(ActivityItem(
                log=WatchLogResponse.model_validate(log),
                user=ActivityUserSummary(
                    display_name=user.display_name,
                    username=user.username,
                    profile_image_url=UserService.resolve_profile_image(user),
                ),
                movie=ActivityMovieSummary(
                    title=movie.title,
                    poster_path=movie.poster_path,
                    release_date=movie.release_date,
                ),
            ))

        return ActivityFeedPage(activities=activities, has_more=has_more)
