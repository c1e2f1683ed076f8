"""
Movie Service - local catalog cache of TMDB movies
"""
import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from moov.models.movie import Movie
from moov.schemas.movie import MovieUpsert

logger = logging.getLogger(__name__)


class MovieService:
    """Service for the movie catalog cache"""

    @staticmethod
    def _snapshot_fields(movie_data: MovieUpsert) -> dict:
        """Mutable columns written on every upsert"""
        data = movie_data.model_dump(exclude={"tmdb_id"})
        return {
            "title": data["title"],
            "release_date": data["release_date"],
            "runtime": data["runtime"],
            "overview": data["overview"],
            "poster_path": data["poster_path"],
            "backdrop_path": data["backdrop_path"],
            "vote_average": data["vote_average"],
            "genres": data["genres"],
            "cast": data["cast"],
            "tmdb_data": data["tmdb_data"],
        }

    @staticmethod
    def get_movie_by_tmdb_id(db: Session, tmdb_id: int) -> Optional[Movie]:
        return db.query(Movie).filter(Movie.tmdb_id == tmdb_id).first()

    @staticmethod
    def upsert_movie(db: Session, movie_data: MovieUpsert) -> int:
        """
        Insert or refresh the cached copy of a TMDB movie.
        Returns the internal movie.id (not tmdb_id).

        An existing row is patched in place, so repeated calls for the same
        tmdb_id always converge on a single record holding the latest snapshot.
        """
        now = datetime.now(timezone.utc)
        fields = MovieService._snapshot_fields(movie_data)

        movie = MovieService.get_movie_by_tmdb_id(db, movie_data.tmdb_id)
        if movie:
            for key, value in fields.items():
                setattr(movie, key, value)
            movie.last_synced_at = now
            movie.updated_at = now
            db.commit()
            logger.info(f"Refreshed movie tmdb_id={movie_data.tmdb_id} (id={movie.id})")
            return movie.id

        movie = Movie(tmdb_id=movie_data.tmdb_id, last_synced_at=now, updated_at=now, **fields)
        db.add(movie)
        try:
            db.commit()
        except IntegrityError:
            # A concurrent upsert inserted the same tmdb_id first; patch that row instead
            db.rollback()
            logger.info(f"Concurrent insert for tmdb_id={movie_data.tmdb_id}, retrying as update")
            return MovieService.upsert_movie(db, movie_data)
        db.refresh(movie)
        logger.info(f"Cached new movie tmdb_id={movie_data.tmdb_id} (id={movie.id})")
        return movie.id
