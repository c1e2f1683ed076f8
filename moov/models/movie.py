"""
Movie Model - local copy of TMDB movie metadata
Rows are created or refreshed whenever a watch log is submitted for the movie
"""
from sqlalchemy import Column, Integer, String, Float, JSON, DateTime, Text
from sqlalchemy.sql import func
from moov.database import Base


class Movie(Base):
    """
    Cached TMDB movie, keyed by tmdb_id

    Attributes:
        tmdb_id: TMDB movie ID (natural key, unique)
        genres: [{id, name}] or None
        cast: [{id, name, character, order}] or None, order is billing position
        tmdb_data: raw TMDB payload the snapshot was built from
        last_synced_at: last time the snapshot was written from TMDB data
    """
    __tablename__ = "movies"

    id = Column(Integer, primary_key=True, index=True)
    tmdb_id = Column(Integer, unique=True, nullable=False, index=True)
    title = Column(String(500), nullable=False, index=True)
    release_date = Column(String(20), nullable=True)
    runtime = Column(Integer, nullable=True)
    overview = Column(Text, nullable=True)
    poster_path = Column(String(200), nullable=True)
    backdrop_path = Column(String(200), nullable=True)
    vote_average = Column(Float, nullable=True)
    genres = Column(JSON, nullable=True)
    cast = Column(JSON, nullable=True)
    tmdb_data = Column(JSON, nullable=True)
    last_synced_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<Movie(tmdb_id={self.tmdb_id}, title='{self.title}')>"
