from sqlalchemy import Column, Integer, String, Float, Boolean, Date, DateTime, Text, ForeignKey, Enum, Index
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from moov.database import Base
from moov.models.enums import Visibility, TheaterFormat, enum_values


class WatchLog(Base):
    """
    One viewing of one movie by one user.
    Rewatches are stored as additional rows, never as edits of an earlier row.
    """
    __tablename__ = "watch_logs"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    movie_id = Column(Integer, ForeignKey("movies.id"), nullable=False, index=True)
    tmdb_id = Column(Integer, nullable=False)  # denormalized from movies.tmdb_id
    watched_at = Column(Date, nullable=False, index=True)
    rating = Column(Float, nullable=True)  # 0-10, one decimal
    review_text = Column(Text, nullable=True)
    is_rewatch = Column(Boolean, nullable=False, default=False)
    watched_in_theater = Column(Boolean, nullable=False, default=False)
    theater_name = Column(String(255), nullable=True)
    theater_city = Column(String(255), nullable=True)
    theater_format = Column(
        Enum(TheaterFormat, name="theater_format", values_callable=enum_values),
        nullable=True,
    )
    visibility = Column(
        Enum(Visibility, name="visibility", values_callable=enum_values),
        nullable=False,
        default=Visibility.PUBLIC,
        index=True,
    )
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    # Relationships
    user = relationship("User", back_populates="watch_logs")
    movie = relationship("Movie")

    __table_args__ = (
        Index("ix_watch_logs_user_movie", "user_id", "movie_id"),
        Index("ix_watch_logs_user_watched_at", "user_id", "watched_at"),
    )

    def __repr__(self):
        return f"<WatchLog(id={self.id}, user_id={self.user_id}, tmdb_id={self.tmdb_id}, watched_at={self.watched_at})>"
