"""
Import all models to ensure they are registered with SQLAlchemy
"""
from moov.models.user import User
from moov.models.movie import Movie
from moov.models.watch_log import WatchLog
from moov.models.enums import PrivacySetting, Visibility, TheaterFormat

__all__ = [
    "User",
    "Movie",
    "WatchLog",
    "PrivacySetting",
    "Visibility",
    "TheaterFormat",
]
