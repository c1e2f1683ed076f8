"""
Closed value sets shared by the ORM models and the API schemas
"""
from enum import Enum


class PrivacySetting(str, Enum):
    """Who may see a user's profile"""
    PUBLIC = "public"
    FRIENDS_ONLY = "friends_only"
    PRIVATE = "private"


class Visibility(str, Enum):
    """Who may see a single watch log"""
    PUBLIC = "public"
    FRIENDS = "friends"
    PRIVATE = "private"


class TheaterFormat(str, Enum):
    """Projection format for theater viewings"""
    STANDARD = "standard"
    IMAX = "imax"
    DOLBY = "dolby"
    THREE_D = "3d"
    SEVENTY_MM = "70mm"
    THIRTY_FIVE_MM = "35mm"


def enum_values(enum_cls):
    """Store enum members by their literal value rather than their name"""
    return [member.value for member in enum_cls]
