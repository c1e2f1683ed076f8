import requests
import os
from typing import Dict, List, Optional
from moov.utils.cache import cache
import logging

logger = logging.getLogger(__name__)

IMAGE_BASE_URL = "https://image.tmdb.org/t/p"


def poster_url(path: Optional[str], size: str = "w342") -> Optional[str]:
    """Full CDN URL for a poster path, or None when the movie has no poster"""
    if not path:
        return None
    return f"{IMAGE_BASE_URL}/{size}{path}"


def backdrop_url(path: Optional[str], size: str = "w1280") -> Optional[str]:
    if not path:
        return None
    return f"{IMAGE_BASE_URL}/{size}{path}"


# TMDB Service to interact with The Movie Database API
class TMDBService:
    """
    Read-only TMDB client.

    Every public method fails soft: transport, HTTP and JSON errors are logged
    and turned into None (single records) or an empty result (lists), so
    callers never see an exception from the catalog.
    """
    BASE_URL = "https://api.themoviedb.org/3"
    API_KEY = os.getenv("TMDB_API_KEY")
    READ_ACCESS_TOKEN = os.getenv("TMDB_READ_ACCESS_TOKEN")
    TIMEOUT = 10

    # Internal method to make GET requests to TMDB API
    @classmethod
    def _make_request(cls, endpoint: str, params: Dict = None) -> Optional[Dict]:
        """
        Make HTTP request to TMDB API.

        Args:
            endpoint: API endpoint (e.g., "/movie/603")
            params: Query parameters

        Returns:
            JSON response from TMDB, or None on any failure
        """
        params = dict(params or {})
        params.setdefault("language", "en-US")
        headers = {"accept": "application/json"}

        if cls.READ_ACCESS_TOKEN:
            headers["Authorization"] = f"Bearer {cls.READ_ACCESS_TOKEN}"
        elif cls.API_KEY:
            params["api_key"] = cls.API_KEY
        else:
            logger.error("TMDB credentials not configured (TMDB_READ_ACCESS_TOKEN or TMDB_API_KEY)")
            return None

        url = f"{cls.BASE_URL}{endpoint}"
        try:
            response = requests.get(url, params=params, headers=headers, timeout=cls.TIMEOUT)
            response.raise_for_status()
            logger.debug(f"TMDB API request successful: {endpoint}")
            return response.json()
        except requests.exceptions.RequestException as e:
            logger.error(f"TMDB API error for {endpoint}: {str(e)}")
        except ValueError as e:
            logger.error(f"TMDB API returned invalid JSON for {endpoint}: {str(e)}")
        return None

    @staticmethod
    def _empty_page(page: int) -> Dict:
        return {"results": [], "page": page, "total_pages": 0, "total_results": 0}

    @classmethod
    @cache(ttl=300)  # Cache search results for 5 minutes
    def _fetch_search(cls, query: str, page: int) -> Optional[Dict]:
        return cls._make_request("/search/movie", {'query': query, 'page': page})

    @classmethod
    def search_movies(cls, query: str, page: int = 1) -> Dict:
        """
        Search movies by title. Returns {results, page, total_pages, total_results}.
        The empty page served during an outage is not cached.
        """
        data = cls._fetch_search(query, page)
        if not data:
            return cls._empty_page(page)
        return data

    @classmethod
    @cache(ttl=600)  # Cache movie details for 10 minutes
    def get_movie_details(cls, movie_id: int) -> Optional[Dict]:
        return cls._make_request(f"/movie/{movie_id}")

    @classmethod
    @cache(ttl=600)
    def get_movie_credits(cls, movie_id: int) -> Optional[List[Dict]]:
        """Cast list for a movie, ordered by billing position"""
        data = cls._make_request(f"/movie/{movie_id}/credits")
        if not data:
            return None
        return sorted(data.get("cast", []), key=lambda member: member.get("order", 0))

    @classmethod
    def get_entity(cls, movie_id: int) -> Optional[Dict]:
        """
        Movie detail merged with its cast, as the detail page needs it.
        Missing credits leave cast as None; a missing detail returns None.
        """
        detail = cls.get_movie_details(movie_id)
        if not detail:
            return None
        return {**detail, "cast": cls.get_movie_credits(movie_id)}

    @classmethod
    @cache(ttl=3600)  # Cache trending for 1 hour
    def _fetch_trending(cls, time_window: str, page: int) -> Optional[Dict]:
        return cls._make_request(f"/trending/movie/{time_window}", {'page': page})

    @classmethod
    def get_trending(cls, time_window: str = 'week', page: int = 1) -> Dict:
        data = cls._fetch_trending(time_window, page)
        if not data:
            return cls._empty_page(page)
        return data
