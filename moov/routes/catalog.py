from fastapi import APIRouter, HTTPException, Path, Query, status
from typing import Any, Dict

from moov.services.tmdb_service import TMDBService, poster_url
from moov.schemas.movie import TimeWindow

router = APIRouter(prefix="/api/catalog", tags=["Catalog"])


@router.get("/search")
def search_movies(
    query: str = Query(..., min_length=1, max_length=200, description="Movie title to search for"),
    page: int = Query(1, ge=1, le=500, description="Page number")
) -> Dict[str, Any]:
    """Search TMDB by title. An unreachable catalog yields an empty result list."""
    return TMDBService.search_movies(query, page)


@router.get("/trending")
def get_trending(
    time_window: TimeWindow = Query(TimeWindow.WEEK, description="Trending window"),
    page: int = Query(1, ge=1, le=500)
) -> Dict[str, Any]:
    data = TMDBService.get_trending(time_window.value, page)
    return {
        "movies": data.get("results", []),
        "page": data.get("page", page),
        "total_pages": data.get("total_pages", 0),
        "total_results": data.get("total_results", 0),
    }


@router.get("/movies/{movie_id}")
def get_movie_detail(movie_id: int = Path(..., description="TMDB movie ID", gt=0)) -> Dict[str, Any]:
    """Movie detail with cast, as shown on the movie page before logging a watch"""
    entity = TMDBService.get_entity(movie_id)
    if not entity:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Movie not found")
    return {**entity, "poster_url": poster_url(entity.get("poster_path"), "w500")}
