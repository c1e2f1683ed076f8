"""
Movie Routes - the local catalog cache
"""
from fastapi import APIRouter, Depends, HTTPException, Path, status
from sqlalchemy.orm import Session

from moov.database import get_db
from moov.schemas.movie import MovieUpsert, MovieResponse, EntityReference
from moov.services.movie_service import MovieService
from moov.utils.dependencies import get_current_identity
from moov.utils.security import Identity

router = APIRouter(prefix="/api/movies", tags=["Movies"])


@router.put("/{tmdb_id}", response_model=EntityReference)
def upsert_movie(
    movie_data: MovieUpsert,
    tmdb_id: int = Path(..., description="TMDB movie ID", gt=0),
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db)
):
    """
    Insert or refresh the cached copy of a TMDB movie

    Any signed-in user may refresh the cache. Returns the internal movie id,
    which stays the same across refreshes.
    """
    if movie_data.tmdb_id != tmdb_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="tmdb_id in body does not match the URL"
        )
    return {"id": MovieService.upsert_movie(db, movie_data)}


@router.get("/{tmdb_id}", response_model=MovieResponse)
def get_movie(
    tmdb_id: int = Path(..., description="TMDB movie ID", gt=0),
    db: Session = Depends(get_db)
):
    """Get the cached movie for a TMDB ID"""
    movie = MovieService.get_movie_by_tmdb_id(db, tmdb_id)
    if not movie:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Movie not found")
    return movie
