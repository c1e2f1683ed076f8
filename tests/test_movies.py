from moov.models.movie import Movie
from moov.schemas.movie import MovieUpsert
from moov.services.movie_service import MovieService

from conftest import auth_headers, create_user


def matrix_snapshot(**overrides):
    data = {
        "tmdb_id": 603,
        "title": "The Matrix",
        "release_date": "1999-03-30",
        "runtime": 136,
        "overview": "A hacker learns the truth about his reality.",
        "poster_path": "/matrix.jpg",
        "backdrop_path": "/matrix-bg.jpg",
        "vote_average": 8.2,
        "genres": [{"id": 28, "name": "Action"}, {"id": 878, "name": "Science Fiction"}],
        "cast": [{"id": 6384, "name": "Keanu Reeves", "character": "Neo", "order": 0}],
        "tmdb_data": {"id": 603, "title": "The Matrix"},
    }
    data.update(overrides)
    return MovieUpsert(**data)


def test_upsert_inserts_new_movie(db_session):
    movie_id = MovieService.upsert_movie(db_session, matrix_snapshot())

    movie = db_session.get(Movie, movie_id)
    assert movie.tmdb_id == 603
    assert movie.title == "The Matrix"
    assert movie.genres[1] == {"id": 878, "name": "Science Fiction"}
    assert movie.cast[0]["character"] == "Neo"
    assert movie.last_synced_at is not None
    assert movie.updated_at is not None


def test_upsert_same_tmdb_id_keeps_single_record_with_latest_values(db_session):
    first_id = MovieService.upsert_movie(db_session, matrix_snapshot())
    first_synced = db_session.get(Movie, first_id).last_synced_at

    second_id = MovieService.upsert_movie(
        db_session, matrix_snapshot(title="The Matrix (Remastered)", runtime=138, cast=None)
    )

    assert second_id == first_id
    db_session.expire_all()
    movies = db_session.query(Movie).filter(Movie.tmdb_id == 603).all()
    assert len(movies) == 1
    assert movies[0].title == "The Matrix (Remastered)"
    assert movies[0].runtime == 138
    assert movies[0].cast is None
    assert movies[0].last_synced_at >= first_synced


def test_repeated_upserts_across_ids_never_duplicate(db_session):
    for tmdb_id in [603, 604, 603, 605, 604, 603]:
        MovieService.upsert_movie(db_session, matrix_snapshot(tmdb_id=tmdb_id, title=f"Movie {tmdb_id}"))

    assert db_session.query(Movie).count() == 3
    for tmdb_id in [603, 604, 605]:
        assert db_session.query(Movie).filter(Movie.tmdb_id == tmdb_id).count() == 1


def test_get_movie_by_tmdb_id_returns_none_when_missing(db_session):
    assert MovieService.get_movie_by_tmdb_id(db_session, 999) is None


def test_put_movie_endpoint_upserts(client, db_session):
    create_user(db_session)
    payload = matrix_snapshot().model_dump()

    first = client.put("/api/movies/603", json=payload, headers=auth_headers())
    payload["title"] = "The Matrix (Remastered)"
    second = client.put("/api/movies/603", json=payload, headers=auth_headers())

    assert first.status_code == 200
    assert second.json()["id"] == first.json()["id"]

    fetched = client.get("/api/movies/603")
    assert fetched.status_code == 200
    assert fetched.json()["title"] == "The Matrix (Remastered)"


def test_put_movie_rejects_mismatched_id(client):
    response = client.put("/api/movies/604", json=matrix_snapshot().model_dump(), headers=auth_headers())
    assert response.status_code == 400


def test_put_movie_requires_authentication(client):
    response = client.put("/api/movies/603", json=matrix_snapshot().model_dump())
    assert response.status_code == 401


def test_get_unknown_movie_is_404(client):
    response = client.get("/api/movies/12345")
    assert response.status_code == 404
    assert response.json()["detail"] == "Movie not found"
