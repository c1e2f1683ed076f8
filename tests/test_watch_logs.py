from datetime import date

import pytest
from fastapi import HTTPException

from moov.models.enums import Visibility, TheaterFormat
from moov.models.watch_log import WatchLog
from moov.schemas.watch_log import WatchLogCreate
from moov.services.watch_log_service import WatchLogService

from conftest import auth_headers, create_user, create_movie, create_log


def new_log(movie, **overrides):
    data = {
        "movie_id": movie.id,
        "tmdb_id": movie.tmdb_id,
        "watched_at": date(2024, 1, 1),
        "rating": 8.5,
    }
    data.update(overrides)
    return WatchLogCreate(**data)


def test_create_watch_log_is_listed_for_user(db_session):
    create_user(db_session, clerk_user_id="u1")
    movie = create_movie(db_session, tmdb_id=603, title="The Matrix", poster_path="/m.jpg", release_date="1999-03-31")

    log_id = WatchLogService.create_watch_log(db_session, "u1", new_log(movie, visibility=Visibility.PUBLIC))

    logs = WatchLogService.get_watch_logs_by_user(db_session, "u1")
    assert len(logs) == 1
    assert logs[0].id == log_id
    assert logs[0].rating == 8.5
    assert logs[0].movie_title == "The Matrix"
    assert logs[0].movie_poster == "/m.jpg"
    assert logs[0].movie_release_date == "1999-03-31"


def test_create_watch_log_unknown_user_writes_nothing(db_session):
    movie = create_movie(db_session)

    with pytest.raises(HTTPException) as exc:
        WatchLogService.create_watch_log(db_session, "ghost", new_log(movie))

    assert exc.value.status_code == 404
    assert exc.value.detail == "User not found"
    assert db_session.query(WatchLog).count() == 0


def test_create_watch_log_unknown_movie(db_session):
    create_user(db_session)

    with pytest.raises(HTTPException) as exc:
        WatchLogService.create_watch_log(db_session, "user_1", WatchLogCreate(movie_id=42, tmdb_id=1, watched_at=date(2024, 1, 1)))

    assert exc.value.detail == "Movie not found"


def test_create_watch_log_rejects_tmdb_id_of_another_movie(db_session):
    create_user(db_session)
    movie = create_movie(db_session, tmdb_id=603)

    with pytest.raises(HTTPException) as exc:
        WatchLogService.create_watch_log(db_session, "user_1", new_log(movie, tmdb_id=949))

    assert exc.value.status_code == 400
    assert db_session.query(WatchLog).count() == 0


def test_created_log_carries_the_movie_tmdb_id(db_session):
    create_user(db_session)
    movie = create_movie(db_session, tmdb_id=603)

    log_id = WatchLogService.create_watch_log(db_session, "user_1", new_log(movie))

    assert db_session.get(WatchLog, log_id).tmdb_id == 603


def test_logging_same_movie_twice_keeps_both(db_session):
    create_user(db_session)
    movie = create_movie(db_session)

    WatchLogService.create_watch_log(db_session, "user_1", new_log(movie))
    WatchLogService.create_watch_log(db_session, "user_1", new_log(movie, is_rewatch=True, watched_at=date(2024, 2, 1)))

    logs = WatchLogService.get_watch_logs_by_user_and_movie(db_session, "user_1", movie.tmdb_id)
    assert [log.watched_at for log in logs] == [date(2024, 2, 1), date(2024, 1, 1)]


def test_logs_are_newest_watch_first_with_id_tie_break(db_session):
    user = create_user(db_session)
    movie = create_movie(db_session)
    older = create_log(db_session, user, movie, watched_at=date(2023, 5, 1))
    first_same_day = create_log(db_session, user, movie, watched_at=date(2024, 3, 1))
    second_same_day = create_log(db_session, user, movie, watched_at=date(2024, 3, 1))

    ids = [log.id for log in WatchLogService.get_watch_logs_by_user(db_session, "user_1")]

    assert ids == [second_same_day.id, first_same_day.id, older.id]


def test_lists_are_empty_for_unknown_user_or_movie(db_session):
    user = create_user(db_session)
    movie = create_movie(db_session)
    create_log(db_session, user, movie)

    assert WatchLogService.get_watch_logs_by_user(db_session, "nobody") == []
    assert WatchLogService.get_watch_logs_by_user_and_movie(db_session, "nobody", movie.tmdb_id) == []
    assert WatchLogService.get_watch_logs_by_user_and_movie(db_session, "user_1", 999999) == []


def test_listing_includes_logs_whose_movie_vanished(db_session):
    user = create_user(db_session)
    movie = create_movie(db_session)
    db_session.add(WatchLog(user_id=user.id, movie_id=999, tmdb_id=1, watched_at=date(2024, 1, 1)))
    db_session.commit()
    create_log(db_session, user, movie, watched_at=date(2023, 1, 1))

    logs = WatchLogService.get_watch_logs_by_user(db_session, "user_1")

    assert len(logs) == 2
    assert logs[0].movie_title is None
    assert logs[1].movie_title == "The Matrix"


def test_user_stats(db_session):
    user = create_user(db_session)
    matrix = create_movie(db_session, tmdb_id=603, title="The Matrix")
    heat = create_movie(db_session, tmdb_id=949, title="Heat")
    create_log(db_session, user, matrix)
    create_log(db_session, user, matrix, is_rewatch=True, watched_in_theater=True, theater_format=TheaterFormat.IMAX)
    create_log(db_session, user, heat, watched_in_theater=True)

    stats = WatchLogService.get_user_stats(db_session, "user_1")

    assert stats.total_logs == 3
    assert stats.unique_movies == 2
    assert stats.rewatches == 1
    assert stats.theater_visits == 2


def test_user_stats_zero_for_unknown_user(db_session):
    stats = WatchLogService.get_user_stats(db_session, "nobody")
    assert stats.model_dump() == {"total_logs": 0, "unique_movies": 0, "rewatches": 0, "theater_visits": 0}


# ==================== PUBLIC FEED ====================

def test_feed_only_contains_public_logs(db_session):
    user = create_user(db_session, display_name="Neo", username="neo")
    movie = create_movie(db_session)
    public = create_log(db_session, user, movie, visibility=Visibility.PUBLIC)
    create_log(db_session, user, movie, visibility=Visibility.PRIVATE)
    create_log(db_session, user, movie, visibility=Visibility.FRIENDS)

    page = WatchLogService.get_public_activity_feed(db_session, limit=10, offset=0)

    assert [item.log.id for item in page.activities] == [public.id]
    assert page.activities[0].user.display_name == "Neo"
    assert page.activities[0].user.username == "neo"
    assert page.activities[0].movie.title == "The Matrix"
    assert page.has_more is False


def test_feed_has_more_and_offset(db_session):
    user = create_user(db_session)
    movie = create_movie(db_session)
    logs = [create_log(db_session, user, movie, watched_at=date(2024, 1, day)) for day in range(1, 6)]

    first = WatchLogService.get_public_activity_feed(db_session, limit=2, offset=0)
    last = WatchLogService.get_public_activity_feed(db_session, limit=2, offset=4)

    assert [item.log.id for item in first.activities] == [logs[4].id, logs[3].id]
    assert first.has_more is True
    assert [item.log.id for item in last.activities] == [logs[0].id]
    assert last.has_more is False


def test_feed_drops_rows_with_unresolved_user(db_session):
    user = create_user(db_session)
    movie = create_movie(db_session)
    create_log(db_session, user, movie)
    db_session.add(WatchLog(user_id=999, movie_id=movie.id, tmdb_id=movie.tmdb_id, watched_at=date(2024, 6, 1)))
    db_session.commit()

    page = WatchLogService.get_public_activity_feed(db_session, limit=10, offset=0)

    assert len(page.activities) == 1
    assert page.activities[0].log.user_id == user.id


def test_feed_reflects_profile_edits(db_session):
    user = create_user(db_session, display_name="Neo")
    movie = create_movie(db_session)
    create_log(db_session, user, movie)

    user.display_name = "Thomas Anderson"
    db_session.commit()

    page = WatchLogService.get_public_activity_feed(db_session, limit=10, offset=0)
    assert page.activities[0].user.display_name == "Thomas Anderson"


# ==================== HTTP ====================

def test_create_and_read_my_logs(client, db_session):
    create_user(db_session)
    movie = create_movie(db_session)

    response = client.post("/api/watch-logs/", json={
        "movie_id": movie.id,
        "tmdb_id": movie.tmdb_id,
        "watched_at": "2024-01-01",
        "rating": 8.46,
        "review_text": "  ",
        "theater_format": "imax",
    }, headers=auth_headers())
    assert response.status_code == 201

    logs = client.get("/api/watch-logs/me", headers=auth_headers()).json()
    assert len(logs) == 1
    assert logs[0]["id"] == response.json()["id"]
    assert logs[0]["rating"] == 8.5
    assert logs[0]["review_text"] is None
    assert logs[0]["visibility"] == "public"

    by_movie = client.get(f"/api/watch-logs/me/movie/{movie.tmdb_id}", headers=auth_headers()).json()
    assert len(by_movie) == 1

    stats = client.get("/api/watch-logs/me/stats", headers=auth_headers()).json()
    assert stats["total_logs"] == 1


def test_create_rejects_out_of_range_rating(client, db_session):
    create_user(db_session)
    movie = create_movie(db_session)

    response = client.post("/api/watch-logs/", json={
        "movie_id": movie.id,
        "tmdb_id": movie.tmdb_id,
        "watched_at": "2024-01-01",
        "rating": 11,
    }, headers=auth_headers())

    assert response.status_code == 422


def test_create_requires_authentication(client):
    response = client.post("/api/watch-logs/", json={"movie_id": 1, "tmdb_id": 1, "watched_at": "2024-01-01"})
    assert response.status_code == 401


def test_feed_endpoint_is_public(client, db_session):
    user = create_user(db_session)
    movie = create_movie(db_session)
    create_log(db_session, user, movie)

    response = client.get("/api/watch-logs/feed", params={"limit": 5})

    assert response.status_code == 200
    body = response.json()
    assert len(body["activities"]) == 1
    assert body["has_more"] is False


def test_feed_endpoint_bounds_limit(client):
    assert client.get("/api/watch-logs/feed", params={"limit": 0}).status_code == 422
    assert client.get("/api/watch-logs/feed", params={"offset": -1}).status_code == 422
