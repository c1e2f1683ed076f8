import os
from datetime import date

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Ensure background jobs stay disabled during tests
os.environ.setdefault("ENABLE_BACKGROUND_JOBS", "false")

from moov.database import Base, get_db
from moov.main import app
from moov.models.movie import Movie
from moov.models.user import User
from moov.models.watch_log import WatchLog
from moov.services.asset_storage_service import asset_storage
from moov.utils.cache import clear_all_cache
from moov.utils.security import create_identity_token

SQLALCHEMY_DATABASE_URL = "sqlite://"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def session_factory():
    return TestingSessionLocal


@pytest.fixture
def db_session():
    """Provide a clean database session for each test."""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(db_session, monkeypatch):
    """FastAPI test client with the database dependency overridden."""

    def override_get_db():
        test_db = TestingSessionLocal()
        try:
            yield test_db
        finally:
            test_db.close()

    app.dependency_overrides[get_db] = override_get_db
    monkeypatch.setenv("ENABLE_BACKGROUND_JOBS", "false")

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.pop(get_db, None)


@pytest.fixture(autouse=True)
def asset_dir(tmp_path, monkeypatch):
    """Point the asset store at a per-test directory."""
    root = tmp_path / "assets"
    monkeypatch.setattr(asset_storage, "root", root)
    monkeypatch.setattr(asset_storage, "base_url", "http://testserver")
    monkeypatch.setattr(asset_storage, "upload_tokens", type(asset_storage.upload_tokens)())
    monkeypatch.setattr(asset_storage, "pending_owners", {})
    return root


@pytest.fixture(autouse=True)
def fresh_cache():
    clear_all_cache()
    yield
    clear_all_cache()


def auth_headers(subject="user_1", email="user1@example.com"):
    return {"Authorization": f"Bearer {create_identity_token(subject, email)}"}


def create_user(session, clerk_user_id="user_1", email="user1@example.com", **fields):
    user = User(clerk_user_id=clerk_user_id, email=email, **fields)
    session.add(user)
    session.commit()
    session.refresh(user)
    return user


def create_movie(session, tmdb_id=603, title="The Matrix", **fields):
    movie = Movie(tmdb_id=tmdb_id, title=title, **fields)
    session.add(movie)
    session.commit()
    session.refresh(movie)
    return movie


def create_log(session, user, movie, watched_at=date(2024, 1, 1), **fields):
    log = WatchLog(
        user_id=user.id,
        movie_id=movie.id,
        tmdb_id=movie.tmdb_id,
        watched_at=watched_at,
        **fields
    )
    session.add(log)
    session.commit()
    session.refresh(log)
    return log
