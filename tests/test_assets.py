import os
import time

import pytest

from moov.services.asset_storage_service import AssetStorageError, asset_storage
from moov.services.background_jobs import BackgroundJobService

from conftest import create_user

PNG = b"\x89PNG\r\n\x1a\n fake image"


def upload_token(owner="user_1"):
    return asset_storage.generate_upload_url(owner).rsplit("/", 1)[-1]


def test_store_and_resolve(asset_dir):
    storage_id = asset_storage.store(upload_token(), PNG)

    assert (asset_dir / storage_id).read_bytes() == PNG
    assert asset_storage.resolve(storage_id) == f"http://testserver/api/assets/{storage_id}"


def test_upload_url_works_once():
    token = upload_token()
    asset_storage.store(token, PNG)

    with pytest.raises(AssetStorageError):
        asset_storage.store(token, PNG)


def test_expired_upload_url_is_rejected(monkeypatch):
    token = upload_token()
    monkeypatch.setitem(asset_storage.upload_tokens.tokens, token, (time.time() - 1, "user_1"))

    with pytest.raises(AssetStorageError):
        asset_storage.store(token, PNG)


def test_empty_upload_is_rejected():
    with pytest.raises(AssetStorageError):
        asset_storage.store(upload_token(), b"")


def test_resolve_unknown_or_malformed_ids():
    assert asset_storage.resolve(None) is None
    assert asset_storage.resolve("0" * 32) is None
    assert asset_storage.resolve("../../etc/passwd") is None


def test_delete_missing_asset_is_quiet(asset_dir):
    storage_id = asset_storage.store(upload_token(), PNG)
    asset_storage.delete(storage_id)
    asset_storage.delete(storage_id)
    assert not (asset_dir / storage_id).exists()


def test_purge_upload_tokens():
    asset_storage.upload_tokens.tokens["stale"] = (time.time() - 10, "user_1")
    upload_token()

    removed = BackgroundJobService().purge_upload_tokens()

    assert removed == 1
    assert len(asset_storage.upload_tokens.tokens) == 1


def test_cleanup_orphaned_assets(db_session, session_factory, asset_dir, monkeypatch):
    monkeypatch.setattr("moov.services.background_jobs.SessionLocal", session_factory)
    kept = asset_storage.store(upload_token(), PNG)
    orphan = asset_storage.store(upload_token(), PNG)
    fresh_orphan = asset_storage.store(upload_token(), PNG)
    create_user(db_session, profile_image_storage_id=kept)
    (asset_dir / "notes.txt").write_text("not an asset")

    old = time.time() - asset_storage.upload_ttl - 60
    for storage_id in (kept, orphan):
        os.utime(asset_dir / storage_id, (old, old))

    jobs = BackgroundJobService()
    removed = jobs.cleanup_orphaned_assets()

    assert removed == 1
    assert (asset_dir / kept).exists()
    assert not (asset_dir / orphan).exists()
    assert (asset_dir / fresh_orphan).exists()
    assert (asset_dir / "notes.txt").exists()
    assert jobs.job_stats["cleanup_orphaned_assets"]["status"] == "success"


def test_cleanup_without_storage_dir(asset_dir):
    assert BackgroundJobService().cleanup_orphaned_assets() == 0


# ==================== HTTP ====================

def test_upload_and_download_over_http(client):
    token = upload_token()

    response = client.post(f"/api/assets/upload/{token}", content=PNG)
    assert response.status_code == 201
    storage_id = response.json()["storage_id"]

    download = client.get(f"/api/assets/{storage_id}")
    assert download.status_code == 200
    assert download.content == PNG
    assert download.headers["content-type"] == "image/png"

    again = client.post(f"/api/assets/upload/{token}", content=PNG)
    assert again.status_code == 400


def test_download_unknown_asset(client):
    assert client.get(f"/api/assets/{'a' * 32}").status_code == 404
    assert client.get("/api/assets/not-an-id").status_code == 404


def test_upload_url_requires_authentication(client, db_session):
    create_user(db_session)
    assert client.post("/api/users/me/profile-image/upload-url").status_code == 401
