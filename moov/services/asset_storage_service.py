"""
Asset storage for user-uploaded files (profile images)

Files live under ASSET_STORAGE_DIR and are addressed by an opaque storage id.
Uploads go through one-time URLs so clients never pick the storage id themselves.
"""
import logging
import os
import secrets
import threading
import time
import uuid
from pathlib import Path
from typing import Dict, Optional, Tuple

logger = logging.getLogger(__name__)

ASSET_STORAGE_DIR = os.getenv("ASSET_STORAGE_DIR", "./storage/assets")
PUBLIC_BASE_URL = os.getenv("PUBLIC_BASE_URL", "http://localhost:8000")
ASSET_UPLOAD_TTL_SECONDS = int(os.getenv("ASSET_UPLOAD_TTL_SECONDS", "3600"))
MAX_ASSET_BYTES = int(os.getenv("MAX_ASSET_BYTES", str(5 * 1024 * 1024)))


class UploadTokenRegistry:
    """One-time upload tokens with expiry"""

    def __init__(self):
        self.tokens: Dict[str, Tuple[float, str]] = {}  # token: (expiry, owner)
        self._lock = threading.Lock()

    def issue(self, ttl: int, owner: str) -> str:
        token = secrets.token_urlsafe(32)
        with self._lock:
            self.tokens[token] = (time.time() + ttl, owner)
        return token

    def consume(self, token: str) -> Optional[str]:
        """Redeem a token and return the owner it was issued to; None if unknown, already used or expired"""
        with self._lock:
            entry = self.tokens.pop(token, None)
        if entry is None or time.time() > entry[0]:
            return None
        return entry[1]

    def cleanup_expired(self) -> int:
        """Remove expired tokens (call periodically)"""
        current_time = time.time()
        with self._lock:
            expired = [token for token, (expiry, _) in self.tokens.items() if current_time > expiry]
            for token in expired:
                del self.tokens[token]
        if expired:
            logger.debug(f"Cleaned {len(expired)} expired upload tokens")
        return len(expired)


class AssetStorageError(Exception):
    """Raised when an upload cannot be stored"""


class AssetStorageService:
    """Filesystem-backed asset store"""

    def __init__(self, root: str = ASSET_STORAGE_DIR, base_url: str = PUBLIC_BASE_URL,
                 upload_ttl: int = ASSET_UPLOAD_TTL_SECONDS):
        self.root = Path(root)
        self.base_url = base_url.rstrip("/")
        self.upload_ttl = upload_ttl
        self.upload_tokens = UploadTokenRegistry()
        self.pending_owners: Dict[str, str] = {}  # storage_id: uploader, until attached to a profile
        self._lock = threading.Lock()

    @staticmethod
    def _is_valid_id(storage_id: str) -> bool:
        try:
            return uuid.UUID(storage_id).hex == storage_id
        except (ValueError, TypeError, AttributeError):
            return False

    def path_for(self, storage_id: str) -> Optional[Path]:
        """Location of a stored asset, or None for ids this store never issues"""
        if not self._is_valid_id(storage_id):
            return None
        return self.root / storage_id

    def generate_upload_url(self, owner: str) -> str:
        """One-time upload URL; the stored asset can only be claimed by `owner`"""
        token = self.upload_tokens.issue(self.upload_ttl, owner)
        return f"{self.base_url}/api/assets/upload/{token}"

    def store(self, token: str, content: bytes) -> str:
        """Save an upload made against a URL from generate_upload_url; returns the new storage id"""
        owner = self.upload_tokens.consume(token)
        if owner is None:
            raise AssetStorageError("Upload URL is invalid or has expired")
        if not content:
            raise AssetStorageError("Upload is empty")
        if len(content) > MAX_ASSET_BYTES:
            raise AssetStorageError("Upload is too large")

        storage_id = uuid.uuid4().hex
        self.root.mkdir(parents=True, exist_ok=True)
        (self.root / storage_id).write_bytes(content)
        with self._lock:
            self.pending_owners[storage_id] = owner
        logger.info(f"Stored asset {storage_id} ({len(content)} bytes)")
        return storage_id

    def claim(self, storage_id: str, owner: str) -> bool:
        """
        Hand a freshly uploaded asset to the user who uploaded it.
        Works once per asset; ids uploaded by someone else are refused.
        """
        with self._lock:
            if self.pending_owners.get(storage_id) != owner:
                return False
            del self.pending_owners[storage_id]
        return self.resolve(storage_id) is not None

    def resolve(self, storage_id: Optional[str]) -> Optional[str]:
        """Public URL for an asset, or None if it does not exist"""
        if not storage_id:
            return None
        path = self.path_for(storage_id)
        if path is None or not path.is_file():
            return None
        return f"{self.base_url}/api/assets/{storage_id}"

    def delete(self, storage_id: str) -> None:
        path = self.path_for(storage_id)
        if path is None:
            return
        path.unlink(missing_ok=True)
        with self._lock:
            self.pending_owners.pop(storage_id, None)
        logger.info(f"Deleted asset {storage_id}")


# Global instance
asset_storage = AssetStorageService()
