from fastapi import APIRouter, HTTPException, Path, Request, status
from fastapi.responses import FileResponse

from moov.services.asset_storage_service import asset_storage, AssetStorageError
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/assets", tags=["Assets"])


@router.post("/upload/{token}", status_code=status.HTTP_201_CREATED)
async def upload_asset(request: Request, token: str = Path(..., min_length=1, max_length=128)):
    """
    Store the raw request body under a new storage id

    The URL comes from `POST /api/users/me/profile-image/upload-url` and works once.
    """
    content = await request.body()
    try:
        storage_id = asset_storage.store(token, content)
    except AssetStorageError as e:
        logger.warning(f"Rejected upload: {str(e)}")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return {"storage_id": storage_id}


@router.get("/{storage_id}")
def get_asset(storage_id: str = Path(..., min_length=1, max_length=64)):
    path = asset_storage.path_for(storage_id)
    if path is None or not path.is_file():
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Asset not found")
    with open(path, "rb") as f:
        head = f.read(16)
    return FileResponse(path, media_type=_sniff_media_type(head))


def _sniff_media_type(head: bytes) -> str:
    """Sniff common image formats from their magic bytes"""
    if head.startswith(b"\x89PNG"):
        return "image/png"
    if head.startswith(b"\xff\xd8\xff"):
        return "image/jpeg"
    if head.startswith(b"GIF8"):
        return "image/gif"
    if head.startswith(b"RIFF") and head[8:12] == b"WEBP":
        return "image/webp"
    return "application/octet-stream"
