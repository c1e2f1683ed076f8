from fastapi import APIRouter, Depends, HTTPException, Path, Query, status
from sqlalchemy.orm import Session
from typing import Optional

from moov.database import get_db
from moov.schemas.user import (
    UserSync,
    UserUpdate,
    ProfileImageUpdate,
    UserResponse,
    UserProfileResponse,
    UploadUrlResponse,
)
from moov.schemas.watch_log import WatchLogStats
from moov.services.asset_storage_service import asset_storage
from moov.services.user_service import UserService
from moov.services.watch_log_service import WatchLogService
from moov.utils.dependencies import get_current_identity
from moov.utils.security import Identity

router = APIRouter(prefix="/api/users", tags=["Users"])


def _profile_or_404(db: Session, clerk_user_id: str) -> UserProfileResponse:
    profile = UserService.get_user_by_identity(db, clerk_user_id)
    if profile is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return profile


@router.post("/sync", response_model=UserResponse)
def sync_user(
    payload: Optional[UserSync] = None,
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db)
):
    """
    Create the profile on first sign-in

    Safe to call on every sign-in: an existing profile for the token's email
    is returned unchanged.
    """
    image_url = payload.profile_image_url if payload else None
    return UserService.ensure_user(db, identity, image_url)


@router.get("/by-email", response_model=UserResponse)
def get_user_by_email(
    email: str = Query(..., min_length=3, max_length=255),
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db)
):
    user = UserService.get_user_by_email(db, email)
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return user


@router.get("/me", response_model=UserProfileResponse)
def get_me(
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db)
):
    """Get the signed-in user's profile"""
    return _profile_or_404(db, identity.subject)


@router.patch("/me", response_model=UserResponse)
def update_me(
    update_data: UserUpdate,
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db)
):
    """
    Update profile fields

    - **username**: 3-30 letters, digits or underscores, unique
    - **display_name**: free text
    - **bio**: up to 500 characters

    Fields left out of the request keep their current value.
    """
    return UserService.update_user(db, identity.subject, update_data)


@router.post("/me/profile-image/upload-url", response_model=UploadUrlResponse)
def generate_upload_url(identity: Identity = Depends(get_current_identity)):
    """Get a one-time URL to POST a new profile image to"""
    return {"upload_url": UserService.generate_upload_url(identity.subject), "expires_in": asset_storage.upload_ttl}


@router.put("/me/profile-image", response_model=UserProfileResponse)
def update_profile_image(
    payload: ProfileImageUpdate,
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db)
):
    """
    Attach an uploaded image as the profile picture, replacing any previous upload

    Only images uploaded through the caller's own upload URL are accepted.
    """
    UserService.update_profile_image(db, identity.subject, payload.storage_id)
    return _profile_or_404(db, identity.subject)


@router.get("/{clerk_user_id}", response_model=UserProfileResponse)
def get_user(
    clerk_user_id: str = Path(..., min_length=1, max_length=255),
    db: Session = Depends(get_db)
):
    return _profile_or_404(db, clerk_user_id)


@router.get("/{clerk_user_id}/stats", response_model=WatchLogStats)
def get_user_stats(
    clerk_user_id: str = Path(..., min_length=1, max_length=255),
    db: Session = Depends(get_db)
):
    """Watch totals for any user; all zero when the user does not exist"""
    return WatchLogService.get_user_stats(db, clerk_user_id)
