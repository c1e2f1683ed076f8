"""
User Service - application profiles bound to identity-provider subjects
"""
import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from moov.models.enums import PrivacySetting
from moov.models.user import User
from moov.schemas.user import UserUpdate, UserProfileResponse
from moov.services.asset_storage_service import asset_storage
from moov.utils.security import Identity

logger = logging.getLogger(__name__)


class UserService:
    """Service for user profile operations"""

    @staticmethod
    def _utcnow() -> datetime:
        return datetime.now(timezone.utc)

    @staticmethod
    def _find_by_identity(db: Session, clerk_user_id: str) -> Optional[User]:
        return db.query(User).filter(User.clerk_user_id == clerk_user_id).first()

    @staticmethod
    def _require_user(db: Session, clerk_user_id: str) -> User:
        user = UserService._find_by_identity(db, clerk_user_id)
        if not user:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
        return user

    @staticmethod
    def resolve_profile_image(user: User) -> Optional[str]:
        """Uploaded avatar URL if the asset still exists, else the provider's image URL"""
        return asset_storage.resolve(user.profile_image_storage_id) or user.profile_image_url

    @staticmethod
    def get_user_by_email(db: Session, email: str) -> Optional[User]:
        return db.query(User).filter(User.email == email).first()

    @staticmethod
    def get_user_by_identity(db: Session, clerk_user_id: str) -> Optional[UserProfileResponse]:
        user = UserService._find_by_identity(db, clerk_user_id)
        if not user:
            return None
        profile = UserProfileResponse.model_validate(user)
        profile.resolved_profile_image_url = UserService.resolve_profile_image(user)
        return profile

    @staticmethod
    def create_user(db: Session, clerk_user_id: str, email: str, profile_image_url: Optional[str]) -> int:
        """
        Insert a fresh profile and return its id.
        Callers look the email up first; a duplicate that slips through is
        rejected by the unique constraints on email and clerk_user_id.
        """
        user = User(
            clerk_user_id=clerk_user_id,
            email=email,
            username=None,
            display_name=None,
            bio=None,
            profile_image_url=profile_image_url,
            profile_image_storage_id=None,
            privacy_setting=PrivacySetting.PUBLIC,
            updated_at=UserService._utcnow(),
        )
        db.add(user)
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            logger.warning(f"Duplicate user rejected for identity {clerk_user_id}")
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="User already exists")
        db.refresh(user)
        logger.info(f"Created user {user.id} for identity {clerk_user_id}")
        return user.id

    @staticmethod
    def ensure_user(db: Session, identity: Identity, profile_image_url: Optional[str] = None) -> User:
        """
        First sign-in hook: create the profile unless one already exists for the email.
        Two simultaneous first sign-ins both reach create_user; the loser re-reads the winner's row.
        """
        if not identity.email:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Identity has no email address")

        user = UserService.get_user_by_email(db, identity.email)
        if user:
            return user

        try:
            UserService.create_user(db, identity.subject, identity.email, profile_image_url)
        except HTTPException as e:
            if e.status_code != status.HTTP_409_CONFLICT:
                raise
        user = UserService.get_user_by_email(db, identity.email)
        if user is None:
            # The conflicting row belongs to this identity under a different email
            user = UserService._require_user(db, identity.subject)
        return user

    @staticmethod
    def update_user(db: Session, clerk_user_id: str, update_data: UserUpdate) -> User:
        """Write only the fields present in the request; omitted fields keep their values"""
        user = UserService._require_user(db, clerk_user_id)

        for field, value in update_data.model_dump(exclude_unset=True).items():
            setattr(user, field, value)
        user.updated_at = UserService._utcnow()

        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Username already taken")
        db.refresh(user)
        return user

    @staticmethod
    def update_profile_image(db: Session, clerk_user_id: str, storage_id: str) -> User:
        """
        Point the profile at an asset the same user just uploaded.
        The previous asset is removed first; a failed removal is logged and does not block the update.
        """
        user = UserService._require_user(db, clerk_user_id)

        previous = user.profile_image_storage_id
        if previous == storage_id:
            return user
        if not asset_storage.claim(storage_id, clerk_user_id):
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Unknown storage id")

        if previous:
            try:
                asset_storage.delete(previous)
            except OSError as e:
                logger.error(f"Failed to delete previous profile image {previous}: {str(e)}")

        user.profile_image_storage_id = storage_id
        user.updated_at = UserService._utcnow()
        db.commit()
        db.refresh(user)
        return user

    @staticmethod
    def generate_upload_url(clerk_user_id: str) -> str:
        return asset_storage.generate_upload_url(clerk_user_id)
