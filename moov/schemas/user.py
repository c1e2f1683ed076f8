from pydantic import BaseModel, Field, ConfigDict, field_validator
from datetime import datetime
from typing import Optional

from moov.models.enums import PrivacySetting
from moov.schemas.validation import SafeStringMixin, USERNAME_PATTERN


class UserSync(BaseModel):
    """Optional extras sent on first sign-in; identity and email come from the token"""
    profile_image_url: Optional[str] = Field(None, max_length=1024)


class UserUpdate(BaseModel, SafeStringMixin):
    """Partial profile update - only fields present in the request are written"""
    username: Optional[str] = Field(None, min_length=3, max_length=30, pattern=USERNAME_PATTERN)
    display_name: Optional[str] = Field(None, max_length=255)
    bio: Optional[str] = Field(None, max_length=500)

    @field_validator('display_name', 'bio')
    @classmethod
    def clean_text(cls, v):
        if v is None:
            return v
        v = cls.validate_no_script(v)
        return cls.sanitize_html(v)


class ProfileImageUpdate(BaseModel):
    storage_id: str = Field(..., min_length=1, max_length=64, description="Asset reference returned by the upload URL")


class UserResponse(BaseModel):
    id: int
    clerk_user_id: str
    email: str
    username: Optional[str] = None
    display_name: Optional[str] = None
    bio: Optional[str] = None
    profile_image_url: Optional[str] = None
    profile_image_storage_id: Optional[str] = None
    privacy_setting: PrivacySetting
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class UserProfileResponse(UserResponse):
    """User with the avatar resolved through the asset store"""
    resolved_profile_image_url: Optional[str] = None


class UploadUrlResponse(BaseModel):
    upload_url: str
    expires_in: int = Field(..., description="Seconds until the upload URL stops working")
