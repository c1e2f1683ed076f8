from sqlalchemy import Column, Integer, String, Text, DateTime, Enum
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from moov.database import Base
from moov.models.enums import PrivacySetting, enum_values


class User(Base):
    """
    Application profile bound 1:1 to an identity-provider subject.
    Email and identity id are unique at the storage level.
    """
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    clerk_user_id = Column(String(255), unique=True, index=True, nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    username = Column(String(30), unique=True, index=True, nullable=True)
    display_name = Column(String(255), nullable=True)
    bio = Column(Text, nullable=True)
    profile_image_url = Column(String(1024), nullable=True)
    profile_image_storage_id = Column(String(64), nullable=True)
    privacy_setting = Column(
        Enum(PrivacySetting, name="privacy_setting", values_callable=enum_values),
        nullable=False,
        default=PrivacySetting.PUBLIC,
    )
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    # Relationships
    watch_logs = relationship("WatchLog", back_populates="user")

    def __repr__(self):
        return f"<User(id={self.id}, clerk_user_id='{self.clerk_user_id}', email='{self.email}')>"
