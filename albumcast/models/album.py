"""Album and membership models."""

from datetime import datetime
from enum import Enum
from typing import Optional

from sqlmodel import Field, SQLModel

from .base import TimestampMixin, utcnow


class AccessRole(str, Enum):
    """Membership role within a shared album."""

    admin = "admin"
    viewer = "viewer"


class Album(TimestampMixin, table=True):
    """Album database model."""

    __tablename__ = "albums"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="users.id")
    album_title: str = Field(max_length=255)
    cover_image_url: Optional[str] = None


class AlbumMember(SQLModel, table=True):
    """Links a user to an album with an access role."""

    __tablename__ = "shared_album"

    album_id: int = Field(foreign_key="albums.id", primary_key=True)
    user_id: int = Field(foreign_key="users.id", primary_key=True)
    access_role: AccessRole = Field(default=AccessRole.viewer)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
