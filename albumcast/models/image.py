"""Image model - an uploaded media item in an album."""

from datetime import datetime
from enum import Enum
from typing import Optional

from sqlmodel import Field, SQLModel

from .base import utcnow


class ImageStatus(str, Enum):
    """Classification status written by the blur classifier."""

    active = "active"
    blur = "blur"


class Image(SQLModel, table=True):
    """Image database model."""

    __tablename__ = "images"

    id: Optional[int] = Field(default=None, primary_key=True)
    album_id: int = Field(foreign_key="albums.id", index=True)
    user_id: int = Field(foreign_key="users.id")
    file_name: str = Field(max_length=255)
    s3_url: str
    status: ImageStatus = Field(default=ImageStatus.active)
    duplicate: bool = False
    uploaded_at: datetime = Field(default_factory=utcnow)
