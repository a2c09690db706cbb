"""User model - an account that owns or joins albums."""

from typing import Optional

from sqlmodel import Field, SQLModel


class User(SQLModel, table=True):
    """User database model."""

    __tablename__ = "users"

    id: Optional[int] = Field(default=None, primary_key=True)
    email: str = Field(max_length=255, unique=True)
    display_name: Optional[str] = Field(default=None, max_length=255)
    photo_url: Optional[str] = None
    # Device token for push delivery; absent when the user has no registered client
    fcm_token: Optional[str] = None
