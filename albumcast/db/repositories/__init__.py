"""Database repositories for data access."""

from .album import AlbumRepository, Recipient
from .base import BaseRepository
from .notification import NotificationRepository

__all__ = ["AlbumRepository", "BaseRepository", "NotificationRepository", "Recipient"]
