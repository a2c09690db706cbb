"""Notification repository."""

from typing import List

from sqlmodel import Session, select

from albumcast.models.notification import Notification

from .base import BaseRepository


class NotificationRepository(BaseRepository[Notification]):
    """Repository for Notification records."""

    def __init__(self, session: Session):
        super().__init__(session, Notification)

    def for_user(self, user_id: int, limit: int = 50) -> List[Notification]:
        """Get a user's most recent notifications."""
        stmt = (
            select(Notification)
            .where(Notification.user_id == user_id)
            .order_by(Notification.created_at.desc())  # type: ignore[attr-defined]
            .limit(limit)
        )
        return list(self.session.exec(stmt).all())
