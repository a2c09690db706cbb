"""Notification dispatch: persist a record, then attempt a push.

Persisting is unconditional. Push delivery is best-effort: a missing device
token or a delivery error yields a None delivery id and a log line, never an
exception, so a single recipient cannot fail the report that triggered it.
"""

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Dict, Optional

from sqlmodel import Session

from albumcast.cache.invalidator import CacheInvalidator
from albumcast.db.repositories.album import Recipient
from albumcast.db.repositories.notification import NotificationRepository
from albumcast.models.album import Album
from albumcast.models.base import utcnow
from albumcast.models.notification import Notification

from .push import PushGateway

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NotificationContent:
    """What to tell a recipient about an album."""

    notification_type: str
    title: str
    body: str
    count_field: Optional[str] = None
    count: Optional[int] = None


@dataclass
class DeliveryResult:
    notification: Notification
    delivery_id: Optional[str]


def build_metadata(
    content: NotificationContent,
    notification_id: str,
    receiver_id: int,
    album: Album,
    created_at: datetime,
) -> Dict[str, str]:
    """Build the notification metadata payload.

    Values are strings because push data payloads only carry strings.
    """
    data = {
        "type": content.notification_type,
        "notificationId": notification_id,
        "userId": str(receiver_id),
        "receiverId": str(receiver_id),
        "albumId": str(album.id),
        "albumTitle": album.album_title or "",
        "albumCover": album.cover_image_url or "",
        "createdAt": created_at.isoformat(),
    }
    if content.count_field is not None:
        data[content.count_field] = str(content.count)
    return data


class NotificationDispatcher:
    """Turns a fired report into notification records and push deliveries."""

    def __init__(
        self,
        push: Optional[PushGateway] = None,
        invalidator: Optional[CacheInvalidator] = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.push = push
        self.invalidator = invalidator
        self._clock = clock

    def notify(
        self,
        session: Session,
        recipient: Recipient,
        album: Album,
        content: NotificationContent,
    ) -> DeliveryResult:
        """Persist a notification for one recipient and try to push it.

        Args:
            session: Database session used to persist the record
            recipient: Receiving user and their device token
            album: Album the notification is about
            content: Type, texts and optional count

        Returns:
            The persisted notification and the push delivery id (or None)
        """
        notification_id = str(uuid.uuid4())
        created_at = self._clock()
        data = build_metadata(content, notification_id, recipient.user_id, album, created_at)

        notification = Notification(
            notification_id=notification_id,
            user_id=recipient.user_id,
            title=content.title,
            body=content.body,
            data=data,
            created_at=created_at,
        )
        repo = NotificationRepository(session)
        repo.add(notification)
        repo.commit()

        self._invalidate_user_cache(recipient.user_id)
        delivery_id = self.send_push(recipient.device_token, content.title, content.body, data)
        return DeliveryResult(notification=notification, delivery_id=delivery_id)

    def send_push(
        self,
        device_token: Optional[str],
        title: str,
        body: str,
        data: Dict[str, str],
    ) -> Optional[str]:
        """Attempt a push delivery; return the delivery id or None."""
        if not device_token:
            logger.debug(f"No device token for {data.get('receiverId')}, skipping push")
            return None
        if self.push is None:
            logger.debug("Push delivery disabled, skipping push")
            return None
        try:
            return self.push.send(device_token, title, body, data)
        except Exception as e:
            logger.error(f"Error sending push notification to {data.get('receiverId')}: {e}")
            return None

    def _invalidate_user_cache(self, user_id: int) -> None:
        if self.invalidator is None:
            return
        try:
            self.invalidator.on_notification_created(user_id)
        except Exception as e:
            logger.warning(f"Failed to invalidate notification cache for user {user_id}: {e}")
