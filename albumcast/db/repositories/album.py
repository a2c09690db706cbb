"""Album repository - reads used by reports, notifications and caches."""

from dataclasses import dataclass
from typing import List, Optional

from sqlalchemy import func
from sqlmodel import Session, select

from albumcast.models.album import AccessRole, Album, AlbumMember
from albumcast.models.image import Image, ImageStatus
from albumcast.models.user import User

from .base import BaseRepository


@dataclass(frozen=True)
class Recipient:
    """An album member who may receive a notification."""

    user_id: int
    device_token: Optional[str]


class AlbumRepository(BaseRepository[Album]):
    """Repository for album, membership and image aggregate queries."""

    def __init__(self, session: Session):
        """Initialize album repository.

        Args:
            session: SQLModel database session
        """
        super().__init__(session, Album)

    def member_ids(self, album_id: int) -> List[int]:
        """Get ids of every member of an album, any role."""
        stmt = select(AlbumMember.user_id).where(AlbumMember.album_id == album_id)
        return list(self.session.exec(stmt).all())

    def admins(self, album_id: int) -> List[Recipient]:
        """Get admins of an album with their device tokens."""
        return self._members_with_role(album_id, admin=True)

    def viewers(self, album_id: int) -> List[Recipient]:
        """Get non-admin members of an album with their device tokens."""
        return self._members_with_role(album_id, admin=False)

    def count_blurred(self, album_id: int) -> int:
        """Count images currently flagged blurred in an album."""
        stmt = (
            select(func.count())
            .select_from(Image)
            .where(Image.album_id == album_id)
            .where(Image.status == ImageStatus.blur)
        )
        return int(self.session.exec(stmt).one())

    def count_duplicates(self, album_id: int) -> int:
        """Count images currently flagged duplicate in an album."""
        stmt = (
            select(func.count())
            .select_from(Image)
            .where(Image.album_id == album_id)
            .where(Image.duplicate == True)  # noqa: E712
        )
        return int(self.session.exec(stmt).one())

    def _members_with_role(self, album_id: int, admin: bool) -> List[Recipient]:
        stmt = (
            select(User.id, User.fcm_token)
            .join(AlbumMember, AlbumMember.user_id == User.id)
            .where(AlbumMember.album_id == album_id)
        )
        if admin:
            stmt = stmt.where(AlbumMember.access_role == AccessRole.admin)
        else:
            stmt = stmt.where(AlbumMember.access_role != AccessRole.admin)
        stmt = stmt.order_by(User.id)
        return [
            Recipient(user_id=user_id, device_token=token)
            for user_id, token in self.session.exec(stmt).all()
        ]
