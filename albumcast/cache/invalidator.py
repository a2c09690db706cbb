"""Cache invalidation for derived-read caches.

Mutation and invalidation are separate, non-transactional steps: a read that
lands between them can re-cache stale state, which the next invalidation or
the entry's TTL clears. Callers invalidate after the mutation commits.
"""

import logging
from typing import Iterable, List, Optional

from albumcast.db.connection import SessionFactory
from albumcast.db.repositories.album import AlbumRepository

from . import keys
from .base_store import KeyValueStore

logger = logging.getLogger(__name__)


class CacheInvalidator:
    """Deletes cache entries affected by mutations.

    Album membership is resolved through ``session_factory`` when an
    invalidation fans out to every member of an album.
    """

    def __init__(
        self,
        store: KeyValueStore,
        session_factory: Optional[SessionFactory] = None,
    ) -> None:
        self.store = store
        self.session_factory = session_factory

    def invalidate_by_pattern(self, pattern: str) -> int:
        """Delete every key matching a wildcard pattern.

        Args:
            pattern: Glob-style pattern, e.g. ``album_images:42:*``

        Returns:
            Number of keys deleted (0 when nothing matched)
        """
        matched = self.store.keys(pattern)
        if not matched:
            logger.debug(f"No keys found for pattern {pattern!r}")
            return 0
        deleted = self.store.delete(*matched)
        logger.debug(f"Deleted {deleted} key(s) for pattern {pattern!r}")
        return deleted

    def invalidate_patterns(self, patterns: Iterable[str]) -> int:
        return sum(self.invalidate_by_pattern(p) for p in patterns)

    # Building blocks

    def invalidate_album_image_caches(self, album_id: int) -> int:
        return self.invalidate_patterns(keys.album_image_patterns(album_id))

    def invalidate_blur_cache(self, album_id: int) -> int:
        return self.invalidate_by_pattern(keys.blur_images(album_id))

    def invalidate_duplicate_cache(self, album_id: int) -> int:
        return self.invalidate_by_pattern(keys.duplicate_images(album_id))

    def invalidate_user_album_lists(self, user_id: int) -> int:
        return self.invalidate_patterns(
            [keys.user_albums(user_id), keys.user_shared_albums(user_id)]
        )

    def invalidate_all_user_album_caches(self, album_id: int) -> int:
        """Invalidate the per-user album lists of every member of an album."""
        member_ids = self._member_ids(album_id)
        deleted = sum(self.invalidate_user_album_lists(uid) for uid in member_ids)
        logger.info(
            f"Invalidated album caches for album {album_id} (users: {member_ids})"
        )
        return deleted

    def invalidate_user_notification_cache(self, user_id: int) -> int:
        return self.invalidate_by_pattern(keys.notifications(user_id))

    def invalidate_suggestions(self, album_id: int) -> int:
        return self.invalidate_by_pattern(keys.suggestions(album_id))

    # Mutation hooks used by the CRUD collaborators and the pipeline

    def on_album_created(self, album_id: int, owner_id: int) -> int:
        return self.invalidate_patterns(
            [
                keys.user_albums(owner_id),
                keys.user_shared_albums(owner_id),
                keys.album_members(album_id),
                keys.user_storage_usage(owner_id),
            ]
        )

    def on_album_updated(self, album_id: int) -> int:
        """Title/cover edits show up in member lists, image lists and suggestions."""
        return (
            self.invalidate_all_user_album_caches(album_id)
            + self.invalidate_album_image_caches(album_id)
            + self.invalidate_by_pattern(keys.album_members(album_id))
            + self.invalidate_suggestions(album_id)
        )

    def on_album_deleted(self, album_id: int, member_ids: List[int], actor_id: int) -> int:
        """Invalidate caches for a deleted album.

        Membership rows are gone once the album is deleted, so callers pass
        the member ids captured before deletion.
        """
        deleted = self.invalidate_album_image_caches(album_id)
        for user_id in member_ids:
            deleted += self.invalidate_user_album_lists(user_id)
        deleted += self.invalidate_by_pattern(keys.album_members(album_id))
        deleted += self.invalidate_suggestions(album_id)
        deleted += self.invalidate_by_pattern(keys.user_storage_usage(actor_id))
        return deleted

    def on_members_added(self, album_id: int, user_ids: Iterable[int]) -> int:
        deleted = 0
        for user_id in user_ids:
            deleted += self.invalidate_user_album_lists(user_id)
            deleted += self.invalidate_user_notification_cache(user_id)
        deleted += self.invalidate_by_pattern(keys.album_members(album_id))
        deleted += self.invalidate_suggestions(album_id)
        return deleted

    def on_member_removed(self, album_id: int, user_id: int) -> int:
        return (
            self.invalidate_user_album_lists(user_id)
            + self.invalidate_by_pattern(keys.album_members(album_id))
            + self.invalidate_suggestions(album_id)
        )

    def on_role_changed(self, album_id: int, user_id: int) -> int:
        return self.invalidate_by_pattern(
            keys.user_shared_albums(user_id)
        ) + self.invalidate_by_pattern(keys.album_members(album_id))

    def on_image_created(self, album_id: int, uploader_id: int) -> int:
        return (
            self.invalidate_album_image_caches(album_id)
            + self.invalidate_by_pattern(keys.user_storage_usage(uploader_id))
            + self.invalidate_suggestions(album_id)
        )

    def on_images_deleted(
        self, album_ids: Iterable[int], uploader_ids: Iterable[int]
    ) -> int:
        deleted = 0
        for album_id in set(album_ids):
            deleted += self.invalidate_album_image_caches(album_id)
        for user_id in set(uploader_ids):
            deleted += self.invalidate_by_pattern(keys.user_storage_usage(user_id))
        return deleted

    def on_blur_flags_changed(self, album_id: int) -> int:
        return self.invalidate_blur_cache(album_id) + self.invalidate_by_pattern(
            keys.album_images(album_id)
        )

    def on_duplicate_flags_changed(self, album_id: int) -> int:
        return self.invalidate_duplicate_cache(album_id) + self.invalidate_by_pattern(
            keys.album_images(album_id)
        )

    def on_matches_updated(self, album_id: int) -> int:
        """New recognition results change an album's tag suggestions."""
        return self.invalidate_suggestions(album_id)

    def on_notification_created(self, user_id: int) -> int:
        return self.invalidate_user_notification_cache(user_id)

    def _member_ids(self, album_id: int) -> List[int]:
        if self.session_factory is None:
            raise RuntimeError("CacheInvalidator needs a session_factory for membership")
        with self.session_factory() as session:
            return AlbumRepository(session).member_ids(album_id)

