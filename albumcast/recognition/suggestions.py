"""Tag suggestions - recognized users who are not yet album members."""

from typing import Any, Dict

from albumcast.db.connection import SessionFactory
from albumcast.db.repositories.album import AlbumRepository

from .reconciler import MatchReconciler


def suggest_tags(
    reconciler: MatchReconciler,
    session_factory: SessionFactory,
    album_id: int,
) -> Dict[str, Any]:
    """Build the tag suggestion response for an album.

    Args:
        reconciler: Source of stored recognition matches
        session_factory: Factory for database sessions (membership lookup)
        album_id: Album to suggest tags for

    Returns:
        Dict with ``suggestion`` message, ``details`` per user and ``totalMatches``
    """
    matches = reconciler.list_matches(album_id)
    with session_factory() as session:
        member_ids = set(AlbumRepository(session).member_ids(album_id))

    details = [
        {
            "albumId": album_id,
            "userId": match.user_id,
            "photoUrl": match.front_photo_url,
            "distance": match.distance,
        }
        for match in matches
        if match.user_id not in member_ids
    ]
    total = len(details)
    if total:
        suggestion = f"We found {total} new user{'s' if total > 1 else ''} to tag!"
    elif matches:
        suggestion = "No new faces to tag. Try adding more photos!"
    else:
        suggestion = "No processing results yet. Check back soon!"

    return {"suggestion": suggestion, "details": details, "totalMatches": total}
