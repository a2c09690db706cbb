"""Cache key conventions.

Keys are colon-delimited namespaces. Read paths append page/filter segments
(``album_images:42:p1:l10:dn:sall``), so invalidation deletes by prefix with
a trailing wildcard.
"""

from typing import Any


def album_images(album_id: Any) -> str:
    return f"album_images:{album_id}:*"


def blur_images(album_id: Any) -> str:
    return f"blur_images:{album_id}:*"


def duplicate_images(album_id: Any) -> str:
    return f"duplicate_images:{album_id}:*"


def shared_images(album_id: Any) -> str:
    return f"shared_images:{album_id}:*"


def user_albums(user_id: Any) -> str:
    return f"user_albums:{user_id}:*"


def user_shared_albums(user_id: Any) -> str:
    return f"user_shared_albums:{user_id}:*"


def notifications(user_id: Any) -> str:
    return f"notifications:{user_id}:*"


# Single-entry caches; no paging suffix
def album_members(album_id: Any) -> str:
    return f"album_members:{album_id}"


def suggestions(album_id: Any) -> str:
    return f"suggestions_manual:{album_id}"


def user_storage_usage(user_id: Any) -> str:
    return f"user_storage_usage:{user_id}"


def album_image_patterns(album_id: Any) -> list:
    """Every image-list cache derived from an album's images."""
    return [
        album_images(album_id),
        blur_images(album_id),
        duplicate_images(album_id),
        shared_images(album_id),
    ]
