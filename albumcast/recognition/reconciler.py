"""Best-match reconciliation for recognition results.

Keeps the lowest-distance match per (album, user) in the key/value store.
Each write resets the entry's TTL, so a key with no further writes expires
after ``ttl_seconds``.

The read-then-write in ``reconcile`` is not atomic. Two writers racing on
the same key can leave the worse of their two distances stored, but an
entry is never dropped. Readers only need a good-enough match eventually.
A compare-and-set on the store would close the gap if that ever changes.
"""

import logging
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Set

from pydantic import ValidationError

from albumcast.cache.base_store import KeyValueStore
from albumcast.models.base import utcnow
from albumcast.models.match import DetectionMatch

logger = logging.getLogger(__name__)

MATCH_KEY_PREFIX = "face-recognition-results"
DEFAULT_TTL_SECONDS = 24 * 60 * 60


class MatchReconciler:
    """Maintains the best recognition match per (album_id, user_id)."""

    def __init__(
        self,
        store: KeyValueStore,
        ttl_seconds: int = DEFAULT_TTL_SECONDS,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.store = store
        self.ttl_seconds = ttl_seconds
        self._clock = clock

    @staticmethod
    def key_for(album_id: int, user_id: int) -> str:
        return f"{MATCH_KEY_PREFIX}:{album_id}:{user_id}"

    def reconcile(
        self,
        album_id: int,
        user_id: int,
        distance: float,
        payload: Optional[Dict[str, Any]] = None,
    ) -> bool:
        """Store an incoming match if it beats the current one.

        Args:
            album_id: Album the match was found in
            user_id: Recognized user
            distance: Similarity distance (lower is better)
            payload: Raw match details, kept alongside the distance

        Returns:
            True if the match was written, False if it was discarded
        """
        key = self.key_for(album_id, user_id)
        current = self.get(album_id, user_id)

        if current is not None and distance >= current.distance:
            logger.debug(
                f"Existing match for {key} is better or equal "
                f"({current.distance} <= {distance}), skipping"
            )
            return False

        payload = dict(payload or {})
        match = DetectionMatch(
            album_id=album_id,
            user_id=user_id,
            distance=distance,
            photo_urls=payload.get("photo_urls"),
            payload=payload,
            processed_at=self._clock(),
        )
        self.store.set(key, match.model_dump_json(), ttl_seconds=self.ttl_seconds)
        logger.debug(f"Stored recognition result for {key} (distance {distance})")
        return True

    def get(self, album_id: int, user_id: int) -> Optional[DetectionMatch]:
        """Return the current match for a key, or None."""
        return self._load(self.key_for(album_id, user_id))

    def list_matches(self, album_id: int) -> List[DetectionMatch]:
        """Return all non-expired matches for an album, ordered by user id."""
        matches = []
        for key in self.store.keys(f"{MATCH_KEY_PREFIX}:{album_id}:*"):
            match = self._load(key)
            if match is not None:
                matches.append(match)
        matches.sort(key=lambda m: m.user_id)
        logger.debug(f"Retrieved {len(matches)} recognition results for album {album_id}")
        return matches

    def recognized_user_ids(self, album_id: int) -> Set[int]:
        return {match.user_id for match in self.list_matches(album_id)}

    def _load(self, key: str) -> Optional[DetectionMatch]:
        raw = self.store.get(key)
        if raw is None:
            return None
        try:
            return DetectionMatch.model_validate_json(raw)
        except ValidationError as e:
            logger.warning(f"Failed to parse stored match {key}: {e}")
            return None
