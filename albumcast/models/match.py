"""Detection match model - best recognition match per (album, user)."""

from datetime import datetime
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field

from .base import utcnow


class DetectionMatch(BaseModel):
    """A stored recognition match.

    The distance is the lowest observed for the (album_id, user_id) key
    within the current TTL window.
    """

    album_id: int
    user_id: int
    distance: float
    photo_urls: Optional[Union[Dict[str, str], List[str]]] = None
    payload: Dict[str, Any] = Field(default_factory=dict)
    processed_at: datetime = Field(default_factory=utcnow)

    @property
    def front_photo_url(self) -> Optional[str]:
        """Primary photo url for the match, if any."""
        if isinstance(self.photo_urls, dict):
            return self.photo_urls.get("front") or next(
                iter(self.photo_urls.values()), None
            )
        if self.photo_urls:
            return self.photo_urls[0]
        return None
