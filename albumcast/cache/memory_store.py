"""In-memory key/value store (STORE_BACKEND=memory).

Suitable for single-process deployments and tests. Expiry is evaluated
against an injectable clock: on read, and by a sweep that ``set`` runs at
most once per ``sweep_interval_s``.
"""

import fnmatch
import logging
import threading
import time
from typing import Callable, Dict, List, Optional, Tuple

from .base_store import KeyValueStore

logger = logging.getLogger(__name__)


class MemoryStore(KeyValueStore):
    """Thread-safe dict-backed store with per-key TTL."""

    def __init__(
        self,
        clock: Callable[[], float] = time.monotonic,
        sweep_interval_s: float = 60.0,
    ) -> None:
        self._clock = clock
        self._data: Dict[str, Tuple[str, Optional[float]]] = {}
        self._lock = threading.Lock()
        self._sweep_interval_s = sweep_interval_s
        self._next_sweep = clock() + sweep_interval_s

    def __len__(self) -> int:
        with self._lock:
            return len(self._data)

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._live_value(key)

    def set(self, key: str, value: str, ttl_seconds: Optional[int] = None) -> None:
        now = self._clock()
        expires_at = now + ttl_seconds if ttl_seconds else None
        with self._lock:
            self._data[key] = (value, expires_at)
            if now >= self._next_sweep:
                self._sweep(now)

    def delete(self, *keys: str) -> int:
        deleted = 0
        with self._lock:
            for key in keys:
                if self._live_value(key) is not None:
                    deleted += 1
                self._data.pop(key, None)
        return deleted

    def keys(self, pattern: str) -> List[str]:
        with self._lock:
            candidates = [k for k in self._data if fnmatch.fnmatchcase(k, pattern)]
            return [k for k in candidates if self._live_value(k) is not None]

    def _live_value(self, key: str) -> Optional[str]:
        """Return the value if present and unexpired. Caller holds the lock."""
        entry = self._data.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if expires_at is not None and self._clock() >= expires_at:
            del self._data[key]
            logger.debug(f"Expired key {key}")
            return None
        return value

    def _sweep(self, now: float) -> None:
        """Drop every expired entry. Caller holds the lock."""
        expired = [
            key
            for key, (_, expires_at) in self._data.items()
            if expires_at is not None and now >= expires_at
        ]
        for key in expired:
            del self._data[key]
        self._next_sweep = now + self._sweep_interval_s
        if expired:
            logger.debug(f"Swept {len(expired)} expired key(s)")
