"""Redis-backed key/value store (STORE_BACKEND=redis).

Suitable for distributed/multi-instance deployments. Pattern lookups use
SCAN so they never block the server the way KEYS does.
"""

import logging
from typing import Any, List, Optional

import redis

from .base_store import KeyValueStore

logger = logging.getLogger(__name__)


class RedisStore(KeyValueStore):
    """Redis implementation of KeyValueStore."""

    def __init__(self, client: Any, scan_count: int = 500) -> None:
        """Wrap an existing client.

        Args:
            client: A redis.Redis client created with decode_responses=True
            scan_count: Hint for keys examined per SCAN round trip
        """
        self._client = client
        self._scan_count = scan_count

    @classmethod
    def from_url(cls, redis_url: str) -> "RedisStore":
        """Create a store connected to the given Redis URL."""
        return cls(redis.Redis.from_url(redis_url, decode_responses=True))

    def get(self, key: str) -> Optional[str]:
        return self._client.get(key)

    def set(self, key: str, value: str, ttl_seconds: Optional[int] = None) -> None:
        if ttl_seconds:
            self._client.set(key, value, ex=ttl_seconds)
        else:
            self._client.set(key, value)

    def delete(self, *keys: str) -> int:
        if not keys:
            return 0
        return int(self._client.delete(*keys))

    def keys(self, pattern: str) -> List[str]:
        return list(self._client.scan_iter(match=pattern, count=self._scan_count))

    def close(self) -> None:
        """Close the Redis connection."""
        self._client.close()
