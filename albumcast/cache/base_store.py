"""Abstract key/value store interface.

Backs both the detection match store and the derived-read caches. Values are
strings; callers serialize.
"""

from abc import ABC, abstractmethod
from typing import List, Optional


class KeyValueStore(ABC):
    """Unified interface for key/value storage backends."""

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        """Return the value for a key, or None when absent or expired."""

    @abstractmethod
    def set(self, key: str, value: str, ttl_seconds: Optional[int] = None) -> None:
        """Store a value, replacing any previous value and TTL."""

    @abstractmethod
    def delete(self, *keys: str) -> int:
        """Delete keys; return how many existed."""

    @abstractmethod
    def keys(self, pattern: str) -> List[str]:
        """List live keys matching a glob-style pattern (``*`` wildcard)."""

    def close(self) -> None:
        """Release backend resources."""
