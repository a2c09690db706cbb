"""Key/value storage and derived-read cache invalidation."""

from .base_store import KeyValueStore
from .invalidator import CacheInvalidator
from .memory_store import MemoryStore
from .store_factory import create_store

__all__ = ["CacheInvalidator", "KeyValueStore", "MemoryStore", "create_store"]
