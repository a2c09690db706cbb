"""Factory for key/value store instantiation."""

from typing import Optional

from albumcast.config import Settings

from .base_store import KeyValueStore


def create_store(settings: Optional[Settings] = None) -> KeyValueStore:
    """Instantiate the configured store backend.

    Args:
        settings: Application settings. Defaults to the in-memory backend.

    Returns:
        Configured KeyValueStore implementation.
    """
    backend = "memory" if settings is None else settings.store_backend

    if backend == "memory":
        from .memory_store import MemoryStore

        return MemoryStore()

    if backend == "redis":
        from .redis_store import RedisStore

        if settings is None or not settings.redis_url:
            raise ValueError("REDIS_URL must be set when STORE_BACKEND=redis")
        return RedisStore.from_url(settings.redis_url)

    raise ValueError(f"Unsupported store backend: {backend!r}")
