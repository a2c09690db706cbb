"""Tests for the in-memory key/value store."""

from albumcast.cache.memory_store import MemoryStore
from albumcast.cache.store_factory import create_store
from albumcast.config import Settings


def test_set_get_delete(store):
    store.set("a", "1")
    store.set("b", "2")

    assert store.get("a") == "1"
    assert store.delete("a", "missing") == 1
    assert store.get("a") is None
    assert store.get("b") == "2"


def test_ttl_expiry(store, clock):
    store.set("k", "v", ttl_seconds=10)

    clock.advance(9)
    assert store.get("k") == "v"
    clock.advance(1)
    assert store.get("k") is None
    assert store.keys("*") == []


def test_set_resets_ttl(store, clock):
    store.set("k", "v1", ttl_seconds=10)
    clock.advance(8)
    store.set("k", "v2", ttl_seconds=10)
    clock.advance(8)

    assert store.get("k") == "v2"


def test_keys_pattern(store):
    store.set("album_images:42:p1", "x")
    store.set("album_images:42:p2", "x")
    store.set("album_images:43:p1", "x")

    assert sorted(store.keys("album_images:42:*")) == ["album_images:42:p1", "album_images:42:p2"]


def test_factory_memory_backend():
    assert isinstance(create_store(), MemoryStore)
    assert isinstance(create_store(Settings(store_backend="memory")), MemoryStore)


def test_set_sweeps_expired_keys(store, clock):
    for album_id in range(20):
        store.set(f"match:{album_id}:1", "m", ttl_seconds=10)
    store.set("album_members:42", "x")
    assert len(store) == 21

    clock.advance(30)
    store.set("album_members:43", "x")
    assert len(store) == 22

    clock.advance(31)
    store.set("album_members:44", "x")
    assert len(store) == 3
    assert sorted(store.keys("album_members:*")) == [
        "album_members:42",
        "album_members:43",
        "album_members:44",
    ]


def test_sweep_keeps_unexpired_keys(clock):
    store = MemoryStore(clock=clock, sweep_interval_s=5)
    store.set("short", "v", ttl_seconds=3)
    store.set("long", "v", ttl_seconds=100)

    clock.advance(5)
    store.set("other", "v")

    assert len(store) == 2
    assert store.get("long") == "v"
