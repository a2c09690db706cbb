"""Tests for the Redis store against a mocked client."""

from unittest.mock import MagicMock, patch

import pytest

from albumcast.cache.redis_store import RedisStore
from albumcast.cache.store_factory import create_store
from albumcast.config import Settings


@pytest.fixture
def client():
    return MagicMock()


def test_set_with_ttl_uses_ex(client):
    RedisStore(client).set("k", "v", ttl_seconds=60)
    client.set.assert_called_once_with("k", "v", ex=60)


def test_set_without_ttl(client):
    RedisStore(client).set("k", "v")
    client.set.assert_called_once_with("k", "v")


def test_keys_scans(client):
    client.scan_iter.return_value = iter(["a:1", "a:2"])

    assert RedisStore(client, scan_count=100).keys("a:*") == ["a:1", "a:2"]
    client.scan_iter.assert_called_once_with(match="a:*", count=100)


def test_delete(client):
    client.delete.return_value = 2
    store = RedisStore(client)

    assert store.delete("a", "b") == 2
    assert store.delete() == 0
    client.delete.assert_called_once_with("a", "b")


@patch("albumcast.cache.redis_store.redis.Redis.from_url")
def test_factory_redis_backend(mock_from_url):
    store = create_store(Settings(store_backend="redis", redis_url="redis://cache:6379/1"))

    assert isinstance(store, RedisStore)
    mock_from_url.assert_called_once_with("redis://cache:6379/1", decode_responses=True)


def test_factory_rejects_unknown_backend():
    with pytest.raises(ValueError):
        create_store(Settings(store_backend="memcached"))
