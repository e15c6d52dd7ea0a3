from unittest.mock import MagicMock, patch

import pytest

from cache.core import Cache, STORAGE_PREFIX
from cache.policies import CachePolicy
from cache.redis_manager import RedisStorage
from cache.storage import FileStorage, MemoryStorage
from tests.mock_tzkt import ManualClock

PERSISTED = CachePolicy("persisted", ttl=60_000, persist=True)


def test_memory_storage():
    storage = MemoryStorage()
    storage.set_item("a", "1")
    assert storage.get_item("a") == "1"
    assert storage.keys() == ["a"]
    storage.remove_item("a")
    storage.remove_item("a")
    assert storage.get_item("a") is None


def test_file_storage_basic_operations(tmp_path):
    storage = FileStorage(tmp_path / "cache")
    storage.set_item("tzkt_cache_baker_details_tz1/../x", "payload")

    assert storage.get_item("tzkt_cache_baker_details_tz1/../x") == "payload"
    assert storage.keys() == ["tzkt_cache_baker_details_tz1/../x"]
    # Every key maps to a single file inside the directory
    assert len(list((tmp_path / "cache").iterdir())) == 1

    storage.remove_item("tzkt_cache_baker_details_tz1/../x")
    storage.remove_item("missing")
    assert storage.get_item("tzkt_cache_baker_details_tz1/../x") is None
    assert storage.keys() == []


def test_file_storage_survives_restart(tmp_path):
    clock = ManualClock()
    first = Cache(storage=FileStorage(tmp_path), clock=clock)
    first.set("network_stats", {"cycle": 750}, PERSISTED)

    second = Cache(storage=FileStorage(tmp_path), clock=clock)
    assert second.get("network_stats", PERSISTED) == {"cycle": 750}

    second.clear()
    assert FileStorage(tmp_path).keys() == []


@pytest.fixture
def redis_client():
    client = MagicMock()
    client.get.return_value = None
    client.scan_iter.return_value = iter(["tzkt_cache_a", "other"])
    return client


def test_redis_storage_delegates_to_client(redis_client):
    storage = RedisStorage("redis://localhost:6379/0", client=redis_client)

    storage.set_item("k", "v")
    redis_client.set.assert_called_once_with("k", "v")

    redis_client.get.return_value = "v"
    assert storage.get_item("k") == "v"

    storage.remove_item("k")
    redis_client.delete.assert_called_once_with("k")

    assert storage.keys() == ["tzkt_cache_a", "other"]


def test_redis_storage_clear_only_removes_prefixed_keys(redis_client):
    cache = Cache(storage=RedisStorage("redis://localhost:6379/0", client=redis_client))
    cache.clear()
    redis_client.delete.assert_called_once_with(STORAGE_PREFIX + "a")


def test_redis_connection_failure_is_swallowed_by_cache():
    with patch("cache.redis_manager.redis.Redis.from_url") as from_url:
        from_url.return_value.ping.side_effect = ConnectionError("refused")
        cache = Cache(storage=RedisStorage("redis://unreachable:6379/0"))

        cache.set("k", "v", PERSISTED)
        assert cache.get("k", PERSISTED) == "v"
        assert cache.get("missing", PERSISTED) is None


def test_redis_connect_and_close():
    with patch("cache.redis_manager.redis.Redis.from_url") as from_url:
        storage = RedisStorage("redis://localhost:6379/0")
        client = storage.connect()
        assert client is from_url.return_value
        client.ping.assert_called_once()

        storage.close()
        client.close.assert_called_once()
        assert storage.redis is None
