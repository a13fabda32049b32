from __future__ import annotations

import pytest
import redis as redis_lib

from trip_replay.services import redis_service
from trip_replay.services.redis_service import FEED_KEY, LAYERS_KEY, RedisService


class DictRedis:
    """Stand-in for ``redis.Redis`` keeping values in a dict."""

    def __init__(self, **kwargs) -> None:
        self.kwargs = kwargs
        self.values: dict = {}

    def ping(self) -> bool:
        return True

    def get(self, key: str):
        return self.values.get(key)

    def set(self, key: str, value: str) -> bool:
        self.values[key] = value
        return True


class DownRedis(DictRedis):
    def ping(self) -> bool:
        raise redis_lib.ConnectionError("Connection refused")


@pytest.fixture
def cache(monkeypatch) -> RedisService:
    monkeypatch.setattr(redis_service, "Redis", DictRedis)
    return RedisService(host="cache.local", port=6380, password="pw")


def test_connects_with_configured_address(cache: RedisService) -> None:
    assert cache.available
    assert cache.redis.kwargs["host"] == "cache.local"
    assert cache.redis.kwargs["port"] == 6380
    assert cache.redis.kwargs["password"] == "pw"


def test_feed_round_trip(cache: RedisService, feed_document: dict) -> None:
    assert cache.get_feed() is None

    assert cache.store_feed(feed_document) is True

    assert cache.get_feed() == feed_document


def test_layers_merge_by_name(cache: RedisService) -> None:
    cache.store_layers({"a": {"type": "FeatureCollection", "features": []}, "b": {"v": 1}})
    cache.store_layers({"b": {"v": 2}, "c": {"v": 3}})

    assert cache.get_layers() == {
        "a": {"type": "FeatureCollection", "features": []},
        "b": {"v": 2},
        "c": {"v": 3},
    }


def test_non_object_or_corrupt_values_ignored(cache: RedisService) -> None:
    cache.redis.values[FEED_KEY] = "[1, 2, 3]"
    cache.redis.values[LAYERS_KEY] = "{not json"

    assert cache.get_feed() is None
    assert cache.get_layers() is None


def test_unreachable_redis_disables_cache(monkeypatch, feed_document: dict) -> None:
    monkeypatch.setattr(redis_service, "Redis", DownRedis)

    cache = RedisService()

    assert cache.available is False
    assert cache.store_feed(feed_document) is False
    assert cache.get_feed() is None
    assert cache.get_layers() is None
