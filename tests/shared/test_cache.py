"""Best-effort cache behaviour."""

from unittest.mock import MagicMock

import redis
from shared.cache import Cache, MemoryCache, RedisCache, get_cache, reset_cache, set_cache


class TestMemoryCache:
    def test_round_trips_json_values(self):
        cache = MemoryCache()
        cache.set_json("product:p1", {"name": "Lamp", "price": 50.0}, ttl_seconds=60)

        assert cache.get_json("product:p1") == {"name": "Lamp", "price": 50.0}

    def test_delete_invalidates(self):
        cache = MemoryCache()
        cache.set_json("product:p1", {"name": "Lamp"}, ttl_seconds=60)
        cache.delete("product:p1")

        assert cache.get_json("product:p1") is None


class TestRedisCache:
    def test_reads_and_writes_through_the_client(self):
        client = MagicMock()
        client.get.return_value = '{"name": "Lamp"}'
        cache = RedisCache("redis://cache.test:6379/0", client=client)

        assert cache.get_json("product:p1") == {"name": "Lamp"}
        cache.set_json("product:p1", {"name": "Lamp"}, ttl_seconds=300)
        client.setex.assert_called_once_with("product:p1", 300, '{"name": "Lamp"}')

    def test_outage_degrades_to_miss_and_drops_connection(self):
        client = MagicMock()
        client.get.side_effect = redis.ConnectionError("down")
        client.setex.side_effect = redis.ConnectionError("down")
        cache = RedisCache("redis://cache.test:6379/0", client=client)

        assert cache.get_json("product:p1") is None
        assert cache._client is None

    def test_write_failures_are_swallowed(self):
        client = MagicMock()
        client.setex.side_effect = redis.TimeoutError("slow")
        client.delete.side_effect = redis.TimeoutError("slow")
        cache = RedisCache("redis://cache.test:6379/0", client=client)

        cache.set_json("product:p1", {"name": "Lamp"}, ttl_seconds=300)
        cache._client = client
        cache.delete("product:p1")

        assert cache._client is None


class TestFactory:
    def test_defaults_to_noop_cache_without_redis_url(self):
        reset_cache()
        try:
            cache = get_cache()
            assert type(cache) is Cache
            assert cache.get_json("anything") is None
        finally:
            reset_cache()

    def test_set_cache_overrides(self):
        memory = MemoryCache()
        set_cache(memory)
        try:
            assert get_cache() is memory
        finally:
            reset_cache()
