"""Best-effort read cache.

The cache is a capability handed to whoever needs it through
``get_cache()`` / ``set_cache()``. It never raises: when Redis is unreachable
every read is a miss and every write is dropped, and the next call tries to
reconnect.
"""

import json
import threading
from typing import Any

import redis
import structlog

from shared.settings import get_settings

logger = structlog.get_logger(__name__)


class Cache:
    """No-op cache; also the behaviour when no Redis URL is configured."""

    def get_json(self, key: str) -> Any | None:
        return None

    def set_json(self, key: str, value: Any, ttl_seconds: int) -> None:
        return None

    def delete(self, key: str) -> None:
        return None


class MemoryCache(Cache):
    """Process-local cache for tests and single-process development."""

    def __init__(self) -> None:
        self._entries: dict[str, str] = {}
        self._lock = threading.Lock()

    def get_json(self, key: str) -> Any | None:
        with self._lock:
            raw = self._entries.get(key)
        return json.loads(raw) if raw is not None else None

    def set_json(self, key: str, value: Any, ttl_seconds: int) -> None:
        with self._lock:
            self._entries[key] = json.dumps(value)

    def delete(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)


class RedisCache(Cache):
    def __init__(self, url: str, client: redis.Redis | None = None) -> None:
        self.url = url
        self._client = client
        self._lock = threading.Lock()

    def _connection(self) -> redis.Redis:
        with self._lock:
            if self._client is None:
                self._client = redis.Redis.from_url(
                    self.url,
                    decode_responses=True,
                    socket_timeout=1.0,
                    socket_connect_timeout=1.0,
                )
            return self._client

    def _drop_connection(self, exc: Exception) -> None:
        logger.warning("cache_unavailable", url=self.url, error=str(exc))
        with self._lock:
            self._client = None

    def get_json(self, key: str) -> Any | None:
        try:
            raw = self._connection().get(key)
        except redis.RedisError as exc:
            self._drop_connection(exc)
            return None
        return json.loads(raw) if raw is not None else None

    def set_json(self, key: str, value: Any, ttl_seconds: int) -> None:
        try:
            self._connection().setex(key, ttl_seconds, json.dumps(value))
        except redis.RedisError as exc:
            self._drop_connection(exc)

    def delete(self, key: str) -> None:
        try:
            self._connection().delete(key)
        except redis.RedisError as exc:
            self._drop_connection(exc)


_current_cache: Cache | None = None


def get_cache() -> Cache:
    """Return the active cache. Defaults to Redis when REDIS_URL is set."""
    global _current_cache
    if _current_cache is None:
        url = get_settings().redis_url
        _current_cache = RedisCache(url) if url else Cache()
    return _current_cache


def set_cache(cache: Cache) -> None:
    global _current_cache
    _current_cache = cache


def reset_cache() -> None:
    global _current_cache
    _current_cache = None
