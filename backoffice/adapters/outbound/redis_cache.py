"""Policy cache backends implementing CachePort.

Redis errors are logged and treated as cache misses: the policy store behind
the cache stays the source of truth, so an outage only costs latency.
"""

from __future__ import annotations

import json
import logging

import redis

from domain.ports import CachePort

logger = logging.getLogger(__name__)


class RedisCacheAdapter(CachePort):
    """CachePort over a Redis client, storing JSON under ``dupcheck:``.

    Without a client every call is a no-op; a failing client degrades to
    misses (``get``) and skipped writes (``set``, ``invalidate``).
    """

    PREFIX = "dupcheck:"

    def __init__(self, redis_client=None):
        self._redis = redis_client

    def _key(self, key: str) -> str:
        return f"{self.PREFIX}{key}"

    # ── CachePort interface ──────────────────────────────────────────────

    def get(self, key: str) -> object | None:
        if not self._redis:
            return None
        try:
            raw = self._redis.get(self._key(key))
        except redis.RedisError as exc:
            logger.warning("Policy cache read failed for %s: %s", key, exc)
            return None
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except ValueError:
            logger.warning("Discarding undecodable cache entry %s", key)
            return None

    def set(self, key: str, value: object, ttl: int = 3600) -> None:
        if not self._redis:
            return
        try:
            self._redis.setex(self._key(key), ttl, json.dumps(value, default=str))
        except redis.RedisError as exc:
            logger.warning("Policy cache write failed for %s: %s", key, exc)

    def invalidate(self, prefix: str) -> None:
        if not self._redis:
            return
        try:
            stale = list(self._redis.scan_iter(f"{self._key(prefix)}*"))
            if stale:
                self._redis.delete(*stale)
        except redis.RedisError as exc:
            logger.warning("Policy cache invalidation failed for %s: %s", prefix, exc)


class InMemoryCacheAdapter(CachePort):
    """Dict-backed CachePort for tests and single-process runs; TTL is ignored."""

    def __init__(self):
        self._store: dict[str, object] = {}

    def get(self, key: str) -> object | None:
        return self._store.get(key)

    def set(self, key: str, value: object, ttl: int = 3600) -> None:
        self._store[key] = value

    def invalidate(self, prefix: str) -> None:
        for k in [k for k in self._store if k.startswith(prefix)]:
            del self._store[k]


def connect_redis(redis_url: str | None):
    """Return a connected Redis client, or None when the URL is empty or unreachable."""
    if not redis_url:
        return None
    try:
        client = redis.from_url(redis_url)
        client.ping()
    except redis.RedisError as exc:
        logger.warning("Redis unavailable at %s, policies will not be cached: %s", redis_url, exc)
        return None
    return client
