from __future__ import annotations

import redis

from fop.application.ports.cache import CacheStore, CacheUnavailableError
from fop.infrastructure.cache.redis_client import get_redis_client


class RedisCacheStore(CacheStore):
    def __init__(self, timeout_seconds: float = 1.0) -> None:
        self._timeout_seconds = timeout_seconds

    def _client(self) -> redis.Redis:
        return get_redis_client(timeout_seconds=self._timeout_seconds)

    def get(self, key: str) -> str | None:
        try:
            value = self._client().get(key)
        except redis.RedisError as exc:
            raise CacheUnavailableError("cache read failed") from exc
        if value is None:
            return None
        return str(value)

    def set(self, key: str, value: str, ttl_seconds: int) -> None:
        try:
            self._client().set(name=key, value=value, ex=ttl_seconds)
        except redis.RedisError as exc:
            raise CacheUnavailableError("cache write failed") from exc

    def delete(self, key: str) -> None:
        try:
            self._client().delete(key)
        except redis.RedisError as exc:
            raise CacheUnavailableError("cache delete failed") from exc
