from __future__ import annotations

import os
from functools import lru_cache

import redis


def redis_url() -> str:
    url = os.getenv("REDIS_URL")
    if not url:
        raise RuntimeError("REDIS_URL is not set")
    return url


@lru_cache(maxsize=8)
def _build_client(url: str, timeout_seconds: float) -> redis.Redis:
    # Carts are stored as JSON text, so replies come back as str.
    return redis.Redis.from_url(
        url,
        decode_responses=True,
        socket_connect_timeout=timeout_seconds,
        socket_timeout=timeout_seconds,
        retry_on_timeout=True,
        health_check_interval=30,
    )


def get_redis_client(timeout_seconds: float = 1.0) -> redis.Redis:
    return _build_client(redis_url(), timeout_seconds)


def ping_redis(timeout_seconds: float = 1.0) -> bool:
    try:
        return bool(get_redis_client(timeout_seconds).ping())
    except (redis.RedisError, RuntimeError):
        return False


def close_redis_client() -> None:
    if not os.getenv("REDIS_URL"):
        return
    get_redis_client().close()
