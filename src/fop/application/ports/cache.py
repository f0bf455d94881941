from __future__ import annotations

from typing import Protocol

from fop.application.errors import InternalError


class CacheUnavailableError(InternalError):
    code = "CACHE_UNAVAILABLE"


class CacheStore(Protocol):
    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str, ttl_seconds: int) -> None: ...

    def delete(self, key: str) -> None: ...
