from __future__ import annotations

import logging
import os
from functools import lru_cache

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.exc import SQLAlchemyError

logger = logging.getLogger(__name__)


def database_url() -> str:
    url = os.getenv("DATABASE_URL")
    if not url:
        raise RuntimeError("DATABASE_URL is not set")
    return url


def _engine_options(url: str, connect_timeout: int) -> dict[str, object]:
    backend = make_url(url).get_backend_name()
    if backend == "sqlite":
        return {"connect_args": {"check_same_thread": False}}
    options: dict[str, object] = {"pool_pre_ping": True}
    if backend == "postgresql":
        options["connect_args"] = {"connect_timeout": connect_timeout}
        options["pool_size"] = int(os.getenv("DB_POOL_SIZE", "5"))
        options["max_overflow"] = int(os.getenv("DB_MAX_OVERFLOW", "10"))
    return options


@lru_cache(maxsize=8)
def _build_engine(url: str, connect_timeout: int) -> Engine:
    return create_engine(url, **_engine_options(url, connect_timeout))


def get_engine(timeout_seconds: float = 1.0) -> Engine:
    connect_timeout = max(1, int(timeout_seconds))
    return _build_engine(database_url(), connect_timeout)


def ping_database(timeout_seconds: float = 1.0) -> bool:
    try:
        with get_engine(timeout_seconds).connect() as connection:
            connection.execute(text("SELECT 1"))
        return True
    except (SQLAlchemyError, RuntimeError):
        return False


def dispose_engine() -> None:
    """Close pooled connections; the engine reconnects lazily if used again."""
    if not os.getenv("DATABASE_URL"):
        return
    get_engine().dispose()
    logger.info("database_pool_disposed")
