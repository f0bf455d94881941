from __future__ import annotations

import logging
from typing import Callable

from fastapi import APIRouter, Response, status

from fop.infrastructure.cache.redis_client import ping_redis
from fop.infrastructure.db.session import ping_database

logger = logging.getLogger(__name__)

router = APIRouter()

READINESS_TIMEOUT_SECONDS = 1.0


def _readiness_checks() -> dict[str, Callable[..., bool]]:
    # Looked up per call so tests can monkeypatch the probes on this module.
    return {"postgres": ping_database, "redis": ping_redis}


@router.get("/health/live")
def live() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/health/ready")
def ready(response: Response) -> dict[str, object]:
    checks = {
        name: probe(timeout_seconds=READINESS_TIMEOUT_SECONDS)
        for name, probe in _readiness_checks().items()
    }
    if all(checks.values()):
        return {"status": "ok", "checks": checks}

    logger.warning(
        "readiness_degraded",
        extra={"status": ",".join(name for name, ok in checks.items() if not ok)},
    )
    response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    return {"status": "unavailable", "checks": checks}
