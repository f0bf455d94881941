from __future__ import annotations

import logging
import os
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from prometheus_client import Counter, Histogram
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from fop.api.error_handling import register_exception_handlers
from fop.api.middleware.request_id import RequestIDMiddleware
from fop.api.routes.cart import router as cart_router
from fop.api.routes.health import router as health_router
from fop.api.routes.metrics import router as metrics_router
from fop.api.routes.orders import router as orders_router
from fop.api.routes.restaurant_orders import router as restaurant_orders_router
from fop.infrastructure.cache.redis_client import close_redis_client
from fop.infrastructure.db.session import dispose_engine
from fop.infrastructure.observability.logging_config import configure_logging
from fop.infrastructure.observability.otel import configure_otel

logger = logging.getLogger("fop.api.access")

REQUEST_COUNT = Counter(
    "fop_http_requests_total",
    "Total number of HTTP requests",
    ["method", "route", "status_code"],
)
REQUEST_LATENCY = Histogram(
    "fop_http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "route"],
)


def _cors_allow_origins() -> list[str]:
    env = os.getenv("APP_ENV", "dev").lower()

    if env in {"dev", "test"}:
        return ["*"]

    raw_value = os.getenv("CORS_ALLOW_ORIGINS", "")
    return [origin.strip() for origin in raw_value.split(",") if origin.strip()]


def _route_label(request: Request) -> str:
    # Templated path keeps order ids out of metric labels.
    route = request.scope.get("route")
    template = getattr(route, "path", None)
    return template or "unmatched"


def _observe(request: Request, status_code: int, started: float) -> dict[str, object]:
    duration_ms = (time.perf_counter() - started) * 1000
    route = _route_label(request)
    REQUEST_COUNT.labels(method=request.method, route=route, status_code=str(status_code)).inc()
    REQUEST_LATENCY.labels(method=request.method, route=route).observe(duration_ms / 1000)
    return {
        "method": request.method,
        "path": request.url.path,
        "status_code": status_code,
        "duration_ms": round(duration_ms, 2),
    }


class AccessLogMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        started = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            logger.exception("request_error", extra=_observe(request, 500, started))
            raise

        logger.info("request_complete", extra=_observe(request, response.status_code, started))
        return response


@asynccontextmanager
async def lifespan(_: FastAPI):
    yield
    dispose_engine()
    close_redis_client()


def create_app() -> FastAPI:
    configure_logging()

    app = FastAPI(title="FOP Backend", version="0.1.0", lifespan=lifespan)
    register_exception_handlers(app)
    app.include_router(health_router)
    app.include_router(metrics_router)
    app.include_router(orders_router)
    app.include_router(restaurant_orders_router)
    app.include_router(cart_router)

    app.add_middleware(AccessLogMiddleware)
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=_cors_allow_origins(),
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-Id"],
    )

    configure_otel(app)
    return app


app = create_app()
