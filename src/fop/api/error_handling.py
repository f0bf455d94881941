from __future__ import annotations

import logging
from typing import Any, cast

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from fop.api.middleware.request_id import get_request_id
from fop.application.errors import (
    ApplicationError,
    ConflictError,
    ForbiddenError,
    InternalError,
    NotFoundError,
    PricingError,
    ValidationError,
)

logger = logging.getLogger(__name__)

_HTTP_CODES = {
    400: "BAD_REQUEST",
    401: "UNAUTHENTICATED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    409: "CONFLICT",
}


def _error_response(
    *,
    status_code: int,
    code: str,
    message: str,
    details: dict[str, Any] | None = None,
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "error": {
                "code": code,
                "message": message,
                "details": details or {},
            },
            "requestId": get_request_id(),
        },
    )


def _exception_handler(status_code: int):
    async def handler(_: Request, exc: Exception) -> JSONResponse:
        app_exc = cast(ApplicationError, exc)
        return _error_response(
            status_code=status_code,
            code=app_exc.code,
            message=str(app_exc),
            details=app_exc.details,
        )

    return handler


async def _internal_error_handler(_: Request, exc: Exception) -> JSONResponse:
    app_exc = cast(ApplicationError, exc)
    logger.error("internal_error", extra={"error_code": app_exc.code}, exc_info=exc)
    return _error_response(
        status_code=500,
        code=app_exc.code,
        message="internal error",
    )


async def _http_exception_handler(_: Request, exc: Exception) -> JSONResponse:
    http_exc = cast(StarletteHTTPException, exc)
    message = str(http_exc.detail) if http_exc.detail else "request failed"
    return _error_response(
        status_code=http_exc.status_code,
        code=_HTTP_CODES.get(http_exc.status_code, "HTTP_ERROR"),
        message=message,
    )


async def _validation_exception_handler(_: Request, exc: Exception) -> JSONResponse:
    validation_exc = cast(RequestValidationError, exc)
    return _error_response(
        status_code=400,
        code="INVALID_REQUEST",
        message="request validation failed",
        details={"errors": jsonable_encoder(validation_exc.errors())},
    )


def register_exception_handlers(app: FastAPI) -> None:
    mappings: list[tuple[type[ApplicationError], int]] = [
        (ValidationError, 400),
        (ForbiddenError, 403),
        (NotFoundError, 404),
        (ConflictError, 409),
        (PricingError, 422),
    ]

    for exc_cls, status_code in mappings:
        app.add_exception_handler(exc_cls, _exception_handler(status_code))

    app.add_exception_handler(InternalError, _internal_error_handler)
    app.add_exception_handler(StarletteHTTPException, _http_exception_handler)
    app.add_exception_handler(RequestValidationError, _validation_exception_handler)
