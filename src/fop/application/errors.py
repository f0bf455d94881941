from __future__ import annotations

from typing import Any


class ApplicationError(Exception):
    code = "ERROR"

    def __init__(
        self,
        message: str,
        *,
        code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        if code is not None:
            self.code = code
        self.details = details or {}


class ValidationError(ApplicationError):
    code = "VALIDATION_ERROR"


class NotFoundError(ApplicationError):
    code = "NOT_FOUND"


class ForbiddenError(ApplicationError):
    code = "FORBIDDEN"


class ConflictError(ApplicationError):
    code = "CONFLICT"


class PricingError(ApplicationError):
    code = "PRICING_ERROR"


class InternalError(ApplicationError):
    code = "INTERNAL"


class EmptyCartError(ValidationError):
    code = "EMPTY_CART"


class CancellationReasonRequiredError(ValidationError):
    code = "CANCELLATION_REASON_REQUIRED"


class OrderNotFoundError(NotFoundError):
    code = "ORDER_NOT_FOUND"


class RestaurantNotFoundError(NotFoundError):
    code = "RESTAURANT_NOT_FOUND"


class MenuItemNotFoundError(NotFoundError):
    code = "MENU_ITEM_NOT_FOUND"


class CartLineNotFoundError(NotFoundError):
    code = "CART_LINE_NOT_FOUND"


class InvalidTransitionError(ConflictError):
    code = "INVALID_TRANSITION"


class ConcurrentUpdateError(ConflictError):
    code = "CONCURRENT_UPDATE"


class RestaurantClosedError(PricingError):
    code = "RESTAURANT_CLOSED"
