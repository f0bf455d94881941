from __future__ import annotations

import logging
import secrets
from datetime import datetime, timezone
from uuid import uuid4

from fop.application.dto.requests import OrderSummaryRequest
from fop.application.dto.responses import OrderSubmittedResponse
from fop.application.errors import (
    ApplicationError,
    EmptyCartError,
    InternalError,
    PricingError,
    RestaurantClosedError,
    RestaurantNotFoundError,
    ValidationError,
)
from fop.application.mappers.order_mapper import to_order_submitted_response
from fop.application.metrics.order_lifecycle import (
    record_order_counter_failure,
    record_order_submitted,
    record_pricing_failure,
)
from fop.application.ports.repositories import CatalogLookup, OrderRepository
from fop.domain.cart.entities import Cart
from fop.domain.catalog.entities import MenuItem
from fop.domain.common.ids import MenuItemId, OrderId, RestaurantId, UserId
from fop.domain.order.entities import (
    CardDetails,
    DeliveryDetails,
    PaymentMethod,
    create_pending_order,
    format_order_number,
)
from fop.domain.pricing.calculator import (
    DEFAULT_TAX_RATE_BPS,
    PricingFailure,
    PricingFailureReason,
    policy_for,
    price,
    reprice_lines,
)

logger = logging.getLogger(__name__)


def translate_pricing_failure(exc: PricingFailure) -> ApplicationError:
    details = {"itemId": exc.item_id}
    if exc.reason == PricingFailureReason.INVALID_CUSTOMIZATION:
        return ValidationError(str(exc), code=exc.reason.value, details=details)
    return PricingError(str(exc), code=exc.reason.value, details=details)


class SubmitOrder:
    def __init__(
        self,
        catalog: CatalogLookup,
        order_repository: OrderRepository,
        tax_rate_bps: int = DEFAULT_TAX_RATE_BPS,
    ) -> None:
        self._catalog = catalog
        self._order_repository = order_repository
        self._tax_rate_bps = tax_rate_bps

    def execute(
        self,
        cart: Cart,
        customer_id: UserId,
        delivery_details: DeliveryDetails,
        payment_method: PaymentMethod,
        card_details: CardDetails | None = None,
        client_summary: OrderSummaryRequest | None = None,
    ) -> OrderSubmittedResponse:
        if cart.is_empty or cart.restaurant_id is None:
            raise EmptyCartError("cart is empty")
        restaurant_id = cart.restaurant_id

        restaurant = self._catalog.get_restaurant(restaurant_id)
        if restaurant is None:
            raise RestaurantNotFoundError(f"restaurant {restaurant_id} not found")
        if not restaurant.is_open:
            record_pricing_failure(RestaurantClosedError.code)
            raise RestaurantClosedError(
                f"restaurant {restaurant_id} is not accepting orders",
                details={"restaurantId": str(restaurant_id)},
            )
        if payment_method == PaymentMethod.CARD and card_details is None:
            raise ValidationError("card payments require card details", code="INVALID_PAYMENT")

        catalog_items = self._resolve_items(restaurant_id, cart)
        try:
            items = reprice_lines(cart.lines, catalog_items, restaurant_id)
        except PricingFailure as exc:
            record_pricing_failure(exc.reason.value)
            raise translate_pricing_failure(exc) from exc

        policy = policy_for(restaurant, tax_rate_bps=self._tax_rate_bps)
        now = datetime.now(timezone.utc)
        try:
            summary = price(items, policy)
            order = create_pending_order(
                order_id=OrderId(f"ord_{uuid4().hex[:12]}"),
                order_number=format_order_number(now, secrets.randbelow(1_000_000)),
                customer_id=customer_id,
                restaurant_id=restaurant_id,
                items=items,
                delivery_details=delivery_details,
                payment_method=payment_method,
                card_details=card_details,
                summary=summary,
                estimated_delivery_minutes=policy.estimated_delivery_minutes,
                now=now,
            )
        except ValueError as exc:
            raise InternalError(
                f"catalog data for restaurant {restaurant_id} is inconsistent"
            ) from exc

        if client_summary is not None and client_summary.total != summary.total.amount_cents:
            logger.info(
                "client_summary_discarded",
                extra={
                    "restaurant_id": str(restaurant_id),
                    "client_total_cents": client_summary.total,
                    "total_cents": summary.total.amount_cents,
                },
            )

        self._order_repository.add(order)
        record_order_submitted(order)
        self._increment_order_count(restaurant_id)

        logger.info(
            "order_submitted",
            extra={
                "order_id": str(order.order_id),
                "restaurant_id": str(restaurant_id),
                "actor_id": str(customer_id),
                "total_cents": summary.total.amount_cents,
            },
        )
        return to_order_submitted_response(order)

    def _resolve_items(
        self,
        restaurant_id: RestaurantId,
        cart: Cart,
    ) -> dict[MenuItemId, MenuItem | None]:
        resolved: dict[MenuItemId, MenuItem | None] = {}
        for line in cart.lines:
            if line.item_id not in resolved:
                resolved[line.item_id] = self._catalog.get_item(restaurant_id, line.item_id)
        return resolved

    def _increment_order_count(self, restaurant_id: RestaurantId) -> None:
        # The counter is a dashboard metric; the order is already committed.
        try:
            self._catalog.increment_order_count(restaurant_id)
        except Exception:
            record_order_counter_failure()
            logger.warning(
                "order_counter_increment_failed",
                extra={"restaurant_id": str(restaurant_id)},
                exc_info=True,
            )
