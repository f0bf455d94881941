from __future__ import annotations

import json
import logging

from fop.application.dto.requests import MAX_LINE_QUANTITY, AddCartItemRequest, CheckoutRequest
from fop.application.dto.responses import CartQuoteResponse, CartResponse, OrderSubmittedResponse
from fop.application.errors import (
    CartLineNotFoundError,
    MenuItemNotFoundError,
    ValidationError,
)
from fop.application.mappers.cart_mapper import (
    deserialize_cart,
    serialize_cart,
    to_cart_quote_response,
    to_cart_response,
    to_customizations,
)
from fop.application.mappers.checkout_mapper import to_card_details, to_delivery_details
from fop.application.ports.cache import CacheStore, CacheUnavailableError
from fop.application.ports.repositories import CatalogLookup
from fop.application.use_cases.submit_order import SubmitOrder, translate_pricing_failure
from fop.domain.cart.entities import Cart, CartItem
from fop.domain.cart.entities import CartLineNotFoundError as DomainCartLineNotFoundError
from fop.domain.common.ids import MenuItemId, RestaurantId, SessionId, UserId
from fop.domain.order.entities import LineItem
from fop.domain.pricing.calculator import PricingFailure, policy_for, reprice_lines

logger = logging.getLogger(__name__)

DEFAULT_CART_TTL_SECONDS = 7 * 24 * 60 * 60


def cart_cache_key(session_id: SessionId) -> str:
    return f"cart:{session_id}"


class CartService:
    """Session-scoped cart kept in the cache store.

    Prices shown here come from the catalog at the moment an item is added
    and are for display only; submission always reprices.
    """

    def __init__(
        self,
        cache: CacheStore,
        catalog: CatalogLookup,
        ttl_seconds: int = DEFAULT_CART_TTL_SECONDS,
    ) -> None:
        self._cache = cache
        self._catalog = catalog
        self._ttl_seconds = ttl_seconds

    def load(self, session_id: SessionId) -> Cart:
        raw = self._cache.get(cart_cache_key(session_id))
        if raw is None:
            return Cart()
        try:
            return deserialize_cart(raw)
        except (json.JSONDecodeError, KeyError, TypeError, ValueError):
            logger.warning("cart_payload_discarded", extra={"session_id": str(session_id)})
            return Cart()

    def save(self, session_id: SessionId, cart: Cart) -> None:
        if cart.is_empty:
            self._cache.delete(cart_cache_key(session_id))
            return
        self._cache.set(cart_cache_key(session_id), serialize_cart(cart), self._ttl_seconds)

    def get(self, session_id: SessionId) -> CartResponse:
        return to_cart_response(self.load(session_id))

    def add_item(self, session_id: SessionId, request: AddCartItemRequest) -> CartResponse:
        if request.quantity < 1:
            raise ValidationError("quantity must be >= 1", code="INVALID_QUANTITY")

        restaurant_id = RestaurantId(request.restaurant_id)
        item_id = MenuItemId(request.item_id)
        item = self._catalog.get_item(restaurant_id, item_id)
        if item is None:
            raise MenuItemNotFoundError(
                f"menu item {item_id} not found for restaurant {restaurant_id}"
            )

        # Snapshot the catalog's view of the line so the cart displays real prices.
        requested_line = LineItem(
            item_id=item_id,
            name=item.name,
            unit_price=item.price,
            quantity=request.quantity,
            customizations=to_customizations(request.customizations, item.price.currency),
            special_instructions=request.special_instructions,
        )
        try:
            (snapshot,) = reprice_lines([requested_line], {item_id: item}, restaurant_id)
        except PricingFailure as exc:
            raise translate_pricing_failure(exc) from exc

        cart = self.load(session_id)
        switching = cart.restaurant_id is None or str(cart.restaurant_id) != str(restaurant_id)
        existing = 0 if switching else cart.quantity_of(
            item_id, snapshot.customizations, snapshot.special_instructions
        )
        if existing + snapshot.quantity > MAX_LINE_QUANTITY:
            raise ValidationError(
                f"quantity must be <= {MAX_LINE_QUANTITY}", code="INVALID_QUANTITY"
            )
        cart = cart.add_item(
            CartItem(
                item_id=item_id,
                restaurant_id=restaurant_id,
                name=snapshot.name,
                unit_price=snapshot.unit_price,
            ),
            customizations=snapshot.customizations,
            special_instructions=snapshot.special_instructions,
            quantity=snapshot.quantity,
        )
        if switching:
            restaurant = self._catalog.get_restaurant(restaurant_id)
            cart = cart.with_delivery_fee_quote(
                policy_for(restaurant).delivery_fee if restaurant is not None else None
            )

        self.save(session_id, cart)
        return to_cart_response(cart)

    def update_quantity(self, session_id: SessionId, line_key: str, quantity: int) -> CartResponse:
        cart = self.load(session_id)
        try:
            cart = cart.update_quantity(line_key, quantity)
        except DomainCartLineNotFoundError as exc:
            raise CartLineNotFoundError(str(exc)) from exc
        self.save(session_id, cart)
        return to_cart_response(cart)

    def remove_line(self, session_id: SessionId, line_key: str) -> CartResponse:
        cart = self.load(session_id)
        try:
            cart = cart.remove_line(line_key)
        except DomainCartLineNotFoundError as exc:
            raise CartLineNotFoundError(str(exc)) from exc
        self.save(session_id, cart)
        return to_cart_response(cart)

    def clear(self, session_id: SessionId) -> CartResponse:
        cart = self.load(session_id).clear()
        self.save(session_id, cart)
        return to_cart_response(cart)

    def quote(self, session_id: SessionId) -> CartQuoteResponse:
        return to_cart_quote_response(self.load(session_id))


class CheckoutCart:
    """Submits the session cart and empties it once the order exists."""

    def __init__(self, cart_service: CartService, submit_order: SubmitOrder) -> None:
        self._cart_service = cart_service
        self._submit_order = submit_order

    def execute(
        self,
        session_id: SessionId,
        customer_id: UserId,
        request: CheckoutRequest,
    ) -> OrderSubmittedResponse:
        cart = self._cart_service.load(session_id)
        response = self._submit_order.execute(
            cart=cart,
            customer_id=customer_id,
            delivery_details=to_delivery_details(request.delivery_details),
            payment_method=request.payment_method,
            card_details=to_card_details(request.payment_method, request.card_details),
            client_summary=request.order_summary,
        )
        self._clear_after_checkout(session_id, cart, response)
        return response

    def _clear_after_checkout(
        self,
        session_id: SessionId,
        cart: Cart,
        response: OrderSubmittedResponse,
    ) -> None:
        # The order is already committed; a stale cart must not turn into an error.
        try:
            self._cart_service.save(session_id, cart.clear())
        except CacheUnavailableError:
            logger.warning(
                "cart_clear_failed",
                extra={"session_id": str(session_id), "order_id": response.orderId},
                exc_info=True,
            )
