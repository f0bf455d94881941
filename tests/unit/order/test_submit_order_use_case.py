from __future__ import annotations

import logging
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[3] / "src"))

from fop.application.dto.requests import OrderSummaryRequest
from fop.application.errors import (
    EmptyCartError,
    PricingError,
    RestaurantClosedError,
    RestaurantNotFoundError,
    ValidationError,
)
from fop.application.use_cases.submit_order import SubmitOrder
from fop.domain.cart.entities import Cart, CartItem
from fop.domain.common.ids import MenuItemId, OrderId, RestaurantId, UserId
from fop.domain.common.money import Money
from fop.domain.order.entities import (
    CardDetails,
    Customizations,
    LineItem,
    OrderStatus,
    PaymentMethod,
    SelectedAddon,
)

CUSTOMER_ID = UserId("usr_customer_001")


def _usd(cents: int) -> Money:
    return Money(amount_cents=cents, currency="USD")


def _item(item_id: str, restaurant_id: str = "rst_001", cents: int = 1) -> CartItem:
    # Cart prices are deliberately wrong; submission must not use them.
    return CartItem(
        item_id=MenuItemId(item_id),
        restaurant_id=RestaurantId(restaurant_id),
        name=f"cached {item_id}",
        unit_price=_usd(cents),
    )


def _submit(catalog, order_repository, cart, **overrides):
    arguments = {
        "cart": cart,
        "customer_id": CUSTOMER_ID,
        "delivery_details": overrides.pop("delivery_details"),
        "payment_method": PaymentMethod.CASH,
    }
    arguments.update(overrides)
    return SubmitOrder(catalog=catalog, order_repository=order_repository).execute(**arguments)


def test_submit_prices_from_catalog_and_persists_pending_order(
    catalog, order_repository, delivery
) -> None:
    cart = Cart().add_item(_item("itm_burger"), quantity=2)

    response = _submit(catalog, order_repository, cart, delivery_details=delivery)

    assert response.status == "pending"
    assert response.total.amountCents == 2660
    assert response.estimatedDeliveryMinutes == 45
    assert response.orderNumber.startswith("ORD")
    assert len(response.orderNumber) == 15

    stored = order_repository.get(OrderId(response.orderId))
    assert stored is not None
    assert stored.status == OrderStatus.PENDING
    assert [entry.status for entry in stored.status_history] == [OrderStatus.PENDING]
    assert stored.status_history[0].actor_id == CUSTOMER_ID
    assert stored.items[0].name == "Burger"
    assert stored.items[0].unit_price == _usd(1000)
    assert stored.summary.tax == _usd(160)
    assert catalog.order_counts == {"rst_001": 1}


def test_submit_uses_catalog_addon_prices(catalog, order_repository, delivery) -> None:
    customizations = Customizations(
        selected_options={"size": "large"},
        selected_addons=[SelectedAddon(addon_id="add_cheese", name="Cheese", price=_usd(0))],
    )
    cart = Cart().add_item(_item("itm_burger"), customizations)

    response = _submit(catalog, order_repository, cart, delivery_details=delivery)

    stored = order_repository.get(OrderId(response.orderId))
    assert stored.summary.subtotal == _usd(1150)
    assert stored.items[0].customizations.selected_addons[0].price == _usd(150)


def test_submit_uses_restaurant_fee_and_eta(catalog, order_repository, delivery) -> None:
    cart = Cart().add_item(_item("itm_ramen", restaurant_id="rst_002"))

    response = _submit(catalog, order_repository, cart, delivery_details=delivery)

    assert response.estimatedDeliveryMinutes == 65
    assert response.total.amountCents == 1300 + 299 + 104


def test_submit_honours_configured_tax_rate(catalog, order_repository, delivery) -> None:
    cart = Cart().add_item(_item("itm_burger"), quantity=2)
    response = SubmitOrder(
        catalog=catalog,
        order_repository=order_repository,
        tax_rate_bps=1000,
    ).execute(
        cart=cart,
        customer_id=CUSTOMER_ID,
        delivery_details=delivery,
        payment_method=PaymentMethod.CASH,
    )
    assert response.total.amountCents == 2000 + 500 + 200


def test_closed_restaurant_persists_nothing(catalog, order_repository, delivery) -> None:
    cart = Cart().add_item(_item("itm_closed_special", restaurant_id="rst_closed"))

    with pytest.raises(RestaurantClosedError) as exc_info:
        _submit(catalog, order_repository, cart, delivery_details=delivery)

    assert exc_info.value.code == "RESTAURANT_CLOSED"
    assert order_repository.orders == {}
    assert catalog.order_counts == {}


def test_unknown_restaurant(catalog, order_repository, delivery) -> None:
    cart = Cart().add_item(_item("itm_x", restaurant_id="rst_missing"))
    with pytest.raises(RestaurantNotFoundError):
        _submit(catalog, order_repository, cart, delivery_details=delivery)


def test_unavailable_item_rejects_whole_order(catalog, order_repository, delivery) -> None:
    cart = Cart().add_item(_item("itm_burger")).add_item(_item("itm_soldout"))

    with pytest.raises(PricingError) as exc_info:
        _submit(catalog, order_repository, cart, delivery_details=delivery)

    assert exc_info.value.code == "ITEM_UNAVAILABLE"
    assert exc_info.value.details == {"itemId": "itm_soldout"}
    assert order_repository.orders == {}


def test_item_from_another_restaurant_is_not_found(catalog, order_repository, delivery) -> None:
    cart = Cart(
        restaurant_id=RestaurantId("rst_001"),
        lines=[LineItem(MenuItemId("itm_ramen"), "Spicy Ramen", _usd(1300), quantity=1)],
    )

    with pytest.raises(PricingError) as exc_info:
        _submit(catalog, order_repository, cart, delivery_details=delivery)

    assert exc_info.value.code == "ITEM_NOT_FOUND"
    assert order_repository.orders == {}


def test_unknown_option_is_a_validation_error(catalog, order_repository, delivery) -> None:
    cart = Cart().add_item(
        _item("itm_burger"), Customizations(selected_options={"size": "colossal"})
    )
    with pytest.raises(ValidationError) as exc_info:
        _submit(catalog, order_repository, cart, delivery_details=delivery)
    assert exc_info.value.code == "INVALID_CUSTOMIZATION"


def test_empty_cart(catalog, order_repository, delivery) -> None:
    with pytest.raises(EmptyCartError):
        _submit(catalog, order_repository, Cart(), delivery_details=delivery)


def test_card_payment_requires_card_details(catalog, order_repository, delivery) -> None:
    cart = Cart().add_item(_item("itm_fries"))
    with pytest.raises(ValidationError) as exc_info:
        _submit(
            catalog,
            order_repository,
            cart,
            delivery_details=delivery,
            payment_method=PaymentMethod.CARD,
        )
    assert exc_info.value.code == "INVALID_PAYMENT"

    response = _submit(
        catalog,
        order_repository,
        cart,
        delivery_details=delivery,
        payment_method=PaymentMethod.CARD,
        card_details=CardDetails(last4="4242", brand="visa"),
    )
    stored = order_repository.get(OrderId(response.orderId))
    assert stored.card_details == CardDetails(last4="4242", brand="visa")


def test_order_counter_failure_does_not_fail_submission(
    catalog, order_repository, delivery, caplog
) -> None:
    catalog.fail_increment = True
    cart = Cart().add_item(_item("itm_fries"))

    with caplog.at_level(logging.WARNING):
        response = _submit(catalog, order_repository, cart, delivery_details=delivery)

    assert order_repository.get(OrderId(response.orderId)) is not None
    assert any(r.getMessage() == "order_counter_increment_failed" for r in caplog.records)


def test_client_summary_never_overrides_server_pricing(
    catalog, order_repository, delivery, caplog
) -> None:
    cart = Cart().add_item(_item("itm_burger"), quantity=2)
    client_summary = OrderSummaryRequest(subtotal=2, delivery_fee=0, tax=0, total=2)

    with caplog.at_level(logging.INFO):
        response = _submit(
            catalog,
            order_repository,
            cart,
            delivery_details=delivery,
            client_summary=client_summary,
        )

    assert response.total.amountCents == 2660
    assert any(r.getMessage() == "client_summary_discarded" for r in caplog.records)
