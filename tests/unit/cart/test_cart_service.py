from __future__ import annotations

import json
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[3] / "src"))

from fop.application.dto.requests import (
    AddCartItemRequest,
    CheckoutRequest,
    CustomizationsRequest,
    DeliveryDetailsRequest,
    SelectedAddonRequest,
)
from fop.application.errors import (
    CartLineNotFoundError,
    EmptyCartError,
    MenuItemNotFoundError,
    PricingError,
    ValidationError,
)
from fop.application.ports.cache import CacheUnavailableError
from fop.application.use_cases.cart import CartService, CheckoutCart, cart_cache_key
from fop.application.use_cases.submit_order import SubmitOrder
from fop.domain.common.ids import OrderId, SessionId, UserId
from fop.domain.order.entities import PaymentMethod

SESSION = SessionId("sess_001")


def _service(cache_store, catalog) -> CartService:
    return CartService(cache=cache_store, catalog=catalog, ttl_seconds=600)


def _add(service, item_id: str, restaurant_id: str = "rst_001", **fields):
    return service.add_item(
        SESSION,
        AddCartItemRequest(restaurant_id=restaurant_id, item_id=item_id, **fields),
    )


def test_add_item_snapshots_catalog_data_and_persists(cache_store, catalog) -> None:
    service = _service(cache_store, catalog)

    response = _add(
        service,
        "itm_burger",
        quantity=2,
        customizations=CustomizationsRequest(
            options={"size": "large"},
            addons=[SelectedAddonRequest(id="add_cheese", price=0)],
        ),
    )

    assert response.restaurantId == "rst_001"
    assert response.items[0].name == "Burger"
    assert response.items[0].customizations.addons[0].price.amountCents == 150
    assert response.cartTotal.amountCents == 2300
    assert response.deliveryFeeQuote.amountCents == 500
    assert response.itemCount == 2
    assert cache_store.ttls[cart_cache_key(SESSION)] == 600

    reloaded = service.get(SESSION)
    assert reloaded == response


def test_repeated_add_merges_lines(cache_store, catalog) -> None:
    service = _service(cache_store, catalog)
    _add(service, "itm_fries")
    response = _add(service, "itm_fries")

    assert response.uniqueItemCount == 1
    assert response.items[0].quantity == 2


def test_switching_restaurant_replaces_cart(cache_store, catalog) -> None:
    service = _service(cache_store, catalog)
    _add(service, "itm_fries")

    response = _add(service, "itm_ramen", restaurant_id="rst_002")

    assert response.restaurantId == "rst_002"
    assert [item.itemId for item in response.items] == ["itm_ramen"]
    assert response.deliveryFeeQuote.amountCents == 299


def test_add_rejects_unknown_or_unavailable_items(cache_store, catalog) -> None:
    service = _service(cache_store, catalog)

    with pytest.raises(MenuItemNotFoundError):
        _add(service, "itm_ramen")
    with pytest.raises(PricingError) as exc_info:
        _add(service, "itm_soldout")
    assert exc_info.value.code == "ITEM_UNAVAILABLE"
    with pytest.raises(ValidationError):
        _add(service, "itm_fries", quantity=0)
    assert cache_store.values == {}


def test_update_and_remove_lines(cache_store, catalog) -> None:
    service = _service(cache_store, catalog)
    _add(service, "itm_fries")
    key = _add(service, "itm_burger").items[1].lineKey

    assert service.update_quantity(SESSION, key, 4).items[1].quantity == 4

    response = service.remove_line(SESSION, key)
    assert [item.itemId for item in response.items] == ["itm_fries"]

    emptied = service.update_quantity(SESSION, response.items[0].lineKey, 0)
    assert emptied.restaurantId is None
    assert cart_cache_key(SESSION) not in cache_store.values

    with pytest.raises(CartLineNotFoundError):
        service.remove_line(SESSION, key)


def test_clear_and_quote(cache_store, catalog) -> None:
    service = _service(cache_store, catalog)
    _add(service, "itm_fries", quantity=3)

    quote = service.quote(SESSION)
    assert quote.cartTotal.amountCents == 1350
    assert quote.itemCount == 3

    cleared = service.clear(SESSION)
    assert cleared.items == []
    assert cleared.deliveryFeeQuote is None
    assert cache_store.values == {}


def test_corrupt_payload_is_discarded(cache_store, catalog) -> None:
    cache_store.set(cart_cache_key(SESSION), json.dumps({"items": "oops"}), 600)

    response = _service(cache_store, catalog).get(SESSION)

    assert response.items == []
    assert response.restaurantId is None


def _checkout_request() -> CheckoutRequest:
    return CheckoutRequest(
        delivery_details=DeliveryDetailsRequest(
            first_name="Ada",
            last_name="Lovelace",
            phone="555-0100",
            email="ada@example.com",
            address="1 Main St",
            city="Springfield",
            state="IL",
            zip_code="62701",
        ),
        payment_method=PaymentMethod.CASH,
    )


def test_checkout_submits_and_clears_cart(cache_store, catalog, order_repository) -> None:
    service = _service(cache_store, catalog)
    _add(service, "itm_burger", quantity=2)
    checkout = CheckoutCart(
        cart_service=service,
        submit_order=SubmitOrder(catalog=catalog, order_repository=order_repository),
    )

    response = checkout.execute(SESSION, UserId("usr_customer_001"), _checkout_request())

    assert response.total.amountCents == 2660
    assert order_repository.get(OrderId(response.orderId)) is not None
    assert service.get(SESSION).items == []


def test_checkout_keeps_cart_when_submission_fails(
    cache_store, catalog, order_repository
) -> None:
    service = _service(cache_store, catalog)
    checkout = CheckoutCart(
        cart_service=service,
        submit_order=SubmitOrder(catalog=catalog, order_repository=order_repository),
    )
    with pytest.raises(EmptyCartError):
        checkout.execute(SESSION, UserId("usr_customer_001"), _checkout_request())

    _add(service, "itm_fries")
    catalog.items.pop(("rst_001", "itm_fries"))
    with pytest.raises(PricingError):
        checkout.execute(SESSION, UserId("usr_customer_001"), _checkout_request())
    assert service.get(SESSION).itemCount == 1


def test_checkout_returns_order_when_cart_clear_fails(
    cache_store, catalog, order_repository, monkeypatch, caplog
) -> None:
    service = _service(cache_store, catalog)
    _add(service, "itm_burger", quantity=2)
    checkout = CheckoutCart(
        cart_service=service,
        submit_order=SubmitOrder(catalog=catalog, order_repository=order_repository),
    )

    def failing_delete(key: str) -> None:
        raise CacheUnavailableError("cache delete failed")

    monkeypatch.setattr(cache_store, "delete", failing_delete)
    with caplog.at_level("WARNING", logger="fop.application.use_cases.cart"):
        response = checkout.execute(SESSION, UserId("usr_customer_001"), _checkout_request())

    assert response.total.amountCents == 2660
    assert list(order_repository.orders) == [response.orderId]
    assert "cart_clear_failed" in caplog.text
