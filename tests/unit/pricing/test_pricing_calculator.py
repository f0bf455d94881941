from __future__ import annotations

import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[3] / "src"))

from fop.domain.catalog.entities import AddonOption, MenuItem, Restaurant
from fop.domain.common.ids import MenuItemId, RestaurantId, UserId
from fop.domain.common.money import Money
from fop.domain.order.entities import Customizations, LineItem, SelectedAddon
from fop.domain.pricing.calculator import (
    DEFAULT_DELIVERY_FEE_CENTS,
    DEFAULT_ESTIMATED_DELIVERY_MINUTES,
    PricingFailure,
    PricingFailureReason,
    RestaurantPolicy,
    calculate_tax,
    policy_for,
    price,
    reprice_lines,
)

RESTAURANT_ID = RestaurantId("rst_001")


def _usd(cents: int) -> Money:
    return Money(amount_cents=cents, currency="USD")


def _burger(**overrides) -> MenuItem:
    fields = {
        "item_id": MenuItemId("itm_burger"),
        "restaurant_id": RESTAURANT_ID,
        "name": "Burger",
        "price": _usd(1000),
        "is_available": True,
        "option_groups": {"size": ["regular", "large"]},
        "addons": [AddonOption(addon_id="add_cheese", name="Cheese", price=_usd(150))],
    }
    fields.update(overrides)
    return MenuItem(**fields)


def _cart_line(**overrides) -> LineItem:
    fields = {
        "item_id": MenuItemId("itm_burger"),
        "name": "Burger (cached)",
        "unit_price": _usd(1),
        "quantity": 1,
    }
    fields.update(overrides)
    return LineItem(**fields)


def test_reference_scenario_totals() -> None:
    items = [LineItem(MenuItemId("itm_a"), "Item A", _usd(1000), quantity=2)]
    policy = RestaurantPolicy(delivery_fee=_usd(500), estimated_delivery_minutes=45)

    summary = price(items, policy)

    assert summary.subtotal == _usd(2000)
    assert summary.tax == _usd(160)
    assert summary.delivery_fee == _usd(500)
    assert summary.total == _usd(2660)


def test_tax_is_floored() -> None:
    assert calculate_tax(_usd(1999), 800) == _usd(159)
    assert calculate_tax(_usd(0), 800) == _usd(0)


def test_policy_defaults_when_restaurant_omits_them() -> None:
    restaurant = Restaurant(
        restaurant_id=RESTAURANT_ID,
        name="Downtown Test Kitchen",
        owner_id=UserId("usr_owner_001"),
        is_open=True,
        currency="USD",
    )
    policy = policy_for(restaurant, tax_rate_bps=725)
    assert policy.delivery_fee == _usd(DEFAULT_DELIVERY_FEE_CENTS)
    assert policy.estimated_delivery_minutes == DEFAULT_ESTIMATED_DELIVERY_MINUTES
    assert policy.tax_rate_bps == 725


def test_reprice_replaces_cached_prices_with_catalog_prices() -> None:
    line = _cart_line(
        quantity=2,
        customizations=Customizations(
            selected_options={"size": "large"},
            selected_addons=[SelectedAddon(addon_id="add_cheese", name="Free?", price=_usd(0))],
        ),
        special_instructions=" well done ",
    )

    (repriced,) = reprice_lines([line], {MenuItemId("itm_burger"): _burger()}, RESTAURANT_ID)

    assert repriced.name == "Burger"
    assert repriced.unit_price == _usd(1000)
    assert repriced.customizations.selected_addons[0].price == _usd(150)
    assert repriced.customizations.selected_addons[0].name == "Cheese"
    assert repriced.line_total == _usd(2300)
    assert repriced.special_instructions == "well done"


def test_reprice_rejects_unavailable_item() -> None:
    catalog = {MenuItemId("itm_burger"): _burger(is_available=False)}
    with pytest.raises(PricingFailure) as exc_info:
        reprice_lines([_cart_line()], catalog, RESTAURANT_ID)
    assert exc_info.value.reason == PricingFailureReason.ITEM_UNAVAILABLE


def test_reprice_rejects_item_of_another_restaurant() -> None:
    catalog = {MenuItemId("itm_burger"): _burger(restaurant_id=RestaurantId("rst_002"))}
    with pytest.raises(PricingFailure) as exc_info:
        reprice_lines([_cart_line()], catalog, RESTAURANT_ID)
    assert exc_info.value.reason == PricingFailureReason.ITEM_NOT_FOUND
    assert exc_info.value.item_id == "itm_burger"


def test_reprice_rejects_unknown_item() -> None:
    with pytest.raises(PricingFailure) as exc_info:
        reprice_lines([_cart_line()], {MenuItemId("itm_burger"): None}, RESTAURANT_ID)
    assert exc_info.value.reason == PricingFailureReason.ITEM_NOT_FOUND


def test_reprice_rejects_unknown_addon() -> None:
    line = _cart_line(
        customizations=Customizations(
            selected_addons=[SelectedAddon(addon_id="add_truffle", name="Truffle", price=_usd(0))]
        )
    )
    with pytest.raises(PricingFailure) as exc_info:
        reprice_lines([line], {MenuItemId("itm_burger"): _burger()}, RESTAURANT_ID)
    assert exc_info.value.reason == PricingFailureReason.ADDON_NOT_FOUND


def test_reprice_rejects_unknown_option_choice() -> None:
    line = _cart_line(customizations=Customizations(selected_options={"size": "huge"}))
    with pytest.raises(PricingFailure) as exc_info:
        reprice_lines([line], {MenuItemId("itm_burger"): _burger()}, RESTAURANT_ID)
    assert exc_info.value.reason == PricingFailureReason.INVALID_CUSTOMIZATION


def test_options_are_free_form_when_item_defines_no_groups() -> None:
    line = _cart_line(customizations=Customizations(selected_options={"spice": "hot"}))
    catalog = {MenuItemId("itm_burger"): _burger(option_groups={})}
    (repriced,) = reprice_lines([line], catalog, RESTAURANT_ID)
    assert repriced.customizations.selected_options == {"spice": "hot"}
