from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from enum import Enum

from fop.domain.catalog.entities import MenuItem, Restaurant
from fop.domain.common.ids import MenuItemId, RestaurantId
from fop.domain.common.money import Money, total_of
from fop.domain.order.entities import Customizations, LineItem, OrderSummary, SelectedAddon

DEFAULT_DELIVERY_FEE_CENTS = 500
DEFAULT_ESTIMATED_DELIVERY_MINUTES = 45
DEFAULT_TAX_RATE_BPS = 800
_BPS_DENOMINATOR = 10_000


class PricingFailureReason(str, Enum):
    ITEM_UNAVAILABLE = "ITEM_UNAVAILABLE"
    ITEM_NOT_FOUND = "ITEM_NOT_FOUND"
    ADDON_NOT_FOUND = "ADDON_NOT_FOUND"
    INVALID_CUSTOMIZATION = "INVALID_CUSTOMIZATION"


class PricingFailure(Exception):
    def __init__(self, reason: PricingFailureReason, item_id: str, message: str) -> None:
        super().__init__(message)
        self.reason = reason
        self.item_id = item_id


@dataclass(frozen=True)
class RestaurantPolicy:
    delivery_fee: Money
    estimated_delivery_minutes: int
    tax_rate_bps: int = DEFAULT_TAX_RATE_BPS

    def __post_init__(self) -> None:
        if self.tax_rate_bps < 0:
            raise ValueError("tax_rate_bps must be >= 0")
        if self.estimated_delivery_minutes < 0:
            raise ValueError("estimated_delivery_minutes must be >= 0")


def policy_for(
    restaurant: Restaurant,
    tax_rate_bps: int = DEFAULT_TAX_RATE_BPS,
) -> RestaurantPolicy:
    delivery_fee = restaurant.delivery_fee
    if delivery_fee is None:
        delivery_fee = Money(amount_cents=DEFAULT_DELIVERY_FEE_CENTS, currency=restaurant.currency)
    minutes = restaurant.estimated_delivery_minutes
    if minutes is None:
        minutes = DEFAULT_ESTIMATED_DELIVERY_MINUTES
    return RestaurantPolicy(
        delivery_fee=delivery_fee,
        estimated_delivery_minutes=minutes,
        tax_rate_bps=tax_rate_bps,
    )


def reprice_lines(
    lines: Sequence[LineItem],
    catalog: Mapping[MenuItemId, MenuItem | None],
    restaurant_id: RestaurantId,
) -> list[LineItem]:
    """Rebuild every line from canonical catalog data.

    Names, unit prices and addon prices carried by the incoming lines are
    ignored; only item ids, option choices, addon ids, quantities and
    instructions survive. Raises ``PricingFailure`` on the first line that
    cannot be resolved against ``restaurant_id``'s catalog.
    """
    repriced: list[LineItem] = []
    for line in lines:
        item = catalog.get(line.item_id)
        if item is None or str(item.restaurant_id) != str(restaurant_id):
            raise PricingFailure(
                PricingFailureReason.ITEM_NOT_FOUND,
                item_id=str(line.item_id),
                message=f"menu item {line.item_id} does not exist for restaurant {restaurant_id}",
            )
        if not item.is_available:
            raise PricingFailure(
                PricingFailureReason.ITEM_UNAVAILABLE,
                item_id=str(line.item_id),
                message=f"menu item {line.item_id} is unavailable",
            )

        _check_options(item, line.customizations.selected_options)

        addons: list[SelectedAddon] = []
        for selected in line.customizations.selected_addons:
            addon = item.find_addon(selected.addon_id)
            if addon is None:
                raise PricingFailure(
                    PricingFailureReason.ADDON_NOT_FOUND,
                    item_id=str(line.item_id),
                    message=(
                        f"addon {selected.addon_id} is not offered for menu item {item.item_id}"
                    ),
                )
            addons.append(
                SelectedAddon(addon_id=addon.addon_id, name=addon.name, price=addon.price)
            )

        repriced.append(
            LineItem(
                item_id=item.item_id,
                name=item.name,
                unit_price=item.price,
                quantity=line.quantity,
                customizations=Customizations(
                    selected_options=dict(line.customizations.selected_options),
                    selected_addons=addons,
                ),
                special_instructions=line.special_instructions.strip(),
            )
        )
    return repriced


def _check_options(item: MenuItem, selected_options: Mapping[str, str]) -> None:
    if not item.option_groups:
        return
    for group, choice in selected_options.items():
        choices = item.option_groups.get(group)
        if choices is None or choice not in choices:
            raise PricingFailure(
                PricingFailureReason.INVALID_CUSTOMIZATION,
                item_id=str(item.item_id),
                message=f"option {group}={choice} is not offered for menu item {item.item_id}",
            )


def calculate_tax(subtotal: Money, tax_rate_bps: int) -> Money:
    return Money(
        amount_cents=subtotal.amount_cents * tax_rate_bps // _BPS_DENOMINATOR,
        currency=subtotal.currency,
    )


def price(items: Sequence[LineItem], policy: RestaurantPolicy) -> OrderSummary:
    currency = policy.delivery_fee.currency
    subtotal = total_of([item.line_total for item in items], currency=currency)
    tax = calculate_tax(subtotal, policy.tax_rate_bps)
    return OrderSummary(
        subtotal=subtotal,
        delivery_fee=policy.delivery_fee,
        tax=tax,
        total=subtotal.add(policy.delivery_fee).add(tax),
    )
