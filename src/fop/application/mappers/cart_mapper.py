from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any

from fop.application.dto.requests import (
    MAX_LINE_QUANTITY,
    CartLineRequest,
    CustomizationsRequest,
)
from fop.application.dto.responses import CartQuoteResponse, CartResponse
from fop.application.errors import ValidationError
from fop.application.mappers.order_mapper import to_line_item_response, to_money_response
from fop.domain.cart.entities import Cart, CartItem
from fop.domain.common.ids import MenuItemId, RestaurantId
from fop.domain.common.money import DEFAULT_CURRENCY, Money
from fop.domain.order.entities import Customizations, LineItem, SelectedAddon


def to_cart_response(cart: Cart) -> CartResponse:
    return CartResponse(
        restaurantId=str(cart.restaurant_id) if cart.restaurant_id is not None else None,
        items=[to_line_item_response(line) for line in cart.lines],
        cartTotal=to_money_response(cart.quote()),
        deliveryFeeQuote=(
            to_money_response(cart.delivery_fee_quote)
            if cart.delivery_fee_quote is not None
            else None
        ),
        itemCount=cart.item_count,
        uniqueItemCount=cart.unique_item_count,
    )


def to_cart_quote_response(cart: Cart) -> CartQuoteResponse:
    return CartQuoteResponse(
        restaurantId=str(cart.restaurant_id) if cart.restaurant_id is not None else None,
        cartTotal=to_money_response(cart.quote()),
        itemCount=cart.item_count,
    )


def to_customizations(
    request: CustomizationsRequest,
    currency: str = DEFAULT_CURRENCY,
) -> Customizations:
    """Client-declared customizations.

    Addon names and prices sent by clients are display hints; only the addon
    ids are kept and pricing fills the rest in from the catalog.
    """
    try:
        return Customizations(
            selected_options=dict(request.options),
            selected_addons=[
                SelectedAddon(
                    addon_id=addon.id,
                    name=addon.id,
                    price=Money.zero(currency),
                )
                for addon in request.addons
            ],
        )
    except ValueError as exc:
        raise ValidationError(str(exc), code="INVALID_CUSTOMIZATION") from exc


def cart_from_request(restaurant_id: str | None, lines: list[CartLineRequest]) -> Cart:
    """Rebuild a client-held cart, merging lines that share an identity."""
    cart = Cart()
    if not lines:
        return cart
    if not restaurant_id:
        raise ValidationError("restaurantId is required when items are present")

    for line in lines:
        if line.quantity < 1:
            raise ValidationError(
                f"quantity must be >= 1 for item {line.item_id}",
                code="INVALID_QUANTITY",
                details={"itemId": line.item_id, "quantity": line.quantity},
            )
        try:
            item = CartItem(
                item_id=MenuItemId(line.item_id),
                restaurant_id=RestaurantId(restaurant_id),
                name=line.item_id,
                unit_price=Money.zero(DEFAULT_CURRENCY),
            )
        except ValueError as exc:
            raise ValidationError(str(exc), details={"itemId": line.item_id}) from exc
        customizations = to_customizations(line.customizations)
        merged = line.quantity + cart.quantity_of(
            item.item_id, customizations, line.special_instructions
        )
        if merged > MAX_LINE_QUANTITY:
            raise ValidationError(
                f"quantity must be <= {MAX_LINE_QUANTITY} for item {line.item_id}",
                code="INVALID_QUANTITY",
                details={"itemId": line.item_id, "quantity": merged},
            )
        cart = cart.add_item(
            item,
            customizations=customizations,
            special_instructions=line.special_instructions,
            quantity=line.quantity,
        )
    return cart


def _money_to_dict(money: Money) -> dict[str, Any]:
    return {"amountCents": money.amount_cents, "currency": money.currency}


def _money_from_dict(payload: dict[str, Any]) -> Money:
    return Money(amount_cents=int(payload["amountCents"]), currency=str(payload["currency"]))


def serialize_cart(cart: Cart) -> str:
    payload = {
        "restaurantId": str(cart.restaurant_id) if cart.restaurant_id is not None else None,
        "deliveryFeeQuote": (
            _money_to_dict(cart.delivery_fee_quote) if cart.delivery_fee_quote else None
        ),
        "items": [
            {
                "itemId": str(line.item_id),
                "name": line.name,
                "unitPrice": _money_to_dict(line.unit_price),
                "quantity": line.quantity,
                "customizations": {
                    "options": dict(line.customizations.selected_options),
                    "addons": [
                        {
                            "id": addon.addon_id,
                            "name": addon.name,
                            "price": _money_to_dict(addon.price),
                        }
                        for addon in line.customizations.selected_addons
                    ],
                },
                "specialInstructions": line.special_instructions,
            }
            for line in cart.lines
        ],
        "savedAt": datetime.now(timezone.utc).isoformat(),
    }
    return json.dumps(payload, separators=(",", ":"), ensure_ascii=False)


def deserialize_cart(raw: str) -> Cart:
    """Raises ValueError, KeyError or TypeError on a payload that is not a cart."""
    payload = json.loads(raw)
    lines = [
        LineItem(
            item_id=MenuItemId(item["itemId"]),
            name=str(item["name"]),
            unit_price=_money_from_dict(item["unitPrice"]),
            quantity=int(item["quantity"]),
            customizations=Customizations(
                selected_options={
                    str(group): str(choice)
                    for group, choice in item["customizations"]["options"].items()
                },
                selected_addons=[
                    SelectedAddon(
                        addon_id=str(addon["id"]),
                        name=str(addon["name"]),
                        price=_money_from_dict(addon["price"]),
                    )
                    for addon in item["customizations"]["addons"]
                ],
            ),
            special_instructions=str(item.get("specialInstructions", "")),
        )
        for item in payload["items"]
    ]
    restaurant_id = payload.get("restaurantId")
    fee = payload.get("deliveryFeeQuote")
    return Cart(
        restaurant_id=RestaurantId(restaurant_id) if restaurant_id else None,
        lines=lines,
        delivery_fee_quote=_money_from_dict(fee) if fee else None,
    )
