from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from fop.domain.order.entities import OrderStatus, PaymentMethod

# Upper bounds mirror the order table columns.
MAX_ID_LENGTH = 50
MAX_LINE_QUANTITY = 99


def _to_camel(value: str) -> str:
    parts = value.split("_")
    return parts[0] + "".join(part.capitalize() for part in parts[1:])


class CamelBaseModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=_to_camel,
        populate_by_name=True,
    )


class SelectedAddonRequest(CamelBaseModel):
    id: str = Field(max_length=MAX_ID_LENGTH)
    # Name and price are whatever the client displayed; submission ignores them.
    name: str | None = None
    price: int | None = None


class CustomizationsRequest(CamelBaseModel):
    options: dict[str, str] = Field(default_factory=dict)
    addons: list[SelectedAddonRequest] = Field(default_factory=list)


class CartLineRequest(CamelBaseModel):
    item_id: str = Field(max_length=MAX_ID_LENGTH)
    quantity: int = Field(le=MAX_LINE_QUANTITY)
    name: str | None = None
    price: int | None = None
    customizations: CustomizationsRequest = Field(default_factory=CustomizationsRequest)
    special_instructions: str = Field(default="", max_length=500)


class DeliveryDetailsRequest(CamelBaseModel):
    first_name: str = Field(max_length=100)
    last_name: str = Field(max_length=100)
    phone: str = Field(max_length=40)
    email: str = Field(max_length=255)
    address: str = Field(max_length=255)
    city: str = Field(max_length=100)
    state: str = Field(max_length=100)
    zip_code: str = Field(max_length=20)
    delivery_instructions: str | None = Field(default=None, max_length=500)


class CardDetailsRequest(CamelBaseModel):
    last4: str
    brand: str | None = Field(default=None, max_length=30)
    expiry_month: str | None = Field(default=None, max_length=2)
    expiry_year: str | None = Field(default=None, max_length=4)


class OrderSummaryRequest(CamelBaseModel):
    subtotal: int = 0
    delivery_fee: int = 0
    tax: int = 0
    total: int = 0


class CheckoutRequest(CamelBaseModel):
    delivery_details: DeliveryDetailsRequest
    payment_method: PaymentMethod
    card_details: CardDetailsRequest | None = None
    order_summary: OrderSummaryRequest | None = None


class SubmitOrderRequest(CheckoutRequest):
    restaurant_id: str | None = Field(default=None, max_length=MAX_ID_LENGTH)
    items: list[CartLineRequest] = Field(default_factory=list)


class AdvanceStatusRequest(CamelBaseModel):
    status: OrderStatus
    reason: str | None = Field(default=None, max_length=500)


class CancelOrderRequest(CamelBaseModel):
    reason: str | None = Field(default=None, max_length=500)


class AddCartItemRequest(CamelBaseModel):
    restaurant_id: str = Field(max_length=MAX_ID_LENGTH)
    item_id: str = Field(max_length=MAX_ID_LENGTH)
    quantity: int = Field(default=1, le=MAX_LINE_QUANTITY)
    customizations: CustomizationsRequest = Field(default_factory=CustomizationsRequest)
    special_instructions: str = Field(default="", max_length=500)


class UpdateCartLineRequest(CamelBaseModel):
    quantity: int = Field(le=MAX_LINE_QUANTITY)
