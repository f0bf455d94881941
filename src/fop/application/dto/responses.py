from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class MoneyResponse(BaseModel):
    amountCents: int
    currency: str


class SelectedAddonResponse(BaseModel):
    id: str
    name: str
    price: MoneyResponse


class CustomizationsResponse(BaseModel):
    options: dict[str, str] = Field(default_factory=dict)
    addons: list[SelectedAddonResponse] = Field(default_factory=list)


class LineItemResponse(BaseModel):
    lineKey: str
    itemId: str
    name: str
    unitPrice: MoneyResponse
    quantity: int
    customizations: CustomizationsResponse
    specialInstructions: str = ""
    lineTotal: MoneyResponse


class DeliveryDetailsResponse(BaseModel):
    firstName: str
    lastName: str
    phone: str
    email: str
    address: str
    city: str
    state: str
    zipCode: str
    deliveryInstructions: str | None = None


class CardDetailsResponse(BaseModel):
    last4: str
    brand: str | None = None
    expiryMonth: str | None = None
    expiryYear: str | None = None


class OrderSummaryResponse(BaseModel):
    subtotal: MoneyResponse
    deliveryFee: MoneyResponse
    tax: MoneyResponse
    total: MoneyResponse


class StatusHistoryEntryResponse(BaseModel):
    status: str
    timestamp: datetime
    actorId: str
    reason: str | None = None


class OrderResponse(BaseModel):
    orderId: str
    orderNumber: str
    customerId: str
    restaurantId: str
    status: str
    statusDisplay: str
    items: list[LineItemResponse] = Field(default_factory=list)
    totalItems: int
    deliveryDetails: DeliveryDetailsResponse
    paymentMethod: str
    cardDetails: CardDetailsResponse | None = None
    orderSummary: OrderSummaryResponse
    statusHistory: list[StatusHistoryEntryResponse] = Field(default_factory=list)
    estimatedDeliveryMinutes: int
    estimatedDeliveryDisplay: str
    createdAt: datetime
    confirmedAt: datetime | None = None
    preparingAt: datetime | None = None
    readyAt: datetime | None = None
    outForDeliveryAt: datetime | None = None
    deliveredAt: datetime | None = None
    cancelledAt: datetime | None = None
    cancellationReason: str | None = None


class OrderSubmittedResponse(BaseModel):
    orderId: str
    orderNumber: str
    status: str
    total: MoneyResponse
    estimatedDeliveryMinutes: int


class OrderListResponse(BaseModel):
    orders: list[OrderResponse] = Field(default_factory=list)
    page: int
    limit: int
    total: int
    pages: int


class CartResponse(BaseModel):
    restaurantId: str | None = None
    items: list[LineItemResponse] = Field(default_factory=list)
    cartTotal: MoneyResponse
    deliveryFeeQuote: MoneyResponse | None = None
    itemCount: int
    uniqueItemCount: int


class CartQuoteResponse(BaseModel):
    restaurantId: str | None = None
    cartTotal: MoneyResponse
    itemCount: int
