from __future__ import annotations

import hashlib
import json
from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum

from fop.domain.common.ids import MenuItemId, OrderId, RestaurantId, UserId
from fop.domain.common.money import Money, total_of
from fop.domain.order.state_machine import STATUS_LABELS, OrderStatus, ensure_transition


class PaymentMethod(str, Enum):
    CASH = "cash"
    CARD = "card"


@dataclass(frozen=True)
class SelectedAddon:
    addon_id: str
    name: str
    price: Money


@dataclass(frozen=True)
class Customizations:
    selected_options: dict[str, str] = field(default_factory=dict)
    selected_addons: list[SelectedAddon] = field(default_factory=list)

    def addons_total(self, currency: str) -> Money:
        return total_of([addon.price for addon in self.selected_addons], currency=currency)


def line_identity(
    item_id: MenuItemId,
    customizations: Customizations,
    special_instructions: str,
) -> str:
    """Stable merge key for a cart/order line.

    Two additions with the same item, option choices, addon set and
    instructions share a key; any difference yields a distinct key. Addons
    are keyed by their sorted ids so selection order does not matter.
    """
    canonical = {
        "itemId": str(item_id),
        "options": dict(sorted(customizations.selected_options.items())),
        "addons": sorted(
            [addon.addon_id, addon.name, addon.price.amount_cents]
            for addon in customizations.selected_addons
        ),
        "instructions": special_instructions.strip(),
    }
    encoded = json.dumps(canonical, sort_keys=True, separators=(",", ":"), ensure_ascii=False)
    return hashlib.sha256(encoded.encode("utf-8")).hexdigest()[:16]


@dataclass(frozen=True)
class LineItem:
    item_id: MenuItemId
    name: str
    unit_price: Money
    quantity: int
    customizations: Customizations = field(default_factory=Customizations)
    special_instructions: str = ""

    def __post_init__(self) -> None:
        if self.quantity < 1:
            raise ValueError("quantity must be >= 1")
        for addon in self.customizations.selected_addons:
            if addon.price.currency != self.unit_price.currency:
                raise ValueError("addon currency must match unit_price currency")

    @property
    def identity(self) -> str:
        return line_identity(self.item_id, self.customizations, self.special_instructions)

    @property
    def unit_total(self) -> Money:
        return self.unit_price.add(self.customizations.addons_total(self.unit_price.currency))

    @property
    def line_total(self) -> Money:
        return self.unit_total.times(self.quantity)

    def with_quantity(self, quantity: int) -> LineItem:
        return replace(self, quantity=quantity)


@dataclass(frozen=True)
class DeliveryDetails:
    first_name: str
    last_name: str
    phone: str
    email: str
    address: str
    city: str
    state: str
    zip_code: str
    instructions: str | None = None

    def __post_init__(self) -> None:
        required = {
            "first_name": self.first_name,
            "last_name": self.last_name,
            "phone": self.phone,
            "email": self.email,
            "address": self.address,
            "city": self.city,
            "state": self.state,
            "zip_code": self.zip_code,
        }
        missing = [name for name, value in required.items() if not value or not value.strip()]
        if missing:
            raise ValueError(f"missing delivery fields: {', '.join(missing)}")
        if "@" not in self.email:
            raise ValueError("email must be a valid address")


@dataclass(frozen=True)
class CardDetails:
    last4: str
    brand: str | None = None
    expiry_month: str | None = None
    expiry_year: str | None = None

    def __post_init__(self) -> None:
        # Only the trailing digits are ever stored, never a full card number.
        if len(self.last4) != 4 or not self.last4.isdigit():
            raise ValueError("last4 must be exactly 4 digits")


@dataclass(frozen=True)
class OrderSummary:
    subtotal: Money
    delivery_fee: Money
    tax: Money
    total: Money

    def __post_init__(self) -> None:
        currencies = {
            self.subtotal.currency,
            self.delivery_fee.currency,
            self.tax.currency,
            self.total.currency,
        }
        if len(currencies) != 1:
            raise ValueError("order summary amounts must share one currency")
        expected = (
            self.subtotal.amount_cents + self.delivery_fee.amount_cents + self.tax.amount_cents
        )
        if self.total.amount_cents != expected:
            raise ValueError("total must equal subtotal + delivery_fee + tax")


@dataclass(frozen=True)
class StatusHistoryEntry:
    status: OrderStatus
    occurred_at: datetime
    actor_id: UserId
    reason: str | None = None


@dataclass(frozen=True)
class Order:
    order_id: OrderId
    order_number: str
    customer_id: UserId
    restaurant_id: RestaurantId
    items: list[LineItem]
    delivery_details: DeliveryDetails
    payment_method: PaymentMethod
    card_details: CardDetails | None
    summary: OrderSummary
    status: OrderStatus
    status_history: list[StatusHistoryEntry]
    estimated_delivery_minutes: int
    created_at: datetime
    version: int = 1
    cancelled_at: datetime | None = None
    cancellation_reason: str | None = None

    def __post_init__(self) -> None:
        if not self.items:
            raise ValueError("order must contain at least one line item")
        if not self.status_history:
            raise ValueError("status history must contain at least one entry")
        if self.status_history[-1].status != self.status:
            raise ValueError("status must equal the last status history entry")
        currency = self.summary.subtotal.currency
        expected_subtotal = total_of([item.line_total for item in self.items], currency=currency)
        if expected_subtotal != self.summary.subtotal:
            raise ValueError("subtotal must equal the sum of line totals")
        if self.payment_method == PaymentMethod.CARD and self.card_details is None:
            raise ValueError("card payments require card details")
        if self.payment_method == PaymentMethod.CASH and self.card_details is not None:
            raise ValueError("cash payments must not carry card details")
        if (self.status == OrderStatus.CANCELLED) != (self.cancelled_at is not None):
            raise ValueError("cancelled_at must be set exactly when the order is cancelled")
        if self.estimated_delivery_minutes < 0:
            raise ValueError("estimated_delivery_minutes must be >= 0")

    def advance(
        self,
        requested: OrderStatus,
        actor_id: UserId,
        now: datetime,
        reason: str | None = None,
    ) -> Order:
        ensure_transition(self.status, requested)
        reason = reason.strip() if reason and reason.strip() else None
        entry = StatusHistoryEntry(
            status=requested,
            occurred_at=now,
            actor_id=actor_id,
            reason=reason,
        )
        changes: dict[str, object] = {
            "status": requested,
            "status_history": [*self.status_history, entry],
        }
        if requested == OrderStatus.CANCELLED:
            changes["cancelled_at"] = now
            changes["cancellation_reason"] = reason
        return replace(self, **changes)

    def reached_at(self, status: OrderStatus) -> datetime | None:
        for entry in reversed(self.status_history):
            if entry.status == status:
                return entry.occurred_at
        return None

    @property
    def total_items(self) -> int:
        return sum(item.quantity for item in self.items)

    @property
    def status_label(self) -> str:
        return STATUS_LABELS[self.status]

    @property
    def estimated_delivery_display(self) -> str:
        hours, minutes = divmod(self.estimated_delivery_minutes, 60)
        if hours > 0:
            return f"{hours}h {minutes}m"
        return f"{minutes}m"


def format_order_number(now: datetime, sequence: int) -> str:
    return f"ORD{now:%y%m%d}{sequence % 1_000_000:06d}"


def create_pending_order(
    order_id: OrderId,
    order_number: str,
    customer_id: UserId,
    restaurant_id: RestaurantId,
    items: list[LineItem],
    delivery_details: DeliveryDetails,
    payment_method: PaymentMethod,
    card_details: CardDetails | None,
    summary: OrderSummary,
    estimated_delivery_minutes: int,
    now: datetime,
) -> Order:
    if not items:
        raise ValueError("order must contain at least one line item")

    return Order(
        order_id=order_id,
        order_number=order_number,
        customer_id=customer_id,
        restaurant_id=restaurant_id,
        items=list(items),
        delivery_details=delivery_details,
        payment_method=payment_method,
        card_details=card_details if payment_method == PaymentMethod.CARD else None,
        summary=summary,
        status=OrderStatus.PENDING,
        status_history=[
            StatusHistoryEntry(status=OrderStatus.PENDING, occurred_at=now, actor_id=customer_id)
        ],
        estimated_delivery_minutes=estimated_delivery_minutes,
        created_at=now,
    )
