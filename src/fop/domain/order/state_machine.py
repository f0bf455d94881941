from __future__ import annotations

from enum import Enum


class OrderStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    PREPARING = "preparing"
    READY = "ready"
    OUT_FOR_DELIVERY = "out_for_delivery"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


ALLOWED_TRANSITIONS: dict[OrderStatus, frozenset[OrderStatus]] = {
    OrderStatus.PENDING: frozenset({OrderStatus.CONFIRMED, OrderStatus.CANCELLED}),
    OrderStatus.CONFIRMED: frozenset({OrderStatus.PREPARING, OrderStatus.CANCELLED}),
    OrderStatus.PREPARING: frozenset({OrderStatus.READY, OrderStatus.CANCELLED}),
    OrderStatus.READY: frozenset({OrderStatus.OUT_FOR_DELIVERY}),
    OrderStatus.OUT_FOR_DELIVERY: frozenset({OrderStatus.DELIVERED}),
    OrderStatus.DELIVERED: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
}

# Customers may only withdraw an order before it leaves the kitchen.
CUSTOMER_CANCELLABLE: frozenset[OrderStatus] = frozenset(
    {OrderStatus.PENDING, OrderStatus.CONFIRMED, OrderStatus.PREPARING}
)

STATUS_LABELS: dict[OrderStatus, str] = {
    OrderStatus.PENDING: "Order Placed",
    OrderStatus.CONFIRMED: "Order Confirmed",
    OrderStatus.PREPARING: "Preparing Your Food",
    OrderStatus.READY: "Ready for Pickup",
    OrderStatus.OUT_FOR_DELIVERY: "Out for Delivery",
    OrderStatus.DELIVERED: "Delivered",
    OrderStatus.CANCELLED: "Cancelled",
}


class InvalidTransitionError(Exception):
    def __init__(self, current: OrderStatus, requested: OrderStatus) -> None:
        super().__init__(
            f"cannot transition order from status={current.value} to status={requested.value}"
        )
        self.current = current
        self.requested = requested


def allowed_next(current: OrderStatus) -> frozenset[OrderStatus]:
    return ALLOWED_TRANSITIONS[current]


def is_terminal(status: OrderStatus) -> bool:
    return not ALLOWED_TRANSITIONS[status]


def ensure_transition(current: OrderStatus, requested: OrderStatus) -> None:
    if requested not in ALLOWED_TRANSITIONS[current]:
        raise InvalidTransitionError(current=current, requested=requested)
