from __future__ import annotations

from datetime import datetime, timezone

from prometheus_client import Counter, Histogram

from fop.domain.order.entities import Order, OrderStatus

ORDERS_SUBMITTED_TOTAL = Counter(
    "fop_orders_submitted_total",
    "Total number of orders successfully submitted.",
    ["restaurant_id"],
)

ORDER_TRANSITION_TOTAL = Counter(
    "fop_order_transition_total",
    "Total number of order lifecycle transitions.",
    ["from", "to"],
)

ORDER_TRANSITION_REJECTED_TOTAL = Counter(
    "fop_order_transition_rejected_total",
    "Total number of rejected order status change requests.",
    ["reason"],
)

PRICING_FAILURES_TOTAL = Counter(
    "fop_pricing_failures_total",
    "Total number of submissions rejected while pricing.",
    ["reason"],
)

ORDER_COUNTER_FAILURES_TOTAL = Counter(
    "fop_order_counter_failures_total",
    "Total number of restaurant order counter increments that failed.",
)

ORDER_TIME_TO_CONFIRM_SECONDS = Histogram(
    "fop_order_time_to_confirm_seconds",
    "Time between order placement and confirmation.",
)

ORDER_TIME_TO_DELIVER_SECONDS = Histogram(
    "fop_order_time_to_deliver_seconds",
    "Time between order placement and delivery.",
)


def record_order_submitted(order: Order) -> None:
    ORDERS_SUBMITTED_TOTAL.labels(restaurant_id=str(order.restaurant_id)).inc()


def record_transition(from_status: OrderStatus, to_status: OrderStatus) -> None:
    ORDER_TRANSITION_TOTAL.labels(**{"from": from_status.value, "to": to_status.value}).inc()


def record_transition_rejected(reason: str) -> None:
    ORDER_TRANSITION_REJECTED_TOTAL.labels(reason=reason).inc()


def record_pricing_failure(reason: str) -> None:
    PRICING_FAILURES_TOTAL.labels(reason=reason).inc()


def record_order_counter_failure() -> None:
    ORDER_COUNTER_FAILURES_TOTAL.inc()


def record_time_in_flight(order: Order, now: datetime | None = None) -> None:
    current = now or datetime.now(timezone.utc)
    elapsed = max((current - order.created_at).total_seconds(), 0.0)
    if order.status == OrderStatus.CONFIRMED:
        ORDER_TIME_TO_CONFIRM_SECONDS.observe(elapsed)
    elif order.status == OrderStatus.DELIVERED:
        ORDER_TIME_TO_DELIVER_SECONDS.observe(elapsed)
