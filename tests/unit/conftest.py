from __future__ import annotations

import sys
from dataclasses import replace
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Callable

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[2] / "src"))

from fop.application.ports.repositories import OptimisticConcurrencyError
from fop.domain.catalog.entities import AddonOption, MenuItem, Restaurant
from fop.domain.common.ids import MenuItemId, OrderId, RestaurantId, UserId
from fop.domain.common.money import Money
from fop.domain.order.entities import (
    DeliveryDetails,
    LineItem,
    Order,
    OrderStatus,
    PaymentMethod,
    create_pending_order,
)
from fop.domain.pricing.calculator import RestaurantPolicy, price

OWNER_ID = UserId("usr_owner_001")
OTHER_OWNER_ID = UserId("usr_owner_002")
CUSTOMER_ID = UserId("usr_customer_001")


class FakeCatalog:
    def __init__(
        self,
        restaurants: list[Restaurant] | None = None,
        items: list[MenuItem] | None = None,
    ) -> None:
        self.restaurants = {str(r.restaurant_id): r for r in restaurants or []}
        self.items = {(str(i.restaurant_id), str(i.item_id)): i for i in items or []}
        self.order_counts: dict[str, int] = {}
        self.fail_increment = False

    def get_item(self, restaurant_id: RestaurantId, item_id: MenuItemId) -> MenuItem | None:
        return self.items.get((str(restaurant_id), str(item_id)))

    def get_restaurant(self, restaurant_id: RestaurantId) -> Restaurant | None:
        return self.restaurants.get(str(restaurant_id))

    def increment_order_count(self, restaurant_id: RestaurantId) -> None:
        if self.fail_increment:
            raise RuntimeError("counter store unavailable")
        key = str(restaurant_id)
        self.order_counts[key] = self.order_counts.get(key, 0) + 1


class FakeOrderRepository:
    """In-memory store with the same version/status guard as the SQL adapter."""

    def __init__(self) -> None:
        self.orders: dict[str, Order] = {}
        self.before_write: list[Callable[[FakeOrderRepository], None]] = []
        self.transition_writes = 0

    def add(self, order: Order) -> None:
        self.orders[str(order.order_id)] = order

    def get(self, order_id: OrderId) -> Order | None:
        return self.orders.get(str(order_id))

    def apply_transition(self, order: Order, expected_version: int) -> Order:
        if self.before_write:
            self.before_write.pop(0)(self)
        current = self.orders.get(str(order.order_id))
        previous_status = order.status_history[-2].status
        if (
            current is None
            or current.version != expected_version
            or current.status != previous_status
        ):
            raise OptimisticConcurrencyError(f"order {order.order_id} version conflict")
        updated = replace(order, version=current.version + 1)
        self.orders[str(order.order_id)] = updated
        self.transition_writes += 1
        return updated

    def list_for_customer(
        self,
        customer_id: UserId,
        page: int,
        limit: int,
    ) -> tuple[list[Order], int]:
        return self._page(
            [o for o in self.orders.values() if str(o.customer_id) == str(customer_id)],
            page,
            limit,
        )

    def list_for_restaurant(
        self,
        restaurant_id: RestaurantId,
        status: OrderStatus | None,
        page: int,
        limit: int,
    ) -> tuple[list[Order], int]:
        return self._page(
            [
                o
                for o in self.orders.values()
                if str(o.restaurant_id) == str(restaurant_id)
                and (status is None or o.status == status)
            ],
            page,
            limit,
        )

    @staticmethod
    def _page(orders: list[Order], page: int, limit: int) -> tuple[list[Order], int]:
        ordered = sorted(orders, key=lambda o: (o.created_at, str(o.order_id)), reverse=True)
        start = (page - 1) * limit
        return ordered[start : start + limit], len(ordered)


class FakeCacheStore:
    def __init__(self) -> None:
        self.values: dict[str, str] = {}
        self.ttls: dict[str, int] = {}

    def get(self, key: str) -> str | None:
        return self.values.get(key)

    def set(self, key: str, value: str, ttl_seconds: int) -> None:
        self.values[key] = value
        self.ttls[key] = ttl_seconds

    def delete(self, key: str) -> None:
        self.values.pop(key, None)
        self.ttls.pop(key, None)


def usd(cents: int) -> Money:
    return Money(amount_cents=cents, currency="USD")


def demo_restaurants() -> list[Restaurant]:
    return [
        Restaurant(
            restaurant_id=RestaurantId("rst_001"),
            name="Downtown Test Kitchen",
            owner_id=OWNER_ID,
            is_open=True,
            currency="USD",
        ),
        Restaurant(
            restaurant_id=RestaurantId("rst_002"),
            name="Night Owl Noodles",
            owner_id=OTHER_OWNER_ID,
            is_open=True,
            currency="USD",
            delivery_fee=usd(299),
            estimated_delivery_minutes=65,
        ),
        Restaurant(
            restaurant_id=RestaurantId("rst_closed"),
            name="Closed Diner",
            owner_id=OTHER_OWNER_ID,
            is_open=False,
            currency="USD",
        ),
    ]


def demo_items() -> list[MenuItem]:
    return [
        MenuItem(
            item_id=MenuItemId("itm_burger"),
            restaurant_id=RestaurantId("rst_001"),
            name="Burger",
            price=usd(1000),
            is_available=True,
            option_groups={"size": ["regular", "large"]},
            addons=[
                AddonOption(addon_id="add_cheese", name="Cheese", price=usd(150)),
                AddonOption(addon_id="add_bacon", name="Bacon", price=usd(200)),
            ],
        ),
        MenuItem(
            item_id=MenuItemId("itm_fries"),
            restaurant_id=RestaurantId("rst_001"),
            name="Fries",
            price=usd(450),
            is_available=True,
        ),
        MenuItem(
            item_id=MenuItemId("itm_soldout"),
            restaurant_id=RestaurantId("rst_001"),
            name="Seasonal Pie",
            price=usd(700),
            is_available=False,
        ),
        MenuItem(
            item_id=MenuItemId("itm_ramen"),
            restaurant_id=RestaurantId("rst_002"),
            name="Spicy Ramen",
            price=usd(1300),
            is_available=True,
        ),
        MenuItem(
            item_id=MenuItemId("itm_closed_special"),
            restaurant_id=RestaurantId("rst_closed"),
            name="Closed Special",
            price=usd(900),
            is_available=True,
        ),
    ]


def delivery_details() -> DeliveryDetails:
    return DeliveryDetails(
        first_name="Ada",
        last_name="Lovelace",
        phone="555-0100",
        email="ada@example.com",
        address="1 Main St",
        city="Springfield",
        state="IL",
        zip_code="62701",
    )


def make_order(
    order_id: str = "ord_001",
    status: OrderStatus = OrderStatus.PENDING,
    customer_id: UserId = CUSTOMER_ID,
    restaurant_id: str = "rst_001",
    created_at: datetime | None = None,
) -> Order:
    """A persisted order walked along the happy path up to ``status``."""
    now = created_at or datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)
    items = [
        LineItem(
            item_id=MenuItemId("itm_burger"),
            name="Burger",
            unit_price=usd(1000),
            quantity=2,
        )
    ]
    order = create_pending_order(
        order_id=OrderId(order_id),
        order_number="ORD261019000001",
        customer_id=customer_id,
        restaurant_id=RestaurantId(restaurant_id),
        items=items,
        delivery_details=delivery_details(),
        payment_method=PaymentMethod.CASH,
        card_details=None,
        summary=price(
            items,
            RestaurantPolicy(delivery_fee=usd(500), estimated_delivery_minutes=45),
        ),
        estimated_delivery_minutes=45,
        now=now,
    )
    path = [
        OrderStatus.CONFIRMED,
        OrderStatus.PREPARING,
        OrderStatus.READY,
        OrderStatus.OUT_FOR_DELIVERY,
        OrderStatus.DELIVERED,
    ]
    if status == OrderStatus.CANCELLED:
        return replace(
            order.advance(OrderStatus.CANCELLED, OWNER_ID, now + timedelta(minutes=1), "closing"),
            version=2,
        )
    for step, next_status in enumerate(path, start=1):
        if order.status == status:
            break
        order = replace(
            order.advance(next_status, OWNER_ID, now + timedelta(minutes=step)),
            version=order.version + 1,
        )
    return order


@pytest.fixture
def catalog() -> FakeCatalog:
    return FakeCatalog(restaurants=demo_restaurants(), items=demo_items())


@pytest.fixture
def order_repository() -> FakeOrderRepository:
    return FakeOrderRepository()


@pytest.fixture
def cache_store() -> FakeCacheStore:
    return FakeCacheStore()


@pytest.fixture
def order_factory() -> Callable[..., Order]:
    return make_order


@pytest.fixture
def delivery() -> DeliveryDetails:
    return delivery_details()
