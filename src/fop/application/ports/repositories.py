from __future__ import annotations

from typing import Protocol

from fop.application.errors import InternalError
from fop.domain.catalog.entities import MenuItem, Restaurant
from fop.domain.common.ids import MenuItemId, OrderId, RestaurantId, UserId
from fop.domain.order.entities import Order, OrderStatus


class CatalogLookup(Protocol):
    def get_item(self, restaurant_id: RestaurantId, item_id: MenuItemId) -> MenuItem | None: ...

    def get_restaurant(self, restaurant_id: RestaurantId) -> Restaurant | None: ...

    def increment_order_count(self, restaurant_id: RestaurantId) -> None: ...


class OrderRepository(Protocol):
    def add(self, order: Order) -> None: ...

    def get(self, order_id: OrderId) -> Order | None: ...

    def apply_transition(self, order: Order, expected_version: int) -> Order: ...

    def list_for_customer(
        self,
        customer_id: UserId,
        page: int,
        limit: int,
    ) -> tuple[list[Order], int]: ...

    def list_for_restaurant(
        self,
        restaurant_id: RestaurantId,
        status: OrderStatus | None,
        page: int,
        limit: int,
    ) -> tuple[list[Order], int]: ...


class OptimisticConcurrencyError(Exception):
    pass


class PersistenceError(InternalError):
    pass
