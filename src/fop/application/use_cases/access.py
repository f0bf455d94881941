from __future__ import annotations

from fop.application.errors import ForbiddenError, RestaurantNotFoundError
from fop.application.ports.repositories import CatalogLookup
from fop.domain.auth.guard import Actor, can_advance, can_read, can_view_restaurant_orders
from fop.domain.common.ids import RestaurantId, UserId
from fop.domain.order.entities import Order, OrderStatus


class OrderAccess:
    """Resolves restaurant ownership and applies the authorization rules."""

    def __init__(self, catalog: CatalogLookup) -> None:
        self._catalog = catalog

    def restaurant_owner(self, restaurant_id: RestaurantId) -> UserId | None:
        restaurant = self._catalog.get_restaurant(restaurant_id)
        if restaurant is None:
            return None
        return restaurant.owner_id

    def ensure_can_read(self, order: Order, actor: Actor) -> None:
        owner_id = None if actor.is_admin else self.restaurant_owner(order.restaurant_id)
        if not can_read(order, actor, owner_id):
            raise ForbiddenError(f"actor {actor.actor_id} may not view order {order.order_id}")

    def ensure_can_advance(
        self,
        order: Order,
        actor: Actor,
        requested: OrderStatus,
        restaurant_owner_id: UserId | None,
    ) -> None:
        if not can_advance(order, actor, requested, restaurant_owner_id):
            raise ForbiddenError(
                f"actor {actor.actor_id} may not move order {order.order_id} "
                f"to status={requested.value}",
                details={"status": order.status.value, "requestedStatus": requested.value},
            )

    def ensure_can_view_restaurant(self, restaurant_id: RestaurantId, actor: Actor) -> None:
        restaurant = self._catalog.get_restaurant(restaurant_id)
        if restaurant is None:
            raise RestaurantNotFoundError(f"restaurant {restaurant_id} not found")
        if not can_view_restaurant_orders(actor, restaurant.owner_id):
            raise ForbiddenError(
                f"actor {actor.actor_id} may not view orders of restaurant {restaurant_id}"
            )
