from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from fop.domain.common.ids import UserId
from fop.domain.order.entities import Order
from fop.domain.order.state_machine import CUSTOMER_CANCELLABLE, OrderStatus


class ActorRole(str, Enum):
    CUSTOMER = "customer"
    RESTAURANT = "restaurant"
    ADMIN = "admin"


@dataclass(frozen=True)
class Actor:
    actor_id: UserId
    role: ActorRole

    @property
    def is_admin(self) -> bool:
        return self.role == ActorRole.ADMIN


def _owns_restaurant(actor: Actor, restaurant_owner_id: UserId | None) -> bool:
    # Ownership comes from the restaurant record; the role string alone is not enough.
    return (
        actor.role == ActorRole.RESTAURANT
        and restaurant_owner_id is not None
        and str(restaurant_owner_id) == str(actor.actor_id)
    )


def _placed_order(actor: Actor, order: Order) -> bool:
    return str(order.customer_id) == str(actor.actor_id)


def can_read(order: Order, actor: Actor, restaurant_owner_id: UserId | None) -> bool:
    if actor.is_admin:
        return True
    if _placed_order(actor, order):
        return True
    return _owns_restaurant(actor, restaurant_owner_id)


def can_advance(
    order: Order,
    actor: Actor,
    requested: OrderStatus,
    restaurant_owner_id: UserId | None,
) -> bool:
    """Whether ``actor`` may ask for ``requested`` on ``order``.

    Transition legality is checked separately by the state machine; this
    only answers who may ask. A customer that already cancelled may repeat
    the request so retries stay harmless.
    """
    if actor.is_admin:
        return True
    if actor.role == ActorRole.RESTAURANT:
        return _owns_restaurant(actor, restaurant_owner_id)
    if actor.role == ActorRole.CUSTOMER:
        return (
            _placed_order(actor, order)
            and requested == OrderStatus.CANCELLED
            and (order.status in CUSTOMER_CANCELLABLE or order.status == OrderStatus.CANCELLED)
        )
    return False


def can_view_restaurant_orders(actor: Actor, restaurant_owner_id: UserId | None) -> bool:
    return actor.is_admin or _owns_restaurant(actor, restaurant_owner_id)
