from __future__ import annotations

from fop.application.dto.responses import OrderResponse
from fop.application.errors import OrderNotFoundError
from fop.application.mappers.order_mapper import to_order_response
from fop.application.ports.repositories import CatalogLookup, OrderRepository
from fop.application.use_cases.access import OrderAccess
from fop.domain.auth.guard import Actor
from fop.domain.common.ids import OrderId


class GetOrder:
    def __init__(self, order_repository: OrderRepository, catalog: CatalogLookup) -> None:
        self._order_repository = order_repository
        self._access = OrderAccess(catalog)

    def execute(self, order_id: OrderId, actor: Actor) -> OrderResponse:
        order = self._order_repository.get(order_id)
        if order is None:
            raise OrderNotFoundError(f"order {order_id} not found")
        self._access.ensure_can_read(order, actor)
        return to_order_response(order)
