from __future__ import annotations

from fop.application.dto.responses import OrderListResponse
from fop.application.errors import ValidationError
from fop.application.mappers.order_mapper import to_order_list_response
from fop.application.ports.repositories import CatalogLookup, OrderRepository
from fop.application.use_cases.access import OrderAccess
from fop.domain.auth.guard import Actor
from fop.domain.common.ids import RestaurantId
from fop.domain.order.entities import OrderStatus

MAX_PAGE_SIZE = 100

_STATUS_MAP: dict[str, OrderStatus | None] = {"all": None} | {
    status.value: status for status in OrderStatus
}


def _validate_pagination(page: int, limit: int) -> None:
    if page < 1:
        raise ValidationError("page must be >= 1", code="INVALID_PAGINATION")
    if limit < 1 or limit > MAX_PAGE_SIZE:
        raise ValidationError(
            f"limit must be between 1 and {MAX_PAGE_SIZE}",
            code="INVALID_PAGINATION",
        )


class ListCustomerOrders:
    def __init__(self, order_repository: OrderRepository) -> None:
        self._order_repository = order_repository

    def execute(self, actor: Actor, page: int = 1, limit: int = 10) -> OrderListResponse:
        _validate_pagination(page, limit)
        orders, total = self._order_repository.list_for_customer(
            customer_id=actor.actor_id,
            page=page,
            limit=limit,
        )
        return to_order_list_response(orders, page=page, limit=limit, total=total)


class ListRestaurantOrders:
    def __init__(self, order_repository: OrderRepository, catalog: CatalogLookup) -> None:
        self._order_repository = order_repository
        self._access = OrderAccess(catalog)

    def execute(
        self,
        restaurant_id: RestaurantId,
        actor: Actor,
        status: str | None = None,
        page: int = 1,
        limit: int = 20,
    ) -> OrderListResponse:
        normalized_status = (status or "all").lower()
        if normalized_status not in _STATUS_MAP:
            raise ValidationError(f"invalid status filter: {status}", code="INVALID_STATUS_FILTER")
        _validate_pagination(page, limit)

        self._access.ensure_can_view_restaurant(restaurant_id, actor)

        orders, total = self._order_repository.list_for_restaurant(
            restaurant_id=restaurant_id,
            status=_STATUS_MAP[normalized_status],
            page=page,
            limit=limit,
        )
        return to_order_list_response(orders, page=page, limit=limit, total=total)
