from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from fop.api.dependencies import current_actor
from fop.application.dto.responses import OrderListResponse
from fop.application.use_cases.list_orders import ListRestaurantOrders
from fop.domain.auth.guard import Actor
from fop.domain.common.ids import RestaurantId
from fop.infrastructure.db.repositories.catalog_repo import SqlAlchemyCatalogLookup
from fop.infrastructure.db.repositories.order_repo import SqlAlchemyOrderRepository

router = APIRouter()


def _list_restaurant_orders_use_case() -> ListRestaurantOrders:
    return ListRestaurantOrders(
        order_repository=SqlAlchemyOrderRepository(),
        catalog=SqlAlchemyCatalogLookup(),
    )


@router.get("/v1/restaurants/{restaurant_id}/orders", response_model=OrderListResponse)
def list_restaurant_orders(
    restaurant_id: str,
    status: str = Query(default="all"),
    page: int = Query(default=1),
    limit: int = Query(default=20),
    actor: Actor = Depends(current_actor),
) -> OrderListResponse:
    return _list_restaurant_orders_use_case().execute(
        restaurant_id=RestaurantId(restaurant_id),
        actor=actor,
        status=status,
        page=page,
        limit=limit,
    )
