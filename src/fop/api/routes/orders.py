from __future__ import annotations

import os

from fastapi import APIRouter, Depends, Query, status

from fop.api.dependencies import current_actor
from fop.application.dto.requests import (
    AdvanceStatusRequest,
    CancelOrderRequest,
    SubmitOrderRequest,
)
from fop.application.dto.responses import OrderListResponse, OrderResponse, OrderSubmittedResponse
from fop.application.mappers.cart_mapper import cart_from_request
from fop.application.mappers.checkout_mapper import to_card_details, to_delivery_details
from fop.application.use_cases.advance_status import AdvanceOrderStatus, CancelOrder
from fop.application.use_cases.get_order import GetOrder
from fop.application.use_cases.list_orders import ListCustomerOrders
from fop.application.use_cases.submit_order import SubmitOrder
from fop.domain.auth.guard import Actor
from fop.domain.common.ids import OrderId
from fop.domain.pricing.calculator import DEFAULT_TAX_RATE_BPS
from fop.infrastructure.db.repositories.catalog_repo import SqlAlchemyCatalogLookup
from fop.infrastructure.db.repositories.order_repo import SqlAlchemyOrderRepository

router = APIRouter()


def tax_rate_bps() -> int:
    return int(os.getenv("TAX_RATE_BPS", str(DEFAULT_TAX_RATE_BPS)))


def _submit_order_use_case() -> SubmitOrder:
    return SubmitOrder(
        catalog=SqlAlchemyCatalogLookup(),
        order_repository=SqlAlchemyOrderRepository(),
        tax_rate_bps=tax_rate_bps(),
    )


def _get_order_use_case() -> GetOrder:
    return GetOrder(
        order_repository=SqlAlchemyOrderRepository(),
        catalog=SqlAlchemyCatalogLookup(),
    )


def _list_customer_orders_use_case() -> ListCustomerOrders:
    return ListCustomerOrders(order_repository=SqlAlchemyOrderRepository())


def _advance_status_use_case() -> AdvanceOrderStatus:
    return AdvanceOrderStatus(
        order_repository=SqlAlchemyOrderRepository(),
        catalog=SqlAlchemyCatalogLookup(),
    )


def _cancel_order_use_case() -> CancelOrder:
    return CancelOrder(advance_order_status=_advance_status_use_case())


@router.post(
    "/v1/orders",
    response_model=OrderSubmittedResponse,
    status_code=status.HTTP_201_CREATED,
)
def submit_order(
    request_dto: SubmitOrderRequest,
    actor: Actor = Depends(current_actor),
) -> OrderSubmittedResponse:
    return _submit_order_use_case().execute(
        cart=cart_from_request(request_dto.restaurant_id, request_dto.items),
        customer_id=actor.actor_id,
        delivery_details=to_delivery_details(request_dto.delivery_details),
        payment_method=request_dto.payment_method,
        card_details=to_card_details(request_dto.payment_method, request_dto.card_details),
        client_summary=request_dto.order_summary,
    )


@router.get("/v1/orders", response_model=OrderListResponse)
def list_my_orders(
    page: int = Query(default=1),
    limit: int = Query(default=10),
    actor: Actor = Depends(current_actor),
) -> OrderListResponse:
    return _list_customer_orders_use_case().execute(actor=actor, page=page, limit=limit)


@router.get("/v1/orders/{order_id}", response_model=OrderResponse)
def get_order(order_id: str, actor: Actor = Depends(current_actor)) -> OrderResponse:
    return _get_order_use_case().execute(order_id=OrderId(order_id), actor=actor)


@router.patch("/v1/orders/{order_id}/status", response_model=OrderResponse)
def advance_order_status(
    order_id: str,
    request_dto: AdvanceStatusRequest,
    actor: Actor = Depends(current_actor),
) -> OrderResponse:
    return _advance_status_use_case().execute(
        order_id=OrderId(order_id),
        actor=actor,
        requested=request_dto.status,
        reason=request_dto.reason,
    )


@router.patch("/v1/orders/{order_id}/cancel", response_model=OrderResponse)
def cancel_order(
    order_id: str,
    request_dto: CancelOrderRequest,
    actor: Actor = Depends(current_actor),
) -> OrderResponse:
    return _cancel_order_use_case().execute(
        order_id=OrderId(order_id),
        actor=actor,
        reason=request_dto.reason,
    )
