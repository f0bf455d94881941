from __future__ import annotations

import os

from fastapi import APIRouter, Depends, status

from fop.api.dependencies import current_actor, current_session
from fop.api.routes.orders import tax_rate_bps
from fop.application.dto.requests import AddCartItemRequest, CheckoutRequest, UpdateCartLineRequest
from fop.application.dto.responses import CartQuoteResponse, CartResponse, OrderSubmittedResponse
from fop.application.use_cases.cart import DEFAULT_CART_TTL_SECONDS, CartService, CheckoutCart
from fop.application.use_cases.submit_order import SubmitOrder
from fop.domain.auth.guard import Actor
from fop.domain.common.ids import SessionId
from fop.infrastructure.cache.cache_store import RedisCacheStore
from fop.infrastructure.db.repositories.catalog_repo import SqlAlchemyCatalogLookup
from fop.infrastructure.db.repositories.order_repo import SqlAlchemyOrderRepository

router = APIRouter()


def _cart_service() -> CartService:
    return CartService(
        cache=RedisCacheStore(),
        catalog=SqlAlchemyCatalogLookup(),
        ttl_seconds=int(os.getenv("CART_TTL_SECONDS", str(DEFAULT_CART_TTL_SECONDS))),
    )


def _checkout_cart_use_case() -> CheckoutCart:
    return CheckoutCart(
        cart_service=_cart_service(),
        submit_order=SubmitOrder(
            catalog=SqlAlchemyCatalogLookup(),
            order_repository=SqlAlchemyOrderRepository(),
            tax_rate_bps=tax_rate_bps(),
        ),
    )


@router.get("/v1/cart", response_model=CartResponse)
def get_cart(session_id: SessionId = Depends(current_session)) -> CartResponse:
    return _cart_service().get(session_id)


@router.delete("/v1/cart", response_model=CartResponse)
def clear_cart(session_id: SessionId = Depends(current_session)) -> CartResponse:
    return _cart_service().clear(session_id)


@router.post("/v1/cart/items", response_model=CartResponse)
def add_cart_item(
    request_dto: AddCartItemRequest,
    session_id: SessionId = Depends(current_session),
) -> CartResponse:
    return _cart_service().add_item(session_id, request_dto)


@router.patch("/v1/cart/items/{line_key}", response_model=CartResponse)
def update_cart_line(
    line_key: str,
    request_dto: UpdateCartLineRequest,
    session_id: SessionId = Depends(current_session),
) -> CartResponse:
    return _cart_service().update_quantity(session_id, line_key, request_dto.quantity)


@router.delete("/v1/cart/items/{line_key}", response_model=CartResponse)
def remove_cart_line(
    line_key: str,
    session_id: SessionId = Depends(current_session),
) -> CartResponse:
    return _cart_service().remove_line(session_id, line_key)


@router.get("/v1/cart/quote", response_model=CartQuoteResponse)
def quote_cart(session_id: SessionId = Depends(current_session)) -> CartQuoteResponse:
    return _cart_service().quote(session_id)


@router.post(
    "/v1/cart/checkout",
    response_model=OrderSubmittedResponse,
    status_code=status.HTTP_201_CREATED,
)
def checkout_cart(
    request_dto: CheckoutRequest,
    session_id: SessionId = Depends(current_session),
    actor: Actor = Depends(current_actor),
) -> OrderSubmittedResponse:
    return _checkout_cart_use_case().execute(
        session_id=session_id,
        customer_id=actor.actor_id,
        request=request_dto,
    )
