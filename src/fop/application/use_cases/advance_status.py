from __future__ import annotations

import logging
from datetime import datetime, timezone

from fop.application.dto.responses import OrderResponse
from fop.application.errors import (
    CancellationReasonRequiredError,
    ConcurrentUpdateError,
    ForbiddenError,
    InvalidTransitionError,
    OrderNotFoundError,
)
from fop.application.mappers.order_mapper import to_order_response
from fop.application.metrics.order_lifecycle import (
    record_time_in_flight,
    record_transition,
    record_transition_rejected,
)
from fop.application.ports.repositories import (
    CatalogLookup,
    OptimisticConcurrencyError,
    OrderRepository,
)
from fop.application.use_cases.access import OrderAccess
from fop.domain.auth.guard import Actor, ActorRole
from fop.domain.common.ids import OrderId
from fop.domain.order.entities import Order, OrderStatus
from fop.domain.order.state_machine import InvalidTransitionError as OrderTransitionError

logger = logging.getLogger(__name__)

DEFAULT_MAX_ATTEMPTS = 3


class AdvanceOrderStatus:
    """Moves an order through the fulfillment state machine.

    Every attempt re-checks authorization and transition legality against
    the state it just read, then commits with a version-guarded write. When
    another writer got there first the order is re-read and the request is
    judged again against the fresh state, so a stale read never overwrites a
    newer status.
    """

    def __init__(
        self,
        order_repository: OrderRepository,
        catalog: CatalogLookup,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    ) -> None:
        self._order_repository = order_repository
        self._access = OrderAccess(catalog)
        self._max_attempts = max(1, max_attempts)

    def execute(
        self,
        order_id: OrderId,
        actor: Actor,
        requested: OrderStatus,
        reason: str | None = None,
    ) -> OrderResponse:
        order = self._load(order_id)
        owner_id = self._access.restaurant_owner(order.restaurant_id)

        for _ in range(self._max_attempts):
            try:
                self._access.ensure_can_advance(order, actor, requested, owner_id)
            except ForbiddenError:
                record_transition_rejected("forbidden")
                raise

            if order.status == requested:
                logger.info(
                    "order_status_unchanged",
                    extra={"order_id": str(order_id), "status": requested.value},
                )
                return to_order_response(order)

            advanced = self._advance(order, actor, requested, reason)
            try:
                persisted = self._order_repository.apply_transition(
                    advanced,
                    expected_version=order.version,
                )
            except OptimisticConcurrencyError:
                logger.info(
                    "order_status_conflict",
                    extra={"order_id": str(order_id), "status": order.status.value},
                )
                order = self._load(order_id)
                continue

            record_transition(from_status=order.status, to_status=requested)
            record_time_in_flight(persisted)
            logger.info(
                "order_status_advanced",
                extra={
                    "order_id": str(order_id),
                    "from_status": order.status.value,
                    "status": requested.value,
                    "actor_id": str(actor.actor_id),
                },
            )
            return to_order_response(persisted)

        record_transition_rejected("concurrent_update")
        raise ConcurrentUpdateError(f"order {order_id} status update conflict")

    def _load(self, order_id: OrderId) -> Order:
        order = self._order_repository.get(order_id)
        if order is None:
            raise OrderNotFoundError(f"order {order_id} not found")
        return order

    def _advance(
        self,
        order: Order,
        actor: Actor,
        requested: OrderStatus,
        reason: str | None,
    ) -> Order:
        try:
            advanced = order.advance(
                requested,
                actor_id=actor.actor_id,
                now=datetime.now(timezone.utc),
                reason=reason,
            )
        except OrderTransitionError as exc:
            record_transition_rejected("invalid_transition")
            raise InvalidTransitionError(
                str(exc),
                details={"status": order.status.value, "requestedStatus": requested.value},
            ) from exc

        if (
            requested == OrderStatus.CANCELLED
            and actor.role == ActorRole.CUSTOMER
            and advanced.cancellation_reason is None
        ):
            record_transition_rejected("missing_reason")
            raise CancellationReasonRequiredError("a reason is required to cancel an order")
        return advanced


class CancelOrder:
    def __init__(self, advance_order_status: AdvanceOrderStatus) -> None:
        self._advance_order_status = advance_order_status

    def execute(self, order_id: OrderId, actor: Actor, reason: str | None = None) -> OrderResponse:
        return self._advance_order_status.execute(
            order_id=order_id,
            actor=actor,
            requested=OrderStatus.CANCELLED,
            reason=reason,
        )
