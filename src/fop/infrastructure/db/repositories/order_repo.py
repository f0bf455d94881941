from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import Engine, func, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, joinedload, selectinload

from fop.application.ports.repositories import (
    OptimisticConcurrencyError,
    OrderRepository,
    PersistenceError,
)
from fop.domain.common.ids import MenuItemId, OrderId, RestaurantId, UserId
from fop.domain.common.money import Money
from fop.domain.order.entities import (
    CardDetails,
    Customizations,
    DeliveryDetails,
    LineItem,
    Order,
    OrderStatus,
    OrderSummary,
    PaymentMethod,
    SelectedAddon,
    StatusHistoryEntry,
)
from fop.infrastructure.db.models.order import (
    OrderLineModel,
    OrderModel,
    OrderStatusHistoryModel,
)
from fop.infrastructure.db.session import get_engine


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class SqlAlchemyOrderRepository(OrderRepository):
    def __init__(self, engine: Engine | None = None) -> None:
        self._engine = engine or get_engine()

    def add(self, order: Order) -> None:
        order_model = self._to_model(order)
        try:
            with Session(self._engine) as session:
                session.add(order_model)
                session.commit()
        except SQLAlchemyError as exc:
            raise PersistenceError(f"failed to store order {order.order_id}") from exc

    def get(self, order_id: OrderId) -> Order | None:
        statement = (
            select(OrderModel)
            .options(joinedload(OrderModel.lines), joinedload(OrderModel.history))
            .where(OrderModel.id == str(order_id))
            .limit(1)
        )
        try:
            with Session(self._engine) as session:
                model = session.execute(statement).unique().scalar_one_or_none()
                if model is None:
                    return None
                return self._to_domain(model)
        except SQLAlchemyError as exc:
            raise PersistenceError(f"failed to load order {order_id}") from exc

    def apply_transition(self, order: Order, expected_version: int) -> Order:
        """Persist the newest history entry of ``order`` if nobody else moved it first.

        The guard covers both the version and the status the caller read, and
        the history row is written in the same transaction as the status.
        """
        if len(order.status_history) < 2:
            raise ValueError("order has no transition to apply")
        previous_status = order.status_history[-2].status
        entry = order.status_history[-1]

        statement = (
            update(OrderModel)
            .where(
                OrderModel.id == str(order.order_id),
                OrderModel.version == expected_version,
                OrderModel.status == previous_status.value,
            )
            .values(
                status=order.status.value,
                version=OrderModel.version + 1,
                cancelled_at=order.cancelled_at,
                cancellation_reason=order.cancellation_reason,
            )
        )
        try:
            with Session(self._engine) as session:
                result = session.execute(statement)
                if result.rowcount != 1:
                    session.rollback()
                    raise OptimisticConcurrencyError(f"order {order.order_id} version conflict")
                session.add(
                    OrderStatusHistoryModel(
                        order_id=str(order.order_id),
                        position=len(order.status_history) - 1,
                        status=entry.status.value,
                        occurred_at=entry.occurred_at,
                        actor_id=str(entry.actor_id),
                        reason=entry.reason,
                    )
                )
                try:
                    session.commit()
                except IntegrityError as exc:
                    session.rollback()
                    raise OptimisticConcurrencyError(
                        f"order {order.order_id} history conflict"
                    ) from exc
        except SQLAlchemyError as exc:
            raise PersistenceError(f"failed to update order {order.order_id}") from exc

        updated = self.get(order.order_id)
        if updated is None:
            raise PersistenceError(f"order {order.order_id} not found after status update")
        return updated

    def list_for_customer(
        self,
        customer_id: UserId,
        page: int,
        limit: int,
    ) -> tuple[list[Order], int]:
        return self._list_page(OrderModel.customer_id == str(customer_id), page=page, limit=limit)

    def list_for_restaurant(
        self,
        restaurant_id: RestaurantId,
        status: OrderStatus | None,
        page: int,
        limit: int,
    ) -> tuple[list[Order], int]:
        criteria = [OrderModel.restaurant_id == str(restaurant_id)]
        if status is not None:
            criteria.append(OrderModel.status == status.value)
        return self._list_page(*criteria, page=page, limit=limit)

    def _list_page(self, *criteria, page: int, limit: int) -> tuple[list[Order], int]:
        count_statement = select(func.count()).select_from(OrderModel).where(*criteria)
        statement = (
            select(OrderModel)
            .options(selectinload(OrderModel.lines), selectinload(OrderModel.history))
            .where(*criteria)
            .order_by(OrderModel.created_at.desc(), OrderModel.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        try:
            with Session(self._engine) as session:
                total = session.execute(count_statement).scalar_one()
                models = list(session.execute(statement).scalars().all())
                return [self._to_domain(model) for model in models], int(total)
        except SQLAlchemyError as exc:
            raise PersistenceError("failed to list orders") from exc

    def _to_model(self, order: Order) -> OrderModel:
        delivery = order.delivery_details
        card = order.card_details
        summary = order.summary
        order_model = OrderModel(
            id=str(order.order_id),
            order_number=order.order_number,
            customer_id=str(order.customer_id),
            restaurant_id=str(order.restaurant_id),
            status=order.status.value,
            version=order.version,
            created_at=order.created_at,
            cancelled_at=order.cancelled_at,
            cancellation_reason=order.cancellation_reason,
            delivery_first_name=delivery.first_name,
            delivery_last_name=delivery.last_name,
            delivery_phone=delivery.phone,
            delivery_email=delivery.email,
            delivery_address=delivery.address,
            delivery_city=delivery.city,
            delivery_state=delivery.state,
            delivery_zip_code=delivery.zip_code,
            delivery_instructions=delivery.instructions,
            payment_method=order.payment_method.value,
            card_last4=card.last4 if card else None,
            card_brand=card.brand if card else None,
            card_expiry_month=card.expiry_month if card else None,
            card_expiry_year=card.expiry_year if card else None,
            currency=summary.total.currency,
            subtotal_cents=summary.subtotal.amount_cents,
            delivery_fee_cents=summary.delivery_fee.amount_cents,
            tax_cents=summary.tax.amount_cents,
            total_cents=summary.total.amount_cents,
            estimated_delivery_minutes=order.estimated_delivery_minutes,
        )
        order_model.lines = [
            OrderLineModel(
                position=position,
                item_id=str(line.item_id),
                name=line.name,
                quantity=line.quantity,
                unit_price_cents=line.unit_price.amount_cents,
                currency=line.unit_price.currency,
                line_total_cents=line.line_total.amount_cents,
                selected_options=dict(line.customizations.selected_options),
                selected_addons=[
                    {
                        "id": addon.addon_id,
                        "name": addon.name,
                        "priceCents": addon.price.amount_cents,
                    }
                    for addon in line.customizations.selected_addons
                ],
                special_instructions=line.special_instructions,
            )
            for position, line in enumerate(order.items)
        ]
        order_model.history = [
            OrderStatusHistoryModel(
                position=position,
                status=entry.status.value,
                occurred_at=entry.occurred_at,
                actor_id=str(entry.actor_id),
                reason=entry.reason,
            )
            for position, entry in enumerate(order.status_history)
        ]
        return order_model

    def _to_domain(self, model: OrderModel) -> Order:
        currency = model.currency
        items = [
            LineItem(
                item_id=MenuItemId(line.item_id),
                name=line.name,
                unit_price=Money(amount_cents=line.unit_price_cents, currency=line.currency),
                quantity=line.quantity,
                customizations=Customizations(
                    selected_options=dict(line.selected_options or {}),
                    selected_addons=[
                        SelectedAddon(
                            addon_id=str(addon["id"]),
                            name=str(addon["name"]),
                            price=Money(
                                amount_cents=int(addon["priceCents"]),
                                currency=line.currency,
                            ),
                        )
                        for addon in line.selected_addons or []
                    ],
                ),
                special_instructions=line.special_instructions or "",
            )
            for line in model.lines
        ]
        history = [
            StatusHistoryEntry(
                status=OrderStatus(entry.status),
                occurred_at=_as_utc(entry.occurred_at),
                actor_id=UserId(entry.actor_id),
                reason=entry.reason,
            )
            for entry in model.history
        ]
        card = None
        if model.card_last4 is not None:
            card = CardDetails(
                last4=model.card_last4,
                brand=model.card_brand,
                expiry_month=model.card_expiry_month,
                expiry_year=model.card_expiry_year,
            )
        return Order(
            order_id=OrderId(model.id),
            order_number=model.order_number,
            customer_id=UserId(model.customer_id),
            restaurant_id=RestaurantId(model.restaurant_id),
            items=items,
            delivery_details=DeliveryDetails(
                first_name=model.delivery_first_name,
                last_name=model.delivery_last_name,
                phone=model.delivery_phone,
                email=model.delivery_email,
                address=model.delivery_address,
                city=model.delivery_city,
                state=model.delivery_state,
                zip_code=model.delivery_zip_code,
                instructions=model.delivery_instructions,
            ),
            payment_method=PaymentMethod(model.payment_method),
            card_details=card,
            summary=OrderSummary(
                subtotal=Money(amount_cents=model.subtotal_cents, currency=currency),
                delivery_fee=Money(amount_cents=model.delivery_fee_cents, currency=currency),
                tax=Money(amount_cents=model.tax_cents, currency=currency),
                total=Money(amount_cents=model.total_cents, currency=currency),
            ),
            status=OrderStatus(model.status),
            status_history=history,
            estimated_delivery_minutes=model.estimated_delivery_minutes,
            created_at=_as_utc(model.created_at),
            version=model.version,
            cancelled_at=_as_utc(model.cancelled_at) if model.cancelled_at else None,
            cancellation_reason=model.cancellation_reason,
        )
