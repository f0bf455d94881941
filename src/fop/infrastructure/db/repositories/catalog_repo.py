from __future__ import annotations

from typing import Any

from sqlalchemy import Engine, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from fop.application.ports.repositories import CatalogLookup, PersistenceError
from fop.domain.catalog.entities import AddonOption, MenuItem, Restaurant
from fop.domain.common.ids import MenuItemId, RestaurantId, UserId
from fop.domain.common.money import Money
from fop.infrastructure.db.models.catalog import MenuItemModel, RestaurantModel
from fop.infrastructure.db.session import get_engine


class SqlAlchemyCatalogLookup(CatalogLookup):
    def __init__(self, engine: Engine | None = None) -> None:
        self._engine = engine or get_engine()

    def get_item(self, restaurant_id: RestaurantId, item_id: MenuItemId) -> MenuItem | None:
        statement = (
            select(MenuItemModel)
            .where(
                MenuItemModel.id == str(item_id),
                MenuItemModel.restaurant_id == str(restaurant_id),
            )
            .limit(1)
        )
        try:
            with Session(self._engine) as session:
                model = session.execute(statement).scalar_one_or_none()
        except SQLAlchemyError as exc:
            raise PersistenceError(f"failed to load menu item {item_id}") from exc

        if model is None:
            return None
        return _to_menu_item(model)

    def get_restaurant(self, restaurant_id: RestaurantId) -> Restaurant | None:
        try:
            with Session(self._engine) as session:
                model = session.get(RestaurantModel, str(restaurant_id))
        except SQLAlchemyError as exc:
            raise PersistenceError(f"failed to load restaurant {restaurant_id}") from exc

        if model is None:
            return None
        return Restaurant(
            restaurant_id=RestaurantId(model.id),
            name=model.name,
            owner_id=UserId(model.owner_id) if model.owner_id else None,
            is_open=model.is_open,
            currency=model.currency,
            delivery_fee=(
                Money(amount_cents=model.delivery_fee_cents, currency=model.currency)
                if model.delivery_fee_cents is not None
                else None
            ),
            estimated_delivery_minutes=model.estimated_delivery_minutes,
            total_orders=model.total_orders,
        )

    def increment_order_count(self, restaurant_id: RestaurantId) -> None:
        statement = (
            update(RestaurantModel)
            .where(RestaurantModel.id == str(restaurant_id))
            .values(total_orders=RestaurantModel.total_orders + 1)
        )
        try:
            with Session(self._engine) as session:
                session.execute(statement)
                session.commit()
        except SQLAlchemyError as exc:
            raise PersistenceError(
                f"failed to update order count for restaurant {restaurant_id}"
            ) from exc


def _to_menu_item(model: MenuItemModel) -> MenuItem:
    customizations: dict[str, Any] = model.customizations or {}
    option_groups = {
        str(group): [str(choice) for choice in choices]
        for group, choices in (customizations.get("options") or {}).items()
    }
    addons = [
        AddonOption(
            addon_id=str(addon["id"]),
            name=str(addon["name"]),
            price=Money(amount_cents=int(addon["priceCents"]), currency=model.currency),
        )
        for addon in customizations.get("addons") or []
    ]
    return MenuItem(
        item_id=MenuItemId(model.id),
        restaurant_id=RestaurantId(model.restaurant_id),
        name=model.name,
        price=Money(amount_cents=model.price_cents, currency=model.currency),
        is_available=model.is_available,
        option_groups=option_groups,
        addons=addons,
    )
