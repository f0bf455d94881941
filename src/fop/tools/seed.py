from __future__ import annotations

from typing import Any

from sqlalchemy import inspect
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.orm import Session

from fop.infrastructure.db.models.catalog import MenuItemModel, RestaurantModel
from fop.infrastructure.db.session import get_engine

DEMO_OWNER_ID = "usr_owner_001"

RESTAURANTS: list[dict[str, Any]] = [
    {
        "id": "rst_001",
        "name": "Downtown Test Kitchen",
        "owner_id": DEMO_OWNER_ID,
        "is_open": True,
        "currency": "USD",
        "delivery_fee_cents": 399,
        "estimated_delivery_minutes": 35,
    },
    {
        "id": "rst_002",
        "name": "Night Owl Noodles",
        "owner_id": "usr_owner_002",
        "is_open": False,
        "currency": "USD",
        "delivery_fee_cents": None,
        "estimated_delivery_minutes": None,
    },
]

MENU_ITEMS: list[dict[str, Any]] = [
    {
        "id": "itm_001",
        "restaurant_id": "rst_001",
        "name": "Margherita Pizza",
        "description": "Tomato, mozzarella, basil",
        "price_cents": 1450,
        "currency": "USD",
        "is_available": True,
        "customizations": {
            "options": {"size": ["small", "medium", "large"], "crust": ["thin", "classic"]},
            "addons": [
                {"id": "add_olives", "name": "Olives", "priceCents": 150},
                {"id": "add_burrata", "name": "Burrata", "priceCents": 350},
            ],
        },
    },
    {
        "id": "itm_002",
        "restaurant_id": "rst_001",
        "name": "Chicken Alfredo",
        "description": "Fettuccine, creamy parmesan sauce",
        "price_cents": 1690,
        "currency": "USD",
        "is_available": True,
        "customizations": {
            "options": {},
            "addons": [{"id": "add_bacon", "name": "Bacon", "priceCents": 200}],
        },
    },
    {
        "id": "itm_003",
        "restaurant_id": "rst_001",
        "name": "Caesar Salad",
        "description": "Romaine, croutons, parmesan",
        "price_cents": 990,
        "currency": "USD",
        "is_available": True,
        "customizations": None,
    },
    {
        "id": "itm_004",
        "restaurant_id": "rst_001",
        "name": "Tiramisu",
        "description": "Espresso-soaked ladyfingers",
        "price_cents": 850,
        "currency": "USD",
        "is_available": False,
        "customizations": None,
    },
    {
        "id": "itm_101",
        "restaurant_id": "rst_002",
        "name": "Spicy Ramen",
        "description": "Pork broth, chili oil",
        "price_cents": 1300,
        "currency": "USD",
        "is_available": True,
        "customizations": None,
    },
]


def _upsert(session: Session, model: type, rows: list[dict[str, Any]]) -> None:
    for row in rows:
        session.execute(
            insert(model)
            .values(**row)
            .on_conflict_do_update(
                index_elements=[model.id],
                set_={key: value for key, value in row.items() if key != "id"},
            )
        )


def main() -> None:
    engine = get_engine(timeout_seconds=2.0)
    inspector = inspect(engine)
    required_tables = {"restaurants", "menu_items", "orders"}
    if not required_tables.issubset(set(inspector.get_table_names(schema="public"))):
        print("no schema yet")
        return

    with Session(engine) as session:
        _upsert(session, RestaurantModel, RESTAURANTS)
        _upsert(session, MenuItemModel, MENU_ITEMS)
        session.commit()
        print("seed complete")


if __name__ == "__main__":
    main()
