from __future__ import annotations

import sys
from pathlib import Path

from alembic import command
from alembic.config import Config
from sqlalchemy import create_engine, inspect

sys.path.insert(0, str(Path(__file__).resolve().parents[3] / "src"))

MIGRATIONS_DIR = (
    Path(__file__).resolve().parents[3] / "src" / "fop" / "infrastructure" / "db" / "migrations"
)


def _alembic_config() -> Config:
    config = Config()
    config.set_main_option("script_location", str(MIGRATIONS_DIR))
    return config


def test_upgrade_creates_schema_and_downgrade_removes_it(tmp_path, monkeypatch) -> None:
    database_url = f"sqlite:///{tmp_path / 'migrations.db'}"
    monkeypatch.setenv("DATABASE_URL", database_url)
    config = _alembic_config()

    command.upgrade(config, "head")

    engine = create_engine(database_url)
    try:
        inspector = inspect(engine)
        assert {
            "restaurants",
            "menu_items",
            "orders",
            "order_lines",
            "order_status_history",
        } <= set(inspector.get_table_names())
        order_columns = {column["name"] for column in inspector.get_columns("orders")}
        assert {"version", "status", "total_cents", "cancellation_reason"} <= order_columns
        order_indexes = {index["name"] for index in inspector.get_indexes("orders")}
        assert "ix_orders_restaurant_status_created_at" in order_indexes

        command.downgrade(config, "base")

        remaining = set(inspect(engine).get_table_names())
        assert remaining.isdisjoint({"restaurants", "orders", "order_status_history"})
    finally:
        engine.dispose()
