from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import (
    JSON,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from fop.infrastructure.db.models.catalog import Base


class OrderModel(Base):
    __tablename__ = "orders"

    id: Mapped[str] = mapped_column(String(50), primary_key=True)
    order_number: Mapped[str] = mapped_column(String(20), nullable=False, unique=True)
    customer_id: Mapped[str] = mapped_column(String(50), nullable=False)
    restaurant_id: Mapped[str] = mapped_column(
        String(50),
        ForeignKey("restaurants.id", ondelete="RESTRICT"),
        nullable=False,
    )
    status: Mapped[str] = mapped_column(String(20), nullable=False)
    version: Mapped[int] = mapped_column(Integer, nullable=False, server_default="1")
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    cancelled_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    cancellation_reason: Mapped[str | None] = mapped_column(String(500), nullable=True)

    delivery_first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    delivery_last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    delivery_phone: Mapped[str] = mapped_column(String(40), nullable=False)
    delivery_email: Mapped[str] = mapped_column(String(255), nullable=False)
    delivery_address: Mapped[str] = mapped_column(String(255), nullable=False)
    delivery_city: Mapped[str] = mapped_column(String(100), nullable=False)
    delivery_state: Mapped[str] = mapped_column(String(100), nullable=False)
    delivery_zip_code: Mapped[str] = mapped_column(String(20), nullable=False)
    delivery_instructions: Mapped[str | None] = mapped_column(String(1000), nullable=True)

    payment_method: Mapped[str] = mapped_column(String(10), nullable=False)
    card_last4: Mapped[str | None] = mapped_column(String(4), nullable=True)
    card_brand: Mapped[str | None] = mapped_column(String(30), nullable=True)
    card_expiry_month: Mapped[str | None] = mapped_column(String(2), nullable=True)
    card_expiry_year: Mapped[str | None] = mapped_column(String(4), nullable=True)

    currency: Mapped[str] = mapped_column(String(3), nullable=False)
    subtotal_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    delivery_fee_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    tax_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    total_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    estimated_delivery_minutes: Mapped[int] = mapped_column(Integer, nullable=False)

    lines: Mapped[list["OrderLineModel"]] = relationship(
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderLineModel.position",
    )
    history: Mapped[list["OrderStatusHistoryModel"]] = relationship(
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderStatusHistoryModel.position",
    )

    __table_args__ = (
        Index("ix_orders_customer_created_at", "customer_id", "created_at"),
        Index("ix_orders_restaurant_status_created_at", "restaurant_id", "status", "created_at"),
    )


class OrderLineModel(Base):
    __tablename__ = "order_lines"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    order_id: Mapped[str] = mapped_column(
        String(50),
        ForeignKey("orders.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    item_id: Mapped[str] = mapped_column(String(50), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    unit_price_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False)
    line_total_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    selected_options: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False)
    selected_addons: Mapped[list[Any]] = mapped_column(JSON, nullable=False)
    special_instructions: Mapped[str] = mapped_column(
        String(1000),
        nullable=False,
        server_default="",
    )

    order: Mapped[OrderModel] = relationship(back_populates="lines")


class OrderStatusHistoryModel(Base):
    __tablename__ = "order_status_history"
    __table_args__ = (
        UniqueConstraint("order_id", "position", name="uq_order_status_history_position"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    order_id: Mapped[str] = mapped_column(
        String(50),
        ForeignKey("orders.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False)
    occurred_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    actor_id: Mapped[str] = mapped_column(String(50), nullable=False)
    reason: Mapped[str | None] = mapped_column(String(500), nullable=True)

    order: Mapped[OrderModel] = relationship(back_populates="history")
