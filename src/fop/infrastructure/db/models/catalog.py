from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, Boolean, DateTime, ForeignKey, Integer, String, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    pass


class RestaurantModel(Base):
    __tablename__ = "restaurants"

    id: Mapped[str] = mapped_column(String(50), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    owner_id: Mapped[str | None] = mapped_column(String(50), nullable=True, index=True)
    is_open: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default="true")
    currency: Mapped[str] = mapped_column(String(3), nullable=False, server_default="USD")
    delivery_fee_cents: Mapped[int | None] = mapped_column(Integer, nullable=True)
    estimated_delivery_minutes: Mapped[int | None] = mapped_column(Integer, nullable=True)
    total_orders: Mapped[int] = mapped_column(Integer, nullable=False, server_default="0")
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    items: Mapped[list["MenuItemModel"]] = relationship(
        back_populates="restaurant",
        cascade="all, delete-orphan",
        order_by="MenuItemModel.id",
    )


class MenuItemModel(Base):
    __tablename__ = "menu_items"

    id: Mapped[str] = mapped_column(String(50), primary_key=True)
    restaurant_id: Mapped[str] = mapped_column(
        String(50),
        ForeignKey("restaurants.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    price_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False)
    is_available: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default="true")
    # {"options": {"size": ["small", "large"]}, "addons": [{"id", "name", "priceCents"}]}
    customizations: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)

    restaurant: Mapped[RestaurantModel] = relationship(back_populates="items")
