from __future__ import annotations

from typing import NewType

RestaurantId = NewType("RestaurantId", str)
MenuItemId = NewType("MenuItemId", str)
OrderId = NewType("OrderId", str)
UserId = NewType("UserId", str)
SessionId = NewType("SessionId", str)
