from __future__ import annotations

from dataclasses import dataclass, field

from fop.domain.common.ids import MenuItemId, RestaurantId, UserId
from fop.domain.common.money import Money


@dataclass(frozen=True)
class AddonOption:
    addon_id: str
    name: str
    price: Money


@dataclass(frozen=True)
class MenuItem:
    item_id: MenuItemId
    restaurant_id: RestaurantId
    name: str
    price: Money
    is_available: bool
    option_groups: dict[str, list[str]] = field(default_factory=dict)
    addons: list[AddonOption] = field(default_factory=list)

    def __post_init__(self) -> None:
        if not self.name.strip():
            raise ValueError("name must be non-empty")
        for addon in self.addons:
            if addon.price.currency != self.price.currency:
                raise ValueError("addon currency must match item currency")

    def find_addon(self, addon_id: str) -> AddonOption | None:
        for addon in self.addons:
            if addon.addon_id == addon_id:
                return addon
        return None


@dataclass(frozen=True)
class Restaurant:
    restaurant_id: RestaurantId
    name: str
    owner_id: UserId | None
    is_open: bool
    currency: str
    delivery_fee: Money | None = None
    estimated_delivery_minutes: int | None = None
    total_orders: int = 0

    def is_owned_by(self, user_id: UserId) -> bool:
        return self.owner_id is not None and str(self.owner_id) == str(user_id)
