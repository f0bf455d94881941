from __future__ import annotations

from dataclasses import dataclass, field, replace

from fop.domain.common.ids import MenuItemId, RestaurantId
from fop.domain.common.money import DEFAULT_CURRENCY, Money, total_of
from fop.domain.order.entities import Customizations, LineItem, line_identity


class CartLineNotFoundError(Exception):
    pass


@dataclass(frozen=True)
class CartItem:
    """The menu entry a shopper is adding, as shown to them at the time."""

    item_id: MenuItemId
    restaurant_id: RestaurantId
    name: str
    unit_price: Money


@dataclass(frozen=True)
class Cart:
    restaurant_id: RestaurantId | None = None
    lines: list[LineItem] = field(default_factory=list)
    delivery_fee_quote: Money | None = None

    def __post_init__(self) -> None:
        if self.lines and self.restaurant_id is None:
            raise ValueError("a cart with lines must have a restaurant_id")
        if not self.lines and self.restaurant_id is not None:
            raise ValueError("an empty cart must not have a restaurant_id")
        keys = [line.identity for line in self.lines]
        if len(keys) != len(set(keys)):
            raise ValueError("cart lines must have distinct identities")

    def add_item(
        self,
        item: CartItem,
        customizations: Customizations | None = None,
        special_instructions: str = "",
        quantity: int = 1,
    ) -> Cart:
        if quantity < 1:
            raise ValueError("quantity must be >= 1")
        new_line = LineItem(
            item_id=item.item_id,
            name=item.name,
            unit_price=item.unit_price,
            quantity=quantity,
            customizations=customizations or Customizations(),
            special_instructions=special_instructions.strip(),
        )

        # A cart never mixes restaurants: switching starts over.
        if self.restaurant_id is not None and str(self.restaurant_id) != str(item.restaurant_id):
            return Cart(restaurant_id=item.restaurant_id, lines=[new_line])

        key = new_line.identity
        existing = self.find_line(key)
        if existing is None:
            return replace(self, restaurant_id=item.restaurant_id, lines=[*self.lines, new_line])

        lines = [
            line.with_quantity(line.quantity + quantity) if line.identity == key else line
            for line in self.lines
        ]
        return replace(self, lines=lines)

    def update_quantity(self, line_key: str, quantity: int) -> Cart:
        self._require_line(line_key)
        if quantity <= 0:
            return self.remove_line(line_key)
        lines = [
            line.with_quantity(quantity) if line.identity == line_key else line
            for line in self.lines
        ]
        return replace(self, lines=lines)

    def remove_line(self, line_key: str) -> Cart:
        self._require_line(line_key)
        lines = [line for line in self.lines if line.identity != line_key]
        if not lines:
            return replace(self, restaurant_id=None, lines=[])
        return replace(self, lines=lines)

    def clear(self) -> Cart:
        return Cart()

    def with_delivery_fee_quote(self, delivery_fee: Money | None) -> Cart:
        return replace(self, delivery_fee_quote=delivery_fee)

    def quote(self) -> Money:
        """Running subtotal for display; never used to price an order."""
        return total_of([line.line_total for line in self.lines], currency=self.currency)

    def find_line(self, line_key: str) -> LineItem | None:
        for line in self.lines:
            if line.identity == line_key:
                return line
        return None

    def contains(
        self,
        item_id: MenuItemId,
        customizations: Customizations | None = None,
        special_instructions: str = "",
    ) -> bool:
        return self.quantity_of(item_id, customizations, special_instructions) > 0

    def quantity_of(
        self,
        item_id: MenuItemId,
        customizations: Customizations | None = None,
        special_instructions: str = "",
    ) -> int:
        key = line_identity(item_id, customizations or Customizations(), special_instructions)
        line = self.find_line(key)
        return line.quantity if line is not None else 0

    @property
    def currency(self) -> str:
        if self.lines:
            return self.lines[0].unit_price.currency
        return DEFAULT_CURRENCY

    @property
    def is_empty(self) -> bool:
        return not self.lines

    @property
    def item_count(self) -> int:
        return sum(line.quantity for line in self.lines)

    @property
    def unique_item_count(self) -> int:
        return len(self.lines)

    def _require_line(self, line_key: str) -> None:
        if self.find_line(line_key) is None:
            raise CartLineNotFoundError(f"cart line {line_key} not found")
