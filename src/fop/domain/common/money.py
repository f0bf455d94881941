from __future__ import annotations

from dataclasses import dataclass

DEFAULT_CURRENCY = "USD"


@dataclass(frozen=True)
class Money:
    amount_cents: int
    currency: str

    def __post_init__(self) -> None:
        if self.amount_cents < 0:
            raise ValueError("amount_cents must be >= 0")
        if len(self.currency) != 3 or not self.currency.isalpha() or not self.currency.isupper():
            raise ValueError("currency must be a 3-letter uppercase code")

    @classmethod
    def zero(cls, currency: str = DEFAULT_CURRENCY) -> Money:
        return cls(amount_cents=0, currency=currency)

    def add(self, other: Money) -> Money:
        if other.currency != self.currency:
            raise ValueError(f"currency mismatch: {self.currency} != {other.currency}")
        return Money(amount_cents=self.amount_cents + other.amount_cents, currency=self.currency)

    def times(self, quantity: int) -> Money:
        return Money(amount_cents=self.amount_cents * quantity, currency=self.currency)


def total_of(amounts: list[Money], currency: str = DEFAULT_CURRENCY) -> Money:
    total = Money.zero(amounts[0].currency if amounts else currency)
    for amount in amounts:
        total = total.add(amount)
    return total
