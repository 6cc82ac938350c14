from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable

from orderflow.domain.errors import ValidationError
from orderflow.domain.orders.aggregates import OrderLine
from orderflow.domain.pricing.discount import DEFAULT_CURRENCY, DiscountInfo, compute_discount
from orderflow.domain.pricing.money import from_cents, to_cents


@dataclass(frozen=True)
class OrderTotals:
    subtotal_cents: int
    discount: DiscountInfo

    @property
    def subtotal(self) -> Decimal:
        return from_cents(self.subtotal_cents)

    @property
    def total_cents(self) -> int:
        """Discounted total rounded half-up to whole cents, as persisted."""
        return to_cents(self.discount.final_total)

    def to_dict(self) -> dict:
        return {**self.discount.to_dict(), "subtotal_cents": self.subtotal_cents, "total_cents": self.total_cents}


def validate_quantity(quantity) -> int:
    if isinstance(quantity, bool) or not isinstance(quantity, int):
        raise ValidationError(f"quantity must be a positive integer, got {quantity!r}")
    if quantity < 1:
        raise ValidationError(f"quantity must be a positive integer, got {quantity}")
    return quantity


def compute_order_total(lines: Iterable[OrderLine], currency: str = DEFAULT_CURRENCY) -> OrderTotals:
    subtotal_cents = 0
    for line in lines:
        validate_quantity(line.quantity)
        if line.unit_price_cents < 0:
            raise ValidationError(f"unit price must be non-negative for item {line.item_id}")
        subtotal_cents += line.subtotal_cents
    discount = compute_discount(from_cents(subtotal_cents), currency=currency)
    return OrderTotals(subtotal_cents=subtotal_cents, discount=discount)
