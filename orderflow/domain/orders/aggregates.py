from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Literal

from orderflow.domain.pricing.money import from_cents

OrderStatus = Literal["pending", "processing", "shipped", "delivered"]
ORDER_STATUSES: tuple[str, ...] = ("pending", "processing", "shipped", "delivered")


@dataclass(frozen=True)
class OrderLine:
    item_id: str
    quantity: int
    unit_price_cents: int

    @property
    def subtotal_cents(self) -> int:
        return self.quantity * self.unit_price_cents

    def to_dict(self) -> dict:
        return {
            "item_id": self.item_id,
            "quantity": self.quantity,
            "unit_price": f"{from_cents(self.unit_price_cents):.2f}",
        }


@dataclass
class OrderAggregate:
    order_id: str
    client_id: str
    delivery_date: date
    lines: list[OrderLine] = field(default_factory=list)
    status: str = "pending"
    notes: str | None = None
    total_cents: int = 0
    created_at: datetime | None = None

    @property
    def subtotal_cents(self) -> int:
        return sum(line.subtotal_cents for line in self.lines)
