from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from orderflow.domain.errors import NegativeAmountError
from orderflow.domain.pricing.money import ZERO, MoneyInput, format_money, round_money, to_decimal

DEFAULT_CURRENCY = "Kč"

# (lower bound inclusive, percentage); upper bound is the next tier's lower bound.
DISCOUNT_TIERS: tuple[tuple[Decimal, int], ...] = (
    (Decimal("0"), 0),
    (Decimal("600"), 10),
    (Decimal("1200"), 20),
)


@dataclass(frozen=True)
class DiscountInfo:
    """Discount breakdown for one subtotal.

    ``discount_amount`` and ``final_total`` are kept exact; round them with
    :meth:`rounded_discount_amount` / :meth:`rounded_final_total` only when
    displaying or persisting.
    """

    subtotal: Decimal
    discount_percentage: int
    discount_amount: Decimal
    final_total: Decimal
    message: str
    next_tier_percentage: int | None = None
    amount_to_next_tier: Decimal | None = None

    @property
    def rounded_discount_amount(self) -> Decimal:
        return round_money(self.discount_amount)

    @property
    def rounded_final_total(self) -> Decimal:
        return round_money(self.final_total)

    def to_dict(self) -> dict:
        return {
            "subtotal": format_money(self.subtotal),
            "discount_percentage": self.discount_percentage,
            "discount_amount": format_money(self.discount_amount),
            "final_total": format_money(self.final_total),
            "message": self.message,
            "next_tier_percentage": self.next_tier_percentage,
            "amount_to_next_tier": (
                format_money(self.amount_to_next_tier) if self.amount_to_next_tier is not None else None
            ),
        }


def _tier_index(subtotal: Decimal) -> int:
    index = 0
    for position, (lower_bound, _) in enumerate(DISCOUNT_TIERS):
        if subtotal >= lower_bound:
            index = position
    return index


def compute_discount(subtotal: MoneyInput, currency: str = DEFAULT_CURRENCY) -> DiscountInfo:
    amount = to_decimal(subtotal)
    if amount < ZERO:
        raise NegativeAmountError(f"subtotal must be non-negative, got {amount}")

    index = _tier_index(amount)
    percentage = DISCOUNT_TIERS[index][1]
    discount_amount = amount * percentage / Decimal(100)
    final_total = amount - discount_amount

    if index + 1 < len(DISCOUNT_TIERS):
        next_bound, next_percentage = DISCOUNT_TIERS[index + 1]
        remaining = next_bound - amount
        message = f"Buy for {format_money(remaining)} {currency} more and get {next_percentage}% discount"
        return DiscountInfo(
            subtotal=amount,
            discount_percentage=percentage,
            discount_amount=discount_amount,
            final_total=final_total,
            message=message,
            next_tier_percentage=next_percentage,
            amount_to_next_tier=remaining,
        )

    return DiscountInfo(
        subtotal=amount,
        discount_percentage=percentage,
        discount_amount=discount_amount,
        final_total=final_total,
        message=f"{percentage}% discount applied",
    )
