from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Union

from orderflow.domain.errors import ValidationError

CENT = Decimal("0.01")
ZERO = Decimal("0")
# Keeps cent-quantized amounts well inside the default 28-digit context.
MAX_AMOUNT = Decimal("1000000000000")

MoneyInput = Union[Decimal, int, str, float]


def _parse(value: MoneyInput) -> Decimal:
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise ValidationError("boolean is not a monetary amount")
    if isinstance(value, int):
        return Decimal(value)
    if isinstance(value, float):
        return Decimal(str(value))
    try:
        return Decimal(str(value).strip())
    except InvalidOperation as exc:
        raise ValidationError(f"invalid monetary amount: {value!r}") from exc


def to_decimal(value: MoneyInput) -> Decimal:
    """Convert a major-unit amount to Decimal without binary float artifacts.

    Floats go through ``str`` so ``599.99`` becomes ``Decimal("599.99")`` rather
    than its exact binary expansion. Non-finite amounts and amounts beyond
    ``MAX_AMOUNT`` in either direction raise ``ValidationError``.
    """
    amount = _parse(value)
    if not amount.is_finite():
        raise ValidationError(f"monetary amount must be finite, got {value!r}")
    if abs(amount) > MAX_AMOUNT:
        raise ValidationError(f"monetary amount out of range: {value!r}")
    return amount


def round_money(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def to_cents(value: MoneyInput) -> int:
    return int(round_money(to_decimal(value)) * 100)


def from_cents(cents: int) -> Decimal:
    return (Decimal(int(cents)) / 100).quantize(CENT)


def format_money(value: MoneyInput) -> str:
    return f"{round_money(to_decimal(value)):.2f}"
