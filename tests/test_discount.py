from __future__ import annotations

from decimal import Decimal

import pytest

from orderflow.domain.errors import NegativeAmountError, ValidationError
from orderflow.domain.pricing.discount import compute_discount
from orderflow.domain.pricing.money import MAX_AMOUNT, format_money, round_money, to_cents, to_decimal


@pytest.mark.parametrize("subtotal", ["0", "0.01", "250", "599.98", "599.99"])
def test_no_discount_below_600(subtotal):
    info = compute_discount(Decimal(subtotal))
    assert info.discount_percentage == 0
    assert info.discount_amount == 0
    assert info.final_total == Decimal(subtotal)


def test_message_states_amount_missing_for_first_tier():
    info = compute_discount(Decimal("599.99"))
    assert info.amount_to_next_tier == Decimal("0.01")
    assert info.next_tier_percentage == 10
    assert "0.01" in info.message
    assert "10%" in info.message


def test_600_is_exactly_ten_percent():
    info = compute_discount(600)
    assert info.discount_percentage == 10
    assert info.discount_amount == Decimal("60")
    assert info.final_total == Decimal("540")
    assert info.amount_to_next_tier == Decimal("600")
    assert "20%" in info.message


def test_1199_99_rounds_half_up_only_at_the_boundary():
    info = compute_discount(Decimal("1199.99"))
    assert info.discount_percentage == 10
    assert info.final_total == Decimal("1079.991")
    assert info.rounded_final_total == Decimal("1079.99")
    assert info.rounded_discount_amount == Decimal("120.00")
    assert info.to_dict()["final_total"] == "1079.99"
    assert "0.01" in info.message


def test_1200_is_exactly_twenty_percent():
    info = compute_discount(1200)
    assert info.discount_percentage == 20
    assert info.final_total == Decimal("960")
    assert info.message == "20% discount applied"
    assert info.next_tier_percentage is None
    assert info.amount_to_next_tier is None


def test_zero_subtotal_never_produces_negative_discount():
    info = compute_discount(0)
    assert info.discount_percentage == 0
    assert info.discount_amount == 0
    assert info.final_total == 0
    assert "600.00" in info.message


def test_negative_subtotal_is_rejected():
    with pytest.raises(NegativeAmountError):
        compute_discount(Decimal("-0.01"))


def test_same_subtotal_gives_identical_result():
    assert compute_discount(Decimal("875.40")) == compute_discount(Decimal("875.40"))


def test_float_input_is_read_through_its_decimal_text():
    info = compute_discount(599.99)
    assert info.subtotal == Decimal("599.99")
    assert info.discount_percentage == 0


def test_currency_label_is_used_in_message():
    info = compute_discount(100, currency="EUR")
    assert info.message == "Buy for 500.00 EUR more and get 10% discount"


def test_money_helpers_round_half_up():
    assert round_money(Decimal("0.005")) == Decimal("0.01")
    assert round_money(Decimal("2.675")) == Decimal("2.68")
    assert to_cents("1079.991") == 107999
    assert format_money(Decimal("540")) == "540.00"
    assert to_decimal("  12.30 ") == Decimal("12.30")
    with pytest.raises(ValidationError):
        to_decimal("abc")


@pytest.mark.parametrize("amount", ["nan", "inf", "-Infinity", "1e26", Decimal("1e40"), float("inf"), True])
def test_unusable_amounts_are_rejected_as_validation_errors(amount):
    with pytest.raises(ValidationError):
        compute_discount(amount)


def test_largest_accepted_amount_still_rounds():
    info = compute_discount(MAX_AMOUNT)
    assert info.discount_percentage == 20
    assert info.to_dict()["final_total"] == "800000000000.00"
