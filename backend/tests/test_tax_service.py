# Overview: Pytest coverage for line and cart tax arithmetic.

from decimal import Decimal

import pytest

from shopbill.errors import InvalidInput, ValidationError
from shopbill.services.tax_service import compute_cart, compute_line, round_off


class TestComputeLine:
    def test_exclusive_adds_tax_on_top(self):
        line = compute_line(60, 5, False)
        assert line.base_price == Decimal("60.00")
        assert line.tax_amount == Decimal("3.00")
        assert line.line_total == Decimal("63.00")

    def test_inclusive_backs_tax_out_of_price(self):
        """54.00 at 5% inclusive -> 51.43 base + 2.57 tax."""
        line = compute_line(54, 5, True)
        assert line.base_price == Decimal("51.43")
        assert line.tax_amount == Decimal("2.57")
        assert line.line_total == Decimal("54.00")

    def test_zero_rate(self):
        line = compute_line(Decimal("19.99"), 0, True)
        assert line.base_price == Decimal("19.99")
        assert line.tax_amount == Decimal("0.00")

    def test_half_up_rounding(self):
        # 0.05 * 10% = 0.005 -> 0.01
        assert compute_line(Decimal("0.05"), 10, False).tax_amount == Decimal("0.01")

    def test_inclusive_half_cent_base(self):
        """0.01 at 100% inclusive: base 0.005 rounds up, tax takes the remainder."""
        line = compute_line(Decimal("0.01"), 100, True)
        assert line.base_price == Decimal("0.01")
        assert line.tax_amount == Decimal("0.00")
        assert line.line_total == Decimal("0.01")

    @pytest.mark.parametrize("inclusive", [True, False])
    @pytest.mark.parametrize("rate", [0, 5, 12, 18, 28, 100])
    def test_parts_add_up_to_total(self, rate, inclusive):
        for cents in (1, 3, 99, 1000, 5400, 12345):
            line = compute_line(Decimal(cents) / 100, rate, inclusive)
            assert line.base_price + line.tax_amount == line.line_total

    def test_float_input_is_read_as_written(self):
        assert compute_line(0.1, 0, False).line_total == Decimal("0.10")

    @pytest.mark.parametrize("rate", [0, 5, 12, 18, 28])
    def test_inclusive_base_reconstructs_price(self, rate):
        """base * (1 + rate/100) lands back on the price within a cent."""
        for cents in (1, 99, 1000, 5400, 12345, 99999, 250000):
            price = Decimal(cents) / 100
            line = compute_line(price, rate, True)
            rebuilt = line.base_price * (1 + Decimal(rate) / 100)
            assert abs(rebuilt - price) <= Decimal("0.01")

    def test_negative_rate_rejected(self):
        with pytest.raises(InvalidInput):
            compute_line(10, -1, False)

    def test_negative_price_rejected(self):
        with pytest.raises(InvalidInput):
            compute_line(-10, 5, False)

    def test_non_numeric_rejected(self):
        with pytest.raises(InvalidInput):
            compute_line("abc", 5, False)
        with pytest.raises(InvalidInput):
            compute_line(10, Decimal("NaN"), False)

    def test_invalid_input_is_a_validation_error(self):
        with pytest.raises(ValidationError):
            compute_line(10, -5, True)


class TestComputeCart:
    def test_rice_scenario(self):
        totals = compute_cart([(60, 5, False, 2)])
        assert totals.subtotal == Decimal("120.00")
        assert totals.tax_amount == Decimal("6.00")
        assert totals.grand_total == Decimal("126.00")
        assert totals.grand_total_cents == 12600

    def test_accumulates_before_rounding(self):
        """Three units of 0.005 tax round once to 0.02, not 3 x 0.01."""
        totals = compute_cart([(Decimal("0.05"), 10, False, 3)])
        assert totals.tax_amount == Decimal("0.02")
        assert totals.subtotal == Decimal("0.15")
        assert totals.total == Decimal("0.17")

    def test_total_is_sum_of_rounded_parts(self):
        totals = compute_cart([(54, 5, True, 1), (54, 5, True, 2), (60, 5, False, 1)])
        assert totals.total == totals.subtotal + totals.tax_amount
        assert totals.grand_total == totals.total

    def test_mixed_inclusive_and_exclusive(self):
        totals = compute_cart([(54, 5, True, 1), (60, 5, False, 1)])
        # 51.428571.. + 60 and 2.571428.. + 3
        assert totals.subtotal == Decimal("111.43")
        assert totals.tax_amount == Decimal("5.57")
        assert totals.grand_total == Decimal("117.00")

    def test_empty_cart_is_zero(self):
        totals = compute_cart([])
        assert totals.grand_total == Decimal("0.00")
        assert totals.subtotal_cents == 0

    def test_round_off_to_nearest_rupee(self):
        down = compute_cart([(Decimal("10.30"), 0, False, 1)], round_off_unit_cents=100)
        assert down.round_off == Decimal("-0.30")
        assert down.grand_total == Decimal("10.00")
        assert down.round_off_cents == -30

        up = compute_cart([(Decimal("10.50"), 0, False, 1)], round_off_unit_cents=100)
        assert up.round_off == Decimal("0.50")
        assert up.grand_total == Decimal("11.00")

    def test_grand_total_invariant_with_round_off(self):
        totals = compute_cart([(54, 5, True, 3), (Decimal("7.35"), 12, False, 2)], round_off_unit_cents=100)
        assert totals.grand_total_cents == totals.subtotal_cents + totals.tax_cents + totals.round_off_cents

    def test_negative_quantity_rejected(self):
        with pytest.raises(InvalidInput):
            compute_cart([(10, 5, False, -1)])


def test_round_off_disabled_and_invalid_unit():
    assert round_off(Decimal("10.37"), 0) == Decimal("0.00")
    assert round_off(Decimal("10.37"), 5) == Decimal("-0.02")
    with pytest.raises(InvalidInput):
        round_off(Decimal("10.37"), -1)
