"""Checkout pricing rules."""

from decimal import Decimal

from ordering.order.pricing import price_lines, to_cents


class TestPriceLines:
    def test_worked_example(self):
        pricing = price_lines([(50, 2)])
        assert pricing.items_price == Decimal("100.00")
        assert pricing.shipping_price == Decimal("10.00")
        assert pricing.tax_price == Decimal("15.00")
        assert pricing.total_price == Decimal("125.00")

    def test_free_shipping_strictly_above_one_hundred(self):
        assert price_lines([(100.01, 1)]).shipping_price == Decimal("0.00")
        assert price_lines([(100, 1)]).shipping_price == Decimal("10.00")

    def test_threshold_uses_unrounded_items_total(self):
        pricing = price_lines([(100.004, 1)])
        assert pricing.items_price == Decimal("100.00")
        assert pricing.shipping_price == Decimal("0.00")

    def test_tax_uses_unrounded_items_total(self):
        # 0.15 * 0.034 = 0.0051, while 0.15 * 0.03 would round to 0.00
        assert price_lines([(0.034, 1)]).tax_price == Decimal("0.01")

    def test_tax_rounds_half_up_to_cents(self):
        # 0.15 * 10.10 = 1.515
        assert price_lines([(10.10, 1)]).tax_price == Decimal("1.52")

    def test_total_is_sum_of_parts(self):
        pricing = price_lines([(19.99, 3), (4.35, 2)])
        assert pricing.total_price == pricing.items_price + pricing.shipping_price + pricing.tax_price

    def test_floats_do_not_leak_binary_error(self):
        assert price_lines([(0.1, 3)]).items_price == Decimal("0.30")


def test_to_cents():
    assert to_cents(2.675) == Decimal("2.68")
