"""Checkout pricing.

Amounts are computed in Decimal and rounded half-up to cents, so the stored
total always equals the sum of the stored parts.
"""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

FREE_SHIPPING_OVER = Decimal("100")
FLAT_SHIPPING = Decimal("10")
TAX_RATE = Decimal("0.15")
CENT = Decimal("0.01")


def to_cents(value) -> Decimal:
    return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class OrderPricing:
    items_price: Decimal
    shipping_price: Decimal
    tax_price: Decimal
    total_price: Decimal


def price_lines(lines) -> OrderPricing:
    """Price ``(unit_price, quantity)`` pairs.

    Shipping is free only when the items total is strictly above 100. The
    threshold and the tax apply to the unrounded items total.
    """
    raw_items = sum((Decimal(str(price)) * quantity for price, quantity in lines), Decimal("0"))
    items_price = to_cents(raw_items)
    shipping_price = Decimal("0.00") if raw_items > FREE_SHIPPING_OVER else to_cents(FLAT_SHIPPING)
    tax_price = to_cents(TAX_RATE * raw_items)
    return OrderPricing(
        items_price=items_price,
        shipping_price=shipping_price,
        tax_price=tax_price,
        total_price=items_price + shipping_price + tax_price,
    )
