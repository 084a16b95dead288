# storefront/domain/pricing.py
"""
Money arithmetic for carts and orders.

Everything here is pure: callers pass plain values in and get Decimals
back, so the rules can be tested without a database.
"""
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Tuple

from storefront.domain.errors import BadRequestError

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def _to_decimal(value) -> Decimal:
    return value if isinstance(value, Decimal) else Decimal(str(value))


def round_money(value) -> Decimal:
    if value is None:
        return ZERO
    return _to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def line_total(price, quantity: int) -> Decimal:
    return round_money(round_money(price) * quantity)


def cart_totals(lines: Iterable[Tuple[Decimal, int]]) -> Tuple[int, Decimal]:
    """(total items, total price) over (snapshot price, quantity) pairs."""
    total_items = 0
    total_price = ZERO
    for price, quantity in lines:
        total_items += quantity
        total_price += line_total(price, quantity)
    return total_items, round_money(total_price)


def default_tax(items_price, rate: Decimal) -> Decimal:
    return round_money(round_money(items_price) * rate)


def default_shipping(items_price, threshold: Decimal, flat: Decimal) -> Decimal:
    return ZERO if round_money(items_price) > threshold else round_money(flat)


@dataclass(frozen=True)
class PriceBreakdown:
    items_price: Decimal
    tax_price: Decimal
    shipping_price: Decimal
    total_price: Decimal


def verify_order_pricing(
    lines: Iterable[Tuple[Decimal, int]],
    items_price,
    tax_price,
    shipping_price,
    total_price,
    tax_rate: Decimal,
    free_shipping_threshold: Decimal,
    flat_shipping: Decimal,
) -> PriceBreakdown:
    """
    Check the client's declared prices against its own line items.

    Unit prices come from the declared lines, so this is a consistency check
    between the lines and the declared totals. Tax and shipping fall back to
    the server rules only when the client left them out (None).
    """
    declared_items = round_money(items_price)
    # unit prices may carry more than two decimals, round the sum once
    calculated_items = round_money(sum((_to_decimal(price) * quantity for price, quantity in lines), ZERO))

    if calculated_items != declared_items:
        raise BadRequestError("Cart items have been updated")

    tax = round_money(tax_price) if tax_price is not None else default_tax(declared_items, tax_rate)
    shipping = (
        round_money(shipping_price)
        if shipping_price is not None
        else default_shipping(declared_items, free_shipping_threshold, flat_shipping)
    )
    total = round_money(declared_items + tax + shipping)

    if total != round_money(total_price):
        raise BadRequestError("Order total does not match")

    return PriceBreakdown(
        items_price=declared_items,
        tax_price=tax,
        shipping_price=shipping,
        total_price=total,
    )
