from decimal import Decimal
from typing import Iterable, Optional

from .money import to_cents
from .schemas import OrderTotals


def calculate_subtotal(items: Iterable) -> Decimal:
    """Sum of quantity x unit_price; lines missing either value count as zero."""
    subtotal = Decimal("0")
    for item in items:
        if item.quantity is None or item.unit_price is None:
            continue
        subtotal += Decimal(item.quantity) * item.unit_price
    return to_cents(subtotal)


def calculate_order_total(items: Iterable, discount_amount: Optional[Decimal], tax_rate: Decimal) -> OrderTotals:
    """Price an order.

    ``tax_rate`` has no default on purpose: it comes from the business
    configuration (see ``shared.config.settings.get_tax_rate``). The total is
    clamped at zero when the discount exceeds subtotal plus tax.
    """
    discount = to_cents(discount_amount or Decimal("0"))
    subtotal = calculate_subtotal(items)
    tax_amount = to_cents(subtotal * tax_rate)
    total_amount = max(Decimal("0.00"), subtotal + tax_amount - discount)
    return OrderTotals(
        subtotal=subtotal,
        tax_amount=tax_amount,
        discount_amount=discount,
        total_amount=to_cents(total_amount),
    )
