"""Quote line and totals arithmetic.

All amounts are rounded to cents with ``ROUND_HALF_UP`` at every step:
subtotal, then percent discount, then percent tax on the discounted amount,
then shipping.
"""

from __future__ import annotations

from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Optional

from pydantic import BaseModel

CENTS = Decimal("0.01")


def to_money(value: float | int | str | Decimal) -> Decimal:
    return Decimal(str(value)).quantize(CENTS, rounding=ROUND_HALF_UP)


class QuoteItem(BaseModel):
    product_id: str
    name: str
    unit_price: Decimal
    qty: Decimal
    extended: Optional[Decimal] = None
    notes: Optional[str] = None


class QuoteTotals(BaseModel):
    subtotal: Decimal
    discount_amt: Decimal
    taxed: Decimal
    total: Decimal


def compute_extended(unit_price: float | Decimal, qty: float | Decimal) -> Decimal:
    return to_money(Decimal(str(unit_price)) * Decimal(str(qty)))


def compute_totals(
    items: Iterable[QuoteItem],
    discount: Optional[float | Decimal] = None,
    shipping: Optional[float | Decimal] = None,
    tax: Optional[float | Decimal] = None,
) -> QuoteTotals:
    """``discount`` and ``tax`` are percents, ``shipping`` is an amount."""

    subtotal = to_money(
        sum(
            (
                item.extended if item.extended is not None
                else compute_extended(item.unit_price, item.qty)
                for item in items
            ),
            Decimal("0"),
        )
    )
    discount_amt = to_money(subtotal * Decimal(str(discount)) / 100) if discount else Decimal("0.00")
    after_discount = subtotal - discount_amt
    taxed = to_money(after_discount * Decimal(str(tax)) / 100) if tax else Decimal("0.00")
    total = to_money(after_discount + Decimal(str(shipping or 0)) + taxed)

    return QuoteTotals(subtotal=subtotal, discount_amt=discount_amt, taxed=taxed, total=total)
