# doorway/invoice.py
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

from pydantic import BaseModel

CENT = Decimal("0.01")
ZERO = Decimal("0")


def to_amount(value: Any) -> Decimal:
    """
    Force-cast a stored price/discount/tax figure to a Decimal.

    Stored values arrive as numbers, numeric strings ("100", "$1,250.50") or
    nothing at all. Anything that is not a finite, non-negative number
    counts as zero.
    """
    if value is None or isinstance(value, bool):
        return ZERO
    if isinstance(value, str):
        value = value.strip().replace("$", "").replace(",", "")
        if not value:
            return ZERO
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        return ZERO
    if not amount.is_finite() or amount < 0:
        return ZERO
    return amount


def to_cents(amount: Decimal) -> Decimal:
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


class InvoiceTotals(BaseModel):
    price: Decimal
    discount: Decimal
    tax_rate: Decimal
    subtotal: Decimal
    tax: Decimal
    total: Decimal

    @property
    def total_cents(self) -> int:
        return int(self.total * 100)


def compute_invoice(price: Any = None, discount: Any = None, tax_rate: Any = None) -> InvoiceTotals:
    """subtotal = price - discount; tax = subtotal * rate/100; total = subtotal + tax."""
    p = to_amount(price)
    d = to_amount(discount)
    r = to_amount(tax_rate)

    # rounded once at the end so the three steps don't compound error
    subtotal = p - d
    tax = subtotal * (r / Decimal(100))
    total = subtotal + tax

    return InvoiceTotals(
        price=to_cents(p),
        discount=to_cents(d),
        tax_rate=r,
        subtotal=to_cents(subtotal),
        tax=to_cents(tax),
        total=to_cents(total),
    )


def totals_for_job(job: dict, default_tax_rate: Any = None) -> InvoiceTotals:
    tax_rate = job.get("tax_rate")
    if tax_rate is None:
        tax_rate = default_tax_rate
    return compute_invoice(job.get("price"), job.get("discount"), tax_rate)


def invoice_number(job_id: str) -> str:
    return str(job_id)[:8].upper()
