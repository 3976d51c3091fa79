# Overview: Integer-cent arithmetic for line totals and tax.

from __future__ import annotations

from decimal import Decimal, ROUND_HALF_UP

DEFAULT_TAX_RATE_BPS = 1000


def line_total_cents(quantity, unit_cost_cents: int) -> int:
    """quantity may be fractional (kg of malt); result is rounded half-up to a cent."""
    total = Decimal(str(quantity)) * Decimal(int(unit_cost_cents))
    return int(total.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def tax_cents(subtotal_cents: int, tax_rate_bps: int) -> int:
    tax = Decimal(int(subtotal_cents)) * Decimal(int(tax_rate_bps)) / Decimal(10000)
    return int(tax.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def document_totals(line_totals, tax_rate_bps: int) -> tuple[int, int, int]:
    """Return (subtotal, tax, total) in cents."""
    subtotal = sum(int(t or 0) for t in line_totals)
    tax = tax_cents(subtotal, tax_rate_bps)
    return subtotal, tax, subtotal + tax
