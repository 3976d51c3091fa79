# Overview: Year-scoped human-readable document numbers (BP-, PO-, ORD-, INV-).

from __future__ import annotations

from sqlalchemy import func

from ..time_utils import today

BATCH_PREFIX = "BP"
PURCHASE_ORDER_PREFIX = "PO"
ORDER_PREFIX = "ORD"
INVOICE_PREFIX = "INV"


def next_document_number(session, column, prefix: str, *, year: int | None = None, pad: int = 3) -> str:
    """
    Next number of the form {prefix}-{year}-{seq}.

    seq = (count of existing numbers for that prefix and year) + 1. Must be
    called inside the transaction that inserts the numbered row. The unique
    constraint on the column turns a concurrent duplicate into an
    IntegrityError; callers run with retry_integrity_errors=True so the
    transaction is re-run with a fresh count.
    """
    year = year or today().year
    year_prefix = f"{prefix}-{year}-"
    count = (
        session.query(func.count(column))
        .filter(column.like(f"{year_prefix}%"))
        .scalar()
    ) or 0
    return f"{year_prefix}{count + 1:0{pad}d}"
