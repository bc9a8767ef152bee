"""Supplier return due-date computation.

The due date is the drum's reference date plus the company's return period.
The reference date is the issue date when present, otherwise the date the
drum was received on stock. All arithmetic is on `datetime.date` values.
"""

from __future__ import annotations

from datetime import date, timedelta

from sqlalchemy.ext.asyncio import AsyncSession

from drum_returns.config import settings
from drum_returns.services.return_periods import resolve_return_period_days


def _is_blank(value) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def reference_date(issue_date: date | None, stock_receipt_date: date | None) -> date | None:
    """Issue date if present and non-blank, else the stock receipt date."""
    if not _is_blank(issue_date):
        return issue_date
    if not _is_blank(stock_receipt_date):
        return stock_receipt_date
    return None


def add_return_period(reference: date | None, period_days: int) -> date | None:
    if _is_blank(reference):
        return None
    return reference + timedelta(days=period_days)


async def compute_supplier_return_due_date(
    db: AsyncSession,
    reference: date | None,
    company_tax_id: str,
) -> date | None:
    """Reference date + the company's return period, or None without a reference."""
    if _is_blank(reference):
        return None
    days = await resolve_return_period_days(db, company_tax_id)
    return add_return_period(reference, days)


def effective_due_date(drum, period_days: int | None = None) -> date | None:
    """Due date to display for a drum.

    A stored `supplier_return_due_date` is authoritative; otherwise the date
    is derived from the reference date and `period_days` (default period when
    not given).
    """
    if drum.supplier_return_due_date is not None:
        return drum.supplier_return_due_date
    if period_days is None:
        period_days = settings.default_return_period_days
    return add_return_period(reference_date(drum.issue_date, drum.stock_receipt_date), period_days)
