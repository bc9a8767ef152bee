"""Company activity tracking.

Usage:
    await touch_company_activity(db, company_tax_id)

The timestamp change is added to the current session and committed with the
enclosing transaction; no extra flush is performed.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from drum_returns.models.company import Company


async def touch_company_activity(
    db: AsyncSession,
    company_tax_id: str,
    *,
    at: datetime | None = None,
) -> None:
    """Set `Company.last_activity_at` to now (or `at`)."""
    await db.execute(
        update(Company)
        .where(Company.tax_id == company_tax_id)
        .values(last_activity_at=at or datetime.utcnow())
    )
