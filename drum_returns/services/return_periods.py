"""Per-company return periods.

A company's return period is the number of days it may keep a drum before
it has to go back to the supplier. Companies without an override row use
`settings.default_return_period_days`.

Store operations:
  put_override(company, days)  → insert-or-replace the override row
  clear_override(company)      → delete the override row (idempotent)

`set_return_period` is the only place that knows that setting the default
value means "reset": it routes to `clear_override` for the default and to
`put_override` for everything else.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import delete, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from drum_returns.config import settings
from drum_returns.middleware.exceptions import NotFoundError, ValidationError
from drum_returns.models.company import Company
from drum_returns.models.return_period import ReturnPeriodOverride

logger = logging.getLogger(__name__)

# Dialects with INSERT ... ON CONFLICT DO UPDATE
_UPSERT_INSERTS = {"postgresql": pg_insert, "sqlite": sqlite_insert}


@dataclass(frozen=True)
class ReturnPeriodResult:
    company_tax_id: str
    days: int
    is_default: bool


async def get_override(db: AsyncSession, company_tax_id: str) -> ReturnPeriodOverride | None:
    result = await db.execute(
        select(ReturnPeriodOverride).where(
            ReturnPeriodOverride.company_tax_id == company_tax_id
        )
    )
    return result.scalar_one_or_none()


async def resolve_return_period_days(db: AsyncSession, company_tax_id: str) -> int:
    """Return the company's override, or the default. Unknown companies get the default."""
    override = await get_override(db, company_tax_id)
    if override is not None:
        return override.days
    return settings.default_return_period_days


async def load_overrides(db: AsyncSession) -> dict[str, int]:
    """All overrides as {tax_id: days}, for enriching many drums in one pass."""
    result = await db.execute(
        select(ReturnPeriodOverride.company_tax_id, ReturnPeriodOverride.days)
    )
    return {tax_id: days for tax_id, days in result.all()}


async def put_override(db: AsyncSession, company_tax_id: str, days: int) -> ReturnPeriodOverride:
    """Insert or replace the override row in one statement. Last write wins."""
    now = datetime.utcnow()
    insert = _UPSERT_INSERTS[db.get_bind().dialect.name]
    stmt = (
        insert(ReturnPeriodOverride)
        .values(company_tax_id=company_tax_id, days=days, created_at=now, updated_at=now)
        .on_conflict_do_update(
            index_elements=[ReturnPeriodOverride.company_tax_id],
            set_={"days": days, "updated_at": now},
        )
    )
    await db.execute(stmt)

    result = await db.execute(
        select(ReturnPeriodOverride)
        .where(ReturnPeriodOverride.company_tax_id == company_tax_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one()


async def clear_override(db: AsyncSession, company_tax_id: str) -> None:
    """Delete the override row, if any."""
    await db.execute(
        delete(ReturnPeriodOverride).where(
            ReturnPeriodOverride.company_tax_id == company_tax_id
        )
    )
    await db.flush()


def validate_days(days) -> int:
    # bool is an int subclass; reject it along with floats and strings
    if isinstance(days, bool) or not isinstance(days, int):
        raise ValidationError("Return period must be a whole number of days", field="days")
    if not settings.min_return_period_days <= days <= settings.max_return_period_days:
        raise ValidationError(
            f"Return period must be between {settings.min_return_period_days} "
            f"and {settings.max_return_period_days} days",
            field="days",
        )
    return days


async def set_return_period(db: AsyncSession, company_tax_id: str, days) -> ReturnPeriodResult:
    """Set a company's return period; the default value resets the override.

    Raises:
        ValidationError: days is not an integer within the allowed range.
        NotFoundError:   the company does not exist.
    """
    days = validate_days(days)

    company = await db.get(Company, company_tax_id)
    if company is None:
        raise NotFoundError("Company", company_tax_id)

    if days == settings.default_return_period_days:
        await clear_override(db, company_tax_id)
        logger.info("Return period for %s reset to default (%d days)", company_tax_id, days)
        return ReturnPeriodResult(company_tax_id=company_tax_id, days=days, is_default=True)

    await put_override(db, company_tax_id, days)
    logger.info("Return period for %s set to %d days", company_tax_id, days)
    return ReturnPeriodResult(company_tax_id=company_tax_id, days=days, is_default=False)


async def reset_return_period(db: AsyncSession, company_tax_id: str) -> ReturnPeriodResult:
    """Explicit reset; equivalent to setting the default value."""
    return await set_return_period(db, company_tax_id, settings.default_return_period_days)
