"""Company queries, profile edits and the per-company risk overview."""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from datetime import date, datetime

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from drum_returns.auth.permissions import Principal, ensure_company_access
from drum_returns.config import settings
from drum_returns.middleware.exceptions import AuthorizationError, NotFoundError, ValidationError
from drum_returns.models.company import Company
from drum_returns.models.drum import Drum
from drum_returns.models.return_request import RequestStatus, ReturnRequest
from drum_returns.services.drum_status import DrumCategory
from drum_returns.services.drums import enrich_drums
from drum_returns.services.return_periods import load_overrides

logger = logging.getLogger(__name__)

CLIENT_EDITABLE_FIELDS = {"email", "phone", "address"}
NON_NULLABLE_FIELDS = ("name", "status")


class RiskLevel(str, enum.Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


@dataclass(frozen=True)
class CompanyOverview:
    company: Company
    drums_count: int
    overdue_drums: int
    due_soon_drums: int
    pending_requests: int
    return_period_days: int
    has_custom_return_period: bool
    risk_level: RiskLevel


def risk_level(overdue_drums: int, pending_requests: int) -> RiskLevel:
    """High with any overdue drum, medium with open requests, low otherwise."""
    if overdue_drums > 0:
        return RiskLevel.HIGH
    if pending_requests > 0:
        return RiskLevel.MEDIUM
    return RiskLevel.LOW


async def list_company_overviews(
    db: AsyncSession,
    search: str | None = None,
    now: date | datetime | None = None,
) -> list[CompanyOverview]:
    query = select(Company).order_by(Company.name)
    if search:
        pattern = f"%{search.strip()}%"
        query = query.where(Company.name.ilike(pattern) | Company.tax_id.ilike(pattern))
    companies = list((await db.execute(query)).scalars().all())

    drums = list((await db.execute(select(Drum))).scalars().all())
    enriched = await enrich_drums(db, drums, now)
    overrides = await load_overrides(db)

    pending_rows = await db.execute(
        select(ReturnRequest.company_tax_id, func.count(ReturnRequest.id))
        .where(ReturnRequest.status == RequestStatus.PENDING.value)
        .group_by(ReturnRequest.company_tax_id)
    )
    pending = {tax_id: count for tax_id, count in pending_rows.all()}

    per_company: dict[str, dict[DrumCategory | str, int]] = {}
    for item in enriched:
        bucket = per_company.setdefault(
            item.drum.company_tax_id, {"total": 0, **{c: 0 for c in DrumCategory}}
        )
        bucket["total"] += 1
        bucket[item.classification.category] += 1

    overviews = []
    for company in companies:
        bucket = per_company.get(company.tax_id, {})
        overdue = bucket.get(DrumCategory.OVERDUE, 0)
        open_requests = pending.get(company.tax_id, 0)
        overviews.append(
            CompanyOverview(
                company=company,
                drums_count=bucket.get("total", 0),
                overdue_drums=overdue,
                due_soon_drums=bucket.get(DrumCategory.DUE_SOON, 0),
                pending_requests=open_requests,
                return_period_days=overrides.get(
                    company.tax_id, settings.default_return_period_days
                ),
                has_custom_return_period=company.tax_id in overrides,
                risk_level=risk_level(overdue, open_requests),
            )
        )
    return overviews


async def get_company(db: AsyncSession, principal: Principal, tax_id: str) -> Company:
    ensure_company_access(principal, tax_id)
    company = await db.get(Company, tax_id)
    if company is None:
        raise NotFoundError("Company", tax_id)
    return company


async def update_company(
    db: AsyncSession,
    principal: Principal,
    tax_id: str,
    updates: dict,
) -> Company:
    """Apply a profile edit. Clients may only change their contact details."""
    company = await get_company(db, principal, tax_id)

    if principal.is_client:
        forbidden = set(updates) - CLIENT_EDITABLE_FIELDS
        if forbidden:
            raise AuthorizationError(
                f"Clients cannot change: {', '.join(sorted(forbidden))}"
            )

    for key in NON_NULLABLE_FIELDS:
        if key in updates and updates[key] is None:
            raise ValidationError(f"Field '{key}' cannot be empty", field=key)

    for key, value in updates.items():
        setattr(company, key, value)
    await db.flush()
    logger.info("Company %s updated (%s)", tax_id, ", ".join(sorted(updates)) or "no changes")
    return company
