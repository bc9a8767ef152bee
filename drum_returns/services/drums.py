"""Drum queries and enrichment.

Enrichment attaches to every drum its effective due date (stored value or
computed from the company's return period) and its live classification.
Overrides are loaded once per call, so a listing always reflects the current
override table.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from drum_returns.auth.permissions import Principal
from drum_returns.config import settings
from drum_returns.middleware.exceptions import NotFoundError, ValidationError
from drum_returns.models.company import Company
from drum_returns.models.drum import Drum
from drum_returns.services.drum_status import DrumCategory, DrumClassification, classify_drum
from drum_returns.services.due_dates import effective_due_date, reference_date
from drum_returns.services.return_periods import load_overrides

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EnrichedDrum:
    drum: Drum
    return_period_days: int
    due_date: date | None
    due_date_is_computed: bool
    classification: DrumClassification


@dataclass(frozen=True)
class DrumSummary:
    total: int
    overdue: int
    due_soon: int
    active: int


def enrich_drum(drum: Drum, period_days: int, now: date | datetime) -> EnrichedDrum:
    due = effective_due_date(drum, period_days)
    reference = reference_date(drum.issue_date, drum.stock_receipt_date)
    return EnrichedDrum(
        drum=drum,
        return_period_days=period_days,
        due_date=due,
        due_date_is_computed=drum.supplier_return_due_date is None and due is not None,
        classification=classify_drum(due, now, reference),
    )


async def enrich_drums(
    db: AsyncSession,
    drums: list[Drum],
    now: date | datetime | None = None,
) -> list[EnrichedDrum]:
    now = now or datetime.now()
    overrides = await load_overrides(db)
    default = settings.default_return_period_days
    return [
        enrich_drum(d, overrides.get(d.company_tax_id, default), now)
        for d in drums
    ]


def summarize(enriched: list[EnrichedDrum]) -> DrumSummary:
    counts = {category: 0 for category in DrumCategory}
    for item in enriched:
        counts[item.classification.category] += 1
    return DrumSummary(
        total=len(enriched),
        overdue=counts[DrumCategory.OVERDUE],
        due_soon=counts[DrumCategory.DUE_SOON],
        active=counts[DrumCategory.ACTIVE],
    )


async def list_drums(
    db: AsyncSession,
    principal: Principal,
    *,
    company_tax_id: str | None = None,
    category: DrumCategory | None = None,
    search: str | None = None,
    now: date | datetime | None = None,
) -> list[EnrichedDrum]:
    """Drums visible to the principal, enriched and optionally filtered.

    Clients are always restricted to their own company.
    """
    query = select(Drum)
    if principal.is_client:
        query = query.where(Drum.company_tax_id == principal.company_tax_id)
    elif company_tax_id:
        query = query.where(Drum.company_tax_id == company_tax_id)

    if search:
        pattern = f"%{search.strip()}%"
        query = query.where(
            or_(
                Drum.code.ilike(pattern),
                Drum.name.ilike(pattern),
                Drum.company_tax_id.ilike(pattern),
            )
        )

    query = query.order_by(Drum.code)
    drums = list((await db.execute(query)).scalars().all())
    enriched = await enrich_drums(db, drums, now)
    if category is not None:
        enriched = [e for e in enriched if e.classification.category == category]
    return enriched


async def get_drum(
    db: AsyncSession,
    principal: Principal,
    code: str,
    now: date | datetime | None = None,
) -> EnrichedDrum:
    drum = (await db.execute(select(Drum).where(Drum.code == code))).scalar_one_or_none()
    # Clients get the same answer for foreign and missing drums
    if drum is None or not principal.can_access_company(drum.company_tax_id):
        raise NotFoundError("Drum", code)
    return (await enrich_drums(db, [drum], now))[0]


async def ensure_company(
    db: AsyncSession,
    tax_id: str,
    name: str | None = None,
    **profile,
) -> tuple[Company, bool]:
    """Return the company, creating it on first receipt when a name is known.

    Returns (company, created).
    """
    company = await db.get(Company, tax_id)
    if company is not None:
        return company, False
    if not name:
        raise NotFoundError("Company", tax_id)
    company = Company(tax_id=tax_id, name=name, **{k: v for k, v in profile.items() if v})
    db.add(company)
    await db.flush()
    logger.info("Created company %s on first drum receipt", tax_id)
    return company, True


async def create_drum(db: AsyncSession, fields: dict) -> Drum:
    """Manual drum entry by an administrator."""
    code = (fields.get("code") or "").strip()
    tax_id = (fields.get("company_tax_id") or "").strip()
    if not code:
        raise ValidationError("Drum code is required", field="code")
    if not tax_id:
        raise ValidationError("Company tax id is required", field="company_tax_id")

    existing = (await db.execute(select(Drum.id).where(Drum.code == code))).scalar_one_or_none()
    if existing is not None:
        raise ValidationError(f"Drum '{code}' already exists", field="code")

    await ensure_company(db, tax_id, fields.get("company_name"))

    drum = Drum(
        code=code,
        company_tax_id=tax_id,
        name=fields.get("name"),
        feature=fields.get("feature"),
        stock_receipt_date=fields.get("stock_receipt_date"),
        issue_date=fields.get("issue_date"),
        supplier_return_due_date=fields.get("supplier_return_due_date"),
        status=fields.get("status") or "Active",
        supplier_name=fields.get("supplier_name"),
        document_type=fields.get("document_type"),
        document_number=fields.get("document_number"),
        counterparty_name=fields.get("counterparty_name"),
    )
    db.add(drum)
    await db.flush()
    logger.info("Drum %s registered for company %s", code, tax_id)
    return drum
