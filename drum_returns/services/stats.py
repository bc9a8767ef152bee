"""Dashboard counters for clients and administrators."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from drum_returns.auth.permissions import Principal, ensure_administrative, ensure_client
from drum_returns.models.company import Company
from drum_returns.models.return_request import RequestPriority, RequestStatus, ReturnRequest
from drum_returns.services.drums import DrumSummary, list_drums, summarize
from drum_returns.services.return_periods import resolve_return_period_days


@dataclass(frozen=True)
class ClientDashboard:
    company_tax_id: str
    drums: DrumSummary
    pending_requests: int
    total_requests: int
    return_period_days: int


@dataclass(frozen=True)
class AdminDashboard:
    companies: int
    drums: DrumSummary
    requests_by_status: dict[str, int]
    high_priority_pending: int


async def _count_requests_by_status(
    db: AsyncSession,
    company_tax_id: str | None = None,
) -> dict[str, int]:
    query = select(ReturnRequest.status, func.count(ReturnRequest.id)).group_by(
        ReturnRequest.status
    )
    if company_tax_id:
        query = query.where(ReturnRequest.company_tax_id == company_tax_id)
    counts = {s.value: 0 for s in RequestStatus}
    for status, count in (await db.execute(query)).all():
        counts[status] = count
    return counts


async def client_dashboard(
    db: AsyncSession,
    principal: Principal,
    now: date | datetime | None = None,
) -> ClientDashboard:
    ensure_client(principal)
    tax_id = principal.company_tax_id
    drums = await list_drums(db, principal, now=now)
    by_status = await _count_requests_by_status(db, tax_id)
    return ClientDashboard(
        company_tax_id=tax_id,
        drums=summarize(drums),
        pending_requests=by_status[RequestStatus.PENDING.value],
        total_requests=sum(by_status.values()),
        return_period_days=await resolve_return_period_days(db, tax_id),
    )


async def admin_dashboard(
    db: AsyncSession,
    principal: Principal,
    now: date | datetime | None = None,
) -> AdminDashboard:
    ensure_administrative(principal)
    companies = (await db.execute(select(func.count()).select_from(Company))).scalar() or 0
    drums = await list_drums(db, principal, now=now)
    high_pending = (
        await db.execute(
            select(func.count(ReturnRequest.id)).where(
                ReturnRequest.status == RequestStatus.PENDING.value,
                ReturnRequest.priority == RequestPriority.HIGH.value,
            )
        )
    ).scalar() or 0
    return AdminDashboard(
        companies=companies,
        drums=summarize(drums),
        requests_by_status=await _count_requests_by_status(db),
        high_priority_pending=high_pending,
    )
