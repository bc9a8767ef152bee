"""Dashboard statistics.

Endpoints:
    GET /api/stats/dashboard   Client dashboard (own company)
    GET /api/stats/admin       Administrator dashboard
"""

from dataclasses import asdict

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from drum_returns.auth.deps import get_current_principal
from drum_returns.auth.permissions import Principal
from drum_returns.database import get_db
from drum_returns.schemas.drum import DrumSummaryOut
from drum_returns.schemas.stats import AdminDashboardOut, ClientDashboardOut
from drum_returns.services.stats import admin_dashboard, client_dashboard

router = APIRouter()


@router.get("/dashboard", response_model=ClientDashboardOut)
async def client_dashboard_endpoint(
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    stats = await client_dashboard(db, principal)
    return ClientDashboardOut(
        company_tax_id=stats.company_tax_id,
        drums=DrumSummaryOut(**asdict(stats.drums)),
        pending_requests=stats.pending_requests,
        total_requests=stats.total_requests,
        return_period_days=stats.return_period_days,
    )


@router.get("/admin", response_model=AdminDashboardOut)
async def admin_dashboard_endpoint(
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    stats = await admin_dashboard(db, principal)
    return AdminDashboardOut(
        companies=stats.companies,
        drums=DrumSummaryOut(**asdict(stats.drums)),
        requests_by_status=stats.requests_by_status,
        high_priority_pending=stats.high_priority_pending,
    )
