"""Company router.

Endpoints:
    GET /api/companies/            List companies with drum/risk overview (admin)
    GET /api/companies/{tax_id}    Company profile
    PUT /api/companies/{tax_id}    Edit company profile
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from drum_returns.auth.deps import get_current_principal, require_admin
from drum_returns.auth.permissions import Principal
from drum_returns.database import get_db
from drum_returns.schemas.company import CompanyOut, CompanyOverviewOut, CompanyUpdate
from drum_returns.services.companies import get_company, list_company_overviews, update_company

router = APIRouter()


@router.get("/", response_model=list[CompanyOverviewOut])
async def list_companies(
    search: str | None = None,
    db: AsyncSession = Depends(get_db),
    _admin: Principal = Depends(require_admin),
):
    overviews = await list_company_overviews(db, search=search)
    return [
        CompanyOverviewOut(
            **CompanyOut.model_validate(o.company).model_dump(),
            drums_count=o.drums_count,
            overdue_drums=o.overdue_drums,
            due_soon_drums=o.due_soon_drums,
            pending_requests=o.pending_requests,
            return_period_days=o.return_period_days,
            has_custom_return_period=o.has_custom_return_period,
            risk_level=o.risk_level.value,
        )
        for o in overviews
    ]


@router.get("/{tax_id}", response_model=CompanyOut)
async def get_company_endpoint(
    tax_id: str,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    return CompanyOut.model_validate(await get_company(db, principal, tax_id))


@router.put("/{tax_id}", response_model=CompanyOut)
async def update_company_endpoint(
    tax_id: str,
    body: CompanyUpdate,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    company = await update_company(db, principal, tax_id, body.model_dump(exclude_unset=True))
    return CompanyOut.model_validate(company)
