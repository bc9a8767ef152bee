"""Return-period router.

Endpoints:
    GET    /api/return-periods/            List overrides (admin)
    GET    /api/return-periods/{tax_id}    Resolved period for a company
    PUT    /api/return-periods/{tax_id}    Set period; the default value resets
    DELETE /api/return-periods/{tax_id}    Reset to the default period
"""

from dataclasses import asdict

from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from drum_returns.auth.deps import get_current_principal, require_admin
from drum_returns.auth.permissions import Principal, ensure_company_access
from drum_returns.database import get_db
from drum_returns.models.return_period import ReturnPeriodOverride
from drum_returns.schemas.return_period import (
    ReturnPeriodOut,
    ReturnPeriodOverrideOut,
    ReturnPeriodUpdate,
)
from drum_returns.services.return_periods import (
    get_override,
    reset_return_period,
    resolve_return_period_days,
    set_return_period,
)

router = APIRouter()


@router.get("/", response_model=list[ReturnPeriodOverrideOut])
async def list_overrides(
    db: AsyncSession = Depends(get_db),
    _admin: Principal = Depends(require_admin),
):
    result = await db.execute(
        select(ReturnPeriodOverride).order_by(ReturnPeriodOverride.company_tax_id)
    )
    return [ReturnPeriodOverrideOut.model_validate(o) for o in result.scalars().all()]


@router.get("/{tax_id}", response_model=ReturnPeriodOut)
async def get_return_period(
    tax_id: str,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    ensure_company_access(principal, tax_id)
    days = await resolve_return_period_days(db, tax_id)
    override = await get_override(db, tax_id)
    return ReturnPeriodOut(company_tax_id=tax_id, days=days, is_default=override is None)


@router.put("/{tax_id}", response_model=ReturnPeriodOut)
async def put_return_period(
    tax_id: str,
    body: ReturnPeriodUpdate,
    db: AsyncSession = Depends(get_db),
    _admin: Principal = Depends(require_admin),
):
    result = await set_return_period(db, tax_id, body.days)
    return ReturnPeriodOut(**asdict(result))


@router.delete("/{tax_id}", response_model=ReturnPeriodOut)
async def delete_return_period(
    tax_id: str,
    db: AsyncSession = Depends(get_db),
    _admin: Principal = Depends(require_admin),
):
    result = await reset_return_period(db, tax_id)
    return ReturnPeriodOut(**asdict(result))
