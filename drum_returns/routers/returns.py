"""Return-request router.

Endpoints:
    GET /api/returns/        List requests (clients: own company only)
    POST /api/returns/       File a request (client)
    GET /api/returns/{id}    Request detail
    PUT /api/returns/{id}    Change status (admin / supervisor)
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from drum_returns.auth.deps import get_current_principal
from drum_returns.auth.permissions import Principal
from drum_returns.database import get_db
from drum_returns.schemas.return_request import (
    ReturnRequestCreate,
    ReturnRequestOut,
    ReturnRequestStatusUpdate,
)
from drum_returns.services.return_requests import (
    create_return_request,
    get_return_request,
    list_return_requests,
    update_return_request_status,
)

router = APIRouter()


@router.get("/", response_model=list[ReturnRequestOut])
async def list_requests(
    company_tax_id: str | None = None,
    status: str | None = None,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    requests = await list_return_requests(db, principal, company_tax_id=company_tax_id, status=status)
    return [ReturnRequestOut.model_validate(r) for r in requests]


@router.post("/", response_model=ReturnRequestOut, status_code=201)
async def create_request(
    body: ReturnRequestCreate,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    request = await create_return_request(db, principal, body.model_dump())
    return ReturnRequestOut.model_validate(request)


@router.get("/{request_id}", response_model=ReturnRequestOut)
async def get_request(
    request_id: int,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    return ReturnRequestOut.model_validate(await get_return_request(db, principal, request_id))


@router.put("/{request_id}", response_model=ReturnRequestOut)
async def update_request_status(
    request_id: int,
    body: ReturnRequestStatusUpdate,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    request = await update_return_request_status(db, principal, request_id, body.status)
    return ReturnRequestOut.model_validate(request)
