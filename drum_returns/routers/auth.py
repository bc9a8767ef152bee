"""Auth routes: login, tax-id check, current principal.

Route overview:
  POST /login         — client (tax id + password) or admin (username + password)
  POST /check-tax-id  — is a client account registered for this tax id
  GET  /me            — the principal behind the bearer token
"""

import logging
from datetime import datetime

from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from drum_returns.auth.deps import get_current_principal
from drum_returns.auth.jwt import create_access_token
from drum_returns.auth.password import verify_password
from drum_returns.auth.permissions import Principal
from drum_returns.database import get_db
from drum_returns.middleware.exceptions import (
    AuthenticationError,
    AuthorizationError,
    NotFoundError,
)
from drum_returns.models.account import AdminAccount, ClientAccount, UserRole
from drum_returns.models.company import Company
from drum_returns.schemas.auth import (
    LoginRequest,
    PrincipalOut,
    TaxIdCheckRequest,
    TaxIdCheckResponse,
    TokenResponse,
)

logger = logging.getLogger("drum_returns.auth")

router = APIRouter()


# ── Helpers ──────────────────────────────────────────────────

def _login_from_subject(subject: str) -> str:
    return subject.split(":", 1)[-1]


async def _login_client(db: AsyncSession, tax_id: str, password: str) -> TokenResponse:
    row = (
        await db.execute(
            select(ClientAccount, Company)
            .join(Company, Company.tax_id == ClientAccount.company_tax_id)
            .where(ClientAccount.company_tax_id == tax_id)
        )
    ).first()
    if row is None or not verify_password(password, row[0].password_hash):
        logger.info("Failed client login for %s", tax_id)
        raise AuthenticationError("Invalid credentials")

    account, company = row
    first_login = account.is_first_login
    account.last_login_at = datetime.utcnow()
    account.is_first_login = False

    subject = f"client:{tax_id}"
    return TokenResponse(
        access_token=create_access_token(subject, UserRole.CLIENT.value, company_tax_id=tax_id),
        user=PrincipalOut(
            subject=subject,
            login=tax_id,
            role=UserRole.CLIENT.value,
            company_tax_id=tax_id,
            name=company.name,
            is_first_login=first_login,
        ),
    )


async def _login_admin(db: AsyncSession, username: str, password: str) -> TokenResponse:
    account = (
        await db.execute(select(AdminAccount).where(AdminAccount.username == username))
    ).scalar_one_or_none()
    if account is None or not verify_password(password, account.password_hash):
        logger.info("Failed admin login for %s", username)
        raise AuthenticationError("Invalid credentials")
    if not account.is_active:
        raise AuthorizationError("Account deactivated")

    account.last_login_at = datetime.utcnow()
    subject = f"admin:{username}"
    return TokenResponse(
        access_token=create_access_token(subject, account.role),
        user=PrincipalOut(
            subject=subject,
            login=username,
            role=account.role,
            name=account.name,
        ),
    )


# ── POST /login ──────────────────────────────────────────────

@router.post("/login", response_model=TokenResponse)
async def login(body: LoginRequest, db: AsyncSession = Depends(get_db)):
    """Password login for clients and administrators. Returns a bearer JWT."""
    if body.type == "client":
        return await _login_client(db, body.login.strip(), body.password)
    return await _login_admin(db, body.login.strip(), body.password)


# ── POST /check-tax-id ───────────────────────────────────────

@router.post("/check-tax-id", response_model=TaxIdCheckResponse)
async def check_tax_id(body: TaxIdCheckRequest, db: AsyncSession = Depends(get_db)):
    """Confirm that a client account exists before asking for the password."""
    tax_id = body.tax_id.strip()
    company_name = (
        await db.execute(
            select(Company.name)
            .join(ClientAccount, ClientAccount.company_tax_id == Company.tax_id)
            .where(Company.tax_id == tax_id)
        )
    ).scalar_one_or_none()
    if company_name is None:
        raise NotFoundError("Client account", tax_id)
    return TaxIdCheckResponse(tax_id=tax_id, company_name=company_name)


# ── GET /me ──────────────────────────────────────────────────

@router.get("/me", response_model=PrincipalOut)
async def me(principal: Principal = Depends(get_current_principal)):
    return PrincipalOut(
        subject=principal.subject,
        login=_login_from_subject(principal.subject),
        role=principal.role.value,
        company_tax_id=principal.company_tax_id,
    )
