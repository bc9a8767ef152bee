"""Principals and role checks.

There are three roles:
  - client      → a company; sees and mutates only its own data
  - admin       → full access
  - supervisor  → treated exactly like admin for every check

`authenticate(token)` turns a bearer token into a Principal. It is token-only
(no DB roundtrip); account lookups happen at login.
"""

from __future__ import annotations

from dataclasses import dataclass

from drum_returns.auth.jwt import decode_token
from drum_returns.middleware.exceptions import AuthenticationError, AuthorizationError
from drum_returns.models.account import UserRole

ADMINISTRATIVE_ROLES: frozenset[UserRole] = frozenset({UserRole.ADMIN, UserRole.SUPERVISOR})


@dataclass(frozen=True)
class Principal:
    subject: str
    role: UserRole
    company_tax_id: str | None = None

    @property
    def is_client(self) -> bool:
        return self.role == UserRole.CLIENT

    @property
    def is_administrative(self) -> bool:
        return self.role in ADMINISTRATIVE_ROLES

    def can_access_company(self, company_tax_id: str) -> bool:
        return self.is_administrative or self.company_tax_id == company_tax_id


def authenticate(token: str | None) -> Principal:
    """Verify a bearer token and return the principal it identifies."""
    if not token:
        raise AuthenticationError("Authorization header missing")

    payload = decode_token(token)
    subject = payload.get("sub")
    if not subject or payload.get("type") != "access":
        raise AuthenticationError()

    try:
        role = UserRole(payload.get("role"))
    except ValueError:
        raise AuthenticationError("Unknown role in token")

    company_tax_id = payload.get("company_tax_id")
    if role == UserRole.CLIENT and not company_tax_id:
        raise AuthenticationError("Client token without company")

    return Principal(subject=subject, role=role, company_tax_id=company_tax_id)


def ensure_administrative(principal: Principal) -> None:
    if not principal.is_administrative:
        raise AuthorizationError("Administrator role required")


def ensure_client(principal: Principal) -> None:
    if not principal.is_client:
        raise AuthorizationError("Client role required")


def ensure_company_access(principal: Principal, company_tax_id: str) -> None:
    if not principal.can_access_company(company_tax_id):
        raise AuthorizationError("No access to this company")
