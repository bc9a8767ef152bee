from typing import Literal

from pydantic import BaseModel, Field


class LoginRequest(BaseModel):
    """`login` is the company tax id for clients and the username for admins."""
    login: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)
    type: Literal["client", "admin"]


class TaxIdCheckRequest(BaseModel):
    tax_id: str = Field(..., min_length=1)


class TaxIdCheckResponse(BaseModel):
    tax_id: str
    company_name: str


class PrincipalOut(BaseModel):
    subject: str
    login: str
    role: str
    company_tax_id: str | None = None
    name: str | None = None
    is_first_login: bool = False


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: PrincipalOut
