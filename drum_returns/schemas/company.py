"""Pydantic schemas for companies."""

from datetime import datetime

from pydantic import BaseModel, Field


class CompanyUpdate(BaseModel):
    name: str | None = Field(None, max_length=500)
    email: str | None = None
    phone: str | None = None
    address: str | None = None
    status: str | None = None


class CompanyOut(BaseModel):
    tax_id: str
    name: str
    email: str | None
    phone: str | None
    address: str | None
    status: str
    last_activity_at: datetime | None
    created_at: datetime | None

    model_config = {"from_attributes": True}


class CompanyOverviewOut(CompanyOut):
    drums_count: int
    overdue_drums: int
    due_soon_drums: int
    pending_requests: int
    return_period_days: int
    has_custom_return_period: bool
    risk_level: str
