from datetime import datetime
from typing import Any

from pydantic import BaseModel


class ReturnPeriodUpdate(BaseModel):
    # Type and range are enforced by the service
    days: Any = None


class ReturnPeriodOut(BaseModel):
    company_tax_id: str
    days: int
    is_default: bool


class ReturnPeriodOverrideOut(BaseModel):
    company_tax_id: str
    days: int
    created_at: datetime | None
    updated_at: datetime | None

    model_config = {"from_attributes": True}
