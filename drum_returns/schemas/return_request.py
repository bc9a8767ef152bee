"""Pydantic schemas for return requests.

Field presence is checked by the lifecycle service rather than here, so that
a missing field and an empty drum selection produce the same domain error
envelope as the ownership check.
"""

from datetime import date, datetime

from pydantic import BaseModel


class ReturnRequestCreate(BaseModel):
    street: str | None = None
    postal_code: str | None = None
    city: str | None = None
    contact_email: str | None = None
    loading_hours: str | None = None
    available_equipment: str | None = None
    notes: str | None = None
    collection_date: date | None = None
    selected_drum_codes: list[str] = []


class ReturnRequestStatusUpdate(BaseModel):
    status: str


class ReturnRequestOut(BaseModel):
    id: int
    company_tax_id: str
    company_name: str
    street: str
    postal_code: str
    city: str
    contact_email: str
    loading_hours: str
    available_equipment: str | None
    notes: str | None
    collection_date: date
    selected_drum_codes: list[str]
    status: str
    priority: str
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
