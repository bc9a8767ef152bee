"""Pydantic schemas for drums."""

from datetime import date, datetime

from pydantic import BaseModel, Field


class DrumCreate(BaseModel):
    code: str = Field(..., min_length=1, max_length=50)
    company_tax_id: str = Field(..., min_length=1, max_length=20)
    # Only used when the company does not exist yet
    company_name: str | None = None
    name: str | None = None
    feature: str | None = None
    stock_receipt_date: date | None = None
    issue_date: date | None = None
    supplier_return_due_date: date | None = None
    status: str | None = None
    supplier_name: str | None = None
    document_type: str | None = None
    document_number: str | None = None
    counterparty_name: str | None = None


class ClassificationOut(BaseModel):
    category: str
    days_until_due: int | None
    days_overdue: int
    days_in_possession: int | None


class DrumOut(BaseModel):
    code: str
    company_tax_id: str
    name: str | None
    feature: str | None
    stock_receipt_date: date | None
    issue_date: date | None
    supplier_return_due_date: date | None
    status: str
    supplier_name: str | None
    document_type: str | None
    document_number: str | None
    counterparty_name: str | None
    created_at: datetime | None

    # Computed
    due_date: date | None
    due_date_is_computed: bool
    return_period_days: int
    classification: ClassificationOut


class DrumSummaryOut(BaseModel):
    total: int
    overdue: int
    due_soon: int
    active: int


class DrumListOut(BaseModel):
    items: list[DrumOut]
    summary: DrumSummaryOut


class DrumImportRecords(BaseModel):
    """JSON variant of the bulk import; keys may use any known column name."""
    records: list[dict]


class RowErrorOut(BaseModel):
    row: int
    errors: list[str]


class DrumImportResult(BaseModel):
    total_rows: int
    created: int
    updated: int
    failed: int
    companies_created: int
    errors: list[RowErrorOut]
    unknown_columns: list[str] = []
