"""Bulk drum import.

Rows arrive already normalized to canonical field names (see
`utils.normalize`). Each row upserts one drum keyed by its code; the owning
company is created on its first receipt when the row names it. A row that
fails is reported and skipped, the rest of the file is still imported.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from drum_returns.models.company import Company
from drum_returns.models.drum import Drum
from drum_returns.utils.csv_import import FieldDef, ParseResult, RowError, coerce_date, parse_rows
from drum_returns.utils.normalize import normalize_drum_record

logger = logging.getLogger(__name__)

DRUM_FIELDS = [
    FieldDef(db_field="code", required=True),
    FieldDef(db_field="company_tax_id", required=True),
    FieldDef(db_field="company_name"),
    FieldDef(db_field="name"),
    FieldDef(db_field="feature"),
    FieldDef(db_field="stock_receipt_date", coerce=coerce_date),
    FieldDef(db_field="issue_date", coerce=coerce_date),
    FieldDef(db_field="supplier_return_due_date", coerce=coerce_date),
    FieldDef(db_field="supplier_name"),
    FieldDef(db_field="document_type"),
    FieldDef(db_field="document_number"),
    FieldDef(db_field="counterparty_name"),
    FieldDef(db_field="status"),
]

DRUM_SAMPLE_ROW = {
    "code": "B11ELP/ELP",
    "company_tax_id": "8513255117",
    "company_name": "AS Electric Sp. z o.o.",
    "name": "Drum ELPAR FI 11",
    "stock_receipt_date": "2025-01-01",
    "issue_date": "",
    "supplier_return_due_date": "",
}

# Returned drums only accept status edits
RETURNED_STATUSES = {"returned", "zwrócony", "zwrocony"}
DRUM_UPDATABLE_FIELDS = (
    "name",
    "feature",
    "stock_receipt_date",
    "issue_date",
    "supplier_return_due_date",
    "supplier_name",
    "document_type",
    "document_number",
    "counterparty_name",
)


@dataclass
class ImportResult:
    total_rows: int = 0
    created: int = 0
    updated: int = 0
    failed: int = 0
    companies_created: int = 0
    errors: list[RowError] = field(default_factory=list)


def parse_records(records: list[dict]) -> ParseResult:
    """Normalize raw JSON records and validate them like CSV rows."""
    return parse_rows([normalize_drum_record(r) for r in records], DRUM_FIELDS)


async def import_drums(db: AsyncSession, parsed: ParseResult) -> ImportResult:
    result = ImportResult(
        total_rows=parsed.total_rows,
        failed=len(parsed.errors),
        errors=list(parsed.errors),
    )
    if not parsed.rows:
        return result

    codes = [row["code"] for row in parsed.rows]
    existing = {
        d.code: d
        for d in (await db.execute(select(Drum).where(Drum.code.in_(codes)))).scalars().all()
    }
    tax_ids = {row["company_tax_id"] for row in parsed.rows}
    companies = {
        c.tax_id: c
        for c in (await db.execute(select(Company).where(Company.tax_id.in_(tax_ids)))).scalars().all()
    }

    for index, row in zip(parsed.row_numbers, parsed.rows):
        tax_id = row["company_tax_id"]

        if tax_id not in companies:
            company_name = row.get("company_name") or row.get("counterparty_name")
            if not company_name:
                result.failed += 1
                result.errors.append(RowError(
                    row=index,
                    errors=[f"Company {tax_id} does not exist and no company name was given"],
                ))
                continue
            company = Company(tax_id=tax_id, name=company_name)
            db.add(company)
            companies[tax_id] = company
            result.companies_created += 1

        drum = existing.get(row["code"])
        if drum is None:
            drum = Drum(
                code=row["code"],
                company_tax_id=tax_id,
                status=row.get("status") or "Active",
                **{name: row.get(name) for name in DRUM_UPDATABLE_FIELDS},
            )
            db.add(drum)
            existing[drum.code] = drum
            result.created += 1
            continue

        if drum.company_tax_id != tax_id:
            result.failed += 1
            result.errors.append(RowError(
                row=index,
                errors=[f"Drum {drum.code} belongs to another company"],
            ))
            continue

        if (drum.status or "").lower() in RETURNED_STATUSES:
            if row.get("status"):
                drum.status = row["status"]
                result.updated += 1
            else:
                result.failed += 1
                result.errors.append(RowError(
                    row=index,
                    errors=[f"Drum {drum.code} is returned; only its status can change"],
                ))
            continue

        for name in DRUM_UPDATABLE_FIELDS:
            value = row.get(name)
            if value is not None:
                setattr(drum, name, value)
        if row.get("status"):
            drum.status = row["status"]
        result.updated += 1

    await db.flush()
    logger.info(
        "Drum import: %d rows, %d created, %d updated, %d failed, %d companies created",
        result.total_rows, result.created, result.updated, result.failed, result.companies_created,
    )
    return result
