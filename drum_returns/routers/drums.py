"""Drum router.

Endpoints:
    GET  /api/drums/                  List drums (clients: own company only)
    GET  /api/drums/import/template   Download CSV import template
    POST /api/drums/import            Upload drum CSV (any known header variant)
    POST /api/drums/import/records    Import drums from JSON records
    GET  /api/drums/{code}            Drum detail
    POST /api/drums/                  Manual drum entry
"""

from dataclasses import asdict

from fastapi import APIRouter, Depends, File, UploadFile
from fastapi.responses import StreamingResponse
from sqlalchemy.ext.asyncio import AsyncSession

from drum_returns.auth.deps import get_current_principal, require_admin
from drum_returns.auth.permissions import Principal
from drum_returns.database import get_db
from drum_returns.middleware.exceptions import ValidationError
from drum_returns.schemas.drum import (
    ClassificationOut,
    DrumCreate,
    DrumImportRecords,
    DrumImportResult,
    DrumListOut,
    DrumOut,
    DrumSummaryOut,
    RowErrorOut,
)
from drum_returns.services.drum_import import (
    DRUM_FIELDS,
    DRUM_SAMPLE_ROW,
    ImportResult,
    import_drums,
    parse_records,
)
from drum_returns.services.drum_status import DrumCategory
from drum_returns.services.drums import (
    EnrichedDrum,
    create_drum,
    enrich_drums,
    get_drum,
    list_drums,
    summarize,
)
from drum_returns.utils.csv_import import generate_template_csv, parse_csv

router = APIRouter()


def drum_out(item: EnrichedDrum) -> DrumOut:
    drum = item.drum
    c = item.classification
    return DrumOut(
        code=drum.code,
        company_tax_id=drum.company_tax_id,
        name=drum.name,
        feature=drum.feature,
        stock_receipt_date=drum.stock_receipt_date,
        issue_date=drum.issue_date,
        supplier_return_due_date=drum.supplier_return_due_date,
        status=drum.status,
        supplier_name=drum.supplier_name,
        document_type=drum.document_type,
        document_number=drum.document_number,
        counterparty_name=drum.counterparty_name,
        created_at=drum.created_at,
        due_date=item.due_date,
        due_date_is_computed=item.due_date_is_computed,
        return_period_days=item.return_period_days,
        classification=ClassificationOut(
            category=c.category.value,
            days_until_due=c.days_until_due,
            days_overdue=c.days_overdue,
            days_in_possession=c.days_in_possession,
        ),
    )


def _import_result_out(result: ImportResult, unknown_columns: list[str] | None = None) -> DrumImportResult:
    return DrumImportResult(
        total_rows=result.total_rows,
        created=result.created,
        updated=result.updated,
        failed=result.failed,
        companies_created=result.companies_created,
        errors=[RowErrorOut(row=e.row, errors=e.errors) for e in result.errors],
        unknown_columns=unknown_columns or [],
    )


@router.get("/", response_model=DrumListOut)
async def list_drums_endpoint(
    company_tax_id: str | None = None,
    category: DrumCategory | None = None,
    search: str | None = None,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    """Enriched drums with their live classification, plus category counts."""
    items = await list_drums(
        db, principal, company_tax_id=company_tax_id, category=category, search=search
    )
    summary = summarize(items)
    return DrumListOut(
        items=[drum_out(i) for i in items],
        summary=DrumSummaryOut(**asdict(summary)),
    )


@router.get("/import/template")
async def download_template(_admin: Principal = Depends(require_admin)):
    csv_content = generate_template_csv(DRUM_FIELDS, DRUM_SAMPLE_ROW)
    return StreamingResponse(
        iter([csv_content]),
        media_type="text/csv",
        headers={"Content-Disposition": "attachment; filename=drums_template.csv"},
    )


@router.post("/import", response_model=DrumImportResult)
async def upload_drums(
    file: UploadFile = File(...),
    db: AsyncSession = Depends(get_db),
    _admin: Principal = Depends(require_admin),
):
    """Bulk import from CSV. Bad rows are reported; good rows are imported."""
    if not file.filename or not file.filename.lower().endswith(".csv"):
        raise ValidationError("File must be a .csv file", field="file")
    try:
        parsed = await parse_csv(file, DRUM_FIELDS)
    except UnicodeDecodeError:
        raise ValidationError("File must be UTF-8 encoded", field="file")
    result = await import_drums(db, parsed)
    return _import_result_out(result, parsed.unknown_columns)


@router.post("/import/records", response_model=DrumImportResult)
async def import_drum_records(
    body: DrumImportRecords,
    db: AsyncSession = Depends(get_db),
    _admin: Principal = Depends(require_admin),
):
    parsed = parse_records(body.records)
    result = await import_drums(db, parsed)
    return _import_result_out(result)


@router.get("/{code:path}", response_model=DrumOut)
async def get_drum_endpoint(
    code: str,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    # Drum codes contain '/', e.g. B11ELP/ELP
    return drum_out(await get_drum(db, principal, code))


@router.post("/", response_model=DrumOut, status_code=201)
async def create_drum_endpoint(
    body: DrumCreate,
    db: AsyncSession = Depends(get_db),
    _admin: Principal = Depends(require_admin),
):
    drum = await create_drum(db, body.model_dump())
    return drum_out((await enrich_drums(db, [drum]))[0])
