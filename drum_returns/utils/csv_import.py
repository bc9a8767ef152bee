"""CSV parsing + validation for bulk drum import."""

import csv
import io
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Callable

from fastapi import UploadFile

from drum_returns.utils.normalize import canonical_field

DATE_FORMATS = ("%Y-%m-%d", "%d.%m.%Y", "%d/%m/%Y", "%Y-%m-%d %H:%M:%S")


@dataclass
class FieldDef:
    """Definition for a single canonical column."""
    db_field: str
    required: bool = False
    coerce: Callable[[str], Any] | None = None


@dataclass
class RowError:
    row: int
    errors: list[str]


@dataclass
class ParseResult:
    rows: list[dict[str, Any]] = field(default_factory=list)
    row_numbers: list[int] = field(default_factory=list)
    errors: list[RowError] = field(default_factory=list)
    total_rows: int = 0
    unknown_columns: list[str] = field(default_factory=list)


def coerce_date(val: str) -> date | None:
    value = val.strip()
    if not value:
        return None
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(value, fmt).date()
        except ValueError:
            continue
    raise ValueError(f"unrecognised date '{value}'")


def _sniff_dialect(text: str) -> type[csv.Dialect] | csv.Dialect:
    # ERP exports use ';' as often as ','
    try:
        return csv.Sniffer().sniff(text.splitlines()[0] if text else "", delimiters=",;\t")
    except csv.Error:
        return csv.excel


def parse_rows(
    raw_rows: list[dict[str, Any]],
    field_defs: list[FieldDef],
    first_row_number: int = 1,
) -> ParseResult:
    """Validate and coerce already-normalized rows."""
    result = ParseResult()

    for row_num, raw_row in enumerate(raw_rows, start=first_row_number):
        result.total_rows += 1
        row_errors: list[str] = []
        parsed: dict[str, Any] = {}

        for fd in field_defs:
            raw_val = raw_row.get(fd.db_field)
            if isinstance(raw_val, str):
                raw_val = raw_val.strip()

            if fd.required and raw_val in (None, ""):
                row_errors.append(f"'{fd.db_field}' is required")
                continue

            if raw_val in (None, ""):
                parsed[fd.db_field] = None
                continue

            if fd.coerce and isinstance(raw_val, str):
                try:
                    parsed[fd.db_field] = fd.coerce(raw_val)
                except (ValueError, TypeError):
                    row_errors.append(f"'{fd.db_field}': invalid value '{raw_val}'")
                    continue
            else:
                parsed[fd.db_field] = raw_val

        if row_errors:
            result.errors.append(RowError(row=row_num, errors=row_errors))
        else:
            result.rows.append(parsed)
            result.row_numbers.append(row_num)

    return result


def parse_csv_text(text: str, field_defs: list[FieldDef]) -> ParseResult:
    """Parse CSV text whose headers may use any known column variant."""
    reader = csv.DictReader(io.StringIO(text), dialect=_sniff_dialect(text))
    headers = reader.fieldnames or []
    mapping = {h: canonical_field(h) for h in headers}

    normalized_rows = []
    for raw_row in reader:
        row: dict[str, Any] = {}
        for header, value in raw_row.items():
            canonical = mapping.get(header)
            if canonical is None or (row.get(canonical) not in (None, "")):
                continue
            row[canonical] = value
        normalized_rows.append(row)

    result = parse_rows(normalized_rows, field_defs, first_row_number=2)  # row 1 = header
    result.unknown_columns = [h for h, c in mapping.items() if c is None and h]
    return result


async def parse_csv(file: UploadFile, field_defs: list[FieldDef]) -> ParseResult:
    content = await file.read()
    text = content.decode("utf-8-sig")  # handle BOM from Excel
    return parse_csv_text(text, field_defs)


def generate_template_csv(
    field_defs: list[FieldDef],
    sample_row: dict[str, str] | None = None,
) -> str:
    """CSV template with canonical headers and an optional sample row."""
    output = io.StringIO()
    headers = [fd.db_field for fd in field_defs]
    writer = csv.writer(output)
    writer.writerow(headers)
    if sample_row:
        writer.writerow([sample_row.get(h, "") for h in headers])
    return output.getvalue()
