"""Bulk drum import tests: header normalization, CSV parsing, upserts."""

from datetime import date

import pytest
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from drum_returns.models.company import Company
from drum_returns.models.drum import Drum
from drum_returns.services.drum_import import DRUM_FIELDS, import_drums, parse_records
from drum_returns.utils.csv_import import coerce_date, parse_csv_text
from drum_returns.utils.normalize import canonical_field, normalize_drum_record, normalize_key
from tests.conftest import C1, C2


@pytest.mark.unit
class TestNormalization:

    @pytest.mark.parametrize("key,expected", [
        ("KOD_BEBNA", "code"),
        ("kod_bebna", "code"),
        ("Kod bębna", "code"),
        ("NIP", "company_tax_id"),
        ("Data przyjęcia na stan", "stock_receipt_date"),
        ("DATA_ZWROTU_DO_DOSTAWCY", "supplier_return_due_date"),
        ("PELNA_NAZWA_KONTRAHENTA", "company_name"),
        ("KON_DOSTAWCA", "supplier_name"),
        ("NR_DOKUMENTUPZ", "document_number"),
        ("issue_date", "issue_date"),
    ])
    def test_known_variants(self, key, expected):
        assert canonical_field(key) == expected

    def test_unknown_key(self):
        assert canonical_field("colour") is None

    def test_normalize_key(self):
        assert normalize_key("  Łódź Street ") == "lodz_street"

    def test_first_non_blank_variant_wins(self):
        record = normalize_drum_record({
            "KOD_BEBNA": "  ",
            "code": "B11",
            "NIP": "123",
            "colour": "red",
        })
        assert record == {"code": "B11", "company_tax_id": "123"}


@pytest.mark.unit
class TestCsvParsing:

    def test_coerce_date_formats(self):
        assert coerce_date("2025-01-01") == date(2025, 1, 1)
        assert coerce_date("01.02.2025") == date(2025, 2, 1)
        assert coerce_date("2025-01-01 00:00:00") == date(2025, 1, 1)
        assert coerce_date("") is None
        with pytest.raises(ValueError):
            coerce_date("yesterday")

    def test_polish_headers_with_semicolons(self):
        text = (
            "KOD_BEBNA;NIP;NAZWA;DATA_PRZYJECIA_NA_STAN;KOLOR\n"
            "B11ELP/ELP;1111111111;Drum FI 11;01.01.2025;red\n"
        )
        result = parse_csv_text(text, DRUM_FIELDS)
        assert result.total_rows == 1
        assert result.errors == []
        assert result.rows[0]["code"] == "B11ELP/ELP"
        assert result.rows[0]["company_tax_id"] == "1111111111"
        assert result.rows[0]["stock_receipt_date"] == date(2025, 1, 1)
        assert result.unknown_columns == ["KOLOR"]

    def test_row_errors_use_file_line_numbers(self):
        text = (
            "code,company_tax_id,stock_receipt_date\n"
            "A1,1111111111,2025-01-01\n"
            ",1111111111,2025-01-01\n"
            "A3,1111111111,not-a-date\n"
        )
        result = parse_csv_text(text, DRUM_FIELDS)
        assert result.total_rows == 3
        assert len(result.rows) == 1
        assert [e.row for e in result.errors] == [3, 4]
        assert result.row_numbers == [2]


@pytest.mark.integration
@pytest.mark.asyncio
class TestImportDrums:

    async def test_creates_drums_and_companies(self, db_session: AsyncSession, companies):
        parsed = parse_records([
            {"KOD_BEBNA": "N1", "NIP": C1, "DATA_PRZYJECIA_NA_STAN": "2025-01-01"},
            {"KOD_BEBNA": "N2", "NIP": "3333333333", "PELNA_NAZWA_KONTRAHENTA": "Gamma Sp. z o.o."},
        ])
        result = await import_drums(db_session, parsed)
        assert result.created == 2
        assert result.companies_created == 1
        assert result.failed == 0

        gamma = await db_session.get(Company, "3333333333")
        assert gamma.name == "Gamma Sp. z o.o."
        n1 = (await db_session.execute(select(Drum).where(Drum.code == "N1"))).scalar_one()
        assert n1.stock_receipt_date == date(2025, 1, 1)
        assert n1.status == "Active"

    async def test_unknown_company_without_name_fails_row(self, db_session: AsyncSession, companies):
        parsed = parse_records([
            {"code": "N1", "tax_id": "4444444444"},
            {"code": "N2", "tax_id": C1},
        ])
        result = await import_drums(db_session, parsed)
        assert result.created == 1
        assert result.failed == 1
        assert result.errors[0].row == 1

    async def test_updates_existing_drum(self, db_session: AsyncSession, drums):
        parsed = parse_records([{"code": "D1", "nip": C1, "issue_date": "2025-02-01", "nazwa": "Renamed"}])
        result = await import_drums(db_session, parsed)
        assert result.updated == 1

        drum = (await db_session.execute(select(Drum).where(Drum.code == "D1"))).scalar_one()
        assert drum.issue_date == date(2025, 2, 1)
        assert drum.name == "Renamed"
        # fields absent from the row keep their value
        assert drum.stock_receipt_date == date(2025, 1, 1)

    async def test_drum_of_another_company_is_not_moved(self, db_session: AsyncSession, drums):
        parsed = parse_records([{"code": "D3", "nip": C1}])
        result = await import_drums(db_session, parsed)
        assert result.failed == 1
        drum = (await db_session.execute(select(Drum).where(Drum.code == "D3"))).scalar_one()
        assert drum.company_tax_id == C2

    async def test_returned_drum_only_accepts_status(self, db_session: AsyncSession, drums):
        drums["D1"].status = "Returned"
        await db_session.flush()

        rejected = await import_drums(db_session, parse_records([{"code": "D1", "nip": C1, "name": "New"}]))
        assert rejected.failed == 1

        accepted = await import_drums(db_session, parse_records([{"code": "D1", "nip": C1, "status": "Active"}]))
        assert accepted.updated == 1
        assert drums["D1"].status == "Active"
        assert drums["D1"].name == "Drum FI 11"
