"""Return-period resolver tests."""

from datetime import date

import pytest
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from drum_returns.middleware.exceptions import NotFoundError, ValidationError
from drum_returns.models.return_period import ReturnPeriodOverride
from drum_returns.services.due_dates import compute_supplier_return_due_date
from drum_returns.services.return_periods import (
    clear_override,
    get_override,
    put_override,
    reset_return_period,
    resolve_return_period_days,
    set_return_period,
)
from tests.conftest import C1, C2


async def _override_rows(db: AsyncSession) -> list[ReturnPeriodOverride]:
    return list((await db.execute(select(ReturnPeriodOverride))).scalars().all())


@pytest.mark.integration
@pytest.mark.asyncio
class TestResolve:

    async def test_default_without_override(self, db_session: AsyncSession, companies):
        assert await resolve_return_period_days(db_session, C1) == 85

    async def test_unknown_company_gets_default(self, db_session: AsyncSession):
        assert await resolve_return_period_days(db_session, "9999999999") == 85

    async def test_override(self, db_session: AsyncSession, companies):
        await put_override(db_session, C1, 30)
        assert await resolve_return_period_days(db_session, C1) == 30
        assert await resolve_return_period_days(db_session, C2) == 85


@pytest.mark.integration
@pytest.mark.asyncio
class TestSetReturnPeriod:

    async def test_set_then_reset(self, db_session: AsyncSession, companies):
        result = await set_return_period(db_session, C1, 30)
        assert result.days == 30
        assert result.is_default is False
        assert await resolve_return_period_days(db_session, C1) == 30

        result = await set_return_period(db_session, C1, 85)
        assert result.is_default is True
        assert await resolve_return_period_days(db_session, C1) == 85
        assert await _override_rows(db_session) == []

    async def test_default_value_never_stores_a_row(self, db_session: AsyncSession, companies):
        await set_return_period(db_session, C1, 85)
        assert await _override_rows(db_session) == []

    async def test_upsert_keeps_single_row(self, db_session: AsyncSession, companies):
        await set_return_period(db_session, C1, 30)
        await set_return_period(db_session, C1, 45)
        rows = await _override_rows(db_session)
        assert len(rows) == 1
        assert rows[0].days == 45

    @pytest.mark.parametrize("days", [0, 366, -1, 30.5, True, "30", None])
    async def test_invalid_days(self, db_session: AsyncSession, companies, days):
        with pytest.raises(ValidationError) as exc_info:
            await set_return_period(db_session, C1, days)
        assert exc_info.value.details["field"] == "days"
        assert await _override_rows(db_session) == []

    @pytest.mark.parametrize("days", [1, 365])
    async def test_bounds_accepted(self, db_session: AsyncSession, companies, days):
        result = await set_return_period(db_session, C1, days)
        assert result.days == days

    async def test_unknown_company(self, db_session: AsyncSession, companies):
        with pytest.raises(NotFoundError):
            await set_return_period(db_session, "9999999999", 30)

    async def test_reset(self, db_session: AsyncSession, companies):
        await set_return_period(db_session, C1, 30)
        result = await reset_return_period(db_session, C1)
        assert result.is_default is True
        assert await resolve_return_period_days(db_session, C1) == 85

    async def test_concurrent_first_override_last_write_wins(self, session_factory, companies):
        async with session_factory() as first, session_factory() as second:
            # first admin sees no override yet
            assert await get_override(first, C1) is None

            # second admin creates one and commits before the first one writes
            await set_return_period(second, C1, 30)
            await second.commit()

            result = await set_return_period(first, C1, 45)
            await first.commit()
            assert result.days == 45

        async with session_factory() as check:
            rows = await _override_rows(check)
            assert [r.days for r in rows] == [45]
            assert await resolve_return_period_days(check, C1) == 45

    async def test_put_override_returns_current_row(self, db_session: AsyncSession, companies):
        first = await put_override(db_session, C1, 30)
        second = await put_override(db_session, C1, 60)
        assert first.id == second.id
        assert second.days == 60

    async def test_clear_is_idempotent(self, db_session: AsyncSession, companies):
        await clear_override(db_session, C1)
        await clear_override(db_session, C1)
        assert await _override_rows(db_session) == []


@pytest.mark.integration
@pytest.mark.asyncio
class TestComputeDueDate:

    async def test_default_period(self, db_session: AsyncSession, companies):
        due = await compute_supplier_return_due_date(db_session, date(2025, 1, 1), C1)
        assert due == date(2025, 3, 27)

    async def test_override_period(self, db_session: AsyncSession, companies):
        await set_return_period(db_session, C1, 90)
        due = await compute_supplier_return_due_date(db_session, date(2025, 1, 1), C1)
        assert due == date(2025, 4, 1)

    async def test_reflects_override_changes(self, db_session: AsyncSession, companies):
        await set_return_period(db_session, C1, 30)
        assert await compute_supplier_return_due_date(db_session, date(2025, 1, 1), C1) == date(2025, 1, 31)
        await reset_return_period(db_session, C1)
        assert await compute_supplier_return_due_date(db_session, date(2025, 1, 1), C1) == date(2025, 3, 27)

    async def test_no_reference(self, db_session: AsyncSession, companies):
        assert await compute_supplier_return_due_date(db_session, None, C1) is None
