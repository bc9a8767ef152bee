"""Pytest configuration and fixtures for the drum returns tests.

Every test gets its own in-memory SQLite database (aiosqlite). Seed fixtures
commit their rows so that API requests, which open their own sessions, see
them.
"""

from datetime import date, timedelta
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from drum_returns.auth.jwt import create_access_token
from drum_returns.auth.password import hash_password
from drum_returns.auth.permissions import Principal
from drum_returns.database import get_db, init_models
from drum_returns.main import app
from drum_returns.models import AdminAccount, ClientAccount, Company, Drum, UserRole

C1 = "1111111111"
C2 = "2222222222"
CLIENT_PASSWORD = "client-secret-1"
ADMIN_PASSWORD = "admin-secret-1"


# ── Test Database Setup ──────────────────────────────────────────

@pytest_asyncio.fixture
async def test_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    await init_models(engine)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(test_engine):
    return async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def client(session_factory) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client whose requests use the test database."""

    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


# ── Test Data Fixtures ───────────────────────────────────────────

@pytest_asyncio.fixture
async def companies(db_session: AsyncSession) -> dict[str, Company]:
    alpha = Company(tax_id=C1, name="Alpha Cables Sp. z o.o.", email="office@alpha.test")
    beta = Company(tax_id=C2, name="Beta Energy SA", email="office@beta.test")
    db_session.add_all([alpha, beta])
    await db_session.commit()
    return {C1: alpha, C2: beta}


@pytest_asyncio.fixture
async def drums(db_session: AsyncSession, companies) -> dict[str, Drum]:
    """Fixed-date drums, for tests that pass an explicit `now`.

    D1 (C1) received 2025-01-01 → due 2025-03-27 with the default period
    D2 (C1) received 2024-10-01 → due 2024-12-25, overdue in March 2025
    D3 (C2) received 2025-01-01
    """
    items = {
        "D1": Drum(code="D1", company_tax_id=C1, name="Drum FI 11", stock_receipt_date=date(2025, 1, 1)),
        "D2": Drum(code="D2", company_tax_id=C1, name="Drum FI 10", stock_receipt_date=date(2024, 10, 1)),
        "D3": Drum(code="D3", company_tax_id=C2, name="Drum FI 12", stock_receipt_date=date(2025, 1, 1)),
    }
    db_session.add_all(items.values())
    await db_session.commit()
    return items


@pytest_asyncio.fixture
async def live_drums(db_session: AsyncSession, companies) -> dict[str, Drum]:
    """Drums dated relative to today, for API tests that run on the wall clock.

    FRESH   (C1) due in 60 days      → Active
    SOON    (C1) due in 3 days       → DueSoon
    LATE    (C1) due 10 days ago     → Overdue
    FOREIGN (C2) due in 60 days      → Active
    """
    today = date.today()
    items = {
        "FRESH": Drum(code="FRESH", company_tax_id=C1, stock_receipt_date=today - timedelta(days=25)),
        "SOON": Drum(code="SOON", company_tax_id=C1, supplier_return_due_date=today + timedelta(days=3)),
        "LATE": Drum(code="LATE", company_tax_id=C1, stock_receipt_date=today - timedelta(days=95)),
        "FOREIGN": Drum(code="FOREIGN", company_tax_id=C2, stock_receipt_date=today - timedelta(days=25)),
    }
    db_session.add_all(items.values())
    await db_session.commit()
    return items


@pytest_asyncio.fixture
async def accounts(db_session: AsyncSession, companies):
    db_session.add_all([
        ClientAccount(company_tax_id=C1, password_hash=hash_password(CLIENT_PASSWORD)),
        AdminAccount(
            username="admin",
            name="System Administrator",
            role=UserRole.ADMIN.value,
            password_hash=hash_password(ADMIN_PASSWORD),
        ),
        AdminAccount(
            username="retired",
            name="Former Admin",
            role=UserRole.ADMIN.value,
            password_hash=hash_password(ADMIN_PASSWORD),
            is_active=False,
        ),
    ])
    await db_session.commit()


# ── Principals & tokens ──────────────────────────────────────────

@pytest.fixture
def client_principal() -> Principal:
    return Principal(subject=f"client:{C1}", role=UserRole.CLIENT, company_tax_id=C1)


@pytest.fixture
def other_client_principal() -> Principal:
    return Principal(subject=f"client:{C2}", role=UserRole.CLIENT, company_tax_id=C2)


@pytest.fixture
def admin_principal() -> Principal:
    return Principal(subject="admin:admin", role=UserRole.ADMIN)


@pytest.fixture
def supervisor_principal() -> Principal:
    return Principal(subject="admin:supervisor", role=UserRole.SUPERVISOR)


def _headers(principal: Principal) -> dict:
    token = create_access_token(
        principal.subject, principal.role.value, company_tax_id=principal.company_tax_id
    )
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def client_headers(client_principal) -> dict:
    return _headers(client_principal)


@pytest.fixture
def other_client_headers(other_client_principal) -> dict:
    return _headers(other_client_principal)


@pytest.fixture
def admin_headers(admin_principal) -> dict:
    return _headers(admin_principal)


@pytest.fixture
def supervisor_headers(supervisor_principal) -> dict:
    return _headers(supervisor_principal)


@pytest.fixture
def request_fields() -> dict:
    """A complete return-request form; tests override single fields."""
    return {
        "street": "Industrial 5",
        "postal_code": "30-001",
        "city": "Kraków",
        "contact_email": "logistics@alpha.test",
        "loading_hours": "8:00-15:00",
        "available_equipment": "forklift",
        "notes": None,
        "collection_date": "2025-03-25",
        "selected_drum_codes": ["D1"],
    }


# ── Test Markers ─────────────────────────────────────────────────

def pytest_configure(config):
    """Configure custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "api: HTTP API tests")
    config.addinivalue_line("markers", "integration: Service tests against the database")
