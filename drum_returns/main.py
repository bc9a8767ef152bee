from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from drum_returns.config import settings
from drum_returns.logging_setup import setup_logging
from drum_returns.middleware.exceptions import register_exception_handlers
from drum_returns.middleware.security import SecurityHeadersMiddleware
from drum_returns.routers import auth, companies, drums, health, return_periods, returns, stats

setup_logging()


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    from drum_returns.database import engine

    await engine.dispose()


app = FastAPI(
    title="Drum Returns",
    description="Drum rental-return tracking: due dates, overdue drums and return requests",
    version="0.1.0",
    lifespan=lifespan,
)

# ── Exception Handlers ───────────────────────────────────────
register_exception_handlers(app)

# ── Middleware (outermost first) ─────────────────────────────
app.add_middleware(SecurityHeadersMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins.split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ── Routers ──────────────────────────────────────────────────
app.include_router(health.router)
app.include_router(auth.router, prefix="/api/auth", tags=["auth"])
app.include_router(companies.router, prefix="/api/companies", tags=["companies"])
app.include_router(drums.router, prefix="/api/drums", tags=["drums"])
app.include_router(returns.router, prefix="/api/returns", tags=["returns"])
app.include_router(return_periods.router, prefix="/api/return-periods", tags=["return-periods"])
app.include_router(stats.router, prefix="/api/stats", tags=["stats"])
