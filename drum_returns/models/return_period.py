"""ReturnPeriodOverride — per-company return window; no row means the default."""

from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from drum_returns.database import Base


class ReturnPeriodOverride(Base):
    __tablename__ = "return_period_overrides"
    __table_args__ = (
        CheckConstraint("days BETWEEN 1 AND 365", name="ck_return_period_days_range"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    company_tax_id: Mapped[str] = mapped_column(
        String(20), ForeignKey("companies.tax_id"), unique=True, nullable=False
    )
    days: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )
