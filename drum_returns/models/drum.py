"""Drum — a returnable cable drum held by a company.

Date columns:
  stock_receipt_date        → when the drum entered the company's possession
  issue_date                → dispatch date, when different from the receipt
  supplier_return_due_date  → explicit due date; computed from the company's
                              return period when missing
"""

from datetime import date, datetime

from sqlalchemy import Date, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from drum_returns.database import Base

DEFAULT_DRUM_STATUS = "Active"


class Drum(Base):
    __tablename__ = "drums"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    code: Mapped[str] = mapped_column(String(50), unique=True, nullable=False, index=True)
    company_tax_id: Mapped[str] = mapped_column(
        String(20), ForeignKey("companies.tax_id"), nullable=False, index=True
    )
    name: Mapped[str | None] = mapped_column(Text)
    feature: Mapped[str | None] = mapped_column(Text)

    stock_receipt_date: Mapped[date | None] = mapped_column(Date)
    issue_date: Mapped[date | None] = mapped_column(Date)
    supplier_return_due_date: Mapped[date | None] = mapped_column(Date)

    # Administrative label, independent of the computed overdue classification
    status: Mapped[str] = mapped_column(String(50), default=DEFAULT_DRUM_STATUS)

    # Source-document columns carried over from the stock import
    supplier_name: Mapped[str | None] = mapped_column(Text)
    document_type: Mapped[str | None] = mapped_column(String(50))
    document_number: Mapped[str | None] = mapped_column(String(100))
    counterparty_name: Mapped[str | None] = mapped_column(Text)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    company = relationship("Company", back_populates="drums", lazy="raise")
