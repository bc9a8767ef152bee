"""ReturnRequest — a client's request to have drums collected.

Status lifecycle:
    Pending ──► Approved ──► Completed
       └──────► Rejected
"""

import enum
from datetime import date, datetime

from sqlalchemy import JSON, Date, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from drum_returns.database import Base


class RequestStatus(str, enum.Enum):
    PENDING = "Pending"
    APPROVED = "Approved"
    COMPLETED = "Completed"
    REJECTED = "Rejected"


class RequestPriority(str, enum.Enum):
    NORMAL = "Normal"
    HIGH = "High"


class ReturnRequest(Base):
    __tablename__ = "return_requests"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    company_tax_id: Mapped[str] = mapped_column(
        String(20), ForeignKey("companies.tax_id"), nullable=False, index=True
    )
    company_name: Mapped[str] = mapped_column(Text, nullable=False)

    # Collection address & logistics
    street: Mapped[str] = mapped_column(Text, nullable=False)
    postal_code: Mapped[str] = mapped_column(String(20), nullable=False)
    city: Mapped[str] = mapped_column(String(100), nullable=False)
    contact_email: Mapped[str] = mapped_column(String(255), nullable=False)
    loading_hours: Mapped[str] = mapped_column(String(100), nullable=False)
    available_equipment: Mapped[str | None] = mapped_column(Text)
    notes: Mapped[str | None] = mapped_column(Text)
    collection_date: Mapped[date] = mapped_column(Date, nullable=False)

    # Ordered list of drum codes
    selected_drum_codes: Mapped[list] = mapped_column(JSON, nullable=False)

    # Stored as plain strings; values come from RequestStatus / RequestPriority
    status: Mapped[str] = mapped_column(String(20), default=RequestStatus.PENDING.value)
    priority: Mapped[str] = mapped_column(String(10), default=RequestPriority.NORMAL.value)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )
