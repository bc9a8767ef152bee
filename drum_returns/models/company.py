"""Company — a customer holding drums, identified by its tax id (NIP)."""

from datetime import datetime

from sqlalchemy import DateTime, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from drum_returns.database import Base

DEFAULT_COMPANY_STATUS = "Active"


class Company(Base):
    __tablename__ = "companies"

    tax_id: Mapped[str] = mapped_column(String(20), primary_key=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    email: Mapped[str | None] = mapped_column(String(255))
    phone: Mapped[str | None] = mapped_column(String(50))
    address: Mapped[str | None] = mapped_column(Text)
    status: Mapped[str] = mapped_column(String(50), default=DEFAULT_COMPANY_STATUS)

    # Touched on every return-request mutation
    last_activity_at: Mapped[datetime | None] = mapped_column(DateTime)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    drums = relationship("Drum", back_populates="company", lazy="raise")
