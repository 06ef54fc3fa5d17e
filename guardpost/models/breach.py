import uuid
from datetime import date, datetime, timezone

from sqlalchemy import String, DateTime, ForeignKey, Text, Date
from sqlalchemy.orm import Mapped, mapped_column

from guardpost.core.database import Base


class ContractorBreach(Base):
    __tablename__ = "contractor_breaches"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    guard_id: Mapped[uuid.UUID | None] = mapped_column(ForeignKey("guards.id"), nullable=True)

    contractor_name: Mapped[str] = mapped_column(String(255), nullable=False)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    eligible_return_date: Mapped[date] = mapped_column(Date, nullable=False)
    violation_code: Mapped[str | None] = mapped_column(String(100), nullable=True)
    reason: Mapped[str | None] = mapped_column(Text, nullable=True)

    status: Mapped[str] = mapped_column(String(20), default="active")  # active | ended
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )
