import uuid
from datetime import datetime, timezone

from sqlalchemy import String, DateTime, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from guardpost.core.database import Base


class Guard(Base):
    __tablename__ = "guards"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    full_name: Mapped[str] = mapped_column(String(255), nullable=False)
    employment_type: Mapped[str] = mapped_column(String(20), default="w2")  # w2 | 1099
    status: Mapped[str] = mapped_column(String(20), default="active")       # active | inactive
    site_id: Mapped[str | None] = mapped_column(String(100), nullable=True)

    contact_email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    contact_phone: Mapped[str | None] = mapped_column(String(50), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )

    # Relationships
    violations: Mapped[list["Violation"]] = relationship(back_populates="guard")
    audits: Mapped[list["Audit"]] = relationship(back_populates="guard")
