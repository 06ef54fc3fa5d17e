import uuid
from datetime import datetime, timezone

from sqlalchemy import String, DateTime, Boolean, ForeignKey, Numeric, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from guardpost.core.database import Base


class AuditType(Base):
    __tablename__ = "audit_types"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    label: Mapped[str] = mapped_column(String(255), nullable=False)
    slug: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)  # interior_post | truck_gate


class Audit(Base):
    __tablename__ = "audits"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    guard_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("guards.id"), nullable=False)
    audit_type_id: Mapped[uuid.UUID | None] = mapped_column(ForeignKey("audit_types.id"), nullable=True)

    occurred_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    post: Mapped[str | None] = mapped_column(String(255), nullable=True)
    lane: Mapped[str | None] = mapped_column(String(50), nullable=True)
    shift: Mapped[str | None] = mapped_column(String(20), nullable=True)

    passed: Mapped[bool | None] = mapped_column("pass", Boolean, nullable=True)
    score: Mapped[float | None] = mapped_column(Numeric(5, 1), nullable=True)  # percent 0-100
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_by: Mapped[uuid.UUID | None] = mapped_column(ForeignKey("profiles.id"), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )

    guard: Mapped["Guard"] = relationship(back_populates="audits")
    audit_type: Mapped["AuditType | None"] = relationship()
