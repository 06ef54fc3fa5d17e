import uuid
from datetime import date, datetime, timezone

from sqlalchemy import String, DateTime, Boolean, ForeignKey, Integer, Text, Date
from sqlalchemy.orm import Mapped, mapped_column, relationship

from guardpost.core.database import Base


class ViolationType(Base):
    __tablename__ = "violation_types"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    label: Mapped[str] = mapped_column(String(255), nullable=False)
    slug: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)  # callout | early_departure | ...


class Post(Base):
    __tablename__ = "posts"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    active: Mapped[bool] = mapped_column(Boolean, default=True)


class Violation(Base):
    __tablename__ = "violations"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    guard_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("guards.id"), nullable=False)
    type_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("violation_types.id"), nullable=False)

    occurred_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    shift: Mapped[str] = mapped_column(String(20), default="day")  # day | night
    post: Mapped[str | None] = mapped_column(String(255), nullable=True)
    lane: Mapped[str | None] = mapped_column(String(50), nullable=True)

    supervisor_note: Mapped[str] = mapped_column(Text, nullable=False)
    witness_name: Mapped[str | None] = mapped_column(String(255), nullable=True)

    status: Mapped[str] = mapped_column(String(20), default="open")           # open | closed
    doc_status: Mapped[str | None] = mapped_column(String(20), nullable=True)  # pending | provided | not_provided
    documentation_due_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    breach_days: Mapped[int | None] = mapped_column(Integer, nullable=True)
    eligible_return_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    supervisor_id: Mapped[uuid.UUID | None] = mapped_column(ForeignKey("profiles.id"), nullable=True)
    created_by: Mapped[uuid.UUID | None] = mapped_column(ForeignKey("profiles.id"), nullable=True)
    supervisor_attested_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    supervisor_signature_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    approved_by: Mapped[uuid.UUID | None] = mapped_column(ForeignKey("profiles.id"), nullable=True)

    # Added by migration 0002. Deferred, and evaluates_none() keeps an unset
    # value out of INSERTs, so databases without the column still work.
    voided: Mapped[bool | None] = mapped_column(Boolean().evaluates_none(), nullable=True, deferred=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )

    # Relationships
    guard: Mapped["Guard"] = relationship(back_populates="violations")
    violation_type: Mapped["ViolationType"] = relationship()
    approver: Mapped["Profile | None"] = relationship(foreign_keys=[approved_by])
    files: Mapped[list["ViolationFile"]] = relationship(
        back_populates="violation", cascade="all, delete-orphan"
    )


class ViolationFile(Base):
    __tablename__ = "violation_files"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    violation_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("violations.id", ondelete="CASCADE"), nullable=False
    )
    file_path: Mapped[str] = mapped_column(String(1000), nullable=False)
    uploaded_by: Mapped[uuid.UUID | None] = mapped_column(ForeignKey("profiles.id"), nullable=True)
    uploaded_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )

    violation: Mapped["Violation"] = relationship(back_populates="files")
    uploader: Mapped["Profile | None"] = relationship()
