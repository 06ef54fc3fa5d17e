from pydantic import BaseModel, field_validator
from typing import Literal
import uuid
from datetime import date, datetime

from guardpost.utils.dates import as_utc


# ── Log a violation ───────────────────────────────────────────────────────────

class ViolationCreate(BaseModel):
    guard_id: uuid.UUID
    type_id: uuid.UUID
    occurred_at: datetime
    shift: Literal["day", "night"] = "day"
    post: str | None = None
    lane: str | None = None
    supervisor_note: str
    witness_name: str | None = None
    supervisor_signature_name: str
    breach_days: int | None = None
    eligible_return_date: date | None = None

    @field_validator("occurred_at")
    @classmethod
    def occurred_at_utc(cls, v: datetime) -> datetime:
        return as_utc(v)

    @field_validator("supervisor_note")
    @classmethod
    def note_required(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Please enter a brief supervisor note.")
        return v

    @field_validator("supervisor_signature_name")
    @classmethod
    def signature_min_length(cls, v: str) -> str:
        v = v.strip()
        if len(v) < 2:
            raise ValueError("Type your full name to sign/acknowledge.")
        return v

    @field_validator("post", "lane", "witness_name")
    @classmethod
    def blank_is_none(cls, v: str | None) -> str | None:
        if v is None:
            return None
        return v.strip() or None

    @field_validator("breach_days")
    @classmethod
    def breach_days_non_negative(cls, v: int | None) -> int | None:
        if v is not None and v < 0:
            raise ValueError("breach_days must not be negative")
        return v


# ── State changes ─────────────────────────────────────────────────────────────

class StatusUpdate(BaseModel):
    status: Literal["open", "closed"]


class VoidUpdate(BaseModel):
    void: bool


class DocStatusUpdate(BaseModel):
    doc_status: Literal["pending", "provided", "not_provided"]


# ── Output ────────────────────────────────────────────────────────────────────

class ViolationListItem(BaseModel):
    id: uuid.UUID
    occurred_at: datetime
    guard_id: uuid.UUID
    guard_name: str
    type_id: uuid.UUID
    type_label: str
    type_slug: str
    post: str | None
    lane: str | None
    shift: str | None
    status: str
    effective_status: str
    doc_status: str | None
    requires_docs: bool
    docs_label: str
    breach_days: int | None
    breach_tone: str | None
    eligible_return_date: date | None
    return_is_today: bool


class ViolationCounts(BaseModel):
    open: int
    closed: int
    void: int
    docs_pending: int


class ViolationListResponse(BaseModel):
    items: list[ViolationListItem]
    total: int
    page: int
    page_size: int
    total_pages: int
    counts: ViolationCounts
    voided_column: bool


class ViolationDetail(ViolationListItem):
    supervisor_note: str
    witness_name: str | None
    documentation_due_at: datetime | None
    supervisor_id: uuid.UUID | None
    created_by: uuid.UUID | None
    supervisor_attested_at: datetime | None
    supervisor_signature_name: str | None
    approved_by: uuid.UUID | None
    approver_name: str | None
    created_at: datetime


# ── Evidence ──────────────────────────────────────────────────────────────────

class EvidenceFileOut(BaseModel):
    id: uuid.UUID
    file_path: str
    uploaded_at: datetime
    uploaded_by: uuid.UUID | None
    uploaded_by_name: str | None
    signed_url: str | None


class EvidenceUploadResult(BaseModel):
    filename: str
    ok: bool
    file_id: uuid.UUID | None = None
    file_path: str | None = None
    error: str | None = None


class EvidenceUploadResponse(BaseModel):
    results: list[EvidenceUploadResult]
    uploaded: int
    failed: int
    doc_status: str | None


# ── Pending documentation ─────────────────────────────────────────────────────

class PendingDocOut(BaseModel):
    id: uuid.UUID
    guard_name: str
    type_label: str
    occurred_at: datetime
    documentation_due_at: datetime | None
    doc_status: str | None
