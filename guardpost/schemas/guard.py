from pydantic import BaseModel, EmailStr, field_validator
from typing import Literal
import uuid
from datetime import datetime

from guardpost.utils.dates import as_utc


class GuardCreate(BaseModel):
    full_name: str
    employment_type: Literal["w2", "1099"] = "w2"
    status: Literal["active", "inactive"] = "active"
    site_id: str | None = None
    contact_email: EmailStr | None = None
    contact_phone: str | None = None
    notes: str | None = None

    @field_validator("full_name")
    @classmethod
    def name_required(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Full name is required")
        return v


class GuardUpdate(BaseModel):
    full_name: str | None = None
    employment_type: Literal["w2", "1099"] | None = None
    status: Literal["active", "inactive"] | None = None
    contact_email: EmailStr | None = None
    notes: str | None = None

    @field_validator("full_name")
    @classmethod
    def name_not_blank(cls, v: str | None) -> str | None:
        if v is not None and not v.strip():
            raise ValueError("Full name is required")
        return v.strip() if v is not None else None


class GuardOut(BaseModel):
    id: uuid.UUID
    full_name: str
    employment_type: str
    status: str
    site_id: str | None
    contact_email: str | None
    contact_phone: str | None
    notes: str | None
    created_at: datetime

    model_config = {"from_attributes": True}


class GuardOption(BaseModel):
    id: uuid.UUID
    full_name: str

    model_config = {"from_attributes": True}


class GuardStatsOut(BaseModel):
    guard_id: uuid.UUID
    full_name: str
    roster_status: str
    employment_type: str
    open_violations: int
    total_violations: int
    callouts: int
    early_departures: int
    docs_pending: int
    docs_provided: int
    docs_not_provided: int
    last_violation_at: datetime | None
    ip_avg_score_pct: float | None
    tg_avg_score_pct: float | None
    ip_audits: int
    tg_audits: int
    last_audit_at: datetime | None

    model_config = {"from_attributes": True}


class AuditCreate(BaseModel):
    audit_type_id: uuid.UUID
    occurred_at: datetime
    passed: bool | None = None
    score: float | None = None
    notes: str | None = None
    post: str | None = None
    lane: str | None = None
    shift: Literal["day", "night"] | None = None

    @field_validator("occurred_at")
    @classmethod
    def occurred_at_utc(cls, v: datetime) -> datetime:
        return as_utc(v)

    @field_validator("score")
    @classmethod
    def score_is_percent(cls, v: float | None) -> float | None:
        if v is not None and not 0 <= v <= 100:
            raise ValueError("score must be between 0 and 100")
        return v


class AuditOut(BaseModel):
    id: uuid.UUID
    guard_id: uuid.UUID
    audit_type_id: uuid.UUID | None
    audit_type_label: str | None = None
    occurred_at: datetime
    post: str | None
    lane: str | None
    shift: str | None
    passed: bool | None
    score: float | None
    notes: str | None
    created_at: datetime

    model_config = {"from_attributes": True}


class GuardViolationOut(BaseModel):
    id: uuid.UUID
    occurred_at: datetime
    type_label: str
    post: str | None
    lane: str | None
    effective_status: str
    docs_label: str


class AuditTypeRef(BaseModel):
    id: uuid.UUID
    label: str
    slug: str

    model_config = {"from_attributes": True}


class GuardDetail(BaseModel):
    guard: GuardOut
    stats: GuardStatsOut | None
    violations: list[GuardViolationOut]
    audits: list[AuditOut]
    audit_types: list[AuditTypeRef]


class BulkGuardRequest(BaseModel):
    guard_ids: list[uuid.UUID]


class BulkGuardResult(BaseModel):
    guard_id: uuid.UUID
    ok: bool
    error: str | None = None
