import uuid
from typing import Literal
from zoneinfo import ZoneInfo

from fastapi import APIRouter, HTTPException, Query, status
from sqlalchemy import select
from sqlalchemy.orm import selectinload

from guardpost.api.deps import DB, Capabilities, CurrentProfile, LocalState, ManagerProfile
from guardpost.core.config import settings
from guardpost.models.audit import Audit, AuditType
from guardpost.models.guard import Guard
from guardpost.models.violation import Violation
from guardpost.schemas.guard import (
    AuditCreate,
    AuditOut,
    AuditTypeRef,
    BulkGuardRequest,
    BulkGuardResult,
    GuardCreate,
    GuardDetail,
    GuardOption,
    GuardOut,
    GuardStatsOut,
    GuardUpdate,
    GuardViolationOut,
)
from guardpost.services import guard_procedures, guard_stats
from guardpost.services import violation_state as vs
from guardpost.services.csv_export import csv_response, to_csv
from guardpost.services.tentative import MutationFailed
from guardpost.services.violation_service import load_options
from guardpost.utils.dates import format_pct, format_short_date, today_utc

router = APIRouter(prefix="/guards", tags=["guards"])

RosterStatus = Literal["active", "inactive", "all"]


async def _get_guard_or_404(db, guard_id: uuid.UUID) -> Guard:
    result = await db.execute(select(Guard).where(Guard.id == guard_id))
    guard = result.scalar_one_or_none()
    if not guard:
        raise HTTPException(status_code=404, detail="Guard not found")
    return guard


async def _roster(db, caps, store, q: str, status_filter: str, sort: str, direction: str):
    rows = await guard_stats.guard_stats(db, caps, store.void_overrides)
    rows = guard_stats.filter_roster(rows, status_filter, guard_stats.parse_query(q))
    return guard_stats.sort_roster(rows, sort, direction)


# ── Roster ────────────────────────────────────────────────────────────────────

@router.get("", response_model=list[GuardStatsOut])
async def list_guards(
    current_profile: CurrentProfile,
    db: DB,
    caps: Capabilities,
    store: LocalState,
    q: str = "",
    status_filter: RosterStatus = Query("active", alias="status"),
    sort: str = "full_name",
    direction: Literal["asc", "desc"] = Query("asc", alias="dir"),
):
    """
    Roster with per-guard statistics.

    `q` accepts chips: name:"Jane D", status:inactive, "quoted name" or bare words.
    """
    return await _roster(db, caps, store, q, status_filter, sort, direction)


@router.get("/export.csv")
async def export_guards(
    current_profile: CurrentProfile,
    db: DB,
    caps: Capabilities,
    store: LocalState,
    mode: Literal["visible", "all"] = "visible",
    columns: str | None = None,
    q: str = "",
    status_filter: RosterStatus = Query("active", alias="status"),
    sort: str = "full_name",
    direction: Literal["asc", "desc"] = Query("asc", alias="dir"),
):
    """`columns` is a comma-separated list of roster keys; the name column is always included."""
    rows = await _roster(db, caps, store, q, status_filter, sort, direction)

    if mode == "all" or not columns:
        cols = guard_stats.ROSTER_COLUMNS
    else:
        wanted = {c.strip() for c in columns.split(",")} | {"full_name"}
        cols = [c for c in guard_stats.ROSTER_COLUMNS if c[0] in wanted]

    tz = ZoneInfo(settings.DISPLAY_TIMEZONE)

    def cell(row, key):
        value = getattr(row, key)
        if key == "last_violation_at":
            return format_short_date(value.astimezone(tz) if value else None)
        if key.endswith("_avg_score_pct"):
            return format_pct(value)
        return value

    body = [[cell(r, key) for key, _ in cols] for r in rows]
    return csv_response(
        to_csv([label for _, label in cols], body),
        f"roster_{mode}_{today_utc().isoformat()}.csv",
    )


@router.get("/options", response_model=list[GuardOption])
async def guard_options(current_profile: CurrentProfile, db: DB):
    """Active guards for pickers."""
    result = await db.execute(
        select(Guard).where(Guard.status == "active").order_by(Guard.full_name)
    )
    return result.scalars().all()


@router.post("", response_model=GuardOut, status_code=status.HTTP_201_CREATED)
async def create_guard(payload: GuardCreate, current_profile: ManagerProfile, db: DB):
    guard = Guard(**payload.model_dump())
    db.add(guard)
    await db.commit()
    await db.refresh(guard)
    return guard


# ── Bulk actions ──────────────────────────────────────────────────────────────

async def _apply_each(db, guard_ids: list[uuid.UUID], action) -> list[BulkGuardResult]:
    results = []
    for guard_id in guard_ids:
        try:
            await action(db, guard_id)
        except guard_procedures.GuardNotFound:
            results.append(BulkGuardResult(guard_id=guard_id, ok=False, error="Guard not found"))
        except (guard_procedures.GuardInUse, MutationFailed) as e:
            results.append(BulkGuardResult(guard_id=guard_id, ok=False, error=str(e)))
        else:
            results.append(BulkGuardResult(guard_id=guard_id, ok=True))
    return results


@router.post("/bulk-archive", response_model=list[BulkGuardResult])
async def bulk_archive(payload: BulkGuardRequest, current_profile: ManagerProfile, db: DB):
    return await _apply_each(db, payload.guard_ids, guard_procedures.archive_guard)


@router.post("/bulk-delete", response_model=list[BulkGuardResult])
async def bulk_delete(payload: BulkGuardRequest, current_profile: ManagerProfile, db: DB):
    return await _apply_each(db, payload.guard_ids, guard_procedures.delete_guard_if_unused)


# ── Single guard ──────────────────────────────────────────────────────────────

def _audit_out(a: Audit) -> AuditOut:
    out = AuditOut.model_validate(a)
    out.audit_type_label = a.audit_type.label if a.audit_type else None
    return out


@router.get("/{guard_id}", response_model=GuardDetail)
async def get_guard(
    guard_id: uuid.UUID, current_profile: CurrentProfile, db: DB, caps: Capabilities, store: LocalState
):
    guard = await _get_guard_or_404(db, guard_id)
    local_voids = store.void_overrides

    stats = await guard_stats.guard_stats(db, caps, local_voids, guard_id=guard_id)

    violations = (await db.execute(
        select(Violation)
        .where(Violation.guard_id == guard_id)
        .options(*load_options(caps))
        .order_by(Violation.occurred_at.desc())
    )).scalars().all()

    audits = (await db.execute(
        select(Audit)
        .where(Audit.guard_id == guard_id)
        .options(selectinload(Audit.audit_type))
        .order_by(Audit.occurred_at.desc())
    )).scalars().all()

    audit_types = (await db.execute(select(AuditType).order_by(AuditType.label))).scalars().all()

    return GuardDetail(
        guard=GuardOut.model_validate(guard),
        stats=GuardStatsOut.model_validate(stats[0]) if stats else None,
        violations=[
            GuardViolationOut(
                id=v.id,
                occurred_at=v.occurred_at,
                type_label=vs.type_label(v),
                post=v.post,
                lane=v.lane,
                effective_status=vs.effective_status(v, caps.voided_column, local_voids),
                docs_label=vs.docs_label(v),
            )
            for v in violations
        ],
        audits=[_audit_out(a) for a in audits],
        audit_types=[AuditTypeRef.model_validate(t) for t in audit_types],
    )


@router.put("/{guard_id}", response_model=GuardOut)
async def update_guard(guard_id: uuid.UUID, payload: GuardUpdate, current_profile: ManagerProfile, db: DB):
    guard = await _get_guard_or_404(db, guard_id)
    for field, value in payload.model_dump(exclude_unset=True).items():
        setattr(guard, field, value)
    await db.commit()
    await db.refresh(guard)
    return guard


@router.post("/{guard_id}/toggle-status", response_model=GuardOut)
async def toggle_guard_status(guard_id: uuid.UUID, current_profile: ManagerProfile, db: DB):
    guard = await _get_guard_or_404(db, guard_id)
    guard.status = "active" if guard.status == "inactive" else "inactive"
    await db.commit()
    await db.refresh(guard)
    return guard


@router.post("/{guard_id}/archive", response_model=GuardOut)
async def archive_guard(guard_id: uuid.UUID, current_profile: ManagerProfile, db: DB):
    try:
        await guard_procedures.archive_guard(db, guard_id)
    except guard_procedures.GuardNotFound:
        raise HTTPException(status_code=404, detail="Guard not found")
    result = await db.execute(
        select(Guard).where(Guard.id == guard_id).execution_options(populate_existing=True)
    )
    return result.scalar_one()


@router.delete("/{guard_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_guard(guard_id: uuid.UUID, current_profile: ManagerProfile, db: DB):
    """Only guards without violations or audits can be deleted."""
    try:
        await guard_procedures.delete_guard_if_unused(db, guard_id)
    except guard_procedures.GuardNotFound:
        raise HTTPException(status_code=404, detail="Guard not found")
    except guard_procedures.GuardInUse as e:
        raise HTTPException(status_code=409, detail=str(e))


@router.post("/{guard_id}/audits", response_model=AuditOut, status_code=status.HTTP_201_CREATED)
async def add_audit(guard_id: uuid.UUID, payload: AuditCreate, current_profile: ManagerProfile, db: DB):
    await _get_guard_or_404(db, guard_id)
    audit_type = (
        await db.execute(select(AuditType).where(AuditType.id == payload.audit_type_id))
    ).scalar_one_or_none()
    if not audit_type:
        raise HTTPException(status_code=404, detail="Audit type not found")

    audit = Audit(guard_id=guard_id, created_by=current_profile.id, **payload.model_dump())
    db.add(audit)
    await db.commit()

    result = await db.execute(
        select(Audit).where(Audit.id == audit.id).options(selectinload(Audit.audit_type))
    )
    return _audit_out(result.scalar_one())
