import logging
import mimetypes
import uuid
from datetime import date, datetime, timezone
from typing import Literal

from fastapi import APIRouter, File, HTTPException, Query, Response, UploadFile, status
from sqlalchemy import select
from sqlalchemy.orm import selectinload

from guardpost.api.deps import DB, Capabilities, CurrentProfile, LocalState, ManagerProfile, Storage
from guardpost.core.config import settings
from guardpost.models.guard import Guard
from guardpost.models.violation import Violation, ViolationFile, ViolationType
from guardpost.schemas.violation import (
    DocStatusUpdate,
    EvidenceFileOut,
    EvidenceUploadResponse,
    EvidenceUploadResult,
    StatusUpdate,
    ViolationCounts,
    ViolationCreate,
    ViolationDetail,
    ViolationListItem,
    ViolationListResponse,
    VoidUpdate,
)
from guardpost.services import violation_service
from guardpost.services import violation_state as vs
from guardpost.services.csv_export import csv_response, dicts_to_csv
from guardpost.services.tentative import MutationFailed
from guardpost.services.violation_service import ViolationQuery
from guardpost.utils.dates import file_timestamp, format_local_datetime, today_in

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/violations", tags=["violations"])
evidence_router = APIRouter(prefix="/evidence", tags=["evidence"])

EXPORT_COLUMNS = [
    "occurred_at", "guard", "type", "post", "shift", "status", "docs",
    "breach_days", "eligible_return_date", "id",
]


# ── Helpers ───────────────────────────────────────────────────────────────────

def _list_item(record: Violation, effective: str) -> dict:
    slug = vs.type_slug(record)
    return {
        "id": record.id,
        "occurred_at": record.occurred_at,
        "guard_id": record.guard_id,
        "guard_name": vs.guard_name(record),
        "type_id": record.type_id,
        "type_label": vs.type_label(record),
        "type_slug": slug,
        "post": record.post,
        "lane": record.lane,
        "shift": record.shift,
        "status": record.status,
        "effective_status": effective,
        "doc_status": record.doc_status,
        "requires_docs": vs.requires_documentation(slug),
        "docs_label": vs.docs_label(record),
        "breach_days": record.breach_days,
        "breach_tone": vs.breach_tone(record.breach_days),
        "eligible_return_date": record.eligible_return_date,
        "return_is_today": record.eligible_return_date == today_in(settings.DISPLAY_TIMEZONE),
    }


def _detail(record: Violation, effective: str) -> ViolationDetail:
    approver = record.approver
    return ViolationDetail(
        **_list_item(record, effective),
        supervisor_note=record.supervisor_note,
        witness_name=record.witness_name,
        documentation_due_at=record.documentation_due_at,
        supervisor_id=record.supervisor_id,
        created_by=record.created_by,
        supervisor_attested_at=record.supervisor_attested_at,
        supervisor_signature_name=record.supervisor_signature_name,
        approved_by=record.approved_by,
        approver_name=approver.full_name if approver else None,
        created_at=record.created_at,
    )


def _parse_type(value: str) -> uuid.UUID | None:
    if not value or value == "all":
        return None
    try:
        return uuid.UUID(value)
    except ValueError:
        raise HTTPException(status_code=422, detail="type must be 'all' or a violation type id")


def _list_query(
    q: str,
    status_filter: str,
    docs: str,
    type_: str,
    date_from: date | None,
    date_to: date | None,
    page: int,
    ps: int,
    sort: str,
    direction: str,
) -> ViolationQuery:
    return ViolationQuery(
        q=q,
        status=status_filter,
        docs=docs,
        type_id=_parse_type(type_),
        date_from=date_from,
        date_to=date_to,
        page=page,
        page_size=ps,
        sort=sort,
        direction=direction,
    )


async def _load(db, violation_id: uuid.UUID, caps) -> Violation:
    violation = await violation_service.get_violation(db, violation_id, caps)
    if not violation:
        raise HTTPException(status_code=404, detail="Violation not found")
    return violation


# ── List / export ─────────────────────────────────────────────────────────────

@router.get("", response_model=ViolationListResponse)
async def list_violations(
    current_profile: CurrentProfile,
    db: DB,
    caps: Capabilities,
    store: LocalState,
    q: str = "",
    status_filter: Literal["all", "open", "closed", "void"] = Query("all", alias="status"),
    docs: Literal["all", "provided", "not_provided", "pending", "na"] = "all",
    type_: str = Query("all", alias="type"),
    date_from: date | None = Query(None, alias="from"),
    date_to: date | None = Query(None, alias="to"),
    page: int = Query(1, ge=1),
    ps: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=violation_service.MAX_PAGE_SIZE),
    sort: Literal["occurred_at", "guard", "type", "post", "status", "docs"] = "occurred_at",
    direction: Literal["asc", "desc"] = Query("desc", alias="dir"),
):
    query = _list_query(q, status_filter, docs, type_, date_from, date_to, page, ps, sort, direction)
    result = await violation_service.list_violations(db, caps, store.void_overrides, query)
    return ViolationListResponse(
        items=[ViolationListItem(**_list_item(r.record, r.status)) for r in result.rows],
        total=result.total,
        page=result.page,
        page_size=result.page_size,
        total_pages=result.total_pages,
        counts=ViolationCounts(**result.counts),
        voided_column=caps.voided_column,
    )


@router.get("/export.csv")
async def export_violations(
    current_profile: CurrentProfile,
    db: DB,
    caps: Capabilities,
    store: LocalState,
    q: str = "",
    status_filter: Literal["all", "open", "closed", "void"] = Query("all", alias="status"),
    docs: Literal["all", "provided", "not_provided", "pending", "na"] = "all",
    type_: str = Query("all", alias="type"),
    date_from: date | None = Query(None, alias="from"),
    date_to: date | None = Query(None, alias="to"),
    page: int = Query(1, ge=1),
    ps: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=violation_service.MAX_PAGE_SIZE),
    sort: Literal["occurred_at", "guard", "type", "post", "status", "docs"] = "occurred_at",
    direction: Literal["asc", "desc"] = Query("desc", alias="dir"),
):
    """Exactly the rows of the requested page, in display order."""
    query = _list_query(q, status_filter, docs, type_, date_from, date_to, page, ps, sort, direction)
    result = await violation_service.list_violations(db, caps, store.void_overrides, query)
    items = [
        {
            "occurred_at": format_local_datetime(r.record.occurred_at),
            "guard": vs.guard_name(r.record),
            "type": vs.type_label(r.record),
            "post": vs.post_and_lane(r.record, lane_prefix="lane "),
            "shift": r.record.shift or "",
            "status": r.status,
            "docs": vs.docs_label(r.record),
            "breach_days": r.record.breach_days,
            "eligible_return_date": r.record.eligible_return_date,
            "id": r.record.id,
        }
        for r in result.rows
    ]
    return csv_response(
        dicts_to_csv(items, EXPORT_COLUMNS),
        f"violations_{file_timestamp()}.csv",
    )


# ── Log a violation ───────────────────────────────────────────────────────────

@router.post("", response_model=ViolationDetail, status_code=status.HTTP_201_CREATED)
async def log_violation(payload: ViolationCreate, current_profile: CurrentProfile, db: DB, caps: Capabilities):
    guard = (await db.execute(select(Guard).where(Guard.id == payload.guard_id))).scalar_one_or_none()
    if not guard:
        raise HTTPException(status_code=404, detail="Guard not found")
    vtype = (
        await db.execute(select(ViolationType).where(ViolationType.id == payload.type_id))
    ).scalar_one_or_none()
    if not vtype:
        raise HTTPException(status_code=404, detail="Violation type not found")

    requires = vs.requires_documentation(vtype.slug)
    violation = Violation(
        guard_id=guard.id,
        type_id=vtype.id,
        occurred_at=payload.occurred_at,
        shift=payload.shift,
        post=payload.post,
        lane=payload.lane,
        supervisor_note=payload.supervisor_note,
        witness_name=payload.witness_name,
        status=vs.STATUS_OPEN,
        doc_status=vs.DOC_PENDING if requires else None,
        documentation_due_at=(
            violation_service.documentation_due_at(payload.occurred_at) if requires else None
        ),
        breach_days=payload.breach_days,
        eligible_return_date=payload.eligible_return_date,
        supervisor_id=current_profile.id,
        created_by=current_profile.id,
        supervisor_attested_at=datetime.now(timezone.utc),
        supervisor_signature_name=payload.supervisor_signature_name,
    )
    db.add(violation)
    await db.commit()
    logger.info("Violation %s logged by %s", violation.id, current_profile.email)

    created = await _load(db, violation.id, caps)
    return _detail(created, vs.effective_status(created, caps.voided_column, ()))


# ── Detail / state changes ────────────────────────────────────────────────────

@router.get("/{violation_id}", response_model=ViolationDetail)
async def get_violation(
    violation_id: uuid.UUID, current_profile: CurrentProfile, db: DB, caps: Capabilities, store: LocalState
):
    violation = await _load(db, violation_id, caps)
    return _detail(violation, vs.effective_status(violation, caps.voided_column, store.void_overrides))


@router.put("/{violation_id}/status", response_model=ViolationDetail)
async def update_status(
    violation_id: uuid.UUID,
    payload: StatusUpdate,
    current_profile: ManagerProfile,
    db: DB,
    caps: Capabilities,
    store: LocalState,
):
    violation = await _load(db, violation_id, caps)
    if vs.effective_status(violation, caps.voided_column, store.void_overrides) == vs.STATUS_VOID:
        raise HTTPException(status_code=409, detail="Violation is void – un-void it first")
    await violation_service.set_status(db, violation, payload.status, current_profile.id)

    violation = await _load(db, violation_id, caps)
    return _detail(violation, vs.effective_status(violation, caps.voided_column, store.void_overrides))


@router.put("/{violation_id}/void", response_model=ViolationDetail)
async def update_void(
    violation_id: uuid.UUID,
    payload: VoidUpdate,
    current_profile: ManagerProfile,
    db: DB,
    caps: Capabilities,
    store: LocalState,
):
    violation = await _load(db, violation_id, caps)
    await violation_service.set_void(db, store, caps, violation, payload.void)

    violation = await _load(db, violation_id, caps)
    return _detail(violation, vs.effective_status(violation, caps.voided_column, store.void_overrides))


@router.put("/{violation_id}/doc-status", response_model=ViolationDetail)
async def update_doc_status(
    violation_id: uuid.UUID,
    payload: DocStatusUpdate,
    current_profile: CurrentProfile,
    db: DB,
    caps: Capabilities,
    store: LocalState,
):
    violation = await _load(db, violation_id, caps)
    if not vs.requires_documentation(vs.type_slug(violation)):
        raise HTTPException(status_code=409, detail="This violation type does not require documentation")
    await violation_service.set_doc_status(db, violation, payload.doc_status)

    violation = await _load(db, violation_id, caps)
    return _detail(violation, vs.effective_status(violation, caps.voided_column, store.void_overrides))


# ── Evidence ──────────────────────────────────────────────────────────────────

async def _read_upload(file: UploadFile) -> bytes:
    contents = await file.read()
    if len(contents) == 0:
        raise HTTPException(status_code=400, detail=f"Uploaded file '{file.filename}' is empty.")
    if len(contents) > settings.max_upload_size_bytes:
        raise HTTPException(
            status_code=413,
            detail=f"File '{file.filename}' exceeds the {settings.MAX_UPLOAD_SIZE_MB}MB limit.",
        )
    return contents


@router.post("/{violation_id}/evidence", response_model=EvidenceUploadResponse)
async def upload_evidence(
    violation_id: uuid.UUID,
    current_profile: CurrentProfile,
    db: DB,
    caps: Capabilities,
    storage: Storage,
    files: list[UploadFile] = File(...),
):
    """
    Stores all files concurrently. Files that fail are reported and the ones
    that succeeded are kept. The first successful upload on a type that requires
    documentation marks the docs as provided.
    """
    violation = await _load(db, violation_id, caps)
    if not files:
        raise HTTPException(status_code=400, detail="No files uploaded.")
    payloads = [(f.filename or "upload", await _read_upload(f)) for f in files]

    outcomes = await storage.upload_many(violation.id, payloads)
    stored: list[tuple[str, ViolationFile]] = []
    failed: list[EvidenceUploadResult] = []
    for outcome in outcomes:
        if not outcome.ok:
            failed.append(EvidenceUploadResult(filename=outcome.filename, ok=False, error=outcome.error))
            continue
        row = ViolationFile(
            violation_id=violation.id,
            file_path=outcome.key,
            uploaded_by=current_profile.id,
        )
        db.add(row)
        stored.append((outcome.filename, row))

    if stored:
        await db.commit()
        if (
            vs.requires_documentation(vs.type_slug(violation))
            and violation.doc_status != vs.DOC_PROVIDED
        ):
            await violation_service.set_doc_status(db, violation, vs.DOC_PROVIDED)

    results = [
        EvidenceUploadResult(filename=name, ok=True, file_id=row.id, file_path=row.file_path)
        for name, row in stored
    ] + failed
    return EvidenceUploadResponse(
        results=results,
        uploaded=len(stored),
        failed=len(failed),
        doc_status=violation.doc_status,
    )


@router.get("/{violation_id}/evidence", response_model=list[EvidenceFileOut])
async def list_evidence(
    violation_id: uuid.UUID, current_profile: CurrentProfile, db: DB, caps: Capabilities, storage: Storage
):
    """Newest first, each with a time-limited download link."""
    await _load(db, violation_id, caps)
    result = await db.execute(
        select(ViolationFile)
        .where(ViolationFile.violation_id == violation_id)
        .options(selectinload(ViolationFile.uploader))
        .order_by(ViolationFile.uploaded_at.desc())
    )
    out = []
    for f in result.scalars().all():
        signed = storage.signed_url(f.file_path) if await storage.exists(f.file_path) else None
        out.append(EvidenceFileOut(
            id=f.id,
            file_path=f.file_path,
            uploaded_at=f.uploaded_at,
            uploaded_by=f.uploaded_by,
            uploaded_by_name=f.uploader.full_name if f.uploader else None,
            signed_url=signed,
        ))
    return out


@router.delete("/{violation_id}/evidence/{file_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_evidence(
    violation_id: uuid.UUID,
    file_id: uuid.UUID,
    current_profile: ManagerProfile,
    db: DB,
    storage: Storage,
):
    result = await db.execute(
        select(ViolationFile).where(
            ViolationFile.id == file_id,
            ViolationFile.violation_id == violation_id,
        )
    )
    row = result.scalar_one_or_none()
    if not row:
        raise HTTPException(status_code=404, detail="Evidence file not found")
    try:
        await storage.remove(row.file_path)
    except FileNotFoundError:
        logger.warning("Evidence object %s already missing; removing row", row.file_path)
    except OSError as e:
        raise MutationFailed(str(e)) from e
    await db.delete(row)
    await db.commit()


@evidence_router.get("/download")
async def download_evidence(token: str, storage: Storage):
    """Serves one stored object to the holder of a valid signed token."""
    try:
        key = storage.resolve_token(token)
    except (ValueError, KeyError):
        raise HTTPException(status_code=403, detail="Invalid or expired link")
    try:
        content = await storage.download(key)
    except FileNotFoundError:
        raise HTTPException(status_code=404, detail="Evidence file not found")

    filename = key.rsplit("/", 1)[-1]
    media_type = mimetypes.guess_type(filename)[0] or "application/octet-stream"
    return Response(
        content=content,
        media_type=media_type,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
