import uuid
from typing import Literal

from fastapi import APIRouter, HTTPException

from guardpost.api.deps import DB, Capabilities, CurrentProfile
from guardpost.schemas.violation import DocStatusUpdate, PendingDocOut
from guardpost.services import violation_service
from guardpost.services import violation_state as vs
from guardpost.services.csv_export import csv_response, dicts_to_csv
from guardpost.utils.dates import file_timestamp, format_local_datetime

router = APIRouter(prefix="/pending-docs", tags=["pending-docs"])

SortKey = Literal["documentation_due_at", "occurred_at"]


def _row(v) -> PendingDocOut:
    return PendingDocOut(
        id=v.id,
        guard_name=vs.guard_name(v) or "—",
        type_label=vs.type_label(v) or "—",
        occurred_at=v.occurred_at,
        documentation_due_at=v.documentation_due_at,
        doc_status=v.doc_status,
    )


@router.get("", response_model=list[PendingDocOut])
async def list_pending_docs(
    current_profile: CurrentProfile,
    db: DB,
    caps: Capabilities,
    q: str = "",
    sort: SortKey = "documentation_due_at",
    dir: Literal["asc", "desc"] = "asc",
):
    """Callouts and early departures still waiting for documentation."""
    records = await violation_service.fetch_pending_docs(db, caps)
    return [_row(v) for v in violation_service.filter_pending_docs(records, q, sort, dir)]


@router.put("/{violation_id}", response_model=PendingDocOut)
async def mark_pending_doc(
    violation_id: uuid.UUID,
    payload: DocStatusUpdate,
    current_profile: CurrentProfile,
    db: DB,
    caps: Capabilities,
):
    violation = await violation_service.get_violation(db, violation_id, caps)
    if not violation:
        raise HTTPException(status_code=404, detail="Violation not found")
    if not vs.requires_documentation(vs.type_slug(violation)):
        raise HTTPException(status_code=409, detail="This violation type does not require documentation")
    await violation_service.set_doc_status(db, violation, payload.doc_status)
    return _row(violation)


@router.get("/export.csv")
async def export_pending_docs(
    current_profile: CurrentProfile,
    db: DB,
    caps: Capabilities,
    q: str = "",
    sort: SortKey = "documentation_due_at",
    dir: Literal["asc", "desc"] = "asc",
):
    records = await violation_service.fetch_pending_docs(db, caps)
    items = [
        {
            "guard": vs.guard_name(v) or "—",
            "type": vs.type_label(v) or "—",
            "occurred_at": format_local_datetime(v.occurred_at),
            "due_at": format_local_datetime(v.documentation_due_at),
        }
        for v in violation_service.filter_pending_docs(records, q, sort, dir)
    ]
    return csv_response(
        dicts_to_csv(items, ["guard", "type", "occurred_at", "due_at"]),
        f"pending_docs_{file_timestamp()}.csv",
    )
