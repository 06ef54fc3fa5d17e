"""
Violation queries and state changes.

Type and date filters narrow the rows in SQL. Status, documentation and search
filters depend on the effective status (which may come from the local void
overrides), so they run in Python on the narrowed rows, followed by sorting,
counting and pagination.
"""
import logging
import math
import uuid
from collections.abc import Collection
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload, undefer

from guardpost.core.capabilities import SchemaCapabilities, probe_capabilities, set_cached_capabilities
from guardpost.core.config import settings
from guardpost.core.local_state import LocalStateStore
from guardpost.models.violation import Violation
from guardpost.services import violation_state as vs
from guardpost.services.tentative import update_local_void, update_row
from guardpost.utils.dates import as_utc, end_of_day_utc, start_of_day_utc

logger = logging.getLogger(__name__)

SORT_KEYS = ("occurred_at", "guard", "type", "post", "status", "docs")
MAX_PAGE_SIZE = 100


@dataclass
class ViolationQuery:
    q: str = ""
    status: str = "all"
    docs: str = "all"
    type_id: uuid.UUID | None = None
    date_from: date | None = None
    date_to: date | None = None
    page: int = 1
    page_size: int = 25
    sort: str = "occurred_at"
    direction: str = "desc"


@dataclass
class ViolationRow:
    record: Violation
    status: str


@dataclass
class ViolationPage:
    rows: list[ViolationRow]
    total: int
    page: int
    page_size: int
    total_pages: int
    counts: dict[str, int] = field(default_factory=dict)


def load_options(caps: SchemaCapabilities) -> list:
    options = [
        selectinload(Violation.guard),
        selectinload(Violation.violation_type),
        selectinload(Violation.approver),
    ]
    if caps.voided_column:
        options.append(undefer(Violation.voided))
    return options


async def get_violation(
    db: AsyncSession, violation_id: uuid.UUID, caps: SchemaCapabilities
) -> Violation | None:
    result = await db.execute(
        select(Violation)
        .where(Violation.id == violation_id)
        .options(*load_options(caps))
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def fetch_violations(
    db: AsyncSession,
    caps: SchemaCapabilities,
    type_id: uuid.UUID | None = None,
    date_from: date | None = None,
    date_to: date | None = None,
) -> list[Violation]:
    query = select(Violation).options(*load_options(caps))
    if type_id is not None:
        query = query.where(Violation.type_id == type_id)
    if date_from is not None:
        query = query.where(Violation.occurred_at >= start_of_day_utc(date_from))
    if date_to is not None:
        query = query.where(Violation.occurred_at <= end_of_day_utc(date_to))
    result = await db.execute(query.order_by(Violation.occurred_at.desc()))
    return list(result.scalars().all())


def filter_rows(
    records: list[Violation],
    has_voided_column: bool,
    local_voids: Collection,
    status: str = "all",
    docs: str = "all",
    q: str = "",
) -> list[ViolationRow]:
    rows = []
    for record in records:
        eff = vs.effective_status(record, has_voided_column, local_voids)
        if status != "all" and eff != status:
            continue
        if not vs.matches_docs_filter(record, docs):
            continue
        if not vs.matches_search(record, q, eff):
            continue
        rows.append(ViolationRow(record=record, status=eff))
    return rows


def _sort_key(sort: str):
    if sort == "guard":
        return lambda row: vs.guard_name(row.record).lower()
    if sort == "type":
        return lambda row: vs.type_label(row.record).lower()
    if sort == "post":
        return lambda row: vs.post_and_lane(row.record).lower()
    if sort == "status":
        return lambda row: row.status
    if sort == "docs":
        return lambda row: vs.docs_sort_key(row.record)
    return lambda row: as_utc(row.record.occurred_at)


def sort_rows(rows: list[ViolationRow], sort: str, direction: str) -> list[ViolationRow]:
    return sorted(rows, key=_sort_key(sort), reverse=(direction == "desc"))


def count_rows(rows: list[ViolationRow]) -> dict[str, int]:
    return {
        "open": sum(1 for r in rows if r.status == vs.STATUS_OPEN),
        "closed": sum(1 for r in rows if r.status == vs.STATUS_CLOSED),
        "void": sum(1 for r in rows if r.status == vs.STATUS_VOID),
        "docs_pending": sum(1 for r in rows if vs.is_docs_outstanding(r.record)),
    }


async def list_violations(
    db: AsyncSession,
    caps: SchemaCapabilities,
    local_voids: Collection,
    query: ViolationQuery,
) -> ViolationPage:
    records = await fetch_violations(db, caps, query.type_id, query.date_from, query.date_to)
    rows = filter_rows(
        records, caps.voided_column, local_voids, query.status, query.docs, query.q
    )
    rows = sort_rows(rows, query.sort, query.direction)

    page_size = max(1, min(query.page_size, MAX_PAGE_SIZE))
    total_pages = max(1, math.ceil(len(rows) / page_size))
    page = max(1, query.page)
    start = (page - 1) * page_size
    return ViolationPage(
        rows=rows[start:start + page_size],
        total=len(rows),
        page=page,
        page_size=page_size,
        total_pages=total_pages,
        counts=count_rows(rows),
    )


def documentation_due_at(occurred_at: datetime) -> datetime:
    return as_utc(occurred_at) + timedelta(hours=settings.DOCUMENTATION_DUE_HOURS)


# ── State changes ─────────────────────────────────────────────────────────────

async def set_status(db: AsyncSession, violation: Violation, status: str, actor_id: uuid.UUID) -> None:
    """Closing records the approver; reopening clears it."""
    approved_by = actor_id if status == vs.STATUS_CLOSED else None
    await update_row(db, violation, {"status": status, "approved_by": approved_by})


async def set_void(
    db: AsyncSession,
    store: LocalStateStore,
    caps: SchemaCapabilities,
    violation: Violation,
    void: bool,
) -> None:
    if caps.voided_column:
        await update_row(db, violation, {"voided": void})
    else:
        await update_local_void(store, violation.id, void)


async def set_doc_status(db: AsyncSession, violation: Violation, doc_status: str) -> None:
    await update_row(db, violation, {"doc_status": doc_status})


async def reconcile_local_voids(
    db: AsyncSession, store: LocalStateStore, caps: SchemaCapabilities
) -> int:
    """
    Once the `voided` column exists, fold the local override set into it.
    Returns the number of ids written.
    """
    ids = store.void_overrides
    if not caps.voided_column or not ids:
        return 0
    await db.execute(
        update(Violation).where(Violation.id.in_(list(ids))).values(voided=True)
    )
    await db.commit()
    store.clear_void_overrides()
    store.save()
    logger.info("Reconciled %d local void override(s) into violations.voided", len(ids))
    return len(ids)


async def negotiate_capabilities(db: AsyncSession, store: LocalStateStore) -> SchemaCapabilities:
    """Probe the schema, cache the result and fold any local voids into the column."""
    caps = await probe_capabilities(db)
    set_cached_capabilities(caps)
    await reconcile_local_voids(db, store, caps)
    return caps


# ── Pending documentation ─────────────────────────────────────────────────────

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


async def fetch_pending_docs(db: AsyncSession, caps: SchemaCapabilities) -> list[Violation]:
    result = await db.execute(
        select(Violation)
        .where(Violation.doc_status == vs.DOC_PENDING)
        .options(*load_options(caps))
        .order_by(Violation.documentation_due_at)
    )
    return [v for v in result.scalars().all() if vs.requires_documentation(vs.type_slug(v))]


def filter_pending_docs(
    records: list[Violation], q: str = "", sort: str = "documentation_due_at", direction: str = "asc"
) -> list[Violation]:
    """Search over "guard type"; missing dates sort as the epoch."""
    term = q.strip().lower()
    out = [
        v for v in records
        if not term or term in f"{vs.guard_name(v) or '—'} {vs.type_label(v) or '—'}".lower()
    ]

    def key(v: Violation) -> datetime:
        value = getattr(v, sort, None)
        return as_utc(value) if value else _EPOCH

    return sorted(out, key=key, reverse=(direction == "desc"))
