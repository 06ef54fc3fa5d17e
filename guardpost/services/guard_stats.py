"""
Guard roster statistics.

One row per guard with violation, documentation and audit aggregates. Open and
void counts follow the effective status, so local void overrides are honoured
the same way as on the violation list.
"""
import re
import uuid
from collections.abc import Collection
from dataclasses import dataclass, fields
from datetime import datetime
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from guardpost.core.capabilities import SchemaCapabilities
from guardpost.models.audit import Audit
from guardpost.models.guard import Guard
from guardpost.models.violation import Violation
from guardpost.services import violation_state as vs
from guardpost.services.violation_service import load_options
from guardpost.utils.dates import as_utc

AUDIT_INTERIOR_POST = "interior_post"
AUDIT_TRUCK_GATE = "truck_gate"

# (key, CSV label) in display order
ROSTER_COLUMNS: list[tuple[str, str]] = [
    ("full_name", "Name"),
    ("roster_status", "Status"),
    ("open_violations", "Open"),
    ("total_violations", "Total"),
    ("callouts", "Callouts"),
    ("early_departures", "Early"),
    ("docs_pending", "Docs Pend"),
    ("docs_provided", "Docs Prov"),
    ("docs_not_provided", "Docs N/P"),
    ("last_violation_at", "Last Violation"),
    ("ip_avg_score_pct", "Interior Audit"),
    ("tg_avg_score_pct", "Truck Gate Audit"),
]


@dataclass
class GuardStats:
    guard_id: uuid.UUID
    full_name: str
    roster_status: str
    employment_type: str
    open_violations: int = 0
    total_violations: int = 0
    callouts: int = 0
    early_departures: int = 0
    docs_pending: int = 0
    docs_provided: int = 0
    docs_not_provided: int = 0
    last_violation_at: datetime | None = None
    ip_avg_score_pct: float | None = None
    tg_avg_score_pct: float | None = None
    ip_audits: int = 0
    tg_audits: int = 0
    last_audit_at: datetime | None = None


STATS_FIELDS = {f.name for f in fields(GuardStats)}


def _average(scores: list) -> float | None:
    values = [float(s) for s in scores if s is not None]
    if not values:
        return None
    return round(sum(values) / len(values), 1)


def build_stats(
    guard: Guard,
    violations: list[Violation],
    audits: list[Audit],
    has_voided_column: bool,
    local_voids: Collection,
) -> GuardStats:
    stats = GuardStats(
        guard_id=guard.id,
        full_name=guard.full_name,
        roster_status=guard.status,
        employment_type=guard.employment_type,
    )

    for v in violations:
        status = vs.effective_status(v, has_voided_column, local_voids)
        if status == vs.STATUS_VOID:
            continue
        stats.total_violations += 1
        if status == vs.STATUS_OPEN:
            stats.open_violations += 1
        slug = vs.type_slug(v)
        if slug == "callout":
            stats.callouts += 1
        elif slug == "early_departure":
            stats.early_departures += 1
        if vs.requires_documentation(slug):
            if v.doc_status == vs.DOC_PROVIDED:
                stats.docs_provided += 1
            elif v.doc_status == vs.DOC_NOT_PROVIDED:
                stats.docs_not_provided += 1
            else:
                stats.docs_pending += 1
        occurred = as_utc(v.occurred_at)
        if stats.last_violation_at is None or occurred > stats.last_violation_at:
            stats.last_violation_at = occurred

    ip = [a for a in audits if a.audit_type and a.audit_type.slug == AUDIT_INTERIOR_POST]
    tg = [a for a in audits if a.audit_type and a.audit_type.slug == AUDIT_TRUCK_GATE]
    stats.ip_audits = len(ip)
    stats.tg_audits = len(tg)
    stats.ip_avg_score_pct = _average([a.score for a in ip])
    stats.tg_avg_score_pct = _average([a.score for a in tg])
    if audits:
        stats.last_audit_at = max(as_utc(a.occurred_at) for a in audits)
    return stats


async def guard_stats(
    db: AsyncSession,
    caps: SchemaCapabilities,
    local_voids: Collection,
    guard_id: uuid.UUID | None = None,
) -> list[GuardStats]:
    guard_q = select(Guard).order_by(Guard.full_name)
    violation_q = select(Violation).options(*load_options(caps))
    audit_q = select(Audit).options(selectinload(Audit.audit_type))
    if guard_id is not None:
        guard_q = guard_q.where(Guard.id == guard_id)
        violation_q = violation_q.where(Violation.guard_id == guard_id)
        audit_q = audit_q.where(Audit.guard_id == guard_id)

    guards = (await db.execute(guard_q)).scalars().all()
    violations = (await db.execute(violation_q)).scalars().all()
    audits = (await db.execute(audit_q)).scalars().all()

    by_guard_v: dict[uuid.UUID, list[Violation]] = {}
    for v in violations:
        by_guard_v.setdefault(v.guard_id, []).append(v)
    by_guard_a: dict[uuid.UUID, list[Audit]] = {}
    for a in audits:
        by_guard_a.setdefault(a.guard_id, []).append(a)

    return [
        build_stats(
            g,
            by_guard_v.get(g.id, []),
            by_guard_a.get(g.id, []),
            caps.voided_column,
            local_voids,
        )
        for g in guards
    ]


# ── Roster search / sort ──────────────────────────────────────────────────────

_CHIP_RE = re.compile(r'(\w+):"([^"]+)"|(\w+):(\S+)|"([^"]+)"|(\S+)')


def parse_query(text: str) -> list[tuple[str, str]]:
    """
    Split a roster search into (key, value) chips.

    name:"Jane D"  status:active  "quoted text"  bare
    Quoted and bare terms become name chips.
    """
    chips = []
    for m in _CHIP_RE.finditer(text or ""):
        kq, vq, k, v, quoted, bare = m.groups()
        if kq and vq:
            chips.append((kq.lower(), vq))
        elif k and v:
            chips.append((k.lower(), v))
        elif quoted:
            chips.append(("name", quoted))
        elif bare:
            chips.append(("name", bare))
    return chips


def filter_roster(rows: list[GuardStats], status: str, chips: list[tuple[str, str]]) -> list[GuardStats]:
    out = rows
    if status != "all":
        out = [r for r in out if (r.roster_status or "") == status]
    for key, value in chips:
        if not value:
            continue
        v = value.lower()
        if key == "name":
            out = [r for r in out if v in (r.full_name or "").lower()]
        elif key == "status":
            out = [r for r in out if (r.roster_status or "").lower() == v]
    return out


def _roster_key(key: str):
    def k(row: GuardStats):
        value = getattr(row, key, None)
        if value is None:
            return (0, 0)
        if isinstance(value, (int, float, Decimal, datetime)):
            return (1, value)
        return (1, str(value).lower())
    return k


def sort_roster(rows: list[GuardStats], key: str, direction: str) -> list[GuardStats]:
    """Missing values first when ascending; numbers numerically, text case-insensitively."""
    if key not in STATS_FIELDS:
        return list(rows)
    return sorted(rows, key=_roster_key(key), reverse=(direction == "desc"))
