"""
Violation lifecycle derivation.

Pure functions over violation / breach records – no database, no I/O.
Records are duck-typed: anything with the ORM attribute names works, which
keeps these usable on ORM rows as well as on plain stubs in tests.
"""
from collections.abc import Collection
from datetime import date, timedelta
from typing import Any

STATUS_OPEN = "open"
STATUS_CLOSED = "closed"
STATUS_VOID = "void"
VIOLATION_STATUSES = (STATUS_OPEN, STATUS_CLOSED, STATUS_VOID)

DOC_PENDING = "pending"
DOC_PROVIDED = "provided"
DOC_NOT_PROVIDED = "not_provided"
DOC_STATUSES = (DOC_PENDING, DOC_PROVIDED, DOC_NOT_PROVIDED)
DOCS_NA = "N/A"

# Only these violation types carry a documentation requirement
REQUIRES_DOCS = frozenset({"callout", "early_departure"})

BREACH_ACTIVE = "active"


def type_slug(record: Any) -> str:
    vt = getattr(record, "violation_type", None)
    return (getattr(vt, "slug", None) or "") if vt is not None else ""


def type_label(record: Any) -> str:
    vt = getattr(record, "violation_type", None)
    return (getattr(vt, "label", None) or "") if vt is not None else ""


def guard_name(record: Any) -> str:
    g = getattr(record, "guard", None)
    return (getattr(g, "full_name", None) or "") if g is not None else ""


def requires_documentation(slug: str | None) -> bool:
    return (slug or "") in REQUIRES_DOCS


def effective_status(record: Any, has_voided_column: bool, local_voids: Collection) -> str:
    """
    open | closed | void after reconciling the void marker with the stored status.

    With the `voided` column the record's own flag decides; without it the
    instance-local override set stands in for the flag.
    """
    if has_voided_column:
        is_void = bool(getattr(record, "voided", False))
    else:
        is_void = record.id in local_voids
    if is_void:
        return STATUS_VOID
    return record.status or STATUS_OPEN


def docs_label(record: Any) -> str:
    """N/A for types without a documentation requirement, else the doc status."""
    if not requires_documentation(type_slug(record)):
        return DOCS_NA
    return record.doc_status or DOC_PENDING


def is_docs_outstanding(record: Any) -> bool:
    """Counted under 'docs pending': missing, pending or not provided."""
    if not requires_documentation(type_slug(record)):
        return False
    return record.doc_status in (None, "", DOC_PENDING, DOC_NOT_PROVIDED)


def matches_docs_filter(record: Any, docs_filter: str) -> bool:
    if docs_filter == "all":
        return True
    requires = requires_documentation(type_slug(record))
    if docs_filter == "na":
        return not requires
    if not requires:
        return False
    if docs_filter == DOC_PENDING:
        return not record.doc_status or record.doc_status == DOC_PENDING
    return record.doc_status == docs_filter


def post_and_lane(record: Any, lane_prefix: str = "") -> str:
    post = record.post or ""
    if record.lane:
        return f"{post} • {lane_prefix}{record.lane}"
    return post


def matches_search(record: Any, term: str, status: str) -> bool:
    """Case-insensitive substring match over the columns shown in the list."""
    q = term.strip().lower()
    if not q:
        return True
    haystack = [
        guard_name(record).lower(),
        type_label(record).lower(),
        (record.post or "").lower(),
        str(record.lane or "").lower(),
        status.lower(),
        (record.doc_status or "").lower(),
    ]
    return any(q in s for s in haystack)


def docs_sort_key(record: Any) -> str:
    if requires_documentation(type_slug(record)):
        return (record.doc_status or DOC_PENDING).lower()
    return "zzz_na"


def breach_tone(days: int | None) -> str | None:
    if days is None:
        return None
    if days >= 3:
        return "red"
    if days >= 1:
        return "amber"
    return "green"


def days_left(eligible_return_date: date | None, today: date) -> int | None:
    if eligible_return_date is None:
        return None
    return max(0, (eligible_return_date - today).days)


def is_on_breach_board(breach: Any, today: date) -> bool:
    """Active breach whose eligible return date has not passed (today counts)."""
    return (
        breach.status == BREACH_ACTIVE
        and breach.eligible_return_date is not None
        and breach.eligible_return_date >= today
    )


def matches_ending_filter(breach: Any, ending: str, today: date) -> bool:
    if ending == "today":
        return days_left(breach.eligible_return_date, today) == 0
    if ending == "week":
        return breach.eligible_return_date <= today + timedelta(days=7)
    return True


def matches_breach_search(breach: Any, term: str) -> bool:
    q = term.strip().lower()
    if not q:
        return True
    return (
        q in (breach.contractor_name or "").lower()
        or q in (breach.violation_code or "").lower()
        or q in (breach.reason or "").lower()
    )
