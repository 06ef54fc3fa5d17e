"""
Tests for the violation lifecycle derivation – effective status, docs label,
breach countdown and breach board eligibility. Pure functions, no DB.
"""
import uuid
from datetime import date
from types import SimpleNamespace

from guardpost.services import violation_state as vs


# ── Stub helpers ──────────────────────────────────────────────────────────────

def make_violation(
    status: str | None = "open",
    voided: bool | None = None,
    slug: str = "callout",
    doc_status: str | None = None,
    guard_name: str = "Jane Doe",
    post: str | None = None,
    lane: str | None = None,
):
    return SimpleNamespace(
        id=uuid.uuid4(),
        status=status,
        voided=voided,
        doc_status=doc_status,
        post=post,
        lane=lane,
        violation_type=SimpleNamespace(slug=slug, label=slug.replace("_", " ").title()),
        guard=SimpleNamespace(full_name=guard_name),
    )


def make_breach(eligible: date, status: str = "active", name: str = "Acme Guard", code=None, reason=None):
    return SimpleNamespace(
        status=status,
        eligible_return_date=eligible,
        contractor_name=name,
        violation_code=code,
        reason=reason,
    )


# ── Effective status ──────────────────────────────────────────────────────────

def test_voided_flag_wins_over_status():
    for status in ("open", "closed", None):
        v = make_violation(status=status, voided=True)
        assert vs.effective_status(v, True, set()) == "void"


def test_not_voided_closed_stays_closed():
    v = make_violation(status="closed", voided=False)
    assert vs.effective_status(v, True, set()) == "closed"


def test_null_voided_and_empty_status_is_open():
    v = make_violation(status=None, voided=None)
    assert vs.effective_status(v, True, set()) == "open"


def test_local_override_without_column():
    v = make_violation(status="closed")
    local = {v.id}
    assert vs.effective_status(v, False, local) == "void"

    local.discard(v.id)
    assert vs.effective_status(v, False, local) == "closed"


def test_local_override_ignored_when_column_exists():
    v = make_violation(status="open", voided=False)
    assert vs.effective_status(v, True, {v.id}) == "open"


# ── Documentation ─────────────────────────────────────────────────────────────

def test_docs_na_for_types_without_requirement():
    for slug in ("uniform", "late_arrival", "phone_use"):
        assert vs.docs_label(make_violation(slug=slug, doc_status="provided")) == "N/A"


def test_docs_label_defaults_to_pending():
    assert vs.docs_label(make_violation(slug="callout")) == "pending"
    assert vs.docs_label(make_violation(slug="early_departure", doc_status="provided")) == "provided"


def test_docs_outstanding_counts_missing_pending_and_not_provided():
    assert vs.is_docs_outstanding(make_violation(doc_status=None))
    assert vs.is_docs_outstanding(make_violation(doc_status="pending"))
    assert vs.is_docs_outstanding(make_violation(doc_status="not_provided"))
    assert not vs.is_docs_outstanding(make_violation(doc_status="provided"))
    assert not vs.is_docs_outstanding(make_violation(slug="uniform"))


def test_docs_filter():
    callout = make_violation(slug="callout", doc_status=None)
    uniform = make_violation(slug="uniform")
    assert vs.matches_docs_filter(callout, "pending")
    assert not vs.matches_docs_filter(uniform, "pending")
    assert vs.matches_docs_filter(uniform, "na")
    assert not vs.matches_docs_filter(callout, "na")
    assert not vs.matches_docs_filter(callout, "provided")
    assert vs.matches_docs_filter(uniform, "all")


def test_docs_sort_key_puts_na_last():
    rows = [make_violation(slug="uniform"), make_violation(doc_status="provided"), make_violation()]
    ordered = sorted(rows, key=vs.docs_sort_key)
    assert [vs.docs_label(r) for r in ordered] == ["pending", "provided", "N/A"]


# ── Search ────────────────────────────────────────────────────────────────────

def test_search_matches_effective_status_and_columns():
    v = make_violation(post="Main Gate", lane="3", guard_name="Rosa Alvarez")
    assert vs.matches_search(v, "void", "void")
    assert not vs.matches_search(v, "void", "open")
    assert vs.matches_search(v, "ALVAREZ", "open")
    assert vs.matches_search(v, "main g", "open")
    assert vs.matches_search(v, "   ", "open")


def test_post_and_lane():
    assert vs.post_and_lane(make_violation(post="Dock", lane="4")) == "Dock • 4"
    assert vs.post_and_lane(make_violation(post="Dock", lane="4"), lane_prefix="lane ") == "Dock • lane 4"
    assert vs.post_and_lane(make_violation(post="Dock")) == "Dock"


# ── Breach countdown ──────────────────────────────────────────────────────────

def test_breach_tone():
    assert vs.breach_tone(None) is None
    assert vs.breach_tone(0) == "green"
    assert vs.breach_tone(1) == "amber"
    assert vs.breach_tone(2) == "amber"
    assert vs.breach_tone(3) == "red"


def test_days_left_never_negative():
    today = date(2026, 10, 19)
    assert vs.days_left(date(2026, 10, 22), today) == 3
    assert vs.days_left(date(2026, 10, 19), today) == 0
    assert vs.days_left(date(2026, 10, 10), today) == 0
    assert vs.days_left(None, today) is None


def test_breach_board_includes_today_excludes_yesterday():
    today = date(2026, 10, 19)
    assert vs.is_on_breach_board(make_breach(today), today)
    assert not vs.is_on_breach_board(make_breach(date(2026, 10, 18)), today)
    assert not vs.is_on_breach_board(make_breach(today, status="ended"), today)


def test_ending_filter():
    today = date(2026, 10, 19)
    assert vs.matches_ending_filter(make_breach(today), "today", today)
    assert not vs.matches_ending_filter(make_breach(date(2026, 10, 20)), "today", today)
    assert vs.matches_ending_filter(make_breach(date(2026, 10, 26)), "week", today)
    assert not vs.matches_ending_filter(make_breach(date(2026, 10, 27)), "week", today)


def test_breach_search():
    b = make_breach(date(2026, 10, 19), name="Terrence Boyd", code="CO-1", reason="Repeated callouts")
    assert vs.matches_breach_search(b, "boyd")
    assert vs.matches_breach_search(b, "co-1")
    assert vs.matches_breach_search(b, "callouts")
    assert not vs.matches_breach_search(b, "uniform")
