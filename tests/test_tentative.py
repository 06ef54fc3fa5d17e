"""
Tests for apply / confirm / compensate – prior state is restored when the
confirmation step fails and the raw message is surfaced.
"""
import uuid

import pytest
from sqlalchemy import select
from sqlalchemy.exc import OperationalError

from guardpost.models.violation import Violation
from guardpost.services.tentative import (
    MutationFailed,
    run_tentative,
    update_local_preferences,
    update_local_void,
    update_row,
)
from tests.conftest import make_violation


@pytest.mark.asyncio
async def test_run_tentative_compensates_and_raises():
    state = {"value": "old"}
    compensated = []

    def apply():
        state["value"] = "new"

    async def confirm():
        raise OSError("disk full")

    async def compensate():
        compensated.append(True)
        state["value"] = "old"

    with pytest.raises(MutationFailed) as exc:
        await run_tentative(apply, confirm, compensate, label="test")

    assert exc.value.message == "disk full"
    assert compensated == [True]
    assert state["value"] == "old"


@pytest.mark.asyncio
async def test_run_tentative_success_skips_compensation():
    calls = []

    async def confirm():
        calls.append("confirm")

    async def compensate():
        calls.append("compensate")

    await run_tentative(lambda: calls.append("apply"), confirm, compensate, label="test")
    assert calls == ["apply", "confirm"]


@pytest.mark.asyncio
async def test_update_row_restores_prior_values_on_commit_failure(db, guard, violation_types, monkeypatch):
    v = await make_violation(db, guard, violation_types["callout"], status="open")

    async def failing_commit():
        raise OperationalError("COMMIT", {}, Exception("database is locked"))

    monkeypatch.setattr(db, "commit", failing_commit)

    with pytest.raises(MutationFailed) as exc:
        await update_row(db, v, {"status": "closed"})

    assert exc.value.message == "database is locked"
    assert v.status == "open"
    # the rest of the row is usable again without a lazy load
    assert v.doc_status == "pending"
    assert v.guard_id == guard.id
    monkeypatch.undo()

    stored = await db.scalar(select(Violation.status).where(Violation.id == v.id))
    assert stored == "open"


@pytest.mark.asyncio
async def test_update_row_commits(db, guard, violation_types):
    v = await make_violation(db, guard, violation_types["callout"])
    await update_row(db, v, {"doc_status": "provided"})

    stored = await db.scalar(select(Violation.doc_status).where(Violation.id == v.id))
    assert stored == "provided"


@pytest.mark.asyncio
async def test_local_void_restored_when_save_fails(store, monkeypatch):
    vid = uuid.uuid4()

    def failing_save():
        raise OSError("read-only file system")

    monkeypatch.setattr(store, "save", failing_save)

    with pytest.raises(MutationFailed):
        await update_local_void(store, vid, True)
    assert vid not in store.void_overrides


@pytest.mark.asyncio
async def test_local_void_persisted(store):
    vid = uuid.uuid4()
    await update_local_void(store, vid, True)
    assert vid in store.void_overrides
    assert store.path.exists()


@pytest.mark.asyncio
async def test_local_preferences_dropped_when_first_save_fails(store, monkeypatch):
    pid = uuid.uuid4()

    def failing_save():
        raise OSError("read-only file system")

    monkeypatch.setattr(store, "save", failing_save)

    with pytest.raises(MutationFailed):
        await update_local_preferences(store, pid, lambda: store.set_theme(pid, "dark"))
    assert str(pid) not in store.state.preferences
    assert store.preferences_for(pid).theme is None
