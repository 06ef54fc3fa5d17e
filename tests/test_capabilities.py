"""
Tests for the `voided` column probe, the local-override fallback and the
reconciliation once the column appears.
"""
import pytest
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from guardpost.core.capabilities import (
    SchemaCapabilities,
    get_cached_capabilities,
    is_missing_voided_error,
    probe_capabilities,
)
from guardpost.models.violation import Violation
from guardpost.services.guard_procedures import is_missing_procedure_error
from guardpost.services.violation_service import reconcile_local_voids
from tests.conftest import auth_headers, drop_voided_column, make_violation

BASE = "/api/v1/violations"


def test_missing_column_messages():
    assert is_missing_voided_error(Exception("column violations.voided does not exist"))
    assert is_missing_voided_error(Exception('column "voided" does not exist'))
    assert is_missing_voided_error(Exception("no such column: voided"))
    assert not is_missing_voided_error(Exception("no such table: violations"))
    assert not is_missing_voided_error(Exception("column status does not exist"))


def test_missing_procedure_messages():
    assert is_missing_procedure_error(Exception("function archive_guard(uuid) does not exist"))
    assert is_missing_procedure_error(Exception("no such function: delete_guard_if_unused"))
    assert not is_missing_procedure_error(Exception("permission denied for function archive_guard"))


@pytest.mark.asyncio
async def test_probe_finds_column(db):
    caps = await probe_capabilities(db)
    assert caps.voided_column is True


@pytest.mark.asyncio
async def test_probe_detects_missing_column(engine, db):
    await drop_voided_column(engine)
    caps = await probe_capabilities(db)
    assert caps.voided_column is False


@pytest.mark.asyncio
async def test_probe_propagates_other_errors(engine, db):
    async with engine.begin() as conn:
        await conn.exec_driver_sql("DROP TABLE violation_files")
        await conn.exec_driver_sql("DROP TABLE violations")
    with pytest.raises(SQLAlchemyError):
        await probe_capabilities(db)


@pytest.mark.asyncio
async def test_capabilities_endpoint_probes_once(client, engine):
    resp = await client.get("/capabilities")
    assert resp.json() == {"voided_column": True}
    assert get_cached_capabilities() == SchemaCapabilities(voided_column=True)

    # cached for the process: dropping the column later does not flip it
    await drop_voided_column(engine)
    resp = await client.get("/capabilities")
    assert resp.json() == {"voided_column": True}


@pytest.mark.asyncio
async def test_void_falls_back_to_local_overrides(
    client, engine, db, store, guard, violation_types, manager_token
):
    await drop_voided_column(engine)
    v = await make_violation(db, guard, violation_types["uniform"], status="closed")

    resp = await client.put(f"{BASE}/{v.id}/void", json={"void": True}, headers=auth_headers(manager_token))
    assert resp.status_code == 200
    assert resp.json()["effective_status"] == "void"
    assert v.id in store.void_overrides
    assert store.path.exists()

    listing = (await client.get(BASE, headers=auth_headers(manager_token))).json()
    assert listing["voided_column"] is False
    assert listing["counts"]["void"] == 1
    assert listing["items"][0]["effective_status"] == "void"

    resp = await client.put(f"{BASE}/{v.id}/void", json={"void": False}, headers=auth_headers(manager_token))
    assert resp.json()["effective_status"] == "closed"
    assert v.id not in store.void_overrides


@pytest.mark.asyncio
async def test_logging_works_without_column(client, engine, guard, violation_types, supervisor_token):
    await drop_voided_column(engine)
    resp = await client.post(BASE, json={
        "guard_id": str(guard.id),
        "type_id": str(violation_types["callout"].id),
        "occurred_at": "2026-10-18T22:00:00Z",
        "supervisor_note": "No call.",
        "supervisor_signature_name": "Sam Supervisor",
    }, headers=auth_headers(supervisor_token))
    assert resp.status_code == 201
    assert resp.json()["effective_status"] == "open"


@pytest.mark.asyncio
async def test_reconcile_writes_local_voids(db, store, guard, violation_types):
    a = await make_violation(db, guard, violation_types["uniform"])
    b = await make_violation(db, guard, violation_types["uniform"])
    store.set_void(a.id, True)
    store.save()

    written = await reconcile_local_voids(db, store, SchemaCapabilities(voided_column=True))
    assert written == 1
    assert store.void_overrides == frozenset()

    rows = dict((await db.execute(select(Violation.id, Violation.voided))).all())
    assert rows[a.id] is True
    assert rows[b.id] is None


@pytest.mark.asyncio
async def test_reconcile_skipped_without_column(db, store, guard, violation_types):
    a = await make_violation(db, guard, violation_types["uniform"])
    store.set_void(a.id, True)

    written = await reconcile_local_voids(db, store, SchemaCapabilities(voided_column=False))
    assert written == 0
    assert store.void_overrides == {a.id}


@pytest.mark.asyncio
async def test_first_request_status_change_without_column(
    client, engine, db, guard, violation_types, manager_token
):
    await drop_voided_column(engine)
    v = await make_violation(db, guard, violation_types["uniform"])

    resp = await client.put(
        f"{BASE}/{v.id}/status", json={"status": "closed"}, headers=auth_headers(manager_token)
    )
    assert resp.status_code == 200
    assert resp.json()["effective_status"] == "closed"
    assert get_cached_capabilities() == SchemaCapabilities(voided_column=False)


@pytest.mark.asyncio
async def test_lazy_probe_reconciles_local_voids(
    client, db, store, guard, violation_types, manager_token
):
    a = await make_violation(db, guard, violation_types["uniform"])
    store.set_void(a.id, True)
    store.save()

    resp = await client.get(f"{BASE}/{a.id}", headers=auth_headers(manager_token))
    assert resp.status_code == 200
    assert resp.json()["effective_status"] == "void"
    assert store.void_overrides == frozenset()

    voided = await db.scalar(select(Violation.voided).where(Violation.id == a.id))
    assert voided is True
