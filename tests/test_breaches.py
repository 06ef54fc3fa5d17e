"""
Tests for /api/v1/breaches – board eligibility, countdown, filters, CSV and
the plain-text quick list.
"""
import csv
import io
import uuid
from datetime import timedelta

import pytest
import pytest_asyncio

from guardpost.models.breach import ContractorBreach
from guardpost.utils.dates import today_utc
from tests.conftest import auth_headers

BASE = "/api/v1/breaches"


def _breach(name: str, eligible_offset: int, status: str = "active", **extra) -> ContractorBreach:
    today = today_utc()
    return ContractorBreach(
        id=uuid.uuid4(),
        contractor_name=name,
        start_date=today - timedelta(days=5),
        end_date=today + timedelta(days=eligible_offset - 1),
        eligible_return_date=today + timedelta(days=eligible_offset),
        status=status,
        **extra,
    )


@pytest_asyncio.fixture
async def board(db):
    rows = {
        "today": _breach("Alicia Gomez", 0, violation_code="CO-1", reason="Callout,\nthird strike"),
        "soon": _breach("Terrence Boyd", 2),
        "later": _breach("Rosa Alvarez", 10, reason='Said "no"'),
        "past": _breach("Past Person", -1),
        "ended": _breach("Ended Person", 3, status="ended"),
    }
    db.add_all(rows.values())
    await db.commit()
    return rows


@pytest.mark.asyncio
async def test_board_includes_today_excludes_past_and_ended(client, board, supervisor_token):
    resp = await client.get(BASE, headers=auth_headers(supervisor_token))
    assert resp.status_code == 200
    names = [r["contractor_name"] for r in resp.json()]
    assert names == ["Alicia Gomez", "Terrence Boyd", "Rosa Alvarez"]

    days = [r["days_left"] for r in resp.json()]
    assert days == [0, 2, 10]
    assert [r["severity"] for r in resp.json()] == ["today", "soon", "later"]


@pytest.mark.asyncio
async def test_ending_filters(client, board, supervisor_token):
    h = auth_headers(supervisor_token)
    today = (await client.get(BASE, params={"ending": "today"}, headers=h)).json()
    assert [r["contractor_name"] for r in today] == ["Alicia Gomez"]

    week = (await client.get(BASE, params={"ending": "week"}, headers=h)).json()
    assert [r["contractor_name"] for r in week] == ["Alicia Gomez", "Terrence Boyd"]


@pytest.mark.asyncio
async def test_search(client, board, supervisor_token):
    resp = await client.get(BASE, params={"q": "co-1"}, headers=auth_headers(supervisor_token))
    assert [r["contractor_name"] for r in resp.json()] == ["Alicia Gomez"]


@pytest.mark.asyncio
async def test_export_quotes_and_flattens(client, board, supervisor_token):
    resp = await client.get(f"{BASE}/export.csv", headers=auth_headers(supervisor_token))
    assert resp.status_code == 200
    assert f'active-breaches-{today_utc().isoformat()}.csv' in resp.headers["content-disposition"]

    lines = resp.text.splitlines()
    assert lines[0] == '"Contractor","Violation","Start","End","Eligible Return","Days Left","Reason"'
    assert len(lines) == 4

    rows = list(csv.reader(io.StringIO(resp.text)))
    assert rows[1][0] == "Alicia Gomez"
    assert rows[1][4] == today_utc().isoformat()
    assert rows[1][6] == "Callout, third strike"
    assert rows[3][6] == 'Said "no"'


@pytest.mark.asyncio
async def test_quick_list(client, board, supervisor_token):
    resp = await client.get(f"{BASE}/quick-list", headers=auth_headers(supervisor_token))
    assert resp.status_code == 200
    lines = resp.text.splitlines()
    assert lines[0] == "DO NOT SCHEDULE (ACTIVE BREACHES)"
    assert len(lines) == 4
    assert lines[1].startswith("• Alicia Gomez (through ")
    assert "| eligible " in lines[1]


@pytest.mark.asyncio
async def test_create_breach_manager_only(client, supervisor_token, manager_token):
    today = today_utc()
    body = {
        "contractor_name": "  New Contractor ",
        "start_date": today.isoformat(),
        "end_date": (today + timedelta(days=2)).isoformat(),
        "eligible_return_date": (today + timedelta(days=3)).isoformat(),
        "violation_code": "ED-2",
    }
    assert (await client.post(BASE, json=body, headers=auth_headers(supervisor_token))).status_code == 403

    resp = await client.post(BASE, json=body, headers=auth_headers(manager_token))
    assert resp.status_code == 201
    assert resp.json()["contractor_name"] == "New Contractor"
    assert resp.json()["status"] == "active"

    board = (await client.get(BASE, headers=auth_headers(manager_token))).json()
    assert [r["days_left"] for r in board] == [3]


@pytest.mark.asyncio
async def test_create_breach_rejects_reversed_dates(client, manager_token):
    today = today_utc()
    body = {
        "contractor_name": "X",
        "start_date": today.isoformat(),
        "end_date": (today - timedelta(days=1)).isoformat(),
        "eligible_return_date": today.isoformat(),
    }
    assert (await client.post(BASE, json=body, headers=auth_headers(manager_token))).status_code == 422
