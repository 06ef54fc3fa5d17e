"""
Tests for /api/v1/auth – login, refresh, /me, change-password, role checks.
"""
import pytest
from tests.conftest import auth_headers


BASE = "/api/v1/auth"


# ── Login ─────────────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_login_valid(client, manager_profile):
    resp = await client.post(f"{BASE}/login", json={
        "email": "manager@test.com",
        "password": "testpass123",
    })
    assert resp.status_code == 200
    data = resp.json()
    assert data["access_token"]
    assert data["refresh_token"]
    assert data["token_type"] == "bearer"


@pytest.mark.asyncio
async def test_login_wrong_password(client, manager_profile):
    resp = await client.post(f"{BASE}/login", json={
        "email": "manager@test.com",
        "password": "wrongpassword",
    })
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_login_unknown_email(client):
    resp = await client.post(f"{BASE}/login", json={
        "email": "nobody@test.com",
        "password": "testpass123",
    })
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_login_inactive_profile(client, db, manager_profile):
    manager_profile.is_active = False
    await db.commit()

    resp = await client.post(f"{BASE}/login", json={
        "email": "manager@test.com",
        "password": "testpass123",
    })
    assert resp.status_code == 400


# ── Refresh ───────────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_refresh_valid(client, supervisor_profile):
    login = await client.post(f"{BASE}/login", json={
        "email": "supervisor@test.com",
        "password": "testpass123",
    })
    refresh_token = login.json()["refresh_token"]

    resp = await client.post(f"{BASE}/refresh", json={"refresh_token": refresh_token})
    assert resp.status_code == 200
    assert resp.json()["access_token"]


@pytest.mark.asyncio
async def test_refresh_rejects_access_token(client, supervisor_token):
    resp = await client.post(f"{BASE}/refresh", json={"refresh_token": supervisor_token})
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_refresh_invalid_token(client):
    resp = await client.post(f"{BASE}/refresh", json={"refresh_token": "invalid.token.here"})
    assert resp.status_code == 401


# ── /me ───────────────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_me_returns_profile(client, supervisor_token):
    resp = await client.get(f"{BASE}/me", headers=auth_headers(supervisor_token))
    assert resp.status_code == 200
    data = resp.json()
    assert data["email"] == "supervisor@test.com"
    assert data["role"] == "supervisor"
    assert data["full_name"] == "Sam Supervisor"


@pytest.mark.asyncio
async def test_me_without_token(client):
    resp = await client.get(f"{BASE}/me")
    assert resp.status_code in (401, 403)  # HTTPBearer answers 403 when the header is missing


# ── Change password ───────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_change_password_success(client, manager_profile, manager_token):
    resp = await client.post(
        f"{BASE}/change-password",
        json={"current_password": "testpass123", "new_password": "newpass456"},
        headers=auth_headers(manager_token),
    )
    assert resp.status_code == 204

    login_old = await client.post(f"{BASE}/login", json={
        "email": "manager@test.com", "password": "testpass123",
    })
    assert login_old.status_code == 401

    login_new = await client.post(f"{BASE}/login", json={
        "email": "manager@test.com", "password": "newpass456",
    })
    assert login_new.status_code == 200


@pytest.mark.asyncio
async def test_change_password_wrong_current(client, manager_token):
    resp = await client.post(
        f"{BASE}/change-password",
        json={"current_password": "wrongpass", "new_password": "newpass456"},
        headers=auth_headers(manager_token),
    )
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_change_password_too_short(client, manager_token):
    resp = await client.post(
        f"{BASE}/change-password",
        json={"current_password": "testpass123", "new_password": "short"},
        headers=auth_headers(manager_token),
    )
    assert resp.status_code == 422


# ── Roles ─────────────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_manager_only_route_rejects_supervisor(client, supervisor_token):
    resp = await client.post(
        "/api/v1/guards",
        json={"full_name": "New Guard"},
        headers=auth_headers(supervisor_token),
    )
    assert resp.status_code == 403
    assert resp.json()["detail"] == "Managers only"


@pytest.mark.asyncio
async def test_manager_role_is_case_insensitive(db, client, manager_profile):
    from guardpost.core.security import create_access_token

    manager_profile.role = "Manager"
    await db.commit()
    token = create_access_token(manager_profile.id, "Manager")

    resp = await client.post(
        "/api/v1/guards", json={"full_name": "New Guard"}, headers=auth_headers(token)
    )
    assert resp.status_code == 201
