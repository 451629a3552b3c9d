"""Auth module tests — password login, JWT sessions, refresh rotation, RBAC, tenancy."""

from __future__ import annotations

import uuid

from jose import jwt
from sqlalchemy import select

from timetrack.auth.models import UserSession
from timetrack.common.constants import PERMISSIONS, UserRole
from timetrack.config import settings
from timetrack.tenants.models import Tenant
from tests.conftest import auth_headers_for, create_user, _make_tenant


async def _login(client, email: str, password: str = "s3cret-pass"):
    return await client.post(
        "/api/v1/auth/login",
        json={"email": email, "password": password},
    )


# ── Login ───────────────────────────────────────────────────────────


async def test_login_returns_token_pair(client, db, tenant):
    user = await create_user(db, tenant.id, UserRole.manager, email="lead@example.com")

    resp = await _login(client, "lead@example.com")
    assert resp.status_code == 200
    data = resp.json()
    assert data["token_type"] == "bearer"
    assert data["user"]["email"] == "lead@example.com"

    claims = jwt.decode(data["access_token"], settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    assert claims["sub"] == str(user.id)
    assert claims["tenant_id"] == str(tenant.id)
    assert claims["role"] == "manager"
    assert claims["type"] == "access"


async def test_login_wrong_password(client, db, tenant):
    await create_user(db, tenant.id, email="lead@example.com")

    resp = await _login(client, "lead@example.com", "not-the-password")
    assert resp.status_code == 403
    assert resp.json()["status"] == 403


async def test_login_inactive_user_rejected(client, db, tenant):
    user = await create_user(db, tenant.id, email="gone@example.com")
    user.is_active = False
    await db.commit()

    resp = await _login(client, "gone@example.com")
    assert resp.status_code == 403


async def test_login_persists_session(client, db, tenant):
    user = await create_user(db, tenant.id, email="lead@example.com")
    await _login(client, "lead@example.com")

    result = await db.execute(select(UserSession).where(UserSession.user_id == user.id))
    sessions = result.scalars().all()
    assert len(sessions) == 1
    assert sessions[0].is_revoked is False


# ── Current user ────────────────────────────────────────────────────


async def test_me_returns_role_permissions(client, db, tenant, employee):
    user = await create_user(db, tenant.id, UserRole.employee, employee_id=employee.id)
    headers = await auth_headers_for(db, user)

    resp = await client.get("/api/v1/auth/me", headers=headers)
    assert resp.status_code == 200
    data = resp.json()
    assert data["employee_id"] == str(employee.id)
    assert data["role"] == "employee"
    assert data["permissions"] == PERMISSIONS[UserRole.employee]


async def test_missing_token_is_unauthorized(client):
    resp = await client.get("/api/v1/auth/me")
    assert resp.status_code == 401


async def test_logout_revokes_session(client, admin_headers):
    resp = await client.post("/api/v1/auth/logout", headers=admin_headers)
    assert resp.status_code == 200

    resp = await client.get("/api/v1/auth/me", headers=admin_headers)
    assert resp.status_code == 401


# ── Refresh rotation ────────────────────────────────────────────────


async def test_refresh_rotates_tokens(client, db, tenant):
    await create_user(db, tenant.id, email="lead@example.com")
    tokens = (await _login(client, "lead@example.com")).json()

    resp = await client.post("/api/v1/auth/refresh", json={"refresh_token": tokens["refresh_token"]})
    assert resp.status_code == 200
    rotated = resp.json()
    assert rotated["refresh_token"] != tokens["refresh_token"]

    resp = await client.get(
        "/api/v1/auth/me",
        headers={"Authorization": f"Bearer {rotated['access_token']}"},
    )
    assert resp.status_code == 200


async def test_refresh_token_reuse_revokes_all_sessions(client, db, tenant):
    user = await create_user(db, tenant.id, email="lead@example.com")
    tokens = (await _login(client, "lead@example.com")).json()

    first = await client.post("/api/v1/auth/refresh", json={"refresh_token": tokens["refresh_token"]})
    assert first.status_code == 200

    replay = await client.post("/api/v1/auth/refresh", json={"refresh_token": tokens["refresh_token"]})
    assert replay.status_code == 403
    assert "reuse" in replay.json()["detail"].lower()

    db.expire_all()
    result = await db.execute(
        select(UserSession).where(
            UserSession.user_id == user.id,
            UserSession.is_revoked.is_(False),
        ),
    )
    assert result.scalars().all() == []


async def test_access_token_rejected_as_refresh(client, db, tenant):
    await create_user(db, tenant.id, email="lead@example.com")
    tokens = (await _login(client, "lead@example.com")).json()

    resp = await client.post("/api/v1/auth/refresh", json={"refresh_token": tokens["access_token"]})
    assert resp.status_code == 403


# ── Dev login ───────────────────────────────────────────────────────


async def test_dev_login_seeds_user_per_role(client):
    resp = await client.post("/api/v1/auth/dev/login", params={"role": "manager"})
    assert resp.status_code == 200
    assert resp.json()["user"]["email"] == "manager@dev.local"

    again = await client.post("/api/v1/auth/dev/login", params={"role": "manager"})
    assert again.json()["user"]["id"] == resp.json()["user"]["id"]


# ── RBAC and tenancy ────────────────────────────────────────────────


async def test_employee_cannot_manage_day_plans(client, employee_headers):
    resp = await client.get("/api/v1/day-plans", headers=employee_headers)
    assert resp.status_code == 200

    resp = await client.post(
        "/api/v1/day-plans",
        json={"code": "NIGHT", "name": "Night shift"},
        headers=employee_headers,
    )
    assert resp.status_code == 403


async def test_admin_cannot_switch_tenant(client, db, admin_headers):
    other = Tenant(**_make_tenant(name="Other AG"))
    db.add(other)
    await db.commit()

    resp = await client.get(
        "/api/v1/day-plans",
        headers={**admin_headers, "X-Tenant-ID": str(other.id)},
    )
    assert resp.status_code == 403


async def test_system_admin_can_switch_tenant(client, db, tenant):
    other = Tenant(**_make_tenant(name="Other AG"))
    db.add(other)
    await db.commit()
    root = await create_user(db, tenant.id, UserRole.system_admin)
    headers = await auth_headers_for(db, root)

    resp = await client.get("/api/v1/day-plans", headers={**headers, "X-Tenant-ID": str(other.id)})
    assert resp.status_code == 200
    assert resp.json()["meta"]["total"] == 0


async def test_unknown_tenant_header_for_system_admin(client, db, tenant):
    root = await create_user(db, tenant.id, UserRole.system_admin)
    headers = await auth_headers_for(db, root)

    resp = await client.get("/api/v1/day-plans", headers={**headers, "X-Tenant-ID": str(uuid.uuid4())})
    assert resp.status_code == 404


# ── User administration ─────────────────────────────────────────────


async def test_admin_creates_user_and_duplicate_email_conflicts(client, admin_headers):
    body = {
        "email": "New.Hire@example.com",
        "display_name": "New Hire",
        "password": "long-enough-pw",
        "role": "employee",
    }
    resp = await client.post("/api/v1/users", json=body, headers=admin_headers)
    assert resp.status_code == 201
    assert resp.json()["email"] == "new.hire@example.com"

    resp = await client.post("/api/v1/users", json=body, headers=admin_headers)
    assert resp.status_code == 409
    assert "email" in resp.json()["errors"]


async def test_admin_cannot_grant_system_admin(client, admin_headers):
    resp = await client.post(
        "/api/v1/users",
        json={
            "email": "root@example.com",
            "display_name": "Root",
            "password": "long-enough-pw",
            "role": "system_admin",
        },
        headers=admin_headers,
    )
    assert resp.status_code == 403
