"""Tenant administration — system admin CRUD, slug rules, delete guards."""

from __future__ import annotations

import uuid

import pytest

from timetrack.common.constants import UserRole
from timetrack.employees.models import Employee
from timetrack.tenants.models import Tenant
from tests.conftest import _make_employee, _make_tenant, auth_headers_for, create_user


@pytest.fixture
async def root_headers(db, tenant) -> dict[str, str]:
    user = await create_user(db, tenant.id, UserRole.system_admin)
    return await auth_headers_for(db, user)


@pytest.fixture
async def branch(client, root_headers) -> dict:
    resp = await client.post(
        "/api/v1/tenants",
        json={"name": "Branch Office", "slug": "branch-office"},
        headers=root_headers,
    )
    assert resp.status_code == 201
    return resp.json()


class TestTenantCrud:

    async def test_create(self, branch):
        assert branch["slug"] == "branch-office"
        assert branch["is_active"] is True
        assert branch["settings"] == {}

    async def test_invalid_slug(self, client, root_headers):
        resp = await client.post(
            "/api/v1/tenants",
            json={"name": "Bad", "slug": "Not A Slug"},
            headers=root_headers,
        )
        assert resp.status_code == 422

    async def test_duplicate_slug(self, client, root_headers, branch):
        resp = await client.post(
            "/api/v1/tenants",
            json={"name": "Another branch", "slug": "branch-office"},
            headers=root_headers,
        )
        assert resp.status_code == 409
        assert "slug" in resp.json()["errors"]

    async def test_update_name_and_deactivate(self, client, root_headers, branch):
        resp = await client.patch(
            f"/api/v1/tenants/{branch['id']}",
            json={"name": "Branch North", "is_active": False},
            headers=root_headers,
        )
        assert resp.status_code == 200
        assert resp.json()["name"] == "Branch North"
        assert resp.json()["is_active"] is False

    async def test_slug_cannot_change(self, client, root_headers, branch):
        resp = await client.patch(
            f"/api/v1/tenants/{branch['id']}",
            json={"slug": "branch-north"},
            headers=root_headers,
        )
        assert resp.status_code == 422
        assert "slug" in resp.json()["errors"]

    async def test_system_admin_lists_all(self, client, root_headers, branch):
        resp = await client.get("/api/v1/tenants", headers=root_headers)
        assert resp.json()["meta"]["total"] == 2


class TestTenantDelete:

    async def test_delete_empty_tenant_is_audited(self, client, root_headers, branch):
        resp = await client.delete(f"/api/v1/tenants/{branch['id']}", headers=root_headers)
        assert resp.status_code == 204

        resp = await client.get(f"/api/v1/tenants/{branch['id']}", headers=root_headers)
        assert resp.status_code == 404

        resp = await client.get(
            "/api/v1/audit-logs",
            params={"entity_type": "tenant", "action": "delete"},
            headers=root_headers,
        )
        [entry] = [e for e in resp.json()["data"] if e["action"] == "delete"]
        assert entry["entity_id"] == branch["id"]
        assert entry["old_values"]["slug"] == "branch-office"

    async def test_delete_with_employees(self, client, db, root_headers, branch):
        db.add(Employee(**_make_employee(uuid.UUID(branch["id"]), personnel_number="5001")))
        await db.commit()

        resp = await client.delete(f"/api/v1/tenants/{branch['id']}", headers=root_headers)
        assert resp.status_code == 409
        assert "employees" in resp.json()["detail"]

    async def test_delete_with_users(self, client, db, root_headers):
        other = Tenant(**_make_tenant(name="Other AG"))
        db.add(other)
        await db.commit()
        await create_user(db, other.id, UserRole.admin)

        resp = await client.delete(f"/api/v1/tenants/{other.id}", headers=root_headers)
        assert resp.status_code == 409
        assert "users" in resp.json()["detail"]


class TestTenantPermissions:

    async def test_admin_cannot_create(self, client, admin_headers):
        resp = await client.post(
            "/api/v1/tenants",
            json={"name": "Shadow", "slug": "shadow"},
            headers=admin_headers,
        )
        assert resp.status_code == 403

    async def test_admin_cannot_delete_own_tenant(self, client, admin_headers, tenant):
        resp = await client.delete(f"/api/v1/tenants/{tenant.id}", headers=admin_headers)
        assert resp.status_code == 403

    async def test_admin_renames_own_tenant(self, client, admin_headers, tenant):
        resp = await client.patch(
            f"/api/v1/tenants/{tenant.id}", json={"name": "Acme AG"}, headers=admin_headers,
        )
        assert resp.status_code == 200
        assert resp.json()["name"] == "Acme AG"

    async def test_admin_cannot_deactivate(self, client, admin_headers, tenant):
        resp = await client.patch(
            f"/api/v1/tenants/{tenant.id}", json={"is_active": False}, headers=admin_headers,
        )
        assert resp.status_code == 403

    async def test_admin_sees_only_own_tenant(self, client, db, admin_headers, tenant):
        db.add(Tenant(**_make_tenant(name="Other AG")))
        await db.commit()

        resp = await client.get("/api/v1/tenants", headers=admin_headers)
        assert [t["id"] for t in resp.json()["data"]] == [str(tenant.id)]
